"""File utility functions."""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class FileHelper:
    """Helper class for file operations."""

    @staticmethod
    def get_file_info(file_path: Path) -> Dict[str, Any]:
        """Get the metadata retention decisions are based on.

        Args:
            file_path: Path to the file

        Returns:
            Dictionary with name, path, size and modification time

        Raises:
            FileNotFoundError: If the file vanished
            OSError: If the file cannot be stat'ed
        """
        stat = file_path.stat()

        return {
            'name': file_path.name,
            'path': file_path,
            'size': stat.st_size,
            'mtime': stat.st_mtime,
            'modified_time': datetime.fromtimestamp(stat.st_mtime),
        }

    @staticmethod
    def format_file_size(size_bytes: int) -> str:
        """Format file size in human readable format.

        Args:
            size_bytes: Size in bytes

        Returns:
            Formatted size string
        """
        if size_bytes == 0:
            return "0 B"

        size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
        i = 0

        while size_bytes >= 1024 and i < len(size_names) - 1:
            size_bytes /= 1024.0
            i += 1

        return f"{size_bytes:.1f} {size_names[i]}"

    @staticmethod
    def sanitize_name_component(name: str, replacement: str = "_") -> str:
        """Make a string safe to embed in a single file name.

        Path separators and control characters are replaced so the result
        can never introduce a directory level.

        Args:
            name: Original string
            replacement: Character to replace invalid characters

        Returns:
            Sanitized name component
        """
        sanitized = name
        for char in {"/", "\\", os.sep}:
            sanitized = sanitized.replace(char, replacement)

        sanitized = ''.join(char if ord(char) >= 32 else replacement for char in sanitized)

        # "/" has an empty base name
        if sanitized in ("", ".", ".."):
            return "root"

        return sanitized

    @staticmethod
    def nearest_existing_parent(path: Path) -> Optional[Path]:
        """Walk up from path to the first directory entry that exists."""
        current = path
        while True:
            if current.exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    @staticmethod
    def is_writable_dir(path: Path) -> bool:
        """Check whether new entries can be created in a directory."""
        return path.is_dir() and os.access(path, os.W_OK | os.X_OK)

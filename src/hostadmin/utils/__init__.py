"""Utility functions and helpers."""

from .commands import format_command, run_command
from .file_utils import FileHelper
from .logging import get_audit_logger, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "get_audit_logger",
    "run_command",
    "format_command",
    "FileHelper",
]

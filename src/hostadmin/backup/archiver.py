"""
Archiving step for backups.

Two implementations share one contract: compress a directory tree into a
single ``.tar.gz`` file whose only top-level entry is the directory's own
name, and raise ArchiveToolFailure when that does not work.

- TarfileArchiver: in-process, using the standard tarfile module
- TarCommandArchiver: shells out to ``tar -czf``
"""

import logging
import subprocess
import tarfile
from pathlib import Path
from typing import List, Optional, Union

from ..config.settings import ArchiverType, BackupConfig
from ..exceptions import ArchiveToolFailure, CommandError
from ..utils.commands import Runner, format_command, run_command


class Archiver:
    """Base class for archiving implementations."""

    def command_line(self, source_dir: Path, output_path: Path) -> List[str]:
        """The equivalent ``tar`` invocation, shown in dry-run output."""
        source_dir = Path(source_dir).resolve()
        return [
            "tar", "-czf", str(output_path),
            "-C", str(source_dir.parent),
            source_dir.name or "/",
        ]

    def describe(self, source_dir: Path, output_path: Path) -> str:
        return format_command(self.command_line(source_dir, output_path))

    def archive(self, source_dir: Path, output_path: Path) -> None:
        """Write the archive of source_dir to output_path.

        Raises:
            ArchiveToolFailure: If the archive could not be written
        """
        raise NotImplementedError


class TarfileArchiver(Archiver):
    """Gzip compressed tar written with the tarfile module."""

    def archive(self, source_dir: Path, output_path: Path) -> None:
        source_dir = Path(source_dir).resolve()
        arcname = source_dir.name or "root"
        output_path = Path(output_path).resolve()

        # The archive never contains itself when dest lives inside source
        excluded = None
        if output_path.is_relative_to(source_dir):
            excluded = f"{arcname}/{output_path.relative_to(source_dir).as_posix()}"

        def skip_own_output(tarinfo):
            return None if tarinfo.name == excluded else tarinfo

        try:
            with tarfile.open(output_path, "w:gz") as tar:
                tar.add(source_dir, arcname=arcname, recursive=True, filter=skip_own_output)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveToolFailure(source_dir, output_path, str(e)) from e


class TarCommandArchiver(Archiver):
    """Runs the system ``tar`` binary."""

    def __init__(self, tar_command: str = "tar", logger: Optional[logging.Logger] = None,
                 runner: Runner = subprocess.run):
        self.tar_command = tar_command
        self.logger = logger or logging.getLogger(__name__)
        self.runner = runner

    def command_line(self, source_dir: Path, output_path: Path) -> List[str]:
        command = super().command_line(source_dir, output_path)
        command[0] = self.tar_command
        return command

    def archive(self, source_dir: Path, output_path: Path) -> None:
        command = self.command_line(source_dir, output_path)
        try:
            run_command(command, self.logger, runner=self.runner)
        except CommandError as e:
            raise ArchiveToolFailure(
                source_dir, output_path, e.output or str(e), returncode=e.returncode
            ) from e


def build_archiver(config: BackupConfig, logger: Optional[logging.Logger] = None) -> Archiver:
    """Create the archiver selected in the configuration."""
    if config.archiver == ArchiverType.TAR:
        return TarCommandArchiver(config.tar_command, logger=logger)
    return TarfileArchiver()


def write_atomically(archiver: Archiver, source_dir: Union[str, Path],
                     final_path: Path) -> Path:
    """Archive into a hidden temporary name, then rename into place.

    The temporary name starts with a dot, so retention never sees a
    half-written archive. The temporary file is removed on failure.

    Returns:
        The final archive path

    Raises:
        ArchiveToolFailure: If archiving or the final rename fails
    """
    final_path = Path(final_path)
    temp_path = final_path.with_name(f".{final_path.name}.partial")

    try:
        archiver.archive(Path(source_dir), temp_path)
        temp_path.replace(final_path)
    except ArchiveToolFailure:
        temp_path.unlink(missing_ok=True)
        raise
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise ArchiveToolFailure(source_dir, final_path, str(e)) from e

    return final_path

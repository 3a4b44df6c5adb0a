"""
Retention policy enforcement for backups.

Keeps the newest N archives of one (host, source) pair in a destination
directory and removes the rest. Archives are ordered by modification time,
newest first; equal times fall back to the file name, whose timestamp
suffix sorts chronologically.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from ..exceptions import BackupError, DeletionFailure, ListingFailure
from ..utils.file_utils import FileHelper
from ..utils.logging import get_audit_logger, get_logger
from .naming import ArchiveNameMatcher, DEFAULT_TIMESTAMP_FORMAT

logger = get_logger("retention")


@dataclass(frozen=True)
class ArchiveEntry:
    """An archive file found in the destination directory."""
    path: Path
    mtime: float
    size: int = 0

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def modified_time(self) -> datetime:
        return datetime.fromtimestamp(self.mtime)

    def sort_key(self):
        return (self.mtime, self.name)


@dataclass
class PruneResult:
    """Outcome of a retention pass."""
    simulated: bool = False
    kept: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    failures: List[BackupError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def list_archives(dest_dir: Path, matcher: ArchiveNameMatcher) -> List[ArchiveEntry]:
    """Enumerate the RetentionSet, newest first.

    A missing destination is an empty set. Files that disappear while
    listing are skipped.

    Raises:
        ListingFailure: If the directory or an archive cannot be read
    """
    dest_dir = Path(dest_dir)
    if not dest_dir.is_dir():
        return []

    entries = []
    try:
        for path in dest_dir.iterdir():
            if not matcher.matches(path.name):
                continue
            if not path.is_file():
                continue
            try:
                info = FileHelper.get_file_info(path)
            except FileNotFoundError:
                continue
            entries.append(ArchiveEntry(path=path, mtime=info['mtime'], size=info['size']))
    except FileNotFoundError:
        return []
    except OSError as e:
        raise ListingFailure(dest_dir, e) from e

    entries.sort(key=ArchiveEntry.sort_key, reverse=True)
    return entries


class RetentionManager:
    """Applies "keep last N" to one (host, source) pair."""

    def __init__(self, host: str, source_name: str,
                 timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
                 audit: Optional[logging.Logger] = None):
        self.matcher = ArchiveNameMatcher(host, source_name, timestamp_format)
        self.audit = audit or get_audit_logger()

    def list_archives(self, dest_dir: Path) -> List[ArchiveEntry]:
        return list_archives(dest_dir, self.matcher)

    def prune(self, dest_dir: Path, retention: int, dry_run: bool = False,
              planned: Iterable[Path] = ()) -> PruneResult:
        """Remove archives beyond the newest ``retention``.

        Args:
            dest_dir: Directory holding the archives
            retention: Number of archives to keep; 0 or less disables pruning
            dry_run: Report "would remove" instead of deleting
            planned: Archives a dry run would have created; they count as
                the newest members so the report matches a real run

        Returns:
            PruneResult; listing and deletion failures are collected, not raised
        """
        result = PruneResult(simulated=dry_run)
        if retention <= 0:
            return result

        try:
            existing = self.list_archives(dest_dir)
        except ListingFailure as e:
            self.audit.error(str(e))
            result.failures.append(e)
            return result

        planned = [Path(p) for p in planned]
        planned_names = {p.name for p in planned}
        existing = [e for e in existing if e.name not in planned_names]

        ordered = planned + [entry.path for entry in existing]
        result.kept = ordered[:retention]
        doomed = ordered[retention:]

        if not doomed:
            logger.debug(
                f"Retention {retention}: {len(ordered)} archive(s) in {dest_dir}, nothing to remove"
            )
            return result

        logger.info(
            f"Retention {retention}: {len(ordered)} archive(s) in {dest_dir}, "
            f"removing {len(doomed)}"
        )

        for path in reversed(doomed):
            if dry_run:
                self.audit.info(f"[DRY RUN] Would remove old backup: {path}")
                result.removed.append(path)
                continue

            self.audit.info(f"Removing old backup: {path}")
            try:
                path.unlink()
            except FileNotFoundError:
                self.audit.warning(f"Old backup already gone: {path}")
                result.removed.append(path)
            except OSError as e:
                failure = DeletionFailure(path, e)
                self.audit.error(str(failure))
                result.failures.append(failure)
            else:
                result.removed.append(path)

        return result

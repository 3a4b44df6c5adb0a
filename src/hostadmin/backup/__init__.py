"""
Backup module for hostadmin.

This module handles:
- Archive naming (backup-<host>-<source>-<timestamp>.tar.gz)
- Archive creation (tarfile or the tar command)
- Retention ("keep last N") enforcement
- Optional advisory locking of the destination
"""

from .archiver import Archiver, TarCommandArchiver, TarfileArchiver, build_archiver
from .engine import ArchiveResult, BackupEngine, BackupRequest, BackupResult
from .locking import DestinationLock
from .naming import ArchiveName, ArchiveNameMatcher
from .retention import ArchiveEntry, PruneResult, RetentionManager

__all__ = [
    'BackupEngine',
    'BackupRequest',
    'BackupResult',
    'ArchiveResult',
    'Archiver',
    'TarfileArchiver',
    'TarCommandArchiver',
    'build_archiver',
    'ArchiveName',
    'ArchiveNameMatcher',
    'ArchiveEntry',
    'PruneResult',
    'RetentionManager',
    'DestinationLock',
]

"""
hostadmin

A host-local administrative tool: manage user and group accounts and take
timestamped directory backups with "keep last N" retention.
"""

__version__ = "1.0.0"
__author__ = "hostadmin maintainers"
__description__ = "Host-local account management and directory backups"

from .config.settings import BackupConfig, Settings
from .backup.engine import BackupEngine, BackupRequest

__all__ = ["BackupConfig", "Settings", "BackupEngine", "BackupRequest"]

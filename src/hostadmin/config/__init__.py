"""Configuration management for hostadmin."""

from .settings import AccountsConfig, BackupConfig, LoggingConfig, Settings

__all__ = ["Settings", "BackupConfig", "LoggingConfig", "AccountsConfig"]

"""Configuration settings and models for hostadmin."""

import os
import re
import socket
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("config/hostadmin.yaml")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
TIMESTAMP_DIRECTIVES = "YmdHMS"


def short_hostname() -> str:
    """Host name up to the first dot, like ``hostname -s``."""
    return socket.gethostname().split(".")[0] or "localhost"


def default_log_file() -> Path:
    """Root writes to /var/log, everyone else to the working directory."""
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return Path("/var/log/hostadmin.log")
    return Path("hostadmin.log")


class ArchiverType(str, Enum):
    """Supported archiving implementations."""
    TARFILE = "tarfile"
    TAR = "tar"


class BackupConfig(BaseModel):
    """Settings passed explicitly into the backup engine."""
    hostname: str = Field(default_factory=short_hostname)
    default_dest: Path = Path("backups")
    timestamp_format: str = "%Y%m%d-%H%M%S"
    archiver: ArchiverType = ArchiverType.TARFILE
    tar_command: str = "tar"
    use_lock: bool = False
    lock_name: str = ".hostadmin.lock"

    @field_validator('hostname')
    @classmethod
    def validate_hostname(cls, v):
        if not v or not v.strip():
            raise ValueError('hostname must not be empty')
        return v.strip()

    @field_validator('timestamp_format')
    @classmethod
    def validate_timestamp_format(cls, v):
        # Names must sort chronologically and stay a single path component
        if "/" in v or os.sep in v:
            raise ValueError('timestamp_format must not contain path separators')
        directives = "".join(re.findall(r'%(.)', v))
        if directives != TIMESTAMP_DIRECTIVES:
            raise ValueError(
                'timestamp_format must use %Y %m %d %H %M %S exactly once each, '
                f'in that order (got {v!r})'
            )
        return v

    @field_validator('lock_name')
    @classmethod
    def validate_lock_name(cls, v):
        if "/" in v or os.sep in v:
            raise ValueError('lock_name must be a plain file name')
        if v.startswith("backup-"):
            raise ValueError('lock_name must not look like an archive name')
        return v


class LoggingConfig(BaseModel):
    """Audit log configuration."""
    level: str = "INFO"
    file: Optional[Path] = None
    console: bool = True
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f'unknown log level: {v}')
        return level

    def resolved_file(self) -> Path:
        return self.file if self.file is not None else default_log_file()


class AccountsConfig(BaseModel):
    """Account management defaults."""
    min_uid: int = Field(default=1000, ge=0)
    default_shell: str = "/bin/bash"


class Settings(BaseModel):
    """Main configuration class."""
    backup: BackupConfig = Field(default_factory=BackupConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    accounts: AccountsConfig = Field(default_factory=AccountsConfig)

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "Settings":
        """Load settings from a YAML file; a missing file yields defaults."""
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read configuration file {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Configuration file {config_path} must contain a mapping")

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e

    def to_yaml(self, config_path: Union[str, Path]) -> None:
        """Save settings to a YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
            )

    def apply_env(self) -> "Settings":
        """Override settings from HOSTADMIN_* environment variables."""
        if os.getenv('HOSTADMIN_HOSTNAME'):
            self.backup.hostname = os.environ['HOSTADMIN_HOSTNAME']
        if os.getenv('HOSTADMIN_BACKUP_DIR'):
            self.backup.default_dest = Path(os.environ['HOSTADMIN_BACKUP_DIR'])
        if os.getenv('HOSTADMIN_LOG_FILE'):
            self.logging.file = Path(os.environ['HOSTADMIN_LOG_FILE'])
        if os.getenv('HOSTADMIN_LOG_LEVEL'):
            level = os.environ['HOSTADMIN_LOG_LEVEL'].upper()
            if level not in LOG_LEVELS:
                raise ConfigError(f"Invalid HOSTADMIN_LOG_LEVEL: {level}")
            self.logging.level = level
        return self

    @classmethod
    def load(cls, config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> "Settings":
        """Load from YAML, then apply environment overrides."""
        return cls.from_yaml(config_path).apply_env()

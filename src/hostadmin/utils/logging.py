"""Logging configuration and utilities."""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "hostadmin"
AUDIT_LOGGER = f"{ROOT_LOGGER}.audit"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """Setup logging configuration.

    The file handler is the append-only audit trail: every archive
    created, every file removed (or that would be, in a dry run) and every
    account change ends up there.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        log_to_console: Whether to log to console
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured logger

    Raises:
        OSError: If the log file cannot be opened
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper()))

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s [%(process)d] %(levelname)s %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER)


class TimedOperation:
    """Context manager for timing operations and logging results."""

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: str = "INFO"):
        """Initialize timed operation.

        Args:
            logger: Logger to use
            operation_name: Name of the operation
            log_level: Log level for timing messages
        """
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = getattr(logging, log_level.upper())
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        """Start timing."""
        self.start_time = datetime.now()
        self.logger.log(self.log_level, f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop timing and log results."""
        if self.start_time:
            self.duration = (datetime.now() - self.start_time).total_seconds()
            if exc_type is None:
                self.logger.log(self.log_level, f"Completed {self.operation_name} in {self.duration:.2f}s")
            else:
                self.logger.error(f"Failed {self.operation_name} after {self.duration:.2f}s: {exc_val}")

"""Advisory lock on a backup destination directory."""

import fcntl
import os
from pathlib import Path
from typing import Optional

from ..exceptions import DestinationLocked, DestinationUnwritable
from ..utils.logging import get_logger

logger = get_logger("locking")


class DestinationLock:
    """Exclusive, non-blocking ``flock`` on a sentinel file in the destination.

    Two backups of the same destination holding this lock cannot both
    list the same archives and race on pruning them. The sentinel file is
    left in place; only the lock is released.
    """

    def __init__(self, dest_dir: Path, lock_name: str = ".hostadmin.lock"):
        self.lock_file = Path(dest_dir) / lock_name
        self.lock_fd: Optional[int] = None

    @property
    def acquired(self) -> bool:
        return self.lock_fd is not None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            DestinationLocked: If another process holds the lock
            DestinationUnwritable: If the sentinel file cannot be opened
        """
        try:
            fd = os.open(self.lock_file, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise DestinationUnwritable(self.lock_file.parent, e) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            raise DestinationLocked(self.lock_file)

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())

        self.lock_fd = fd
        logger.debug(f"Lock acquired: {self.lock_file} (PID: {os.getpid()})")

    def release(self) -> None:
        if self.lock_fd is None:
            return
        try:
            fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(self.lock_fd)
            self.lock_fd = None
        logger.debug(f"Lock released: {self.lock_file}")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

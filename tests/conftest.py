"""
Shared pytest fixtures for hostadmin tests.

This module provides fixtures for:
- Source and destination directories under tmp_path
- A backup configuration with a fixed host name
- A deterministic clock for archive timestamps
- Pre-existing archives with controlled modification times
"""

import logging
import os
import subprocess
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from hostadmin.backup import BackupEngine
from hostadmin.config import BackupConfig

HOST = "testhost"


class FakeClock:
    """Returns a new second on every call."""

    def __init__(self, start=datetime(2024, 1, 15, 12, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


@pytest.fixture(autouse=True)
def reset_hostadmin_logging():
    """Drop handlers the CLI installs so tests don't share streams."""
    yield
    logger = logging.getLogger("hostadmin")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_dir(tmp_path):
    """A source directory with one file and one nested file."""
    source = tmp_path / "data"
    source.mkdir()
    (source / "notes.txt").write_text("hello backup\n")
    nested = source / "nested"
    nested.mkdir()
    (nested / "deep.txt").write_text("nested content\n")
    return source


@pytest.fixture
def dest_dir(tmp_path):
    """Destination path; not created."""
    return tmp_path / "out"


@pytest.fixture
def backup_config():
    return BackupConfig(hostname=HOST)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(backup_config, clock):
    return BackupEngine(backup_config, clock=clock)


@pytest.fixture
def make_archive():
    """Create an archive-named file with a given age in seconds."""
    base = datetime(2024, 1, 1, 0, 0, 0).timestamp()

    def _make(dest: Path, index: int, source: str = "data", host: str = HOST) -> Path:
        dest.mkdir(parents=True, exist_ok=True)
        when = datetime.fromtimestamp(base + index * 3600)
        path = dest / f"backup-{host}-{source}-{when.strftime('%Y%m%d-%H%M%S')}.tar.gz"
        path.write_bytes(f"archive {index}".encode())
        os.utime(path, (base + index * 3600, base + index * 3600))
        return path

    return _make


@pytest.fixture
def completed():
    """Factory for successful subprocess results."""
    def _completed(args=None, returncode=0, stdout=""):
        return subprocess.CompletedProcess(args or [], returncode, stdout=stdout)
    return _completed


def snapshot(*roots: Path) -> dict:
    """Contents and modification times of every file under the roots."""
    state = {}
    for root in roots:
        if not root.exists():
            state[str(root)] = None
            continue
        for path in sorted(root.rglob("*")):
            stat = path.stat()
            content = path.read_bytes() if path.is_file() else b""
            state[str(path)] = (content, stat.st_mtime_ns, path.is_dir())
    return state

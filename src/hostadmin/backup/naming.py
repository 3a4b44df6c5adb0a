"""Archive naming scheme.

Format: ``backup-<host>-<source>-<YYYYMMDD-HHMMSS>.tar.gz``

Every archive taken of one source on one host shares the prefix
``backup-<host>-<source>-``, which is how retention finds them again.
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..utils.file_utils import FileHelper

ARCHIVE_PREFIX = "backup"
ARCHIVE_EXTENSION = ".tar.gz"
DEFAULT_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

_STRFTIME_PATTERNS = {
    "%Y": r"\d{4}",
    "%m": r"\d{2}",
    "%d": r"\d{2}",
    "%H": r"\d{2}",
    "%M": r"\d{2}",
    "%S": r"\d{2}",
}


def source_base_name(source_dir: Path) -> str:
    """Base name of the source directory, safe to embed in a file name.

    Symlinks are not followed: a source given as ``/srv/current`` keeps the
    name ``current`` however often the link is retargeted. Only ``.``,
    ``..`` and trailing slashes are normalised away.
    """
    return FileHelper.sanitize_name_component(Path(os.path.abspath(source_dir)).name)


def archive_prefix(host: str, source_name: str) -> str:
    host = FileHelper.sanitize_name_component(host)
    source_name = FileHelper.sanitize_name_component(source_name)
    return f"{ARCHIVE_PREFIX}-{host}-{source_name}-"


def timestamp_regex(timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Translate a strftime format made of numeric fields into a regex."""
    pattern = ""
    i = 0
    while i < len(timestamp_format):
        token = timestamp_format[i:i + 2]
        if token in _STRFTIME_PATTERNS:
            pattern += _STRFTIME_PATTERNS[token]
            i += 2
        elif timestamp_format[i] == "%":
            raise ValueError(f"Unsupported timestamp directive: {token}")
        else:
            pattern += re.escape(timestamp_format[i])
            i += 1
    return pattern


@dataclass(frozen=True)
class ArchiveName:
    """A parsed or freshly computed archive file name."""
    host: str
    source: str
    timestamp: str

    @property
    def prefix(self) -> str:
        return archive_prefix(self.host, self.source)

    @property
    def filename(self) -> str:
        return f"{self.prefix}{self.timestamp}{ARCHIVE_EXTENSION}"

    def __str__(self) -> str:
        return self.filename

    @classmethod
    def create(cls, host: str, source: str, when: datetime,
               timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> "ArchiveName":
        return cls(
            host=FileHelper.sanitize_name_component(host),
            source=FileHelper.sanitize_name_component(source),
            timestamp=when.strftime(timestamp_format),
        )


class ArchiveNameMatcher:
    """Recognises the archives belonging to one (host, source) pair."""

    def __init__(self, host: str, source: str,
                 timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT):
        self.host = FileHelper.sanitize_name_component(host)
        self.source = FileHelper.sanitize_name_component(source)
        self.prefix = archive_prefix(self.host, self.source)
        self._pattern = re.compile(
            re.escape(self.prefix)
            + f"(?P<timestamp>{timestamp_regex(timestamp_format)})"
            + re.escape(ARCHIVE_EXTENSION)
            + r"\Z"
        )

    def parse(self, filename: str) -> Optional[ArchiveName]:
        """Return the ArchiveName for a matching file name, else None.

        The timestamp must follow the prefix directly, so the archives of
        a source called ``data-old`` are never claimed by ``data``.
        """
        match = self._pattern.match(filename)
        if match is None:
            return None
        return ArchiveName(self.host, self.source, match.group("timestamp"))

    def matches(self, filename: str) -> bool:
        return self.parse(filename) is not None

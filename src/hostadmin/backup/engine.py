"""Backup engine: timestamped archive creation plus "keep last N" pruning."""

import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from ..config.settings import BackupConfig
from ..exceptions import (
    ArchiveCollision,
    BackupError,
    DestinationLocked,
    DestinationUnwritable,
    InvalidSource,
)
from ..utils.file_utils import FileHelper
from ..utils.logging import TimedOperation, get_audit_logger, get_logger
from .archiver import Archiver, build_archiver, write_atomically
from .locking import DestinationLock
from .naming import ArchiveName, source_base_name
from .retention import ArchiveEntry, PruneResult, RetentionManager

# Module logger
logger = get_logger("backup")

DRY_RUN = "[DRY RUN]"


@dataclass
class BackupRequest:
    """Arguments of a single backup invocation."""
    source_dir: Union[str, Path]
    dest_dir: Optional[Union[str, Path]] = None
    retention: int = 0
    dry_run: bool = False
    use_lock: Optional[bool] = None  # None: follow BackupConfig.use_lock


@dataclass
class ArchiveResult:
    """The archive that was written, or would have been in a dry run."""
    path: Path
    source: Path
    command: str
    simulated: bool = False
    size: int = 0


@dataclass
class BackupResult:
    archive: ArchiveResult
    prune: Optional[PruneResult] = None
    duration: float = 0.0

    @property
    def status(self) -> str:
        if self.prune is not None and not self.prune.ok:
            return "partial"
        return "completed"

    @property
    def simulated(self) -> bool:
        return self.archive.simulated

    @property
    def removed(self) -> List[Path]:
        return list(self.prune.removed) if self.prune else []


class BackupEngine:
    """Creates archives of a source directory and prunes old ones.

    Host name, timestamp format and archiver all come from the
    BackupConfig handed in; the engine holds no other state between calls.
    """

    def __init__(
        self,
        config: BackupConfig,
        archiver: Optional[Archiver] = None,
        clock: Callable[[], datetime] = datetime.now,
        audit: Optional[logging.Logger] = None,
    ):
        """Initialize backup engine.

        Args:
            config: Backup configuration
            archiver: Archiving implementation (default: from config)
            clock: Source of the archive timestamp
            audit: Audit logger receiving one line per decision
        """
        self.config = config
        self.archiver = archiver or build_archiver(config, logger=logger)
        self.clock = clock
        self.audit = audit or get_audit_logger()

    def resolve_dest(self, request: BackupRequest) -> Path:
        return Path(request.dest_dir) if request.dest_dir else Path(self.config.default_dest)

    def retention_manager(self, source_name: str, host: Optional[str] = None) -> RetentionManager:
        return RetentionManager(
            host or self.config.hostname,
            source_name,
            timestamp_format=self.config.timestamp_format,
            audit=self.audit,
        )

    def create_archive(self, request: BackupRequest) -> ArchiveResult:
        """Archive the source directory into the destination.

        Args:
            request: Backup request

        Returns:
            ArchiveResult; ``simulated`` is set for dry runs, which write nothing

        Raises:
            InvalidSource: If the source is missing or not a directory
            DestinationUnwritable: If the destination cannot be created
            ArchiveToolFailure: If archiving fails or the name is taken
        """
        try:
            return self._create_archive(request)
        except BackupError as e:
            self.audit.error(str(e))
            raise

    def _create_archive(self, request: BackupRequest) -> ArchiveResult:
        source = self._validate_source(request.source_dir)
        dest = self.resolve_dest(request)
        self._prepare_destination(dest, request.dry_run)

        name = ArchiveName.create(
            self.config.hostname,
            source_base_name(Path(request.source_dir)),
            self.clock(),
            self.config.timestamp_format,
        )
        archive_path = dest / name.filename
        command = self.archiver.describe(source, archive_path)

        if archive_path.exists():
            raise ArchiveCollision(source, archive_path)

        if request.dry_run:
            self.audit.info(
                f"{DRY_RUN} Would create backup {archive_path} from {source}: {command}"
            )
            return ArchiveResult(path=archive_path, source=source, command=command, simulated=True)

        self.audit.info(f"Creating backup {archive_path} from {source}: {command}")
        write_atomically(self.archiver, source, archive_path)

        size = archive_path.stat().st_size
        self.audit.info(f"Backup created: {archive_path} ({FileHelper.format_file_size(size)})")
        return ArchiveResult(path=archive_path, source=source, command=command, size=size)

    def prune_old_archives(
        self,
        dest_dir: Union[str, Path],
        host: str,
        source_name: str,
        retention: int,
        dry_run: bool = False,
        planned: Iterable[Path] = (),
    ) -> PruneResult:
        """Keep the newest ``retention`` archives of a source, remove the rest.

        Deletion is best-effort: a file that cannot be removed is recorded
        in ``PruneResult.failures`` and the remaining deletions go ahead.
        """
        return self.retention_manager(source_name, host).prune(
            Path(dest_dir), retention, dry_run=dry_run, planned=planned
        )

    def list_archives(self, dest_dir: Union[str, Path], host: str, source_name: str) -> List[ArchiveEntry]:
        """Archives of one (host, source) pair in a destination, newest first."""
        return self.retention_manager(source_name, host).list_archives(Path(dest_dir))

    def backup(self, request: BackupRequest) -> BackupResult:
        """Create an archive, then prune old ones.

        The two steps are not atomic. A failed archive skips pruning and
        raises; failed deletions leave the new archive in place and make
        the result ``partial``.
        """
        source_name = source_base_name(Path(request.source_dir))
        dest = self.resolve_dest(request)

        with TimedOperation(logger, f"backup of {request.source_dir}") as timer:
            try:
                with self._destination_lock(request, dest):
                    archive = self.create_archive(request)

                    prune = None
                    if request.retention > 0:
                        prune = self.prune_old_archives(
                            dest,
                            self.config.hostname,
                            source_name,
                            request.retention,
                            dry_run=request.dry_run,
                            planned=[archive.path] if archive.simulated else (),
                        )
            except DestinationLocked as e:
                self.audit.error(str(e))
                raise

        result = BackupResult(archive=archive, prune=prune, duration=timer.duration)
        if result.status == "partial":
            self.audit.warning(
                f"Backup {archive.path} created, but retention was not fully applied "
                f"({len(prune.failures)} failure(s))"
            )
        return result

    def _destination_lock(self, request: BackupRequest, dest: Path):
        use_lock = self.config.use_lock if request.use_lock is None else request.use_lock
        if not use_lock or request.dry_run:
            return contextlib.nullcontext()

        # The sentinel lives in dest, so dest must exist before locking
        try:
            self._validate_source(request.source_dir)
            self._prepare_destination(dest, dry_run=False)
        except BackupError as e:
            self.audit.error(str(e))
            raise
        return DestinationLock(dest, self.config.lock_name)

    @staticmethod
    def _validate_source(source_dir: Union[str, Path]) -> Path:
        source = Path(source_dir)
        if not source.exists():
            raise InvalidSource(source)
        if not source.is_dir():
            raise InvalidSource(source, "is not a directory")
        return source.resolve()

    @staticmethod
    def _prepare_destination(dest: Path, dry_run: bool) -> None:
        if dry_run:
            # Nothing is created; the closest existing ancestor must accept it
            existing = FileHelper.nearest_existing_parent(dest)
            if existing is None or not FileHelper.is_writable_dir(existing):
                raise DestinationUnwritable(dest)
            return

        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationUnwritable(dest, e) from e

        if not FileHelper.is_writable_dir(dest):
            raise DestinationUnwritable(dest)

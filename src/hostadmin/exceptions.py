"""Exception hierarchy for hostadmin."""

from pathlib import Path
from typing import Optional, Union


class HostAdminError(Exception):
    """Base class for every error hostadmin reports to the user."""

    exit_code = 1


class InvalidArgument(HostAdminError):
    """A flag or argument combination that cannot be acted on."""

    exit_code = 2


class ConfigError(HostAdminError):
    """Settings file could not be read or failed validation."""


class CommandError(HostAdminError):
    """An operating-system command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        message = f"Command failed ({returncode}): {command}"
        if output:
            message += f"\n{output}"
        super().__init__(message)


# Backup engine

class BackupError(HostAdminError):
    """Base class for backup engine failures."""


class InvalidSource(BackupError):
    """Source directory is missing or not a directory."""

    def __init__(self, source: Union[str, Path], reason: str = "does not exist"):
        self.source = Path(source)
        super().__init__(f"Source directory {reason}: {source}")


class DestinationUnwritable(BackupError):
    """Destination directory could not be created or written."""

    def __init__(self, dest: Union[str, Path], cause: Optional[BaseException] = None):
        self.dest = Path(dest)
        self.cause = cause
        message = f"Destination directory is not writable: {dest}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class ArchiveToolFailure(BackupError):
    """The archiving step failed; carries the tool's status and message."""

    def __init__(self, source: Union[str, Path], output_path: Union[str, Path],
                 message: str, returncode: Optional[int] = None):
        self.source = Path(source)
        self.output_path = Path(output_path)
        self.returncode = returncode
        self.tool_message = message
        status = f" (exit {returncode})" if returncode is not None else ""
        super().__init__(
            f"Failed to archive {source} to {output_path}{status}: {message}"
        )


class ArchiveCollision(ArchiveToolFailure):
    """An archive with the computed name already exists."""

    def __init__(self, source: Union[str, Path], output_path: Union[str, Path]):
        super().__init__(
            source,
            output_path,
            "archive already exists; refusing to overwrite "
            "(two backups of the same source within one second)",
        )


class DeletionFailure(BackupError):
    """An old archive could not be removed during pruning."""

    def __init__(self, path: Union[str, Path], cause: BaseException):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to remove old backup {path}: {cause}")


class ListingFailure(BackupError):
    """The destination directory could not be listed."""

    def __init__(self, dest: Union[str, Path], cause: BaseException):
        self.dest = Path(dest)
        self.cause = cause
        super().__init__(f"Cannot list backups in {dest}: {cause}")


class DestinationLocked(BackupError):
    """Another backup holds the advisory lock on the destination."""

    def __init__(self, lock_file: Union[str, Path]):
        self.lock_file = Path(lock_file)
        super().__init__(f"Destination is locked by another backup: {lock_file}")


# Accounts

class AccountError(HostAdminError):
    """Base class for user and group management failures."""


class RootRequired(AccountError):
    """The action needs root privileges."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(
            f"{action} requires root. Re-run with sudo or as root."
        )


class UserExists(AccountError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User {username} already exists. Use --force to continue.")


class UserNotFound(AccountError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User {username} does not exist")


class GroupExists(AccountError):
    def __init__(self, group: str):
        self.group = group
        super().__init__(f"Group {group} already exists")


class GroupNotFound(AccountError):
    def __init__(self, group: str):
        self.group = group
        super().__init__(f"Group {group} does not exist")


class ProtectedAccount(AccountError):
    """Refusing to delete a system or low-UID account."""

    def __init__(self, username: str, uid: int):
        self.username = username
        self.uid = uid
        super().__init__(
            f"Refusing to delete system or low-UID user {username} (UID={uid}). "
            "Use --force to override."
        )

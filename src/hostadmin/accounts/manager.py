"""User and group management through the system account tools."""

import grp
import os
import pwd
import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..config.settings import AccountsConfig
from ..exceptions import (
    GroupExists,
    GroupNotFound,
    InvalidArgument,
    ProtectedAccount,
    RootRequired,
    UserExists,
    UserNotFound,
)
from ..utils.commands import Runner, run_command
from ..utils.logging import get_audit_logger


@dataclass
class UserInfo:
    """One entry of the passwd database."""
    name: str
    uid: int
    gid: int
    home: str
    shell: str


def user_exists(username: str) -> bool:
    try:
        pwd.getpwnam(username)
    except KeyError:
        return False
    return True


def group_exists(group: str) -> bool:
    try:
        grp.getgrnam(group)
    except KeyError:
        return False
    return True


def is_root() -> bool:
    return os.geteuid() == 0


def split_groups(groups: Optional[str]) -> List[str]:
    """Parse a comma separated group list, dropping blanks."""
    if not groups:
        return []
    return [g.strip() for g in groups.split(",") if g.strip()]


class AccountManager:
    """Thin wrappers around useradd, userdel, usermod, groupadd and friends.

    Every mutating call checks for root first and writes an audit line
    before running its command. Command failures surface as CommandError.
    """

    def __init__(self, config: Optional[AccountsConfig] = None,
                 runner: Runner = subprocess.run, audit=None):
        self.config = config or AccountsConfig()
        self.runner = runner
        self.audit = audit or get_audit_logger()

    def _require_root(self, action: str) -> None:
        if not is_root():
            raise RootRequired(action)

    def _run(self, command: List[str], input_text: Optional[str] = None,
             log_command: bool = True):
        return run_command(
            command, self.audit, input_text=input_text,
            runner=self.runner, log_command=log_command,
        )

    @staticmethod
    def _require_name(value: Optional[str], what: str) -> str:
        if not value or not value.strip():
            raise InvalidArgument(f"{what} required")
        return value.strip()

    def add_user(self, username: str, group: Optional[str] = None,
                 shell: Optional[str] = None, password: Optional[str] = None,
                 create_home: bool = True, force: bool = False) -> None:
        """Create a user, creating its supplementary group when missing."""
        self._require_root("add-user")
        username = self._require_name(username, "Username")
        shell = shell or self.config.default_shell

        if user_exists(username):
            if not force:
                raise UserExists(username)
            self.audit.info(f"add_user: user {username} exists, but --force provided: continuing.")

        if group and not group_exists(group):
            self.audit.info(f"add_user: creating group {group}")
            self._run(["groupadd", group])

        command = ["useradd", "-m" if create_home else "-M", "-s", shell]
        if group:
            command += ["-G", group]
        command.append(username)
        self._run(command)

        if password:
            self._run(["chpasswd"], input_text=f"{username}:{password}\n", log_command=False)
            self.audit.info(f"Password set non-interactively for {username}.")
        else:
            self.audit.info(
                f"No password provided. Run 'passwd {username}' to set one interactively."
            )

        self.audit.info(f"User {username} created.")

    def delete_user(self, username: str, remove_home: bool = False, force: bool = False) -> None:
        """Delete a user; system accounts below ``min_uid`` need ``force``."""
        self._require_root("del-user")
        username = self._require_name(username, "Username")

        try:
            uid = pwd.getpwnam(username).pw_uid
        except KeyError:
            raise UserNotFound(username) from None

        if uid < self.config.min_uid and not force:
            raise ProtectedAccount(username, uid)

        command = ["userdel"]
        if remove_home:
            command.append("-r")
        command.append(username)

        self.audit.info(f"Deleting user {username}")
        self._run(command)
        self.audit.info(f"User {username} deleted.")

    def modify_user(self, username: str, shell: Optional[str] = None,
                    add_groups: Iterable[str] = (), lock: bool = False,
                    unlock: bool = False) -> None:
        """Change shell, append groups, lock or unlock a user."""
        self._require_root("modify-user")
        username = self._require_name(username, "Username")
        if lock and unlock:
            raise InvalidArgument("--lock and --unlock are mutually exclusive")
        if not user_exists(username):
            raise UserNotFound(username)

        if shell:
            self.audit.info(f"Changing shell for {username} -> {shell}")
            self._run(["usermod", "-s", shell, username])

        groups = list(add_groups)
        if groups:
            self.audit.info(f"Adding {username} to groups: {','.join(groups)}")
            for group in groups:
                if not group_exists(group):
                    self.audit.info(f"Group {group} does not exist; creating")
                    self._run(["groupadd", group])
            self._run(["usermod", "-a", "-G", ",".join(groups), username])

        if lock:
            self.audit.info(f"Locking account {username}")
            self._run(["passwd", "-l", username])
        if unlock:
            self.audit.info(f"Unlocking account {username}")
            self._run(["passwd", "-u", username])

        self.audit.info(f"Modification done for {username}.")

    def add_group(self, group: str) -> None:
        self._require_root("add-group")
        group = self._require_name(group, "Group name")
        if group_exists(group):
            raise GroupExists(group)
        self._run(["groupadd", group])
        self.audit.info(f"Group {group} created.")

    def delete_group(self, group: str) -> None:
        self._require_root("del-group")
        group = self._require_name(group, "Group name")
        if not group_exists(group):
            raise GroupNotFound(group)
        self._run(["groupdel", group])
        self.audit.info(f"Group {group} deleted.")

    def list_users(self, min_uid: Optional[int] = None) -> List[UserInfo]:
        """Regular users (UID >= min_uid), sorted by UID."""
        min_uid = self.config.min_uid if min_uid is None else min_uid
        users = [
            UserInfo(
                name=entry.pw_name,
                uid=entry.pw_uid,
                gid=entry.pw_gid,
                home=entry.pw_dir,
                shell=entry.pw_shell,
            )
            for entry in pwd.getpwall()
            if entry.pw_uid >= min_uid
        ]
        return sorted(users, key=lambda u: (u.uid, u.name))

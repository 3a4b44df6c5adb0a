"""Command-line interface for hostadmin."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .accounts import AccountManager, split_groups
from .backup import BackupEngine, BackupRequest, BackupResult
from .backup.naming import source_base_name
from .config.settings import DEFAULT_CONFIG_PATH, Settings
from .exceptions import HostAdminError
from .utils.file_utils import FileHelper
from .utils.logging import setup_logging

EXIT_PARTIAL = 3

console = Console(soft_wrap=True)


def _fail(error: HostAdminError) -> None:
    console.print(f"❌ Error: {error}", style="red bold", markup=False)
    sys.exit(error.exit_code)


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c',
              type=click.Path(dir_okay=False, path_type=Path),
              default=DEFAULT_CONFIG_PATH,
              show_default=True,
              help='Path to settings file (optional)')
@click.option('--log-file',
              type=click.Path(dir_okay=False, path_type=Path),
              help='Audit log file (default: /var/log/hostadmin.log as root, ./hostadmin.log otherwise)')
@click.option('--verbose', '-v', is_flag=True, help='Log debug messages')
@click.pass_context
def cli(ctx, config: Path, log_file: Optional[Path], verbose: bool):
    """Host administration tool

    Manage local user and group accounts, and take timestamped directory
    backups that keep only the last N archives.
    """
    try:
        settings = Settings.load(config)
    except HostAdminError as e:
        _fail(e)

    if log_file:
        settings.logging.file = log_file
    if verbose:
        settings.logging.level = "DEBUG"

    try:
        setup_logging(
            log_level=settings.logging.level,
            log_file=settings.logging.resolved_file(),
            log_to_console=settings.logging.console,
            max_file_size=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )
    except OSError as e:
        console.print(f"⚠️ Cannot open audit log, logging to console only: {e}", style="yellow", markup=False)
        setup_logging(log_level=settings.logging.level, log_to_console=True)

    ctx.obj = settings


####################
# Backups
####################

@cli.command()
@click.option('--source', '-s', 'source',
              required=True,
              type=click.Path(path_type=Path),
              help='Directory to back up')
@click.option('--dest', '-d', 'dest',
              type=click.Path(path_type=Path),
              help='Directory receiving the archives (default from settings: ./backups)')
@click.option('--retention', '-r',
              type=click.IntRange(min=0),
              default=0,
              show_default=True,
              help='Keep only the newest N archives of this source (0 keeps all)')
@click.option('--dry-run', '-n',
              is_flag=True,
              help='Show what would be created and removed without doing it')
@click.option('--lock/--no-lock',
              default=None,
              help='Hold an advisory lock on the destination while running')
@click.pass_obj
def backup(settings: Settings, source: Path, dest: Optional[Path], retention: int,
           dry_run: bool, lock: Optional[bool]):
    """Archive a directory and prune old archives."""
    engine = BackupEngine(settings.backup)
    request = BackupRequest(
        source_dir=source,
        dest_dir=dest,
        retention=retention,
        dry_run=dry_run,
        use_lock=lock,
    )

    if dry_run:
        console.print("🔍 DRY RUN MODE - nothing will be written or removed", style="yellow bold")

    try:
        result = engine.backup(request)
    except HostAdminError as e:
        _fail(e)

    _display_backup_result(result)

    if result.status == "partial":
        sys.exit(EXIT_PARTIAL)


def _display_backup_result(result: BackupResult):
    """Print what the backup did (or would do)."""
    archive = result.archive
    if archive.simulated:
        console.print(f"[DRY RUN] Would create backup: {archive.command}", style="yellow", markup=False)
    else:
        size = FileHelper.format_file_size(archive.size)
        console.print(f"✅ Backup created: {archive.path} ({size})", style="green")

    if result.prune is not None:
        for path in result.prune.removed:
            if result.prune.simulated:
                console.print(f"[DRY RUN] Would remove: {path}", style="yellow", markup=False)
            else:
                console.print(f"🗑️ Removed old backup: {path}")

        if result.prune.failures:
            console.print(
                f"\n⚠️ Partial success: archive created, but retention was not fully applied "
                f"({len(result.prune.failures)} failure(s)):",
                style="yellow bold",
            )
            for failure in result.prune.failures:
                console.print(f"   • {failure}", style="red", markup=False)

    console.print(f"Status: {result.status} in {result.duration:.2f}s", style="dim")


@cli.command('list-backups')
@click.option('--source', '-s', 'source',
              required=True,
              type=click.Path(path_type=Path),
              help='Directory whose archives to list')
@click.option('--dest', '-d', 'dest',
              type=click.Path(path_type=Path),
              help='Directory holding the archives')
@click.pass_obj
def list_backups(settings: Settings, source: Path, dest: Optional[Path]):
    """List archives of a source, newest first."""
    engine = BackupEngine(settings.backup)
    dest = dest or settings.backup.default_dest
    try:
        entries = engine.list_archives(dest, settings.backup.hostname, source_base_name(source))
    except HostAdminError as e:
        _fail(e)

    if not entries:
        console.print(f"No backups of {source} in {dest}", style="yellow")
        return

    table = Table(title=f"Backups in {dest}")
    table.add_column("Archive", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="magenta")

    for entry in entries:
        table.add_row(
            entry.name,
            FileHelper.format_file_size(entry.size),
            entry.modified_time.strftime('%Y-%m-%d %H:%M:%S'),
        )

    console.print(table)


####################
# Accounts
####################

@cli.command('add-user')
@click.option('--username', '-u', required=True, help='Login name')
@click.option('--group', '-g', help='Supplementary group (created if missing)')
@click.option('--shell', '-s', help='Login shell (default from settings: /bin/bash)')
@click.option('--password', help='Set the password non-interactively (visible in process lists)')
@click.option('--no-home', is_flag=True, help='Do not create a home directory')
@click.option('--force', is_flag=True, help='Continue even if the user exists')
@click.pass_obj
def add_user(settings: Settings, username: str, group: Optional[str], shell: Optional[str],
             password: Optional[str], no_home: bool, force: bool):
    """Create a user account."""
    manager = AccountManager(settings.accounts)
    try:
        manager.add_user(
            username,
            group=group,
            shell=shell,
            password=password,
            create_home=not no_home,
            force=force,
        )
    except HostAdminError as e:
        _fail(e)
    console.print(f"✅ User {username} created", style="green")


@cli.command('del-user')
@click.option('--username', '-u', required=True, help='Login name')
@click.option('--remove-home', is_flag=True, help="Remove the user's home directory")
@click.option('--force', is_flag=True, help='Allow deleting accounts below the minimum UID')
@click.pass_obj
def del_user(settings: Settings, username: str, remove_home: bool, force: bool):
    """Delete a user account."""
    manager = AccountManager(settings.accounts)
    try:
        manager.delete_user(username, remove_home=remove_home, force=force)
    except HostAdminError as e:
        _fail(e)
    console.print(f"✅ User {username} deleted", style="green")


cli.add_command(del_user, name='delete-user')


@cli.command('modify-user')
@click.option('--username', '-u', required=True, help='Login name')
@click.option('--shell', help='New login shell')
@click.option('--add-groups', help='Comma separated groups to append (created if missing)')
@click.option('--lock', is_flag=True, help='Lock the password')
@click.option('--unlock', is_flag=True, help='Unlock the password')
@click.pass_obj
def modify_user(settings: Settings, username: str, shell: Optional[str],
                add_groups: Optional[str], lock: bool, unlock: bool):
    """Change shell, groups or lock state of a user."""
    manager = AccountManager(settings.accounts)
    try:
        manager.modify_user(
            username,
            shell=shell,
            add_groups=split_groups(add_groups),
            lock=lock,
            unlock=unlock,
        )
    except HostAdminError as e:
        _fail(e)
    console.print(f"✅ Modification done for {username}", style="green")


@cli.command('add-group')
@click.option('--group', '-g', required=True, help='Group name')
@click.pass_obj
def add_group(settings: Settings, group: str):
    """Create a group."""
    try:
        AccountManager(settings.accounts).add_group(group)
    except HostAdminError as e:
        _fail(e)
    console.print(f"✅ Group {group} created", style="green")


@cli.command('del-group')
@click.option('--group', '-g', required=True, help='Group name')
@click.pass_obj
def del_group(settings: Settings, group: str):
    """Delete a group."""
    try:
        AccountManager(settings.accounts).delete_group(group)
    except HostAdminError as e:
        _fail(e)
    console.print(f"✅ Group {group} deleted", style="green")


@cli.command('list-users')
@click.option('--min-uid', type=click.IntRange(min=0), help='Lowest UID shown (default from settings: 1000)')
@click.pass_obj
def list_users(settings: Settings, min_uid: Optional[int]):
    """List regular user accounts."""
    users = AccountManager(settings.accounts).list_users(min_uid)

    table = Table(title="Users")
    table.add_column("User", style="cyan")
    table.add_column("UID", justify="right")
    table.add_column("GID", justify="right")
    table.add_column("Home")
    table.add_column("Shell", style="magenta")

    for user in users:
        table.add_row(user.name, str(user.uid), str(user.gid), user.home, user.shell)

    console.print(table)


####################
# Settings
####################

@cli.command()
@click.pass_context
def init(ctx):
    """Write a settings file with the default values."""
    config = ctx.parent.params['config']
    if config.exists():
        if not click.confirm(f"Settings file {config} already exists. Overwrite?"):
            return

    Settings().to_yaml(config)

    console.print(f"✅ Settings saved to {config}", style="green")
    console.print("\n📝 Next steps:")
    console.print("1. Edit the settings file to match this host")
    console.print("2. Run 'hostadmin backup --source DIR --dry-run' to preview a backup")


if __name__ == '__main__':
    cli()

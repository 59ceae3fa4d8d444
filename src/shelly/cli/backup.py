"""`shelly backup` commands: manage database backups."""

import sys
from typing import Optional, Tuple

import click
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

from shelly.cli.helpers import (
    cloud_access,
    cloud_option,
    err_console,
    logged_in,
    multiple_clouds,
    print_table,
    say,
    say_error,
    yes,
)
from shelly.client import ConflictException, NotFoundException, ValidationException
from shelly.models import App


@click.group()
def backup() -> None:
    """Manage database backups."""


def _backup_not_found(e: NotFoundException, app: App) -> None:
    if e.resource != "database_backup":
        raise e
    say_error("Backup not found", with_exit=False)
    say_error(f"You can list available backups with `shelly backup list --cloud {app}` command")


@backup.command("list")
@cloud_option
@logged_in
def list_backups(cloud: Optional[str]) -> None:
    """List available database backups."""
    app = multiple_clouds(cloud, "backup list")
    with cloud_access(app):
        backups = app.database_backups()

    if not backups:
        say("No database backups available")
        return

    say("Available backups:", "green")
    rows = [["Filename", "|  Size", "|  State"]]
    rows.extend([b.filename, f"|  {b.human_size}", f"|  {(b.state or '').replace('_', ' ')}"] for b in backups)
    print_table(rows, indent=2)


@backup.command()
@click.argument("handler", default="last")
@cloud_option
@logged_in
def get(handler: str, cloud: Optional[str]) -> None:
    """Download database backup.

    HANDLER is a backup filename; ``last`` (the default) picks the newest one.
    """
    app = multiple_clouds(cloud, "backup get [FILENAME]")
    try:
        with cloud_access(app):
            record = app.database_backup(handler)
            with Progress(
                TextColumn("[bold]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=err_console,
            ) as progress:
                task = progress.add_task(f"Downloading {record.filename}", total=record.size or None)
                record.download(lambda size: progress.advance(task, size))
    except NotFoundException as e:
        _backup_not_found(e, app)

    say(f"Backup file saved to {record.filename}", "green")


@backup.command()
@click.argument("kinds", nargs=-1)
@cloud_option
@logged_in
def create(kinds: Tuple[str, ...], cloud: Optional[str]) -> None:
    """Create backup of given databases.

    Without KINDS, every database of the cloud in Cloudfile except redis is backed up.
    """
    app = multiple_clouds(cloud, "backup create [DB_KIND]")
    kinds = list(kinds) or app.backup_databases
    if not kinds:
        say_error("Cloudfile must be present in current working directory or specify database kind with:",
                  with_exit=False)
        say_error("`shelly backup create DB_KIND`")

    try:
        with cloud_access(app):
            app.request_backup(kinds)
    except ValidationException as e:
        for error in e.each_error():
            say_error(error, with_exit=False)
        sys.exit(1)
    except ConflictException as e:
        say_error(e.message)
    say("Backup requested. It can take up to several minutes for the backup process to finish.", "green")


@backup.command()
@click.argument("filename")
@cloud_option
@logged_in
def restore(filename: str, cloud: Optional[str]) -> None:
    """Restore database to state from given backup."""
    app = multiple_clouds(cloud, "backup restore FILENAME")
    try:
        with cloud_access(app):
            record = app.database_backup(filename)
            say(f"You are about to restore {record.kind} database for cloud {app} to state from {record.filename}")
            if not yes("I want to restore the database (yes/no)"):
                say_error("[canceled]")
            app.restore_backup(filename)
    except NotFoundException as e:
        _backup_not_found(e, app)
    except ConflictException as e:
        say_error(e.message)

    say("Restore has been scheduled. Wait a few minutes till database is restored.", "green")

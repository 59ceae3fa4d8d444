"""`shelly files` commands: manage files on the cloud's shared disk."""

import sys
from typing import Optional

import click

from shelly.cli.helpers import cloud_access, cloud_option, logged_in, multiple_clouds, say, say_error, yes
from shelly.client import ConflictException
from shelly.models import App


@click.group()
def files() -> None:
    """Upload and download files to and from persistent storage."""


def _not_deployed(app: App, action: str) -> None:
    say_error(f"Cloud {app} wasn't deployed properly. Cannot {action}.")


def _exit_with(exit_code: int) -> None:
    if exit_code:
        sys.exit(exit_code)


@files.command("list")
@click.argument("path", default="")
@cloud_option
@logged_in
def list_files(path: str, cloud: Optional[str]) -> None:
    """List files in given path."""
    app = multiple_clouds(cloud, "files list [PATH]")
    try:
        with cloud_access(app):
            exit_code = app.list_files(path)
    except ConflictException:
        _not_deployed(app, "list files")
    _exit_with(exit_code)


@files.command()
@click.argument("source", type=click.Path(exists=True))
@cloud_option
@logged_in
def upload(source: str, cloud: Optional[str]) -> None:
    """Upload files to persistent data storage."""
    app = multiple_clouds(cloud, "files upload SOURCE")
    try:
        with cloud_access(app):
            exit_code = app.upload(source)
    except ConflictException:
        _not_deployed(app, "upload files")
    _exit_with(exit_code)


@files.command()
@click.argument("source", default="")
@click.argument("destination", default=".")
@cloud_option
@logged_in
def download(source: str, destination: str, cloud: Optional[str]) -> None:
    """Download files from persistent data storage."""
    app = multiple_clouds(cloud, "files download [SOURCE] [DEST]")
    try:
        with cloud_access(app):
            exit_code = app.download(source, destination)
    except ConflictException:
        _not_deployed(app, "download files")
    _exit_with(exit_code)


@files.command()
@click.argument("path")
@cloud_option
@click.option("--force", "-f", is_flag=True, help="Skip confirmation question")
@logged_in
def delete(path: str, cloud: Optional[str], force: bool) -> None:
    """Delete files from persistent data storage."""
    app = multiple_clouds(cloud, "files delete PATH")
    if not force and not yes(f"You are about to delete {path} from persistent storage. Are you sure? (yes/no)"):
        say("File not deleted")
        return

    try:
        with cloud_access(app):
            exit_code = app.delete_file(path)
    except ConflictException:
        _not_deployed(app, "delete files")
    _exit_with(exit_code)

"""`shelly config` commands: manage application configuration files."""

import sys
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

import click

from shelly.cli.helpers import (
    cloud_access,
    cloud_option,
    logged_in,
    multiple_clouds,
    say,
    say_error,
    selected_clouds,
    yes,
)
from shelly.client import NotFoundException, ValidationException
from shelly.models import App


@click.group()
def config() -> None:
    """Manage application configuration files."""


def _print_configs(configs: List[Dict[str, Any]]) -> None:
    for item in configs:
        say(f" * {item['path']}")


def _config_not_found(e: NotFoundException, path: str, app: App) -> None:
    if e.resource != "config":
        raise e
    say_error(f"Config '{path}' not found", with_exit=False)
    say_error(f"You can list available config files with `shelly config list --cloud {app}`")


def open_editor(path: str, content: str = "") -> str:
    """Edit ``content`` in $EDITOR and return the result."""
    try:
        edited = click.edit(content, extension=PurePosixPath(path).suffix or ".txt", require_save=False)
    except click.ClickException:
        say_error("Please set EDITOR environment variable")
    return edited or ""


def _redeploy_hint(app: App) -> None:
    say("To make changes to running application redeploy it using:")
    say(f"`shelly redeploy --cloud {app}`")


def _validation_errors(e: ValidationException) -> None:
    for error in e.each_error():
        say_error(error, with_exit=False)
    sys.exit(1)


@config.command("list")
@cloud_option
@logged_in
def list_configs(cloud: Optional[str]) -> None:
    """List configuration files."""
    for app in selected_clouds(cloud):
        with cloud_access(app, with_exit=False):
            user_configs = app.user_configs()
            say(f"Configuration files for {app}", "green")
            if user_configs:
                say("Custom configuration files:")
                _print_configs(user_configs)
            else:
                say("You have no custom configuration files.")

            generated = app.shelly_generated_configs()
            if generated:
                say("Following files are created by Shelly Cloud:")
                _print_configs(generated)


@config.command()
@click.argument("path")
@cloud_option
@logged_in
def show(path: str, cloud: Optional[str]) -> None:
    """View configuration file."""
    app = multiple_clouds(cloud, f"config show {path}")
    try:
        with cloud_access(app):
            item = app.config(path)
    except NotFoundException as e:
        _config_not_found(e, path, app)

    say(f"Content of {item['path']}:", "green")
    say(item["content"])


@config.command()
@click.argument("path")
@cloud_option
@logged_in
def create(path: str, cloud: Optional[str]) -> None:
    """Create configuration file."""
    app = multiple_clouds(cloud, f"config create {path}")
    content = open_editor(path)
    try:
        with cloud_access(app):
            app.create_config(path, content)
    except ValidationException as e:
        _validation_errors(e)

    say(f"File '{path}' created.", "green")
    _redeploy_hint(app)


@config.command()
@click.argument("path")
@cloud_option
@logged_in
def edit(path: str, cloud: Optional[str]) -> None:
    """Edit configuration file."""
    app = multiple_clouds(cloud, f"config edit {path}")
    try:
        with cloud_access(app):
            item = app.config(path)
            content = open_editor(item["path"], item["content"])
            app.update_config(path, content)
    except NotFoundException as e:
        _config_not_found(e, path, app)
    except ValidationException as e:
        _validation_errors(e)

    say(f"File '{path}' updated.", "green")
    _redeploy_hint(app)


@config.command()
@click.argument("path")
@cloud_option
@logged_in
def delete(path: str, cloud: Optional[str]) -> None:
    """Delete configuration file."""
    app = multiple_clouds(cloud, f"config delete {path}")
    if not yes(f"Are you sure you want to delete '{path}' (yes/no)"):
        say("File not deleted")
        return

    try:
        with cloud_access(app):
            app.delete_config(path)
    except NotFoundException as e:
        _config_not_found(e, path, app)

    say(f"File '{path}' deleted.", "green")
    _redeploy_hint(app)

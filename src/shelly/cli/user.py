"""`shelly user` commands: manage collaborators."""

import sys
from typing import Optional

import click

from shelly.cli.helpers import (
    ask_for_email,
    cloud_access,
    cloud_option,
    logged_in,
    say,
    say_error,
    say_new_line,
    selected_clouds,
)
from shelly.client import NotFoundException, ValidationException


@click.group()
def user() -> None:
    """Manage collaborators."""


@user.command("list")
@cloud_option
@logged_in
def list_users(cloud: Optional[str]) -> None:
    """List users with access to clouds defined in Cloudfile."""
    say("Cloud users:", "green")
    for app in selected_clouds(cloud):
        with cloud_access(app, with_exit=False):
            users = app.users()
            say(f"Cloud {app}:")
            for collaborator in users:
                invited = "" if collaborator.get("active", True) else " (invited)"
                say(f"  {collaborator['email']}{invited}")
            say_new_line()


@user.command()
@click.argument("email", required=False)
@cloud_option
@logged_in
def add(email: Optional[str], cloud: Optional[str]) -> None:
    """Add new developer to clouds defined in Cloudfile."""
    apps = selected_clouds(cloud)
    email = email or ask_for_email()
    for app in apps:
        try:
            with cloud_access(app, with_exit=False):
                app.add_user(email)
                say(f"Sending invitation to {email} to work on {app}", "green")
        except ValidationException as e:
            for error in e.each_error():
                say_error(error, with_exit=False)
            sys.exit(1)


@user.command()
@click.argument("email", required=False)
@cloud_option
@logged_in
def delete(email: Optional[str], cloud: Optional[str]) -> None:
    """Remove developer from clouds defined in Cloudfile."""
    apps = selected_clouds(cloud)
    email = email or ask_for_email()
    for app in apps:
        try:
            with cloud_access(app, with_exit=False):
                app.delete_user(email)
                say(f"User {email} deleted from cloud {app}")
        except NotFoundException as e:
            if e.resource != "user":
                raise
            say_error(f"User '{email}' not found", with_exit=False)
            say_error(f"You can list users with `shelly user list --cloud {app}`")
        except ValidationException as e:
            for error in e.each_error():
                say_error(error, with_exit=False)
            sys.exit(1)

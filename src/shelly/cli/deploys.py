"""`shelly deploys` commands: view deploy logs."""

from typing import Any, Dict, Optional

import click

from shelly.cli.helpers import cloud_access, cloud_option, logged_in, multiple_clouds, say, say_error
from shelly.client import NotFoundException

# Sections of a deploy log, in the order they ran
LOG_SECTIONS = [
    ("bundle_install", "Starting bundle install"),
    ("whenever", "Starting whenever"),
    ("callbacks", "Starting callbacks"),
    ("delayed_job", "Starting delayed job"),
    ("sidekiq", "Starting sidekiq"),
    ("thin_restart", "Starting thin"),
    ("puma_restart", "Starting puma"),
]


@click.group()
def deploys() -> None:
    """View deploy logs."""


@deploys.command("list")
@cloud_option
@logged_in
def list_deploys(cloud: Optional[str]) -> None:
    """List deploy logs."""
    app = multiple_clouds(cloud, "deploys list")
    with cloud_access(app):
        logs = app.deploy_logs()

    if not logs:
        say("No deploy logs available")
        return

    say("Available deploy logs", "green")
    for log in logs:
        failed = " (failed)" if log.get("failed") else ""
        say(f" * {log['created_at']}{failed}")


@deploys.command()
@click.argument("log", default="last")
@cloud_option
@logged_in
def show(log: str, cloud: Optional[str]) -> None:
    """Show specific deploy log.

    LOG is a deploy log id; ``last`` (the default) shows the newest one.
    """
    app = multiple_clouds(cloud, "deploys show [LOG]")
    try:
        with cloud_access(app):
            content = app.deploy_log(log)
    except NotFoundException as e:
        if e.resource != "log":
            raise
        say_error("Log not found, list all deploy logs using", with_exit=False)
        say_error(f"  shelly deploys list --cloud={app}")
    show_log(content)


def show_log(log: Dict[str, Any]) -> None:
    say(f"Log for deploy done on {log.get('created_at')}", "green")
    for key, title in LOG_SECTIONS:
        if log.get(key):
            say(title, "green")
            say(log[key])

"""Console output, prompts and checks shared by CLI commands."""

import functools
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

import click
from rich.console import Console
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from shelly.client import NotFoundException
from shelly.models import App, Cloudfile


console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def say(message: Any = "", style: Optional[str] = None) -> None:
    """Print ``message`` verbatim (no rich markup) to stdout."""
    console.print(message, style=style, markup=False, highlight=False, emoji=False)


def say_new_line() -> None:
    console.print()


def say_error(message: Any, with_exit: bool = True) -> None:
    """Print ``message`` in red to stderr and exit with status 1 unless told not to."""
    err_console.print(message, style="red", markup=False, highlight=False, emoji=False)
    if with_exit:
        sys.exit(1)


def print_table(rows: Sequence[Sequence[Any]], indent: int = 2) -> None:
    """Print rows as aligned columns without borders."""
    table = Table(show_header=False, box=None, padding=(0, 2, 0, 0), pad_edge=False)
    for row in rows:
        table.add_row(*[Text(str(cell)) for cell in row])
    console.print(Padding(table, (0, 0, 0, indent)))


def yes(question: str) -> bool:
    """Ask a yes/no question; only ``yes`` or ``y`` counts as agreement."""
    answer = click.prompt(question, default="", show_default=False)
    return answer.strip().lower() in ("yes", "y")


# Prompts

def ask_for_email() -> str:
    while True:
        email = click.prompt("Email", default="", show_default=False).strip()
        if email:
            return email
        say_error("Email can't be blank, please try again", with_exit=False)


def ask_for_password(with_confirmation: bool = True) -> str:
    while True:
        password = click.prompt("Password", hide_input=True, default="", show_default=False)
        if not with_confirmation:
            return password
        if not password:
            say_error("Password can't be blank", with_exit=False)
            continue
        confirmation = click.prompt(
            "Password confirmation", hide_input=True, default="", show_default=False
        )
        if password == confirmation:
            return password
        say_error("Password and password confirmation don't match, please type them again", with_exit=False)


def parse_databases(value: str) -> List[str]:
    return [kind for kind in value.replace(",", " ").split() if kind]


def valid_databases(kinds: Sequence[str]) -> bool:
    return all(kind in App.DATABASE_CHOICES for kind in kinds)


def ask_for_code_name() -> str:
    default = App.guess_code_name()
    code_name = click.prompt(f"Cloud code name ({default} - default)", default="", show_default=False)
    return code_name.strip() or default


def ask_for_databases() -> List[str]:
    kinds = ", ".join(App.DATABASE_CHOICES)
    databases = parse_databases(click.prompt(
        f"Which database do you want to use {kinds} (postgresql - default)",
        default="",
        show_default=False,
    ))
    while not valid_databases(databases):
        databases = parse_databases(click.prompt(
            f"Unknown database kind. Supported are: {kinds}",
            default="",
            show_default=False,
        ))
    return databases or ["postgresql"]


def overwrite_remote(app: App) -> bool:
    """True when no remote named after the cloud exists, or the user agrees to replace it."""
    if not app.git_remote_exist():
        return True
    return yes(f"Git remote {app} exists, overwrite (yes/no)")


# Before-hooks

def _hook(check: Callable[[click.Context], None]) -> Callable:
    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            check(click.get_current_context())
            return f(*args, **kwargs)
        return wrapper
    return decorator


def _check_logged_in(ctx: click.Context) -> None:
    if not ctx.find_object(dict)["config"].logged_in:
        say_error("You are not logged in. To log in use: `shelly login`")


def _check_git_repository(ctx: click.Context) -> None:
    if not App.inside_git_repository():
        say_error("Current directory is not a git repository")


def _check_cloudfile(ctx: click.Context) -> None:
    if not Cloudfile().present():
        say_error("No Cloudfile found")


logged_in = _hook(_check_logged_in)
inside_git_repository = _hook(_check_git_repository)
cloudfile_present = _hook(_check_cloudfile)


# Cloud selection

def current_client(ctx: Optional[click.Context] = None) -> Any:
    ctx = ctx or click.get_current_context()
    return ctx.find_object(dict)["client"]


def multiple_clouds(cloud: Optional[str], action: str) -> App:
    """Pick the cloud a command acts on.

    ``--cloud`` wins; otherwise the Cloudfile must define exactly one cloud.
    """
    client = current_client()
    cloudfile = Cloudfile()
    clouds = cloudfile.clouds() if cloudfile.present() else {}

    if cloud:
        return App(cloud, clouds.get(cloud), client)

    if not clouds:
        say_error("You have to specify cloud", with_exit=False)
        say(f"Select cloud using `shelly {action} --cloud CLOUD_NAME`")
        sys.exit(1)

    if len(clouds) > 1:
        names = list(clouds)
        say_error("You have multiple clouds in Cloudfile.", with_exit=False)
        say(f"Select cloud using `shelly {action} --cloud {names[0]}`")
        say("Available clouds:")
        for name in names:
            say(f" * {name}")
        sys.exit(1)

    name, content = next(iter(clouds.items()))
    return App(name, content, client)


def selected_clouds(cloud: Optional[str]) -> List[App]:
    """The cloud given with ``--cloud`` or every cloud in the Cloudfile."""
    client = current_client()
    cloudfile = Cloudfile()
    clouds = cloudfile.clouds() if cloudfile.present() else {}
    if cloud:
        return [App(cloud, clouds.get(cloud), client)]
    if not clouds:
        say_error("No Cloudfile found")
    return App.from_cloudfile(client, cloudfile)


@contextmanager
def cloud_access(app: Any, with_exit: bool = True) -> Iterator[None]:
    """Turn a missing-cloud 404 into the "no access" message."""
    try:
        yield
    except NotFoundException as e:
        if e.resource != "cloud":
            raise
        say_error(f"You have no access to '{app}' cloud defined in Cloudfile", with_exit=with_exit)


cloud_option = click.option("--cloud", "-c", help="Specify cloud")

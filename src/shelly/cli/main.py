"""Main CLI interface for Shelly."""

import sys
from typing import Optional, Tuple

import click
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn

from shelly import __version__
from shelly.cli.backup import backup
from shelly.cli.config import config
from shelly.cli.deploys import deploys
from shelly.cli.files import files
from shelly.cli.helpers import (
    ask_for_code_name,
    ask_for_databases,
    ask_for_email,
    ask_for_password,
    cloud_access,
    cloud_option,
    cloudfile_present,
    current_client,
    err_console,
    inside_git_repository,
    logged_in,
    multiple_clouds,
    overwrite_remote,
    parse_databases,
    print_table,
    say,
    say_error,
    say_new_line,
    selected_clouds,
    valid_databases,
    yes,
)
from shelly.cli.user import user
from shelly.client import (
    APIException,
    ConflictException,
    ConnectionFailedException,
    GemVersionException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from shelly.client.api import Client
from shelly.core.logging import setup_logging
from shelly.core.settings import settings
from shelly.models import App, CloudfileError, User
from shelly.utils.config import Config, ConfigError
from shelly.utils.git import GitError
from shelly.utils.ssh import SSHError


class ShellyGroup(click.Group):
    """Root group translating uncaught API and local errors into messages."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except UnauthorizedException:
            say_error("You are not logged in. To log in use: `shelly login`")
        except GemVersionException as e:
            say_error(f"Required shelly version {e.required_version}, your version {__version__}", with_exit=False)
            say_error("Update shelly with: pip install --upgrade shelly")
        except ConnectionFailedException as e:
            say_error(e.message)
        except NotFoundException as e:
            if e.resource == "cloud" and e.id:
                say_error(f"You have no access to '{e.id}' cloud defined in Cloudfile")
            else:
                self._unknown_error(ctx, e)
        except APIException as e:
            self._unknown_error(ctx, e)
        except (CloudfileError, ConfigError, GitError, SSHError) as e:
            say_error(str(e))
        except (KeyboardInterrupt, click.exceptions.Abort):
            say_error("[canceled]")

    @staticmethod
    def _unknown_error(ctx: click.Context, e: APIException) -> None:
        if (ctx.obj or {}).get("debug"):
            err_console.print_exception()
            say_error(f"Unknown error, the request id is {e.request_id}")
        say_error("Unknown error, to see debug information run command with --debug")


@click.group(cls=ShellyGroup)
@click.version_option(__version__, "-v", "--version", prog_name="shelly", message="shelly version %(version)s")
@click.option("--debug/--no-debug", default=False, help="Show debug information")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Shelly - command line client for Shelly Cloud.

    Create, deploy and manage the clouds described in your project's
    Cloudfile.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug or settings.debug
    setup_logging(ctx.obj["debug"])

    store = ctx.obj.setdefault("config", Config())
    if "client" not in ctx.obj:
        credentials = store.load_credentials() or (None, None)
        ctx.obj["client"] = Client(*credentials)


cli.add_command(user)
cli.add_command(backup)
cli.add_command(deploys)
cli.add_command(config)
cli.add_command(files)


def _current_user(ctx: click.Context) -> User:
    return User(client=ctx.obj["client"], config=ctx.obj["config"])


@cli.command()
def version() -> None:
    """Display shelly version."""
    say(f"shelly version {__version__}")


@cli.command()
@click.argument("email", required=False)
@click.pass_context
def register(ctx: click.Context, email: Optional[str]) -> None:
    """Register new account."""
    user = _current_user(ctx)
    if email:
        say(f"Registering with email: {email}")
    user.email = email or ask_for_email()
    user.password = ask_for_password()
    if not yes("Do you accept the Terms of Service of Shelly Cloud (https://shellycloud.com/terms) (yes/no)"):
        say_error("You must accept the Terms of Service to use Shelly Cloud")

    try:
        user.register()
    except ValidationException as e:
        for error in e.each_error():
            say_error(error, with_exit=False)
        sys.exit(1)

    if user.ssh_key_exists():
        say(f"Uploading your public SSH key from {user.ssh_key_path}")
    else:
        say_error(f"No such file or directory - {user.ssh_key_path}", with_exit=False)
        say_error("Use ssh-keygen to generate ssh key pair, after that use: `shelly login`", with_exit=False)
    say("Successfully registered!", "green")
    say("Check your mailbox for email address confirmation")


@cli.command()
@click.argument("email", required=False)
@click.pass_context
def login(ctx: click.Context, email: Optional[str]) -> None:
    """Log into Shelly Cloud."""
    user = _current_user(ctx)
    if not user.ssh_key_exists():
        say_error(f"No such file or directory - {user.ssh_key_path}", with_exit=False)
        say_error("Use ssh-keygen to generate ssh key pair")

    user.email = email or ask_for_email()
    user.password = ask_for_password(with_confirmation=False)
    try:
        user.login()
        say("Login successful", "green")
        user.upload_ssh_key()
        say("Uploading your public SSH key")
    except ValidationException as e:
        for error in e.each_error():
            say_error(error, with_exit=False)
        sys.exit(1)
    except UnauthorizedException as e:
        say_error("Wrong email or password", with_exit=False)
        if e["url"]:
            say_error("You can reset password by using link:", with_exit=False)
            say_error(e["url"], with_exit=False)
        sys.exit(1)

    ctx.invoke(list_clouds)


@cli.command()
@logged_in
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Logout from Shelly Cloud."""
    user = User.current(ctx.obj["client"], ctx.obj["config"])
    if user.delete_ssh_key():
        say("Your public SSH key has been removed from Shelly Cloud")
    if user.delete_credentials():
        say("You have been successfully logged out")


@cli.command()
@click.option("--code-name", "-c", help="Unique code-name of your cloud")
@click.option("--databases", "-d", help=f"Comma separated list of databases: {', '.join(App.DATABASE_CHOICES)}")
@click.option("--size", "-s", type=click.Choice(App.SERVER_SIZES), default="large", show_default=True,
              help="Server size")
@click.option("--organization", "-o", help="Add cloud to existing organization")
@click.option("--redeem-code", "-r", help="Redeem code for free credits")
@click.option("--zone", "-z", hidden=True, help="Create cloud in given zone")
@logged_in
@inside_git_repository
@click.pass_context
def add(
    ctx: click.Context,
    code_name: Optional[str],
    databases: Optional[str],
    size: str,
    organization: Optional[str],
    redeem_code: Optional[str],
    zone: Optional[str],
) -> None:
    """Add a new cloud."""
    if databases is not None and not valid_databases(parse_databases(databases)):
        say_error("Try `shelly add --help` for more information")

    app = App(client=current_client(ctx))
    app.code_name = code_name or ask_for_code_name()
    app.databases = parse_databases(databases) if databases is not None else ask_for_databases()
    app.size = size
    app.organization = organization
    app.redeem_code = redeem_code
    app.zone_name = zone

    try:
        app.create()
    except ValidationException as e:
        for error in e.each_error():
            say_error(error, with_exit=False)
        say_new_line()
        say_error("Fix errors in the below command and type it again to create your cloud", with_exit=False)
        say_error(f"shelly add --code-name={app.code_name} --databases={','.join(app.databases) or 'none'} "
                  f"--size={app.size}")

    if overwrite_remote(app):
        say(f"Adding remote {app} {app.git_url}", "green")
        app.add_git_remote()
    else:
        say("You have to manually add git remote:")
        say(f"`git remote add NAME {app.git_url}`")

    say("Creating Cloudfile", "green")
    app.create_cloudfile()

    if app.attributes.get("trial"):
        say_new_line()
        say("Billing information", "green")
        say("Cloud created with 20 Euro credit.")
        say("Remember to provide billing details before trial ends.")
        say(f"{app.client.shellyapp_url}/apps/{app}/billing/edit")

    say_new_line()
    say("Project is now configured for use with Shelly Cloud:", "green")
    say("You can review changes using", "green")
    say("  git status")
    say_new_line()
    say("When you make sure all settings are correct please issue following commands:", "green")
    say("  git add .")
    say('  git commit -m "Application added to Shelly Cloud"')
    say("  git push")
    say_new_line()
    say("Deploy to your cloud using:", "green")
    say(f"  git push {app} master")
    say_new_line()


@cli.command("list")
@logged_in
@click.pass_context
def list_clouds(ctx: click.Context) -> None:
    """List available clouds."""
    apps = _current_user(ctx).apps()
    if not apps:
        say("You have no clouds yet", "green")
        return

    say("You have following clouds available:", "green")
    rows = []
    for app in apps:
        state = app.get("state") or "unknown"
        hint = ""
        if state in ("deploy_failed", "configuration_failed"):
            hint = f" (deployment log: `shelly deploys show last -c {app['code_name']}`)"
        rows.append([app["code_name"], f"|  {state.replace('_', ' ')}{hint}"])
    print_table(rows, indent=2)


cli.add_command(list_clouds, "status")


@cli.command()
@logged_in
@cloudfile_present
@click.pass_context
def ip(ctx: click.Context) -> None:
    """List cloud's IP addresses."""
    for app in selected_clouds(None):
        with cloud_access(app, with_exit=False):
            web_server_ip = app.web_server_ip
            say(f"Cloud {app}:", "green")
            say(f"  Web server IP: {web_server_ip}")
            say(f"  Mail server IP: {app.mail_server_ip}")


@cli.command()
@cloud_option
@logged_in
def info(cloud: Optional[str]) -> None:
    """Show basic information about the cloud."""
    app = multiple_clouds(cloud, "info")
    with cloud_access(app):
        state = app.state
        failed = state in ("deploy_failed", "configuration_failed")
        hint = f" (deployment log: `shelly deploys show last -c {app}`)" if failed else ""
        say(f"Cloud {app}:", "red" if failed else "green")
        say(f"  State: {state}{hint}")
        say_new_line()
        git_info = app.git_info
        say(f"  Deployed commit sha: {git_info.get('deployed_commit_sha')}")
        say(f"  Deployed commit message: {git_info.get('deployed_commit_message')}")
        say(f"  Deployed by: {git_info.get('deployed_push_author')}")
        say_new_line()
        say(f"  Repository URL: {git_info.get('repository_url')}")
        say(f"  Web server IP: {app.web_server_ip}")
        say_new_line()

        try:
            statistics = app.statistics
        except APIException as e:
            if e.status_code != 504:
                raise
            say_error("Server statistics temporarily unavailable")

        if statistics:
            say("  Statistics:")
            for stat in statistics:
                load, cpu = stat.get("load", {}), stat.get("cpu", {})
                say(f"    {stat.get('name')}:")
                say(f"      Load average: 1m: {load.get('avg01')}, 5m: {load.get('avg05')}, "
                    f"15m: {load.get('avg15')}")
                say(f"      CPU: {cpu.get('wait')}%, MEM: {stat.get('memory', {}).get('percent')}%, "
                    f"SWAP: {stat.get('swap', {}).get('percent')}%")


@cli.command()
@cloud_option
@logged_in
@cloudfile_present
def start(cloud: Optional[str]) -> None:
    """Start the cloud."""
    app = multiple_clouds(cloud, "start")
    try:
        with cloud_access(app):
            app.start()
    except ConflictException as e:
        _start_conflict(app, e["state"])

    say(f"Starting cloud {app}.", "green")
    say("This can take up to 10 minutes.")
    say("Check status with: `shelly list`")


def _start_conflict(app: App, state: Optional[str]) -> None:
    if state == "running":
        say_error(f"Not starting: cloud '{app}' is already running")
    elif state in ("deploying", "configuring"):
        say_error(f"Not starting: cloud '{app}' is currently deploying")
    elif state == "no_code":
        say_error("Not starting: no source code provided", with_exit=False)
        say_error("Push source code using:", with_exit=False)
        say(f"  git push {app} master")
    elif state in ("deploy_failed", "configuration_failed"):
        say_error("Not starting: deployment failed", with_exit=False)
        say_error("Support has been notified", with_exit=False)
        say_error(f"Check `shelly deploys show last --cloud {app}` for reasons of failure")
    elif state == "not_enough_resources":
        say_error("Sorry, There are no resources for your servers.\n"
                  "We have been notified about it. We will be adding new resources shortly")
    elif state == "no_billing":
        say_error(f"Please fill in billing details to start {app}.", with_exit=False)
        say_error(f"Visit: {app.edit_billing_url}", with_exit=False)
    elif state == "payment_declined":
        say_error(f"Not starting. Invoice for cloud '{app}' was declined.")
    sys.exit(1)


@cli.command()
@logged_in
@inside_git_repository
@cloudfile_present
def setup() -> None:
    """Set up clouds defined in Cloudfile in this repository."""
    say("Investigating Cloudfile")
    for app in selected_clouds(None):
        with cloud_access(app):
            say(f"Adding {app} cloud", "green")
            app.git_url = app.git_info.get("repository_url")
            if overwrite_remote(app):
                say(f"git remote add {app} {app.git_url}")
                app.add_git_remote()
                say(f"git fetch {app}")
                app.git_fetch_remote()
                say(f"git checkout -b {app} --track {app}/master")
                app.git_add_tracking_branch()
            else:
                say("You have to manually add remote:")
                say(f"`git remote add {app} {app.git_url}`")
                say(f"`git fetch {app}`")
                say(f"`git checkout -b {app} --track {app}/master`")
            say_new_line()

    say("Your application is set up.", "green")


@cli.command()
@cloud_option
@logged_in
@cloudfile_present
def stop(cloud: Optional[str]) -> None:
    """Shutdown the cloud."""
    app = multiple_clouds(cloud, "stop")
    if not yes(f"Are you sure you want to shut down '{app}' cloud (yes/no)"):
        sys.exit(1)
    with cloud_access(app):
        app.stop()
    say_new_line()
    say(f"Cloud '{app}' stopped")


@cli.command()
@cloud_option
@logged_in
def delete(cloud: Optional[str]) -> None:
    """Delete the cloud."""
    app = multiple_clouds(cloud, "delete")
    say(f"You are about to delete application: {app}.")
    say("Press Control-C at any moment to cancel.")
    say("Please confirm each question by typing yes and pressing Enter.")
    say_new_line()
    for question in (
        "I want to delete all files stored on Shelly Cloud (yes/no)",
        "I want to delete all database data stored on Shelly Cloud (yes/no)",
        "I want to delete the application (yes/no)",
    ):
        if not yes(question):
            say_error("[canceled]")

    with cloud_access(app):
        app.delete()
    say_new_line()
    say("Scheduling application delete - done")
    if App.inside_git_repository():
        app.remove_git_remote()
        say("Removing git remote - done")
    else:
        say("Missing git remote")


@cli.command()
@cloud_option
@click.option("--limit", "-n", type=int, help="Amount of messages to show")
@click.option("--from", "from_", help="Time from which to find the logs")
@click.option("--tail", "-f", is_flag=True, help="Show new logs automatically")
@click.option("--date", "-d", help="Download logs archive for given day (YYYY-MM-DD)")
@logged_in
@cloudfile_present
def logs(cloud: Optional[str], limit: Optional[int], from_: Optional[str], tail: bool,
         date: Optional[str]) -> None:
    """Show latest application logs."""
    app = multiple_clouds(cloud, "logs")
    with cloud_access(app):
        if tail:
            app.application_logs_tail(say)
            return

        if date:
            _download_logs(app, date)
            return

        entries = app.application_logs({"limit": limit, "from": from_})
        say(f"Cloud {app}:", "green")
        for i, log in enumerate(entries, 1):
            say(f"Instance {i}:", "green")
            say(log)


def _download_logs(app: App, date: str) -> None:
    try:
        attributes = app.download_application_logs_attributes(date)
    except NotFoundException as e:
        if e.resource != "log":
            raise
        say_error(f"Log file not found for {date}")

    with Progress(
        TextColumn("[bold]{task.description}"), BarColumn(), DownloadColumn(), console=err_console
    ) as progress:
        task = progress.add_task(attributes["filename"], total=attributes.get("size") or None)
        app.download_application_logs(attributes, lambda size: progress.advance(task, size))
    say(f"Log file saved to {attributes['filename']}", "green")


@cli.command()
@click.argument("code")
@cloud_option
@logged_in
@cloudfile_present
def execute(code: str, cloud: Optional[str]) -> None:
    """Run code on one of application servers.

    If CODE names an existing file, the contents of that file are run.
    """
    app = multiple_clouds(cloud, "execute")
    try:
        with cloud_access(app):
            result = app.run(code)
    except APIException as e:
        if e.message != "App not running":
            raise
        say_error(f"Cloud {app} is not running. Cannot run code.")
    say(result)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
@click.argument("task", nargs=-1, type=click.UNPROCESSED)
@cloud_option
@logged_in
@cloudfile_present
def rake(task: Tuple[str, ...], cloud: Optional[str]) -> None:
    """Run rake task.

    All arguments and unknown options are passed to rake.
    """
    task_line = " ".join(task)
    if not task_line:
        say_error("Specify rake task to run, e.g. `shelly rake db:migrate`")

    app = multiple_clouds(cloud, f"rake {task_line}")
    try:
        with cloud_access(app):
            exit_code = app.rake(task_line)
    except APIException as e:
        if e.message != "App not running":
            raise
        say_error(f"Cloud {app} is not running. Cannot run rake task.")
    if exit_code:
        sys.exit(exit_code)


@cli.command()
@cloud_option
@logged_in
def redeploy(cloud: Optional[str]) -> None:
    """Redeploy application."""
    app = multiple_clouds(cloud, "redeploy")
    try:
        with cloud_access(app):
            app.redeploy()
    except ConflictException as e:
        if e["state"] in ("deploying", "configuring"):
            say_error("Your application is being redeployed at the moment")
        elif e["state"] in ("no_code", "no_billing", "turned_off"):
            say_error(f"Cloud {app} is not running", with_exit=False)
            say(f"Start your cloud with `shelly start --cloud {app}`")
            sys.exit(1)
        raise
    say(f"Redeploying your application for cloud '{app}'", "green")


@cli.command("open")
@cloud_option
@logged_in
def open_cloud(cloud: Optional[str]) -> None:
    """Open application page in browser."""
    app = multiple_clouds(cloud, "open")
    with cloud_access(app):
        app.open()


@cli.command()
@cloud_option
@click.option("--server", "-s", help="Connect to specified server")
@logged_in
def console(cloud: Optional[str], server: Optional[str]) -> None:
    """Open console to the application."""
    app = multiple_clouds(cloud, "console")
    try:
        with cloud_access(app):
            exit_code = app.console(server)
    except ConflictException:
        say_error(f"Cloud {app} is not running. Cannot run console.")
    except NotFoundException as e:
        if e.resource != "server":
            raise
        say_error(f"Server '{server}' not found or not configured for running console")
    if exit_code:
        sys.exit(exit_code)


@cli.command()
@cloud_option
@logged_in
def dbconsole(cloud: Optional[str]) -> None:
    """Run rails dbconsole."""
    app = multiple_clouds(cloud, "dbconsole")
    try:
        with cloud_access(app):
            exit_code = app.dbconsole()
    except ConflictException:
        say_error(f"Cloud {app} is not running. Cannot run dbconsole.")
    if exit_code:
        sys.exit(exit_code)


def main() -> None:
    cli(prog_name="shelly")


if __name__ == "__main__":
    main()

"""App: a single cloud on Shelly Cloud."""

import posixpath
import re
import shlex
import webbrowser
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from shelly.client.api import Client
from shelly.utils import git
from shelly.utils.ssh import SSHOperations
from .backup import Backup
from .cloudfile import Cloudfile

SHARED_DISK = "/srv/glusterfs/disk"


def dasherize(value: str) -> str:
    return value.replace("_", "-")


def shared_disk_path(path: str) -> str:
    """Absolute remote path of ``path``, always inside the shared disk."""
    return posixpath.join(SHARED_DISK, path.lstrip("/"))


class App:
    """A cloud identified by its code name.

    Most methods delegate to a single API call. Attributes fetched from
    the API and the configuration file list are memoized per instance.
    """

    DATABASE_KINDS = ["postgresql", "mongodb", "redis"]
    DATABASE_CHOICES = DATABASE_KINDS + ["none"]
    SERVER_SIZES = ["small", "large"]

    def __init__(
        self,
        code_name: Optional[str] = None,
        content: Optional[Dict[str, Any]] = None,
        client: Optional[Client] = None,
    ) -> None:
        """Initialize the cloud.

        Args:
            code_name: Unique code name of the cloud
            content: Section of the Cloudfile describing this cloud
            client: API client. A fresh anonymous client is used if None
        """
        self.code_name = code_name
        self.content = content or {}
        self.client = client or Client()

        self._databases: List[str] = []
        self.ruby_version: Optional[str] = None
        self.environment: Optional[str] = None
        self.git_url: Optional[str] = None
        self.domains: List[str] = []
        self.size: str = "large"
        self.redeem_code: Optional[str] = None
        self.organization: Optional[str] = None
        self.zone_name: Optional[str] = None

        self._attributes: Optional[Dict[str, Any]] = None
        self._configs: Optional[List[Dict[str, Any]]] = None
        self._statistics: Optional[List[Dict[str, Any]]] = None

    def __str__(self) -> str:
        return self.code_name or ""

    def __repr__(self) -> str:
        return f"App({self.code_name!r})"

    @classmethod
    def from_cloudfile(cls, client: Client, cloudfile: Optional[Cloudfile] = None) -> List["App"]:
        """Build one App per cloud defined in the Cloudfile."""
        cloudfile = cloudfile or Cloudfile()
        return [cls(name, content, client) for name, content in cloudfile.clouds().items()]

    @property
    def databases(self) -> List[str]:
        return self._databases

    @databases.setter
    def databases(self, kinds: Iterable[str]) -> None:
        self._databases = [kind for kind in kinds if kind != "none"]

    @property
    def thin(self) -> int:
        return 2 if self.size == "small" else 4

    @property
    def puma(self) -> int:
        return 1 if self.size == "small" else 2

    # Creation

    def create(self) -> None:
        """Create the cloud and take git url, domains and runtime from the response."""
        attributes = {
            "code_name": self.code_name,
            "redeem_code": self.redeem_code,
            "organization_name": self.organization,
            "zone_name": self.zone_name,
        }
        response = self.client.create_app(attributes)
        self._assign_attributes(response)

    def _assign_attributes(self, response: Dict[str, Any]) -> None:
        self.git_url = response.get("git_url")
        self.domains = response.get("domains") or []
        self.ruby_version = response.get("ruby_version")
        self.environment = response.get("environment")

    def create_cloudfile(self, cloudfile: Optional[Cloudfile] = None) -> None:
        cloudfile = cloudfile or Cloudfile()
        cloudfile.code_name = self.code_name
        cloudfile.ruby_version = self.ruby_version
        cloudfile.environment = self.environment
        cloudfile.domains = self.domains
        cloudfile.size = self.size
        if self.ruby_version == "jruby":
            cloudfile.puma = self.puma
        else:
            cloudfile.thin = self.thin
        cloudfile.databases = self.databases
        cloudfile.create()

    @staticmethod
    def guess_code_name(cloudfile: Optional[Cloudfile] = None) -> str:
        """Suggest a code name from the directory name and existing clouds.

        ``<dir>-staging`` for the first cloud; once a staging cloud exists,
        ``<dir>-production``, then ``production1``, ``production2``...
        """
        cloudfile = cloudfile or Cloudfile()
        guessed = None
        if cloudfile.present():
            clouds = cloudfile.cloud_names()
            if any("staging" in cloud for cloud in clouds):
                guessed = "production"
                for cloud in sorted(c for c in clouds if "production" in c):
                    number = re.search(r"production(\d*)", cloud).group(1)
                    guessed = f"production{int(number or 0) + 1}"
        return dasherize(f"{Path.cwd().name}-{guessed or 'staging'}".lower())

    # Git

    def add_git_remote(self) -> bool:
        return git.add_remote(self.code_name, self.git_url)

    def git_remote_exist(self) -> bool:
        return git.remote_exists(self.code_name)

    def git_fetch_remote(self) -> bool:
        return git.fetch(self.code_name)

    def git_add_tracking_branch(self) -> bool:
        return git.add_tracking_branch(self.code_name)

    def remove_git_remote(self) -> bool:
        return git.remove_remote(self.code_name)

    @staticmethod
    def inside_git_repository() -> bool:
        return git.inside_git_repository()

    def pending_commits(self) -> str:
        """Commits not yet deployed, one per line: short sha, subject, age."""
        current = git.current_commit()
        if not current:
            return ""
        return git.log_range(self.git_info["deployed_commit_sha"], current)

    # Lifecycle

    def delete(self) -> None:
        self.client.delete_app(self.code_name)

    def start(self) -> Any:
        """Returns the id of the started deployment."""
        return self.client.start_cloud(self.code_name)["deployment"]["id"]

    def stop(self) -> Any:
        return self.client.stop_cloud(self.code_name)["deployment"]["id"]

    def redeploy(self) -> Any:
        return self.client.redeploy(self.code_name)["deployment"]["id"]

    def deployment(self, deployment_id: Any) -> Dict[str, Any]:
        return self.client.deployment(self.code_name, deployment_id)

    # Logs

    def deploy_logs(self) -> List[Dict[str, Any]]:
        return self.client.deploy_logs(self.code_name)

    def deploy_log(self, log: str) -> Dict[str, Any]:
        return self.client.deploy_log(self.code_name, log)

    def application_logs(self, options: Optional[Dict[str, Any]] = None) -> Any:
        return self.client.application_logs(self.code_name, options)

    def application_logs_tail(self, callback: Callable[[str], None]) -> None:
        self.client.application_logs_tail(self.code_name, callback)

    def download_application_logs_attributes(self, date: str) -> Dict[str, Any]:
        return self.client.download_application_logs_attributes(self.code_name, {"date": date})

    def download_application_logs(
        self, attributes: Dict[str, Any], progress_callback: Optional[Callable[[int], None]] = None
    ) -> None:
        self.client.download_file(attributes["url"], attributes["filename"], progress_callback)

    # Backups

    def database_backups(self) -> List[Backup]:
        return [
            Backup(dict(attributes, code_name=self.code_name), self.client)
            for attributes in self.client.database_backups(self.code_name)
        ]

    def database_backup(self, handler: str) -> Backup:
        attributes = self.client.database_backup(self.code_name, handler)
        return Backup(dict(attributes, code_name=self.code_name), self.client)

    def restore_backup(self, filename: str) -> Dict[str, Any]:
        return self.client.restore_backup(self.code_name, filename)

    def request_backup(self, kinds: Union[str, Iterable[str]]) -> None:
        if isinstance(kinds, str):
            kinds = [kinds]
        for kind in kinds:
            self.client.request_backup(self.code_name, kind)

    # Configuration files

    @property
    def configs(self) -> List[Dict[str, Any]]:
        if self._configs is None:
            self._configs = self.client.app_configs(self.code_name)
        return self._configs

    def user_configs(self) -> List[Dict[str, Any]]:
        return [config for config in self.configs if config.get("created_by_user")]

    def shelly_generated_configs(self) -> List[Dict[str, Any]]:
        return [config for config in self.configs if config.get("created_by_user") is False]

    def config(self, path: str) -> Dict[str, Any]:
        return self.client.app_config(self.code_name, path)

    def create_config(self, path: str, content: str) -> Dict[str, Any]:
        return self.client.app_create_config(self.code_name, path, content)

    def update_config(self, path: str, content: str) -> Dict[str, Any]:
        return self.client.app_update_config(self.code_name, path, content)

    def delete_config(self, path: str) -> Dict[str, Any]:
        return self.client.app_delete_config(self.code_name, path)

    # Collaborators

    def users(self) -> List[Dict[str, Any]]:
        return self.client.app_users(self.code_name)

    def add_user(self, email: str) -> Dict[str, Any]:
        return self.client.send_invitation(self.code_name, email)

    def delete_user(self, email: str) -> Dict[str, Any]:
        return self.client.delete_collaboration(self.code_name, email)

    # Remote attributes

    @property
    def attributes(self) -> Dict[str, Any]:
        if self._attributes is None:
            self._attributes = self.client.app(self.code_name)
        return self._attributes

    @property
    def statistics(self) -> List[Dict[str, Any]]:
        if self._statistics is None:
            self._statistics = self.client.statistics(self.code_name)
        return self._statistics

    @property
    def web_server_ip(self) -> Optional[str]:
        return self.attributes.get("web_server_ip")

    @property
    def mail_server_ip(self) -> Optional[str]:
        return self.attributes.get("mail_server_ip")

    @property
    def git_info(self) -> Dict[str, Any]:
        return self.attributes.get("git_info") or {}

    @property
    def state(self) -> Optional[str]:
        return self.attributes.get("state")

    @property
    def credit(self) -> float:
        return float(self.attributes["organization"]["credit"])

    @property
    def organization_details_present(self) -> bool:
        return bool(self.attributes["organization"].get("details_present"))

    @property
    def deployed(self) -> bool:
        return bool(self.git_info.get("deployed_commit_sha"))

    @property
    def edit_billing_url(self) -> str:
        return f"{self.client.shellyapp_url}/organizations/{self.organization or self.code_name}/edit"

    def open(self) -> bool:
        return webbrowser.open(f"http://{self.attributes['domain']}")

    # Remote commands

    def run(self, file_name_or_code: str) -> Any:
        """Run ruby code (or the contents of a local file) on an app server."""
        path = Path(file_name_or_code)
        if path.is_file():
            body, type = path.read_text(), "file"
        else:
            body, type = file_name_or_code, "ruby"
        return self.client.command(self.code_name, body, type)["result"]

    def console_connection(self, server: Optional[str] = None) -> Dict[str, Any]:
        return self.client.console(self.code_name, server)

    def _ssh(self, command: Optional[str] = None, server: Optional[str] = None) -> int:
        conn = self.console_connection(server)
        return SSHOperations.from_connection(conn).execute_interactive(command)

    def rake(self, task: str) -> int:
        """Run ``rake_runner`` with the task line as a single shell-quoted argument."""
        return self._ssh(f"rake_runner {shlex.quote(task)}")

    def dbconsole(self) -> int:
        return self._ssh("dbconsole")

    def console(self, server: Optional[str] = None) -> int:
        return self._ssh(server=server)

    def list_files(self, path: str = "") -> int:
        return self._ssh(f"ls -l {shlex.quote(shared_disk_path(path))}")

    def delete_file(self, remote_path: str) -> int:
        return self._ssh(f"delete_file {shlex.quote(remote_path)}")

    def upload(self, source: str) -> int:
        ssh = SSHOperations.from_connection(self.console_connection())
        return ssh.rsync(source, ssh.remote_path(SHARED_DISK))

    def download(self, relative_source: str, destination: str) -> int:
        ssh = SSHOperations.from_connection(self.console_connection())
        return ssh.rsync(ssh.remote_path(shared_disk_path(relative_source)), destination)

    # Cloudfile settings

    def _servers(self) -> Dict[str, Dict[str, Any]]:
        return {name: (settings or {}) for name, settings in (self.content.get("servers") or {}).items()}

    @property
    def cloud_databases(self) -> List[str]:
        """Database kinds used by any server of this cloud, without duplicates."""
        kinds: List[str] = []
        for settings in self._servers().values():
            for kind in settings.get("databases") or []:
                if kind not in kinds:
                    kinds.append(kind)
        return kinds

    @property
    def backup_databases(self) -> List[str]:
        return [kind for kind in self.cloud_databases if kind != "redis"]

    def _option(self, option: str) -> bool:
        return any(option in settings for settings in self._servers().values())

    @property
    def delayed_job(self) -> bool:
        return self._option("delayed_job")

    @property
    def whenever(self) -> bool:
        return self._option("whenever")

    @property
    def sidekiq(self) -> bool:
        return self._option("sidekiq")

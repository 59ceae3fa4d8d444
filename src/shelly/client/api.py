"""HTTP client for the Shelly Cloud REST API."""

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from shelly import __version__
from shelly.core.settings import settings
from . import APIException, ConnectionFailedException, STATUS_EXCEPTIONS

logger = logging.getLogger(__name__)

# Streaming log tails stay open for up to a day
TAIL_TIMEOUT = 60 * 60 * 24
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _quote(value: str) -> str:
    return quote(str(value), safe="")


class Client:
    """Thin wrapper around the Shelly Cloud API.

    Every public method maps to one remote endpoint and returns the
    decoded JSON response. Non-2xx responses raise the matching
    ``APIException`` subclass.
    """

    def __init__(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        api_url: Optional[str] = None,
        shellyapp_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """Initialize the client.

        Args:
            email: Account email used for HTTP basic auth
            password: Account password used for HTTP basic auth
            api_url: API root. Defaults to ``settings.api_url``
            shellyapp_url: Web application root, used to build links
            timeout: Request timeout in seconds
        """
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.shellyapp_url = (shellyapp_url or settings.shellyapp_url).rstrip("/")
        self.timeout = timeout or settings.timeout
        self.email = email
        self.password = password

        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"shelly/{__version__}",
            "shelly-version": __version__,
        })

    def authenticate(self, email: str, password: str) -> None:
        """Use the given credentials for subsequent requests."""
        self.email = email
        self.password = password

    @property
    def auth(self) -> Optional[tuple]:
        if self.email is None:
            return None
        return (self.email, self.password or "")

    def build_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return self.api_url + path

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform a JSON request and return the decoded body.

        Raises:
            APIException: On non-2xx responses (mapped by status code)
            ConnectionFailedException: If the API cannot be reached
        """
        response = self._send(method, self.build_url(path), params=params, json=payload)
        return self._handle_response(response)

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        if kwargs.get("params"):
            kwargs["params"] = {k: v for k, v in kwargs["params"].items() if v is not None and v != ""}
        kwargs.setdefault("timeout", self.timeout)

        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, auth=self.auth, **kwargs)
        except requests.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            raise ConnectionFailedException(f"Unable to connect to Shelly Cloud API at {self.api_url}: {e}")

        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    def _handle_response(self, response: requests.Response) -> Any:
        body = self._decode(response)
        if 200 <= response.status_code < 300:
            return body

        if not isinstance(body, dict):
            body = {"message": str(body)}
        exception_class = STATUS_EXCEPTIONS.get(response.status_code, APIException)
        raise exception_class(
            body,
            status_code=response.status_code,
            request_id=response.headers.get("X-Request-Id"),
        )

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", path, payload=payload or {})

    def put(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("PUT", path, payload=payload or {})

    def delete(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("DELETE", path, payload=payload)

    # Account

    def register_user(self, email: str, password: str, ssh_key: Optional[str]) -> Dict[str, Any]:
        return self.post("/users", {"user": {"email": email, "password": password, "ssh_key": ssh_key}})

    def token(self) -> Dict[str, Any]:
        return self.get("/token")

    def add_ssh_key(self, ssh_key: str) -> Dict[str, Any]:
        return self.post("/ssh_keys", {"ssh_key": ssh_key})

    def delete_ssh_key(self, ssh_key: str) -> Dict[str, Any]:
        return self.delete("/ssh_keys", {"ssh_key": ssh_key})

    # Clouds

    def apps(self) -> List[Dict[str, Any]]:
        return self.get("/apps")

    def app(self, code_name: str) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}")

    def create_app(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("/apps", {"app": attributes})

    def delete_app(self, code_name: str) -> Dict[str, Any]:
        return self.delete(f"/apps/{code_name}")

    def start_cloud(self, code_name: str) -> Dict[str, Any]:
        return self.put(f"/apps/{code_name}/start")

    def stop_cloud(self, code_name: str) -> Dict[str, Any]:
        return self.put(f"/apps/{code_name}/stop")

    def redeploy(self, code_name: str) -> Dict[str, Any]:
        return self.post(f"/apps/{code_name}/deploys")

    def deployment(self, code_name: str, deployment_id: str) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}/deployments/{deployment_id}")

    def statistics(self, code_name: str) -> List[Dict[str, Any]]:
        return self.get(f"/apps/{code_name}/statistics")

    def command(self, code_name: str, body: str, type: str) -> Dict[str, Any]:
        return self.post(f"/apps/{code_name}/command", {"body": body, "type": type})

    def console(self, code_name: str, server: Optional[str] = None) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}/console", params={"server": server})

    # Deploy logs

    def deploy_logs(self, code_name: str) -> List[Dict[str, Any]]:
        return self.get(f"/apps/{code_name}/deployment_logs")

    def deploy_log(self, code_name: str, log: str) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}/deployment_logs/{_quote(log)}")

    # Application logs

    def application_logs(self, code_name: str, options: Optional[Dict[str, Any]] = None) -> Any:
        return self.get(f"/apps/{code_name}/application_logs", params=options)

    def application_logs_tail(self, code_name: str, callback: Callable[[str], None]) -> None:
        """Stream new log lines to ``callback`` until the server closes the stream."""
        url = self.get(f"/apps/{code_name}/application_logs/tail")["url"]
        response = self._send("GET", url, stream=True, timeout=TAIL_TIMEOUT)
        if not 200 <= response.status_code < 300:
            self._handle_response(response)

        response.encoding = response.encoding or "utf-8"
        for line in response.iter_lines(decode_unicode=True):
            if line:
                callback(line)

    def download_application_logs_attributes(
        self, code_name: str, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Return the archive location for a day of logs, with its size in bytes."""
        attributes = self.get(f"/apps/{code_name}/application_logs/download", params=options)
        response = self._send("GET", f"{attributes['url']}/headers")
        if not 200 <= response.status_code < 300:
            self._handle_response(response)
        attributes["size"] = int(response.headers.get("Content-Length", 0))
        return attributes

    # Database backups

    def database_backups(self, code_name: str) -> List[Dict[str, Any]]:
        return self.get(f"/apps/{code_name}/database_backups")

    def database_backup(self, code_name: str, handler: str) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}/database_backups/{_quote(handler)}")

    def request_backup(self, code_name: str, kind: str) -> Dict[str, Any]:
        return self.post(f"/apps/{code_name}/database_backups", {"kind": kind})

    def restore_backup(self, code_name: str, filename: str) -> Dict[str, Any]:
        return self.put(f"/apps/{code_name}/database_backups/restore", {"filename": filename})

    def download_backup(
        self,
        code_name: str,
        filename: str,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        url = self.build_url(f"/apps/{code_name}/database_backups/{_quote(filename)}/download")
        self.download_file(url, filename, progress_callback)

    def download_file(
        self,
        url: str,
        destination: str,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Stream ``url`` into ``destination``, reporting each chunk size."""
        response = self._send("GET", url, stream=True)
        if not 200 <= response.status_code < 300:
            self._handle_response(response)

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                if progress_callback:
                    progress_callback(len(chunk))

    # Configuration files

    def app_configs(self, code_name: str) -> List[Dict[str, Any]]:
        return self.get(f"/apps/{code_name}/configs")

    def app_config(self, code_name: str, path: str) -> Dict[str, Any]:
        return self.get(f"/apps/{code_name}/configs/{_quote(path)}")

    def app_create_config(self, code_name: str, path: str, content: str) -> Dict[str, Any]:
        return self.post(f"/apps/{code_name}/configs", {"config": {"path": path, "content": content}})

    def app_update_config(self, code_name: str, path: str, content: str) -> Dict[str, Any]:
        return self.put(f"/apps/{code_name}/configs/{_quote(path)}", {"config": {"content": content}})

    def app_delete_config(self, code_name: str, path: str) -> Dict[str, Any]:
        return self.delete(f"/apps/{code_name}/configs/{_quote(path)}")

    # Collaborators

    def app_users(self, code_name: str) -> List[Dict[str, Any]]:
        return self.get(f"/apps/{code_name}/users")

    def send_invitation(self, code_name: str, email: str) -> Dict[str, Any]:
        return self.post(f"/apps/{code_name}/collaborations", {"email": email})

    def delete_collaboration(self, code_name: str, email: str) -> Dict[str, Any]:
        return self.delete(f"/apps/{code_name}/collaborations/{_quote(email)}")

"""User: the account holder running the CLI."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from shelly.client.api import Client
from shelly.core.settings import settings
from shelly.utils.config import Config


class User:
    """Account credentials and the operations tied to them."""

    def __init__(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        client: Optional[Client] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.email = email
        self.password = password
        self.client = client or Client()
        self.config = config or Config()

    @classmethod
    def current(cls, client: Client, config: Config) -> "User":
        """User built from the stored credentials (empty when logged out)."""
        credentials = config.load_credentials()
        email, password = credentials if credentials else (None, None)
        return cls(email, password, client, config)

    @property
    def ssh_key_path(self) -> str:
        return settings.ssh_key_path

    def ssh_key_exists(self) -> bool:
        return Path(self.ssh_key_path).exists()

    @property
    def ssh_key(self) -> Optional[str]:
        if not self.ssh_key_exists():
            return None
        return Path(self.ssh_key_path).read_text().strip()

    def register(self) -> None:
        """Create the account, uploading the public key when one exists."""
        self.client.register_user(self.email, self.password, self.ssh_key)
        self.client.authenticate(self.email, self.password)
        self.save_credentials()

    def login(self) -> None:
        """Verify the credentials against the API and store them."""
        self.client.authenticate(self.email, self.password)
        self.client.token()
        self.save_credentials()

    def save_credentials(self) -> None:
        self.config.save_credentials(self.email, self.password)

    def delete_credentials(self) -> bool:
        return self.config.delete_credentials()

    def upload_ssh_key(self) -> Dict[str, Any]:
        return self.client.add_ssh_key(self.ssh_key)

    def delete_ssh_key(self) -> bool:
        """Remove the local public key from the account.

        Returns:
            False when there is no local key to remove
        """
        if not self.ssh_key_exists():
            return False
        self.client.delete_ssh_key(self.ssh_key)
        return True

    def apps(self) -> List[Dict[str, Any]]:
        return self.client.apps()

"""Local credential storage for the Shelly CLI."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from shelly.core.settings import settings


class ConfigError(Exception):
    """Base exception for configuration-related errors."""
    pass


class Config:
    """Credential store kept under ~/.shelly.

    Credentials live in ``credentials.json`` with owner-only permissions
    and are rewritten atomically.
    """

    CREDENTIALS_FILE = "credentials.json"

    def __init__(self, config_dir: Optional[str] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Custom configuration directory. Defaults to ``settings.config_dir``
        """
        self.config_dir = Path(config_dir or settings.config_dir)
        self.credentials_file = self.config_dir / self.CREDENTIALS_FILE

    def _ensure_config_dir(self) -> None:
        """Ensure configuration directory exists with proper permissions."""
        try:
            self.config_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory {self.config_dir}: {e}")

    def _load_json_file(self, file_path: Path) -> Optional[Any]:
        """Load JSON file, returning None when it does not exist.

        Raises:
            ConfigError: If file exists but cannot be parsed
        """
        if not file_path.exists():
            return None

        try:
            return json.loads(file_path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load {file_path}: {e}")

    def _save_json_file(self, file_path: Path, data: Any) -> None:
        """Save data to a JSON file readable only by the owner.

        Raises:
            ConfigError: If save operation fails
        """
        self._ensure_config_dir()
        temp_path = file_path.with_suffix(file_path.suffix + ".tmp")
        try:
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)

            # Atomic move to final location
            temp_path.replace(file_path)
        except OSError as e:
            raise ConfigError(f"Failed to save {file_path}: {e}")

    def save_credentials(self, email: str, password: str) -> None:
        """Store account credentials.

        Raises:
            ValueError: If email is empty
            ConfigError: If save operation fails
        """
        if not email or not email.strip():
            raise ValueError("Email cannot be empty")
        self._save_json_file(self.credentials_file, {"email": email.strip(), "password": password})

    def load_credentials(self) -> Optional[Tuple[str, str]]:
        """Return ``(email, password)`` or None when not logged in."""
        data: Optional[Dict[str, Any]] = self._load_json_file(self.credentials_file)
        if not data or not data.get("email"):
            return None
        return data["email"], data.get("password", "")

    def delete_credentials(self) -> bool:
        """Remove stored credentials.

        Returns:
            True if a credentials file was removed, False if there was none
        """
        if not self.credentials_file.exists():
            return False
        try:
            self.credentials_file.unlink()
        except OSError as e:
            raise ConfigError(f"Failed to remove {self.credentials_file}: {e}")
        return True

    @property
    def logged_in(self) -> bool:
        return self.load_credentials() is not None

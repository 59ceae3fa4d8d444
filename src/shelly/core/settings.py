"""CLI settings and environment variables."""

import os


class Settings:
    """Global settings for Shelly CLI."""

    DEFAULT_API_URL = "https://api.shellycloud.com/apiv2"
    DEFAULT_APP_URL = "https://shellycloud.com"

    def __init__(self) -> None:
        """Initialize settings from environment variables."""
        # Remote API endpoints
        self.api_url = os.getenv("SHELLY_URL", self.DEFAULT_API_URL).rstrip("/")
        self.shellyapp_url = os.getenv("SHELLY_APP_URL", self.DEFAULT_APP_URL).rstrip("/")

        # Local state
        self.config_dir = os.path.expanduser(os.getenv("SHELLY_CONFIG_DIR", "~/.shelly"))
        self.ssh_key_path = os.path.expanduser(os.getenv("SHELLY_SSH_KEY", "~/.ssh/id_rsa.pub"))

        # Network
        self.timeout = int(os.getenv("SHELLY_TIMEOUT", "60"))

        # Debug mode
        self.debug = os.getenv("SHELLY_DEBUG", "false").lower() in ("true", "1", "yes")


# Global settings instance
settings = Settings()

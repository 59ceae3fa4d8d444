"""Domain objects backed by the Shelly Cloud API."""

from .app import App
from .backup import Backup
from .cloudfile import Cloudfile, CloudfileError
from .user import User

__all__ = ["App", "Backup", "Cloudfile", "CloudfileError", "User"]

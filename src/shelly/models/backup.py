"""Backup: a database backup snapshot of a cloud."""

from typing import Any, Callable, Dict, Optional


class Backup:
    """Immutable record of one database backup."""

    def __init__(self, attributes: Dict[str, Any], client: Any) -> None:
        self.code_name: Optional[str] = attributes.get("code_name")
        self.filename: Optional[str] = attributes.get("filename")
        self.kind: Optional[str] = attributes.get("kind")
        self.size: int = attributes.get("size") or 0
        self.human_size: Optional[str] = attributes.get("human_size")
        self.state: Optional[str] = attributes.get("state")
        self.client = client

    def __str__(self) -> str:
        return self.filename or ""

    def download(self, progress_callback: Optional[Callable[[int], None]] = None) -> None:
        """Save the backup as ``filename`` in the working directory."""
        self.client.download_backup(self.code_name, self.filename, progress_callback)

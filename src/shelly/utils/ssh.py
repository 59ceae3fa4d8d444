"""SSH and rsync operations against cloud servers."""

import subprocess
from typing import Any, Dict, List, Optional


class SSHError(Exception):
    """SSH operation failed."""
    pass


class SSHOperations:
    """Run ssh and rsync against the console connection of a cloud.

    The connection comes from the API as ``{"host", "port", "user"}``.
    """

    def __init__(self, host: str, port: Any = 22, user: str = "root") -> None:
        """Initialize SSH operations for a server.

        Args:
            host: Server host name
            port: SSH port
            user: SSH user
        """
        self.host = host
        self.port = str(port)
        self.user = user

    @classmethod
    def from_connection(cls, conn: Dict[str, Any]) -> "SSHOperations":
        return cls(conn["host"], conn.get("port", 22), conn.get("user", "root"))

    def _ssh_options(self) -> List[str]:
        return [
            "-o", "StrictHostKeyChecking=no",  # Accept new host keys automatically
            "-p", self.port,
            "-l", self.user,
        ]

    def _build_ssh_command(self, command: Optional[str] = None, tty: bool = True) -> List[str]:
        """Build SSH command with proper options.

        Args:
            command: Command to execute (None for interactive session)
            tty: Whether to allocate a TTY

        Returns:
            SSH command as list of strings
        """
        ssh_cmd = ["ssh"] + self._ssh_options()

        if tty:
            ssh_cmd.append("-t")

        ssh_cmd.append(self.host)

        if command:
            ssh_cmd.append(command)

        return ssh_cmd

    def _build_rsync_command(self, source: str, destination: str) -> List[str]:
        ssh = " ".join(["ssh"] + self._ssh_options())
        return ["rsync", "-avz", "-e", ssh, "--progress", source, destination]

    def remote_path(self, path: str) -> str:
        """Return ``host:path`` for rsync."""
        return f"{self.host}:{path}"

    def execute_interactive(self, command: Optional[str] = None) -> int:
        """Run ``command`` (or a shell) with the terminal attached.

        Returns:
            Exit code of the SSH session

        Raises:
            SSHError: If SSH session fails to start
        """
        try:
            result = subprocess.run(self._build_ssh_command(command, tty=True))
            return result.returncode
        except (OSError, subprocess.SubprocessError) as e:
            raise SSHError(f"Failed to start SSH session: {e}")
        except KeyboardInterrupt:
            return 130

    def rsync(self, source: str, destination: str) -> int:
        """Copy files with rsync over ssh, showing rsync's own progress.

        Returns:
            Exit code of rsync

        Raises:
            SSHError: If rsync cannot be started
        """
        try:
            result = subprocess.run(self._build_rsync_command(source, destination))
            return result.returncode
        except (OSError, subprocess.SubprocessError) as e:
            raise SSHError(f"Failed to run rsync: {e}")
        except KeyboardInterrupt:
            return 130

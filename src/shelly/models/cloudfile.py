"""Cloudfile: the per-project manifest describing clouds and their servers."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class CloudfileError(Exception):
    """Cloudfile is missing or cannot be parsed."""
    pass


class Cloudfile:
    """Reads and writes the ``Cloudfile`` in the project directory.

    The file is a YAML mapping of cloud code names to their settings::

        foo-staging:
          ruby_version: 1.9.3
          environment: production
          domains:
            - foo-staging.shellyapp.com
          servers:
            app1:
              size: small
              thin: 2
              databases:
                - postgresql

    Attributes set before ``generate``/``create`` describe one new cloud.
    """

    FILENAME = "Cloudfile"

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path) if path else Path.cwd() / self.FILENAME
        self.code_name: Optional[str] = None
        self.ruby_version: Optional[str] = None
        self.environment: Optional[str] = None
        self.domains: List[str] = []
        self.size: Optional[str] = None
        self.thin: Optional[int] = None
        self.puma: Optional[int] = None
        self.databases: List[str] = []

    def present(self) -> bool:
        return self.path.exists()

    def content(self) -> Dict[str, Any]:
        """Parse the Cloudfile.

        Raises:
            CloudfileError: If the file is missing or is not a YAML mapping
        """
        try:
            data = yaml.safe_load(self.path.read_text())
        except OSError as e:
            raise CloudfileError(f"Failed to read {self.path}: {e}")
        except yaml.YAMLError as e:
            raise CloudfileError(f"Cloudfile is not valid YAML: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CloudfileError("Cloudfile must map cloud code names to their settings")
        return data

    def clouds(self) -> Dict[str, Dict[str, Any]]:
        """Map each cloud code name to its section, in file order."""
        return {str(name): (settings or {}) for name, settings in self.content().items()}

    def cloud_names(self) -> List[str]:
        return list(self.clouds())

    def generate(self) -> str:
        """Render the Cloudfile section for the cloud described by this object.

        Small clouds keep their databases on ``app1``; large clouds get one
        extra server per database kind.
        """
        lines = [
            f"{self.code_name}:",
            f"  ruby_version: {self.ruby_version} # 2.0.0, jruby, 1.9.3, 1.9.2 or ree-1.8.7",
            f"  environment: {self.environment} # RAILS_ENV",
        ]
        if self.domains:
            lines.append("  domains:")
            lines.extend(f"    - {domain}" for domain in self.domains)

        lines.extend([
            "  servers:",
            "    app1:",
            f"      size: {self.size}",
        ])
        if self.ruby_version == "jruby":
            lines.append(f"      puma: {self.puma}")
        else:
            lines.append(f"      thin: {self.thin}")
        lines.extend([
            "      # whenever: on",
            "      # delayed_job: 1",
            "      # sidekiq: 1",
        ])

        if self.size == "small":
            if self.databases:
                lines.append("      databases:")
                lines.extend(f"        - {kind}" for kind in self.databases)
        else:
            for kind in self.databases:
                lines.extend([
                    f"    {kind}:",
                    f"      size: {self.size}",
                    "      databases:",
                    f"        - {kind}",
                ])

        return "\n".join(lines) + "\n"

    def create(self) -> None:
        """Write the generated section, appending when the Cloudfile already exists."""
        section = self.generate()
        try:
            if self.present():
                existing = self.path.read_text()
                if existing and not existing.endswith("\n"):
                    section = "\n" + section
                with self.path.open("a") as f:
                    f.write(section)
            else:
                self.path.write_text(section)
        except OSError as e:
            raise CloudfileError(f"Failed to write {self.path}: {e}")

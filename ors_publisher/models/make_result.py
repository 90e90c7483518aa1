"""MakeResult: one packaging output handed over by the host build tool."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class MakeResult:
    """Artifacts produced for a single target platform.

    The publisher never builds these itself; the host tool (or the CLI)
    hands them over after packaging.

    Attributes:
        package_json: Application package metadata; must carry "version".
        artifacts: Local paths of the distributable files.
        platform: Target platform identifier (e.g. "win32", "darwin", "linux").
        arch: Target architecture, informational only.
    """

    package_json: dict[str, Any]
    artifacts: list[Path]
    platform: str
    arch: str | None = None

    def __post_init__(self) -> None:
        """Normalize artifact paths and validate the version field."""
        self.artifacts = [Path(p) for p in self.artifacts]
        version = self.package_json.get("version")
        if not isinstance(version, str) or not version.strip():
            raise ValueError("MakeResult package_json must carry a non-empty 'version' string")

    @property
    def version(self) -> str:
        """Raw version string, channel suffix included (e.g. "1.2.3-beta")."""
        return str(self.package_json["version"]).strip()

"""Release records as the release server reports them.

The client only reads these to decide whether a release must be created and
which assets are already present; they are never mutated locally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ReleaseChannel(Enum):
    """Release track a version is published on."""

    STABLE = "stable"
    BETA = "beta"
    ALPHA = "alpha"
    RC = "rc"

    @classmethod
    def parse(cls, value: str | ReleaseChannel) -> ReleaseChannel:
        """Return the channel for a config/CLI value (case-insensitive).

        Raises:
            ValueError: If value names no channel.
        """
        if isinstance(value, ReleaseChannel):
            return value
        return cls(value.strip().lower())


@dataclass(frozen=True)
class ReleaseAsset:
    """An uploaded file, identified by name and platform.

    Attributes:
        name: Base file name of the artifact.
        platform: Target platform it was built for (e.g. "win32", "darwin").
    """

    name: str
    platform: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {"name": self.name, "platform": self.platform}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseAsset:
        """Create ReleaseAsset from dict."""
        return cls(name=data["name"], platform=data["platform"])


@dataclass(frozen=True)
class ReleaseInfo:
    """A release record owned by the server.

    Attributes:
        version: Normalized version, without channel suffix.
        channel: Channel name as reported by the server.
        change_log: Release notes.
        created_at: Creation timestamp string, passed through untouched.
        assets: Assets already attached to the release.
    """

    version: str
    channel: str
    change_log: str = ""
    created_at: str | None = None
    assets: tuple[ReleaseAsset, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the server's JSON shape."""
        return {
            "version": self.version,
            "channel": self.channel,
            "changeLog": self.change_log,
            "createdAt": self.created_at,
            "assets": [asset.to_dict() for asset in self.assets],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseInfo:
        """Create ReleaseInfo from a `GET /releases` entry."""
        return cls(
            version=data["version"],
            channel=data["channel"],
            change_log=data.get("changeLog") or "",
            created_at=data.get("createdAt"),
            assets=tuple(ReleaseAsset.from_dict(a) for a in data.get("assets") or []),
        )

"""Result data structures for publish runs.

Non-fatal failures (release creation, asset upload) are captured here as
values instead of being raised, so the orchestrator can log them and keep
going. The CLI turns them into its summary and exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ors_publisher.errors import PublisherError


class AssetStatus(Enum):
    """What happened to one artifact.

    UPLOADED: Every chunk was accepted by the server.
    SKIPPED: Already present on the server, or dry run.
    FAILED: A chunk upload failed; later chunks were not sent.
    """

    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class AssetUploadResult:
    """Outcome of publishing a single artifact.

    Attributes:
        path: Local artifact path.
        name: Base file name used as the asset name.
        status: Uploaded, skipped or failed.
        chunks_sent: Chunks accepted by the server.
        total_chunks: Chunks the file splits into.
        bytes_sent: Bytes of accepted chunks.
        error: Error that failed the upload, if any.
    """

    path: Path
    name: str
    status: AssetStatus
    chunks_sent: int = 0
    total_chunks: int = 0
    bytes_sent: int = 0
    error: PublisherError | None = None

    @property
    def success(self) -> bool:
        return self.status is not AssetStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d: dict[str, Any] = {
            "path": str(self.path),
            "name": self.name,
            "status": self.status.value,
            "chunks_sent": self.chunks_sent,
            "total_chunks": self.total_chunks,
            "bytes_sent": self.bytes_sent,
        }
        if self.error is not None:
            d["error"] = self.error.to_dict()
        return d


@dataclass
class ReleaseCreation:
    """Outcome of making sure a release record exists.

    Attributes:
        existed: A matching release was already on the server.
        created: This run created the release.
        error: Creation error, if the server refused it.
    """

    existed: bool
    created: bool = False
    error: PublisherError | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"existed": self.existed, "created": self.created}
        if self.error is not None:
            d["error"] = self.error.to_dict()
        return d


@dataclass
class MakeResultOutcome:
    """Outcome of publishing one make-result."""

    platform: str
    version: str
    channel: str
    release: ReleaseCreation
    assets: list[AssetUploadResult] = field(default_factory=list)

    @property
    def failed(self) -> list[AssetUploadResult]:
        return [a for a in self.assets if a.status is AssetStatus.FAILED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "version": self.version,
            "channel": self.channel,
            "release": self.release.to_dict(),
            "assets": [a.to_dict() for a in self.assets],
        }


@dataclass
class PublishOutcome:
    """Aggregate of a publish run across all make-results."""

    make_results: list[MakeResultOutcome] = field(default_factory=list)

    def _count(self, status: AssetStatus) -> int:
        return sum(1 for mr in self.make_results for a in mr.assets if a.status is status)

    @property
    def uploaded(self) -> int:
        return self._count(AssetStatus.UPLOADED)

    @property
    def skipped(self) -> int:
        return self._count(AssetStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(AssetStatus.FAILED)

    @property
    def success(self) -> bool:
        """True if no artifact failed."""
        return self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for --format json."""
        return {
            "success": self.success,
            "uploaded": self.uploaded,
            "skipped": self.skipped,
            "failed": self.failed,
            "make_results": [mr.to_dict() for mr in self.make_results],
        }

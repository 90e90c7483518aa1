"""Data models for the ORS publisher.

Models are dataclasses; the server-facing ones convert to and from the
release server's JSON.
"""

from __future__ import annotations

from ors_publisher.models.make_result import MakeResult
from ors_publisher.models.release import ReleaseAsset, ReleaseChannel, ReleaseInfo
from ors_publisher.models.results import (
    AssetStatus,
    AssetUploadResult,
    MakeResultOutcome,
    PublishOutcome,
    ReleaseCreation,
)

__all__ = [
    # Release
    "ReleaseAsset",
    "ReleaseChannel",
    "ReleaseInfo",
    # Host input
    "MakeResult",
    # Results
    "AssetStatus",
    "AssetUploadResult",
    "MakeResultOutcome",
    "PublishOutcome",
    "ReleaseCreation",
]

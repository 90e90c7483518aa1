"""Release resolution: channel/version derivation and release lookup.

A raw version string such as "1.4.0-beta" maps to the release
{version: "1.4.0", channel: "beta"}. The server is asked for its releases
once per make-result; when none matches, a release record is created with a
fixed change log. A creation failure is logged and tolerated: uploads go
ahead regardless.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ors_publisher.client import ReleaseServerClient
from ors_publisher.errors import ReleaseCreationError, ReleaseServerError
from ors_publisher.models.release import ReleaseAsset, ReleaseChannel, ReleaseInfo
from ors_publisher.models.results import ReleaseCreation
from ors_publisher.output import error, info, success

logger = logging.getLogger(__name__)

# Scan order matters when a version string contains several channel names
CHANNEL_SCAN_ORDER: tuple[ReleaseChannel, ...] = (
    ReleaseChannel.STABLE,
    ReleaseChannel.BETA,
    ReleaseChannel.ALPHA,
    ReleaseChannel.RC,
)


@dataclass(frozen=True)
class ResolvedRelease:
    """Target release of a make-result.

    Attributes:
        version: Version with the channel suffix stripped.
        channel: Channel the assets are published on.
        existing: Matching server release, or None if it must be created.
    """

    version: str
    channel: ReleaseChannel
    existing: ReleaseInfo | None = None


def derive_channel(
    version_string: str, configured_channel: ReleaseChannel | None = None
) -> ReleaseChannel:
    """Pick the release channel for a version string.

    An explicitly configured channel always wins. Otherwise the first channel
    name (in CHANNEL_SCAN_ORDER) found as a substring of the version is used,
    falling back to stable.

    Examples:
        >>> derive_channel("1.2.3-beta")
        <ReleaseChannel.BETA: 'beta'>
        >>> derive_channel("1.2.3")
        <ReleaseChannel.STABLE: 'stable'>
    """
    if configured_channel is not None:
        return configured_channel

    for channel in CHANNEL_SCAN_ORDER:
        if channel.value in version_string:
            return channel
    return ReleaseChannel.STABLE


def derive_version(version_string: str, channel: ReleaseChannel) -> str:
    """Strip a single "-<channel>" from the version string.

    Stable versions are returned untouched; no "-stable" suffix is ever
    appended by convention.

    Examples:
        >>> derive_version("1.2.3-beta", ReleaseChannel.BETA)
        '1.2.3'
        >>> derive_version("1.2.3", ReleaseChannel.STABLE)
        '1.2.3'
    """
    if channel is ReleaseChannel.STABLE:
        return version_string
    return version_string.replace(f"-{channel.value}", "", 1)


def find_release(
    releases: Iterable[ReleaseInfo], version: str, channel: ReleaseChannel
) -> ReleaseInfo | None:
    """First release matching both version and channel, or None."""
    for release in releases:
        if release.version == version and release.channel == channel.value:
            return release
    return None


def find_asset(release: ReleaseInfo | None, name: str, platform: str) -> ReleaseAsset | None:
    """Asset of the release with the same name and platform, or None."""
    if release is None:
        return None
    for asset in release.assets:
        if asset.name == name and asset.platform == platform:
            return asset
    return None


def resolve_release(
    client: ReleaseServerClient,
    version_string: str,
    configured_channel: ReleaseChannel | None = None,
) -> ResolvedRelease:
    """Derive version/channel and look the release up on the server.

    Raises:
        ReleaseServerError: The release list could not be fetched.
    """
    channel = derive_channel(version_string, configured_channel)
    version = derive_version(version_string, channel)
    releases = client.list_releases()
    existing = find_release(releases, version, channel)
    logger.debug(
        "Resolved %s -> %s (%s), %s on server",
        version_string,
        version,
        channel.value,
        "present" if existing else "absent",
    )
    return ResolvedRelease(version=version, channel=channel, existing=existing)


def ensure_release(
    client: ReleaseServerClient,
    token: str,
    resolved: ResolvedRelease,
    change_log: str,
    *,
    dry_run: bool = False,
) -> ReleaseCreation:
    """Create the release record unless the server already has it.

    Never raises for server errors: a failed creation is logged and returned
    so uploads can proceed against a release the server may already accept.
    """
    if resolved.existing is not None:
        return ReleaseCreation(existed=True)

    if dry_run:
        info(f"Would create release {resolved.version} ({resolved.channel.value})", dry_run=True)
        return ReleaseCreation(existed=False)

    try:
        client.create_release(token, resolved.version, resolved.channel.value, change_log)
    except ReleaseServerError as e:
        failure = ReleaseCreationError(resolved.version, resolved.channel.value, e.message)
        logger.warning("%s", failure)
        error("Failed to create release on server")
        return ReleaseCreation(existed=False, created=False, error=failure)

    success(f"Release {resolved.version} created on server")
    return ReleaseCreation(existed=False, created=True)

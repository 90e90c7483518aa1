"""Unit tests for release resolution.

Test categories:
- Channel derivation (configured override, scan order, default)
- Version derivation (suffix stripping)
- Release and asset lookup
- ensure_release (create, skip, tolerated failure, dry run)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ors_publisher.errors import ReleaseCreationError
from ors_publisher.models.release import ReleaseAsset, ReleaseChannel, ReleaseInfo
from ors_publisher.release import (
    ResolvedRelease,
    derive_channel,
    derive_version,
    ensure_release,
    find_asset,
    find_release,
    resolve_release,
)

if TYPE_CHECKING:
    from conftest import FakeReleaseServer

    from ors_publisher.client import ReleaseServerClient

# =============================================================================
# derive_channel
# =============================================================================


class TestDeriveChannel:
    """Tests for derive_channel."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("1.2.3-beta", ReleaseChannel.BETA),
            ("1.2.3-alpha.4", ReleaseChannel.ALPHA),
            ("2.0.0-rc.1", ReleaseChannel.RC),
            ("1.2.3", ReleaseChannel.STABLE),
        ],
    )
    def test_derives_channel_from_suffix(self, version: str, expected: ReleaseChannel) -> None:
        assert derive_channel(version) is expected

    @pytest.mark.unit
    def test_configured_channel_wins(self) -> None:
        assert derive_channel("1.2.3-beta", ReleaseChannel.ALPHA) is ReleaseChannel.ALPHA

    @pytest.mark.unit
    def test_stable_is_checked_before_other_channels(self) -> None:
        """A version naming stable and beta resolves to stable."""
        assert derive_channel("1.0.0-stable-beta") is ReleaseChannel.STABLE

    @pytest.mark.unit
    def test_beta_is_checked_before_rc(self) -> None:
        assert derive_channel("1.0.0-beta-rc") is ReleaseChannel.BETA

    @pytest.mark.unit
    @given(
        base=st.from_regex(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}", fullmatch=True),
        channel=st.sampled_from([ReleaseChannel.BETA, ReleaseChannel.ALPHA, ReleaseChannel.RC]),
    )
    @settings(max_examples=50)
    def test_single_channel_name_is_found(self, base: str, channel: ReleaseChannel) -> None:
        """Any numeric version with one channel suffix derives that channel."""
        assert derive_channel(f"{base}-{channel.value}") is channel

    @pytest.mark.unit
    @given(base=st.from_regex(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}", fullmatch=True))
    @settings(max_examples=50)
    def test_numeric_versions_are_stable(self, base: str) -> None:
        assert derive_channel(base) is ReleaseChannel.STABLE


# =============================================================================
# derive_version
# =============================================================================


class TestDeriveVersion:
    """Tests for derive_version."""

    @pytest.mark.unit
    def test_strips_channel_suffix(self) -> None:
        assert derive_version("1.2.3-beta", ReleaseChannel.BETA) == "1.2.3"

    @pytest.mark.unit
    def test_stable_version_untouched(self) -> None:
        assert derive_version("1.2.3", ReleaseChannel.STABLE) == "1.2.3"

    @pytest.mark.unit
    def test_keeps_prerelease_number(self) -> None:
        assert derive_version("2.0.0-rc.1", ReleaseChannel.RC) == "2.0.0.1"

    @pytest.mark.unit
    def test_removes_only_first_occurrence(self) -> None:
        assert derive_version("1.0.0-beta-beta", ReleaseChannel.BETA) == "1.0.0-beta"

    @pytest.mark.unit
    def test_stable_never_strips_literal_suffix(self) -> None:
        assert derive_version("1.0.0-stable", ReleaseChannel.STABLE) == "1.0.0-stable"

    @pytest.mark.unit
    def test_configured_channel_absent_from_version(self) -> None:
        assert derive_version("1.0.0", ReleaseChannel.BETA) == "1.0.0"


# =============================================================================
# Lookup
# =============================================================================


@pytest.fixture
def releases() -> list[ReleaseInfo]:
    return [
        ReleaseInfo(version="1.0.0", channel="beta"),
        ReleaseInfo(
            version="1.0.0",
            channel="stable",
            assets=(ReleaseAsset("app.zip", "darwin"), ReleaseAsset("app.exe", "win32")),
        ),
        ReleaseInfo(version="1.0.0", channel="stable", change_log="duplicate"),
    ]


class TestFindRelease:
    """Tests for find_release and find_asset."""

    @pytest.mark.unit
    def test_matches_version_and_channel(self, releases: list[ReleaseInfo]) -> None:
        found = find_release(releases, "1.0.0", ReleaseChannel.STABLE)
        assert found is releases[1]

    @pytest.mark.unit
    def test_returns_first_match(self, releases: list[ReleaseInfo]) -> None:
        found = find_release(releases, "1.0.0", ReleaseChannel.STABLE)
        assert found is not None
        assert found.change_log != "duplicate"

    @pytest.mark.unit
    def test_no_match(self, releases: list[ReleaseInfo]) -> None:
        assert find_release(releases, "1.0.0", ReleaseChannel.RC) is None
        assert find_release(releases, "2.0.0", ReleaseChannel.STABLE) is None

    @pytest.mark.unit
    def test_asset_needs_name_and_platform(self, releases: list[ReleaseInfo]) -> None:
        release = releases[1]
        assert find_asset(release, "app.zip", "darwin") == ReleaseAsset("app.zip", "darwin")
        assert find_asset(release, "app.zip", "win32") is None
        assert find_asset(release, "other.zip", "darwin") is None

    @pytest.mark.unit
    def test_asset_lookup_without_release(self) -> None:
        assert find_asset(None, "app.zip", "darwin") is None


# =============================================================================
# resolve_release / ensure_release
# =============================================================================


class TestResolveRelease:
    """Tests for resolve_release against the fake server."""

    @pytest.mark.unit
    def test_finds_existing_release(
        self, fake_server: FakeReleaseServer, client: ReleaseServerClient
    ) -> None:
        fake_server.releases.append(
            {"version": "1.2.0", "channel": "beta", "changeLog": "", "assets": []}
        )

        resolved = resolve_release(client, "1.2.0-beta")

        assert resolved.version == "1.2.0"
        assert resolved.channel is ReleaseChannel.BETA
        assert resolved.existing is not None
        assert len(fake_server.calls("GET", "/api/releases")) == 1

    @pytest.mark.unit
    def test_missing_release(self, client: ReleaseServerClient) -> None:
        resolved = resolve_release(client, "1.2.0")
        assert resolved.existing is None
        assert resolved.channel is ReleaseChannel.STABLE


class TestEnsureRelease:
    """Tests for ensure_release."""

    @pytest.mark.unit
    def test_existing_release_is_not_recreated(
        self, fake_server: FakeReleaseServer, client: ReleaseServerClient
    ) -> None:
        resolved = ResolvedRelease("1.0.0", ReleaseChannel.STABLE, ReleaseInfo("1.0.0", "stable"))

        creation = ensure_release(client, "tok", resolved, "notes")

        assert creation.existed is True
        assert fake_server.calls("POST", "/api/releases") == []

    @pytest.mark.unit
    def test_creates_missing_release(
        self, fake_server: FakeReleaseServer, client: ReleaseServerClient
    ) -> None:
        resolved = ResolvedRelease("1.0.0", ReleaseChannel.BETA)

        creation = ensure_release(client, "tok", resolved, "Electron Forge Release")

        assert creation.created is True
        (request,) = fake_server.calls("POST", "/api/releases")
        assert request.headers["authorization"] == "tok"
        assert fake_server.releases[-1]["version"] == "1.0.0"
        assert fake_server.releases[-1]["channel"] == "beta"
        assert fake_server.releases[-1]["changeLog"] == "Electron Forge Release"

    @pytest.mark.unit
    def test_creation_failure_is_returned_not_raised(
        self, fake_server: FakeReleaseServer, client: ReleaseServerClient
    ) -> None:
        fake_server.create_status = 500
        resolved = ResolvedRelease("1.0.0", ReleaseChannel.STABLE)

        creation = ensure_release(client, "tok", resolved, "notes")

        assert creation.created is False
        assert isinstance(creation.error, ReleaseCreationError)
        assert creation.error.code == "ORS-REL001"

    @pytest.mark.unit
    def test_dry_run_sends_nothing(
        self, fake_server: FakeReleaseServer, client: ReleaseServerClient
    ) -> None:
        resolved = ResolvedRelease("1.0.0", ReleaseChannel.STABLE)

        creation = ensure_release(client, "tok", resolved, "notes", dry_run=True)

        assert creation.created is False
        assert creation.error is None
        assert fake_server.calls("POST", "/api/releases") == []

"""Publish orchestration for the ORS release server.

For each make-result, in order:
- Derive version/channel and look up the release (release.py)
- Create the release record if the server has none (failure tolerated)
- Drop reserved manifest files from the artifact list
- Upload every remaining artifact concurrently, skipping those the release
  already carries (same name and platform)

Within an artifact, chunks go out sequentially (chunked.py). One artifact
failing does not cancel its siblings; failures end up in the returned
PublishOutcome and in the log. Only missing configuration, rejected
credentials and an unreadable release list abort the run.

Usage:
    from ors_publisher.publish import ORSPublisher
    from ors_publisher.publishers import PublishContext

    publisher = ORSPublisher(config)
    outcome = publisher.publish(PublishContext(make_results, set_status_line=print))
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import httpx

from ors_publisher.auth import authenticate
from ors_publisher.chunked import MIB, total_chunks, upload_artifact
from ors_publisher.client import ReleaseServerClient
from ors_publisher.config import PublisherConfig
from ors_publisher.errors import AssetUploadError
from ors_publisher.models.make_result import MakeResult
from ors_publisher.models.results import (
    AssetStatus,
    AssetUploadResult,
    MakeResultOutcome,
    PublishOutcome,
)
from ors_publisher.output import info
from ors_publisher.publishers.protocol import PublishContext, StatusCallback
from ors_publisher.release import ResolvedRelease, ensure_release, find_asset, resolve_release

logger = logging.getLogger(__name__)

PUBLISHER_NAME = "openanime-release-server"

# Base names (lowercase) the packaging step uses for its internal update
# manifest; never distributable assets
RESERVED_ARTIFACT_NAMES: frozenset[str] = frozenset({"releases", "manifest-releases"})


class UploadProgress:
    """Completion counter shared by the upload threads of one make-result.

    Incrementing and reporting happen under one lock, so every completion
    is counted exactly once and reports arrive in counter order.
    """

    def __init__(self, total: int, set_status_line: StatusCallback) -> None:
        self.total = total
        self.completed = 0
        self._set_status_line = set_status_line
        self._lock = threading.Lock()

    def _report(self) -> None:
        self._set_status_line(f"Uploading artifact ({self.completed}/{self.total})")

    def start(self) -> None:
        with self._lock:
            self._report()

    def complete(self) -> int:
        """Count one finished artifact (uploaded, skipped or failed)."""
        with self._lock:
            self.completed += 1
            self._report()
            return self.completed


def is_reserved_artifact(path: Path) -> bool:
    """True if the artifact is the packaging step's internal manifest."""
    return path.name.lower() in RESERVED_ARTIFACT_NAMES


def filter_artifacts(artifacts: list[Path]) -> list[Path]:
    """Drop reserved manifest files, keeping order."""
    kept = [p for p in artifacts if not is_reserved_artifact(p)]
    for dropped in set(artifacts) - set(kept):
        logger.debug("Ignoring reserved artifact %s", dropped)
    return kept


def _publish_artifact(
    client: ReleaseServerClient,
    path: Path,
    *,
    resolved: ResolvedRelease,
    platform: str,
    token: str,
    chunk_size_bytes: int,
    dry_run: bool,
) -> AssetUploadResult:
    name = path.name
    if find_asset(resolved.existing, name, platform) is not None:
        info(f"Asset {name} already exists on server")
        return AssetUploadResult(path=path, name=name, status=AssetStatus.SKIPPED)

    if dry_run:
        size = path.stat().st_size
        count = total_chunks(size, chunk_size_bytes)
        info(f"Would upload {name} ({size / MIB:.2f} MB, {count} chunk(s))", dry_run=True)
        return AssetUploadResult(
            path=path, name=name, status=AssetStatus.SKIPPED, total_chunks=count
        )

    return upload_artifact(
        client,
        path,
        version=resolved.version,
        channel=resolved.channel.value,
        platform=platform,
        token=token,
        chunk_size_bytes=chunk_size_bytes,
    )


def upload_make_result(
    client: ReleaseServerClient,
    token: str,
    make_result: MakeResult,
    config: PublisherConfig,
    set_status_line: StatusCallback,
    *,
    dry_run: bool = False,
) -> MakeResultOutcome:
    """Resolve the release of one make-result and upload its artifacts.

    Returns once every artifact has settled.

    Raises:
        ReleaseServerError: The release list could not be fetched.
    """
    resolved = resolve_release(client, make_result.version, config.channel)
    creation = ensure_release(client, token, resolved, config.change_log, dry_run=dry_run)

    artifacts = filter_artifacts(make_result.artifacts)
    outcome = MakeResultOutcome(
        platform=make_result.platform,
        version=resolved.version,
        channel=resolved.channel.value,
        release=creation,
    )

    progress = UploadProgress(len(artifacts), set_status_line)
    progress.start()
    if not artifacts:
        return outcome

    max_workers = config.max_concurrent_uploads or len(artifacts)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_path = {
            executor.submit(
                _publish_artifact,
                client,
                path,
                resolved=resolved,
                platform=make_result.platform,
                token=token,
                chunk_size_bytes=config.chunk_size_bytes,
                dry_run=dry_run,
            ): path
            for path in artifacts
        }

        for future in as_completed(future_to_path):
            path = future_to_path[future]
            try:
                result = future.result()
            except Exception as e:
                # A crashed task still counts toward progress
                logger.exception("Unexpected error publishing %s", path)
                result = AssetUploadResult(
                    path=path,
                    name=path.name,
                    status=AssetStatus.FAILED,
                    error=AssetUploadError(path.name, 0, 0, str(e)),
                )
            outcome.assets.append(result)
            progress.complete()

    return outcome


class ORSPublisher:
    """Publishes make-results to an ORS release server.

    Args:
        config: Publisher configuration.
        transport: httpx transport override (tests use httpx.MockTransport).
    """

    name = PUBLISHER_NAME

    def __init__(
        self, config: PublisherConfig, *, transport: httpx.BaseTransport | None = None
    ) -> None:
        self.config = config
        self._transport = transport

    def _make_client(self) -> ReleaseServerClient:
        return ReleaseServerClient(
            self.config.api_url,
            transport_retries=self.config.transport_retries,
            transport=self._transport,
        )

    def publish(self, context: PublishContext) -> PublishOutcome:
        """Authenticate once, then publish make-results one after another.

        Raises:
            MissingCredentialsError: Before any network call.
            AuthenticationError: Login failed; nothing is uploaded.
            ReleaseServerError: A release list could not be fetched.
        """
        self.config.validate()

        outcome = PublishOutcome()
        with self._make_client() as client:
            token = authenticate(client, self.config)

            for make_result in context.make_results:
                logger.debug(
                    "Publishing %d artifact(s) for %s %s",
                    len(make_result.artifacts),
                    make_result.platform,
                    make_result.version,
                )
                outcome.make_results.append(
                    upload_make_result(
                        client,
                        token,
                        make_result,
                        self.config,
                        context.set_status_line,
                        dry_run=context.dry_run,
                    )
                )

        if outcome.failed:
            logger.error("%d artifact(s) failed to upload", outcome.failed)
        return outcome

"""HTTP client for the ORS release server API.

Wraps an httpx.Client rooted at {base_url}/api. Every call either returns
parsed data or raises a ServerRequestError/ServerResponseError; callers
decide whether a failure is fatal.

Endpoints used:
    POST /login                               {username, password} -> {jwt}
    GET  /releases                            -> [ReleaseInfo]
    POST /releases                            {version, channel, changeLog}
    POST /releases/{channel}/{version}/assets multipart chunk upload

The jwt is sent as-is in the Authorization header (no "Bearer" prefix).
Connection failures are retried by the transport (httpx.HTTPTransport
retries); there is no retry on HTTP status codes.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

from ors_publisher.errors import ServerRequestError, ServerResponseError
from ors_publisher.models.release import ReleaseInfo

logger = logging.getLogger(__name__)

# Chunk POSTs of 10 MiB over slow links need more than httpx's 5s default
DEFAULT_TIMEOUT_SECONDS = 120.0
CHUNK_CONTENT_TYPE = "application/octet-stream"


class ReleaseServerClient:
    """Thin client for the release server.

    One instance is shared by every upload thread of a publish run;
    httpx.Client is safe to use from multiple threads.

    Args:
        api_url: API root, i.e. "{base_url}/api".
        transport_retries: Connection retries for the default transport.
        timeout: Request timeout in seconds.
        transport: Custom transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        api_url: str,
        *,
        transport_retries: int = 2,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        if transport is None:
            transport = httpx.HTTPTransport(retries=max(0, transport_retries))
        self._client = httpx.Client(base_url=self.api_url, timeout=timeout, transport=transport)

    def __enter__(self) -> ReleaseServerClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and raise ServerRequestError unless it returns 2xx."""
        logger.debug("%s %s%s", method, self.api_url, path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ServerRequestError(method, path, f"{type(e).__name__}: {e}") from e

        if response.is_error:
            raise ServerRequestError(
                method, path, response.text[:200] or response.reason_phrase, response.status_code
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ServerResponseError(path, f"invalid JSON body: {e}") from e

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for a session token.

        Raises:
            ServerRequestError: Transport failure or non-2xx status.
            ServerResponseError: Body without a non-empty string "jwt".
        """
        response = self._request(
            "POST", "/login", json={"username": username, "password": password}
        )
        body = self._json(response, "/login")
        jwt = body.get("jwt") if isinstance(body, dict) else None
        if not isinstance(jwt, str) or not jwt:
            raise ServerResponseError("/login", "response carries no jwt")
        return jwt

    def list_releases(self) -> list[ReleaseInfo]:
        """Fetch every release known to the server."""
        body = self._json(self._request("GET", "/releases"), "/releases")
        if not isinstance(body, list):
            raise ServerResponseError("/releases", "expected a JSON array")
        try:
            return [ReleaseInfo.from_dict(entry) for entry in body]
        except (KeyError, TypeError, AttributeError) as e:
            raise ServerResponseError("/releases", f"malformed release entry: {e}") from e

    def create_release(self, token: str, version: str, channel: str, change_log: str) -> None:
        """Create a release record."""
        self._request(
            "POST",
            "/releases",
            json={"version": version, "channel": channel, "changeLog": change_log},
            headers={"Authorization": token},
        )

    def upload_chunk(
        self,
        token: str,
        *,
        channel: str,
        version: str,
        platform: str,
        file_name: str,
        data: bytes,
        current_chunk: int,
        total_chunks: int,
    ) -> None:
        """POST one chunk of an asset as multipart form data.

        Args:
            current_chunk: 1-based index of this chunk.
            total_chunks: Number of chunks the asset splits into.
        """
        self._request(
            "POST",
            f"/releases/{channel}/{version}/assets",
            data={
                "currentChunk": str(current_chunk),
                "totalChunks": str(total_chunks),
                "platform": platform,
            },
            files={"file": (file_name, data, CHUNK_CONTENT_TYPE)},
            headers={"Authorization": token},
        )

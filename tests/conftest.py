"""Shared pytest fixtures for ORS publisher tests."""

from __future__ import annotations

import json
import os
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from ors_publisher.client import ReleaseServerClient
from ors_publisher.config import PublisherConfig

MIB = 1024 * 1024
BASE_URL = "https://ors.example.com"


# =============================================================================
# Fake release server
# =============================================================================


@dataclass
class ChunkCall:
    """One chunk POST as the fake server received it."""

    channel: str
    version: str
    current_chunk: int
    total_chunks: int
    platform: str
    file_name: str
    data: bytes
    authorization: str | None

    @property
    def size(self) -> int:
        return len(self.data)


def parse_multipart(request: httpx.Request) -> dict[str, tuple[str | None, bytes]]:
    """Split an httpx multipart body into {field: (filename, data)}."""
    boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
    fields: dict[str, tuple[str | None, bytes]] = {}
    for part in request.content.split(b"--" + boundary)[1:-1]:
        head, _, data = part[2:].partition(b"\r\n\r\n")
        disposition = head.split(b"\r\n")[0].decode()
        name_match = re.search(r'; name="([^"]*)"', disposition)
        assert name_match is not None, disposition
        filename_match = re.search(r'filename="([^"]*)"', disposition)
        fields[name_match.group(1)] = (
            filename_match.group(1) if filename_match else None,
            data[:-2],
        )
    return fields


@dataclass
class FakeReleaseServer:
    """In-memory stand-in for the ORS API, served through httpx.MockTransport.

    Attributes:
        releases: JSON entries returned by GET /releases.
        jwt: Token handed out by POST /login.
        login_status: Status code for POST /login.
        create_status: Status code for POST /releases.
        fail_chunks: {(file_name, chunk_index): status} chunk failures.
    """

    releases: list[dict[str, Any]] = field(default_factory=list)
    jwt: str = "jwt-token"
    login_status: int = 200
    list_status: int = 200
    create_status: int = 201
    fail_chunks: dict[tuple[str, int], int] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    chunks: list[ChunkCall] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def chunks_for(self, file_name: str) -> list[ChunkCall]:
        return [c for c in self.chunks if c.file_name == file_name]

    def _attach_asset(self, call: ChunkCall) -> None:
        """Record a fully received asset on its release, as the real server does."""
        with self._lock:
            for release in self.releases:
                if release["version"] == call.version and release["channel"] == call.channel:
                    release.setdefault("assets", []).append(
                        {"name": call.file_name, "platform": call.platform}
                    )
                    return

    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        with self._lock:
            self.requests.append(request)

        path = request.url.path
        if request.method == "POST" and path == "/api/login":
            if self.login_status >= 400:
                return httpx.Response(self.login_status, json={"message": "Unauthorized"})
            return httpx.Response(self.login_status, json={"jwt": self.jwt})

        if request.method == "GET" and path == "/api/releases":
            return httpx.Response(self.list_status, json=self.releases)

        if request.method == "POST" and path == "/api/releases":
            if self.create_status < 400:
                body = json.loads(request.content)
                with self._lock:
                    self.releases.append(
                        {**body, "createdAt": "2024-01-01T00:00:00Z", "assets": []}
                    )
            return httpx.Response(self.create_status, json={})

        match = re.fullmatch(r"/api/releases/([^/]+)/([^/]+)/assets", path)
        if request.method == "POST" and match:
            fields = parse_multipart(request)
            file_name, data = fields["file"]
            call = ChunkCall(
                channel=match.group(1),
                version=match.group(2),
                current_chunk=int(fields["currentChunk"][1]),
                total_chunks=int(fields["totalChunks"][1]),
                platform=fields["platform"][1].decode(),
                file_name=file_name or "",
                data=data,
                authorization=request.headers.get("authorization"),
            )
            with self._lock:
                self.chunks.append(call)
            status = self.fail_chunks.get((call.file_name, call.current_chunk))
            if status is not None:
                return httpx.Response(status, text="chunk rejected")
            if call.current_chunk == call.total_chunks:
                self._attach_asset(call)
            return httpx.Response(201, json={})

        return httpx.Response(404, text=f"no route for {request.method} {path}")


@pytest.fixture
def fake_server() -> FakeReleaseServer:
    """A fake release server with no releases."""
    return FakeReleaseServer()


@pytest.fixture
def client(fake_server: FakeReleaseServer) -> ReleaseServerClient:
    """ReleaseServerClient wired to the fake server."""
    return ReleaseServerClient(f"{BASE_URL}/api", transport=fake_server.transport)


@pytest.fixture
def publisher_config() -> PublisherConfig:
    """Complete config with a small 1 MiB chunk size."""
    return PublisherConfig(
        base_url=BASE_URL,
        username="ci",
        password="secret",
        chunk_size_in_mb=1,
    )


# =============================================================================
# Artifacts
# =============================================================================


@pytest.fixture
def artifact_dir(tmp_path: Path) -> Path:
    """Directory standing in for the packaging output folder."""
    directory = tmp_path / "out" / "make"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def make_artifact(artifact_dir: Path) -> Callable[[str, int], Path]:
    """Factory creating sparse artifact files of a given size."""

    def _make(name: str, size: int) -> Path:
        path = artifact_dir / name
        with path.open("wb") as f:
            f.truncate(size)
        return path

    return _make


@pytest.fixture(autouse=True)
def _isolate_ors_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ORS_* variables so the host environment never leaks into settings."""
    for key in list(os.environ):
        if key.startswith("ORS_"):
            monkeypatch.delenv(key)

"""Chunked artifact upload.

An artifact is split into fixed-size byte ranges that are POSTed one after
the other, each carrying its 1-based position (currentChunk/totalChunks) so
the server can reassemble the file. Chunks of one artifact are never sent
concurrently, and the first failing chunk ends the artifact: there is no
per-chunk retry and no rollback of chunks already accepted.

Idempotence is only provided per whole asset (see publish.py); a failed
artifact is re-sent from chunk 1 on the next run.

Zero-byte files split into zero chunks, so nothing is sent for them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from ors_publisher.client import ReleaseServerClient
from ors_publisher.errors import AssetUploadError, ReleaseServerError
from ors_publisher.models.results import AssetStatus, AssetUploadResult
from ors_publisher.output import detail, error, info, success, warn

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


@dataclass(frozen=True)
class ChunkSpec:
    """Byte range of one chunk.

    Attributes:
        index: 1-based chunk number, as sent to the server.
        offset: Start offset in the file.
        size: Number of bytes; equals the chunk size except for the last chunk.
    """

    index: int
    offset: int
    size: int


def total_chunks(file_size: int, chunk_size: int) -> int:
    """Number of chunks for a file: ceil(file_size / chunk_size).

    Raises:
        ValueError: If chunk_size is not positive or file_size is negative.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")
    return math.ceil(file_size / chunk_size)


def plan_chunks(file_size: int, chunk_size: int) -> list[ChunkSpec]:
    """Split a file size into ordered chunk ranges, the last one truncated."""
    count = total_chunks(file_size, chunk_size)
    chunks = []
    for i in range(count):
        offset = i * chunk_size
        size = min(chunk_size, file_size - offset)
        chunks.append(ChunkSpec(index=i + 1, offset=offset, size=size))
    return chunks


def read_chunk(path: Path, chunk: ChunkSpec) -> bytes:
    """Read one chunk; the file is closed again before returning.

    Raises:
        OSError: If the file cannot be read or is shorter than planned.
    """
    with path.open("rb") as f:
        f.seek(chunk.offset)
        data = f.read(chunk.size)
    if len(data) != chunk.size:
        raise OSError(
            f"Short read from {path}: expected {chunk.size} bytes at offset "
            f"{chunk.offset}, got {len(data)}"
        )
    return data


def upload_artifact(
    client: ReleaseServerClient,
    path: Path,
    *,
    version: str,
    channel: str,
    platform: str,
    token: str,
    chunk_size_bytes: int,
    file_name: str | None = None,
) -> AssetUploadResult:
    """Upload one artifact chunk by chunk.

    Args:
        client: Release server client.
        path: Local artifact path.
        version: Release version the asset belongs to.
        channel: Release channel name.
        platform: Target platform of the artifact.
        token: Session token for the Authorization header.
        chunk_size_bytes: Chunk size in bytes.
        file_name: Asset name; defaults to the file's base name.

    Returns:
        AssetUploadResult with status UPLOADED only if every chunk succeeded.
        Failures are returned, not raised.

    Raises:
        ValueError: If chunk_size_bytes is not positive.
    """
    name = file_name or path.name
    if chunk_size_bytes <= 0:
        raise ValueError(f"chunk_size_bytes must be positive, got {chunk_size_bytes}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        failure = AssetUploadError(name, 0, 0, f"cannot stat file: {e}")
        error(f"Failed to upload asset {name}")
        logger.error("%s", failure)
        return AssetUploadResult(path=path, name=name, status=AssetStatus.FAILED, error=failure)

    chunks = plan_chunks(file_size, chunk_size_bytes)
    count = len(chunks)

    if count == 0:
        warn(f"Artifact {name} is empty, no chunks sent")
        return AssetUploadResult(path=path, name=name, status=AssetStatus.UPLOADED)

    info(f"Attempting to upload asset: {name} ({file_size / MIB:.2f} MB, {count} chunk(s))")

    bytes_sent = 0
    for chunk in chunks:
        try:
            data = read_chunk(path, chunk)
            client.upload_chunk(
                token,
                channel=channel,
                version=version,
                platform=platform,
                file_name=name,
                data=data,
                current_chunk=chunk.index,
                total_chunks=count,
            )
        except (OSError, ReleaseServerError) as e:
            reason = e.message if isinstance(e, ReleaseServerError) else str(e)
            failure = AssetUploadError(name, chunk.index, count, reason)
            logger.error("%s", failure)
            error(f"Failed to upload asset {name}")
            return AssetUploadResult(
                path=path,
                name=name,
                status=AssetStatus.FAILED,
                chunks_sent=chunk.index - 1,
                total_chunks=count,
                bytes_sent=bytes_sent,
                error=failure,
            )

        bytes_sent += chunk.size
        logger.debug("%s: chunk %d/%d sent (%d bytes)", name, chunk.index, count, chunk.size)
        if count > 1:
            detail(f"{name}: chunk {chunk.index}/{count}")

    success(f"Asset {name} uploaded to server")
    return AssetUploadResult(
        path=path,
        name=name,
        status=AssetStatus.UPLOADED,
        chunks_sent=count,
        total_chunks=count,
        bytes_sent=bytes_sent,
    )

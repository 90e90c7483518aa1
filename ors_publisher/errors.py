"""Structured error codes for the ORS publisher.

All errors follow the format ORS-{category}{number}:
- ORS-CFG*: Configuration errors
- ORS-AUTH*: Authentication errors
- ORS-SRV*: Release server transport/response errors
- ORS-REL*: Release record errors
- ORS-AST*: Asset upload errors
"""

from __future__ import annotations

from typing import Any


class PublisherError(Exception):
    """Base class for all publisher errors.

    All errors have:
    - code: Structured error code (e.g., ORS-CFG001)
    - message: Human-readable error message
    """

    code: str = "ORS-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize a publisher error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# Configuration Errors (ORS-CFG*)
class ConfigError(PublisherError):
    """Base class for configuration-related errors."""

    code = "ORS-CFG000"


class MissingCredentialsError(ConfigError):
    """Raised when baseUrl, username or password is missing.

    Error code: ORS-CFG001

    Reported before any network call is attempted.
    """

    code = "ORS-CFG001"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Missing required configuration options for ORS: {', '.join(missing)}",
            missing=missing,
        )


class InvalidChannelError(ConfigError):
    """Raised when a configured channel is not one of stable/beta/alpha/rc.

    Error code: ORS-CFG002
    """

    code = "ORS-CFG002"

    def __init__(self, channel: str) -> None:
        super().__init__(
            f"Invalid release channel '{channel}' (expected stable, beta, alpha or rc)",
            channel=channel,
        )


class InvalidChunkSizeError(ConfigError):
    """Raised when the chunk size is not a positive number.

    Error code: ORS-CFG003
    """

    code = "ORS-CFG003"

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid chunk size: {value!r} (must be a positive number)", value=value)


class InvalidConcurrencyError(ConfigError):
    """Raised when max_concurrent_uploads is set but below 1.

    Error code: ORS-CFG005
    """

    code = "ORS-CFG005"

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid max_concurrent_uploads: {value!r} (must be an integer of at least 1)",
            value=value,
        )


class ConfigParseError(ConfigError):
    """Raised when a configuration file cannot be parsed.

    Error code: ORS-CFG004
    """

    code = "ORS-CFG004"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )


# Authentication Errors (ORS-AUTH*)
class AuthenticationError(PublisherError):
    """Raised when the login call fails or returns an unusable token.

    Error code: ORS-AUTH001

    Aborts the whole publish; no per-artifact work happens.
    """

    code = "ORS-AUTH001"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid credentials for ORS: {reason}", reason=reason)


# Server Errors (ORS-SRV*)
class ReleaseServerError(PublisherError):
    """Base class for release server errors."""

    code = "ORS-SRV000"


class ServerRequestError(ReleaseServerError):
    """Raised when a request fails in transport or returns a non-2xx status.

    Error code: ORS-SRV001
    """

    code = "ORS-SRV001"

    def __init__(self, method: str, path: str, reason: str, status_code: int | None = None) -> None:
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(
            f"{method} {path} failed{status}: {reason}",
            method=method,
            path=path,
            reason=reason,
            status_code=status_code,
        )


class ServerResponseError(ReleaseServerError):
    """Raised when the server answers with a body the client cannot use.

    Error code: ORS-SRV002
    """

    code = "ORS-SRV002"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unexpected response from {path}: {reason}", path=path, reason=reason)


# Release Errors (ORS-REL*)
class ReleaseCreationError(PublisherError):
    """Raised when the server refuses to create a release record.

    Error code: ORS-REL001

    Non-fatal: captured in the release creation result and logged.
    """

    code = "ORS-REL001"

    def __init__(self, version: str, channel: str, reason: str) -> None:
        super().__init__(
            f"Failed to create release {version} ({channel}) on server: {reason}",
            version=version,
            channel=channel,
            reason=reason,
        )


# Asset Errors (ORS-AST*)
class AssetUploadError(PublisherError):
    """Raised when a chunk of an artifact fails to upload.

    Error code: ORS-AST001

    Non-fatal: captured in the asset upload result; siblings keep uploading.
    """

    code = "ORS-AST001"

    def __init__(self, name: str, chunk: int, total_chunks: int, reason: str) -> None:
        super().__init__(
            f"Failed to upload asset {name} (chunk {chunk}/{total_chunks}): {reason}",
            name=name,
            chunk=chunk,
            total_chunks=total_chunks,
            reason=reason,
        )

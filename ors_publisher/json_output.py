"""JSON envelope for `--format json` CLI output.

Every command prints one envelope so CI scripts can parse results the same
way regardless of command:

    {
        "success": true|false,
        "command": "publish",
        "data": { ... },
        "errors": [ ... ]  # Only present when success=false
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ors_publisher.errors import PublisherError


@dataclass
class ErrorDetail:
    """One entry of the envelope's errors array.

    Attributes:
        type: Error class name (e.g. "AuthenticationError").
        message: Human-readable description.
        code: Structured ORS-* code, when the error carries one.
    """

    type: str
    message: str
    code: str | None = None

    @classmethod
    def from_exception(cls, exc: Exception) -> ErrorDetail:
        if isinstance(exc, PublisherError):
            return cls(type=type(exc).__name__, message=exc.message, code=exc.code)
        return cls(type=type(exc).__name__, message=str(exc))

    def to_dict(self) -> dict[str, str]:
        d = {"type": self.type, "message": self.message}
        if self.code is not None:
            d["code"] = self.code
        return d


@dataclass
class OutputEnvelope:
    """Wrapper structure for all JSON command output."""

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary; errors are omitted when None."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }
        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]
        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    """Envelope with success=True and no errors."""
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Envelope with success=False, the given errors and optional partial data."""
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )

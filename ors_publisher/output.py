"""Styled terminal output for publish runs.

Every user-facing message goes through these helpers so the CLI and the
publisher report progress the same way:

    from ors_publisher.output import success, info, warn, error, detail

    success("Asset app.zip uploaded to server")
    info("Attempting to upload asset: app.zip")
    warn("Artifact empty.bin is empty, no chunks sent")
    error("Failed to create release on server")
    detail("chunk 2/3 (10.00 MB)")

Dry-Run Mode:
    Pass dry_run=True to prefix a message with [DRY RUN]. Publish runs with
    --dry-run describe what they would create or upload:

    info("Would upload app.zip (3 chunks)", dry_run=True)
    # Output: → [DRY RUN] Would upload app.zip (3 chunks)

Suppressed Mode:
    Commands emitting a JSON envelope wrap their work in suppressed() so
    styled lines do not interleave with the JSON document:

    with suppressed():
        outcome = publisher.publish(context)
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import click

_suppressed = False

_STYLES = {
    "success": {"fg": "green"},
    "info": {"fg": "blue"},
    "warn": {"fg": "yellow"},
    "error": {"fg": "red"},
    "detail": {"fg": "bright_black"},
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",
}


def _output(
    message: str,
    style: str,
    *,
    file: TextIO | None = None,
    nl: bool = True,
    dry_run: bool = False,
) -> None:
    if _suppressed:
        return
    if dry_run:
        message = f"[DRY RUN] {message}"

    fg_color = _STYLES[style]["fg"]
    styled_prefix = click.style(_PREFIXES[style], fg=fg_color)
    styled_message = click.style(message, fg=fg_color)
    click.echo(f"{styled_prefix} {styled_message}", file=file, nl=nl)


@contextmanager
def suppressed() -> Iterator[None]:
    """Silence every helper of this module until the block exits."""
    global _suppressed
    previous = _suppressed
    _suppressed = True
    try:
        yield
    finally:
        _suppressed = previous


def success(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a success message with a green checkmark (stdout by default).

    Example:
        >>> success("Release 1.0.0 created on server")
        ✓ Release 1.0.0 created on server
    """
    _output(message, "success", file=file, nl=nl, dry_run=dry_run)


def info(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an info message with a blue arrow (stdout by default)."""
    _output(message, "info", file=file, nl=nl, dry_run=dry_run)


def warn(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a warning with a yellow warning sign (stderr by default)."""
    _output(message, "warn", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def error(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print an error with a red X (stderr by default).

    Example:
        >>> error("Failed to upload asset app.zip")
        ✗ Failed to upload asset app.zip
    """
    _output(message, "error", file=file or sys.stderr, nl=nl, dry_run=dry_run)


def detail(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a dimmed detail line, used for per-chunk progress."""
    _output(message, "detail", file=file, nl=nl, dry_run=dry_run)

"""Publisher protocol consumed by host build tools.

A host tool hands a PublishContext to any object with a `name` and a
`publish(context)` method; no base class is required.

Example for plugin authors:
    # In myplugin/pyproject.toml:
    [project.entry-points."ors_publisher.publishers"]
    mirror = "myplugin:MirrorPublisher"

    # In myplugin/__init__.py:
    class MirrorPublisher:
        name = "mirror"

        def __init__(self, config: PublisherConfig) -> None: ...

        def publish(self, context: PublishContext) -> PublishOutcome: ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ors_publisher.models.make_result import MakeResult
    from ors_publisher.models.results import PublishOutcome

StatusCallback = Callable[[str], None]


def _ignore_status(_message: str) -> None:
    return None


@dataclass
class PublishContext:
    """Everything the host passes to a publish call.

    Attributes:
        make_results: One entry per build target.
        set_status_line: Receives a human-readable progress string.
        dry_run: Report what would be created/uploaded without sending it.
    """

    make_results: list[MakeResult]
    set_status_line: StatusCallback = field(default=_ignore_status)
    dry_run: bool = False


@runtime_checkable
class Publisher(Protocol):
    """Capability interface for publishers."""

    name: str

    def publish(self, context: PublishContext) -> PublishOutcome:
        """Publish every make-result of the context.

        Raises:
            ConfigError: Required configuration is missing or invalid.
            AuthenticationError: The release server rejected the credentials.
        """
        ...

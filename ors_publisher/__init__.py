"""ORS publisher - Upload desktop app build artifacts to an ORS release server."""

from ors_publisher.cli import cli
from ors_publisher.config import PublisherConfig, load_publisher_config
from ors_publisher.models import MakeResult, PublishOutcome, ReleaseChannel
from ors_publisher.publish import ORSPublisher
from ors_publisher.publishers import PublishContext, Publisher, get_publisher

__all__ = [
    "MakeResult",
    "ORSPublisher",
    "PublishContext",
    "PublishOutcome",
    "Publisher",
    "PublisherConfig",
    "ReleaseChannel",
    "cli",
    "get_publisher",
    "load_publisher_config",
]

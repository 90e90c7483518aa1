"""Publisher discovery.

The built-in "ors" publisher uploads to an ORS release server. Other
publishers can be registered by external packages:

    [project.entry-points."ors_publisher.publishers"]
    mirror = "myplugin:MirrorPublisher"

Usage:
    from ors_publisher.publishers import get_publisher

    publisher = get_publisher("ors", config)
    publisher.publish(PublishContext(make_results=[...]))
"""

from __future__ import annotations

import logging
from importlib.metadata import EntryPoint, entry_points

from ors_publisher.config import PublisherConfig
from ors_publisher.publishers.protocol import PublishContext, Publisher, StatusCallback

__all__ = ["PublishContext", "Publisher", "StatusCallback", "get_publisher"]

ENTRY_POINT_GROUP = "ors_publisher.publishers"

logger = logging.getLogger(__name__)


def get_publisher(name: str, config: PublisherConfig) -> Publisher:
    """Get a publisher by name.

    Creates a new instance on each call.

    Args:
        name: "ors" for the built-in publisher, or a plugin name.
        config: Configuration passed to the publisher constructor.

    Raises:
        ValueError: If no publisher has that name, or the plugin fails to load,
            fails to instantiate, or does not implement Publisher.
    """
    if name == "ors":
        from ors_publisher.publish import ORSPublisher

        logger.debug("Creating ORSPublisher instance")
        return ORSPublisher(config)

    eps = entry_points(group=ENTRY_POINT_GROUP)
    for ep in eps:
        if ep.name == name:
            return _load_plugin_publisher(ep, name, config)

    available = ["ors"] + [ep.name for ep in eps if ep.name != "ors"]
    raise ValueError(f"Unknown publisher: {name}. Available: {', '.join(available)}")


def _load_plugin_publisher(ep: EntryPoint, name: str, config: PublisherConfig) -> Publisher:
    try:
        logger.debug("Loading publisher class from entry point: %s", name)
        publisher_class = ep.load()
    except Exception as e:
        msg = f"Failed to load publisher '{name}': {e}"
        logger.error(msg)
        raise ValueError(msg) from e

    try:
        publisher = publisher_class(config)
    except Exception as e:
        msg = f"Failed to instantiate publisher '{name}': {e}"
        logger.error(msg)
        raise ValueError(msg) from e

    if not isinstance(publisher, Publisher):
        msg = f"Publisher '{name}' does not implement the Publisher protocol"
        logger.error(msg)
        raise ValueError(msg)

    return publisher

"""Session authentication against the release server.

One login per publish run. The returned token is shared read-only by every
upload of the run; there is no refresh, so a run either succeeds end to end
or fails.
"""

from __future__ import annotations

import logging

from ors_publisher.client import ReleaseServerClient
from ors_publisher.config import PublisherConfig
from ors_publisher.errors import AuthenticationError, ReleaseServerError
from ors_publisher.output import info

logger = logging.getLogger(__name__)

SessionToken = str


def authenticate(client: ReleaseServerClient, config: PublisherConfig) -> SessionToken:
    """Log in and return the session token.

    Credentials are checked before anything is sent.

    Raises:
        MissingCredentialsError: base_url, username or password is empty.
        AuthenticationError: The login call failed or returned no usable token.
    """
    config.validate()

    info("Attempting to authenticate to ORS")
    try:
        token = client.login(config.username, config.password)
    except ReleaseServerError as e:
        logger.error("Login to %s failed: %s", client.api_url, e)
        raise AuthenticationError(e.message) from e

    logger.debug("Authenticated to %s as %s", client.api_url, config.username)
    return token

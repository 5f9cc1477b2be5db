"""Stable identifier of the serving node."""

from __future__ import annotations

from functools import lru_cache
import getpass
import logging
import os
import socket

from app.core.config import get_settings

logger = logging.getLogger(__name__)

UNKNOWN_SERVER_ID = "unknown"


def resolve_server_id(override: str | None = None) -> str:
    """Resolve the server identifier without caching.

    Order: explicit override, host name, ``HOSTNAME`` environment variable,
    current user name.
    """
    if override:
        return override

    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    if hostname:
        return hostname

    env_hostname = os.getenv("HOSTNAME")
    if env_hostname:
        return env_hostname

    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return UNKNOWN_SERVER_ID


@lru_cache(maxsize=1)
def get_server_id() -> str:
    """Return this process's server identifier, computed once."""
    server_id = resolve_server_id(get_settings().server_id)
    logger.debug("Setting server id to %s", server_id)
    return server_id

"""Per-host httpx transports for in-process upstreams.

Tests mount a fake upstream app by registering an ``httpx.ASGITransport``
for the upstream's host; real deployments register nothing and httpx uses
its default network transport.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("nim-bridge")

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _host_of(url: str) -> str:
    return urlparse(url).netloc.strip().lower()


def register_upstream_transport(url: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route every request to ``url``'s host through ``transport``."""
    host = _host_of(url)
    if not host:
        raise ValueError(f"cannot extract a host from {url!r}")
    _TRANSPORTS[host] = transport
    logger.debug("Registered upstream transport for host '%s'", host)


def clear_upstream_transports() -> None:
    """Clear all registered transports (useful for tests)."""
    _TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return the registered transport for the URL's host, if any."""
    if not url:
        return None
    host = _host_of(url)
    if not host:
        return None
    return _TRANSPORTS.get(host)

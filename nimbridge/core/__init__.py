"""Core module initialization."""

from .exceptions import InvalidRequestError, ProxyError, UpstreamError
from .gateway import ChatGateway
from .registry import get_gateway, set_gateway
from .upstream import UpstreamClient, UpstreamStream, format_httpx_error

__all__ = [
    "ChatGateway",
    "InvalidRequestError",
    "ProxyError",
    "UpstreamClient",
    "UpstreamError",
    "UpstreamStream",
    "format_httpx_error",
    "get_gateway",
    "set_gateway",
]

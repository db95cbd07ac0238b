"""Core exceptions for the gateway."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(ProxyError):
    """The upstream call failed: network error, non-2xx status or bad body.

    ``status_code`` is the upstream HTTP status when there was one; callers
    fall back to 500 when it is None.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code

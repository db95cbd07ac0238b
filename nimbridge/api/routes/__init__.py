"""API routes for the gateway."""

from .chat import chat_completions, parse_chat_request
from .errors import error_response, http_exception_handler
from .health import health
from .models import list_models

__all__ = [
    "chat_completions",
    "error_response",
    "health",
    "http_exception_handler",
    "list_models",
    "parse_chat_request",
]

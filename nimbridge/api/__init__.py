"""API module for the gateway."""

from .routes import chat_completions, health, http_exception_handler, list_models

__all__ = [
    "chat_completions",
    "health",
    "http_exception_handler",
    "list_models",
]

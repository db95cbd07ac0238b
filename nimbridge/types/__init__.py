"""Request and response types for the gateway."""

from .chat import (
    ChatCompletion,
    ChatCompletionRequest,
    ChatMessage,
    ModelCard,
    OutboundChoice,
    OutboundMessage,
    UpstreamChoice,
    UpstreamCompletion,
    UpstreamMessage,
    Usage,
)

__all__ = [
    "ChatCompletion",
    "ChatCompletionRequest",
    "ChatMessage",
    "ModelCard",
    "OutboundChoice",
    "OutboundMessage",
    "UpstreamChoice",
    "UpstreamCompletion",
    "UpstreamMessage",
    "Usage",
]

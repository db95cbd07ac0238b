"""Request and response adapters between the OpenAI and upstream schemas."""

from .request import (
    DETAILED_RESPONSE_SUFFIX,
    DETAILED_SYSTEM_PROMPT,
    apply_generation_defaults,
    augment_messages,
    build_upstream_request,
    fallback_model_for,
    resolve_model,
)
from .response import build_chat_completion, merge_reasoning
from .stream import StreamSession, relay_stream

__all__ = [
    "DETAILED_RESPONSE_SUFFIX",
    "DETAILED_SYSTEM_PROMPT",
    "StreamSession",
    "apply_generation_defaults",
    "augment_messages",
    "build_chat_completion",
    "build_upstream_request",
    "fallback_model_for",
    "merge_reasoning",
    "relay_stream",
    "resolve_model",
]

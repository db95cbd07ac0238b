"""Types for chat requests and responses on both sides of the gateway.

Inbound requests are validated with pydantic models so that "absent" and
"present but falsy" stay distinguishable: an unset ``temperature`` is
``None`` while an explicit ``0`` stays ``0``.

Upstream and outbound payloads are plain JSON dicts; the TypedDicts below
document their shape without imposing validation on what the upstream sends.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict


# =============================================================================
# Inbound (OpenAI-compatible) request
# =============================================================================


class ChatMessage(BaseModel):
    """A message in the inbound conversation.

    Unknown keys (``name``, ``tool_calls``, ``tool_call_id``...) are kept so
    they can be forwarded upstream untouched.
    """

    model_config = ConfigDict(extra="allow")

    role: str
    content: Any = None


class ChatCompletionRequest(BaseModel):
    """Body of ``POST /v1/chat/completions``."""

    model_config = ConfigDict(extra="allow")

    model: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(min_length=1)
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stream: Optional[bool] = False


# =============================================================================
# Upstream payloads
# =============================================================================


class UpstreamMessage(TypedDict, total=False):
    """A completed message from the upstream.

    Attributes:
        role: Normally "assistant".
        content: The user-facing answer. May be None for reasoning-only turns.
        reasoning_content: The secondary deliberation channel some models emit.
    """
    role: str
    content: str | None
    reasoning_content: str | None


class UpstreamChoice(TypedDict, total=False):
    index: int
    message: UpstreamMessage
    finish_reason: str | None


class Usage(TypedDict):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class UpstreamCompletion(TypedDict, total=False):
    id: str
    model: str
    choices: list[UpstreamChoice]
    usage: Usage


# =============================================================================
# Outbound (OpenAI-compatible) response
# =============================================================================


class OutboundMessage(TypedDict):
    role: str
    content: str


class OutboundChoice(TypedDict):
    index: int
    message: OutboundMessage
    finish_reason: str | None


class ChatCompletion(TypedDict):
    id: str
    object: str
    created: int
    model: str
    choices: list[OutboundChoice]
    usage: Usage


class ModelCard(TypedDict):
    id: str
    object: str
    created: int
    owned_by: str

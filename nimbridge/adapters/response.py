"""Upstream JSON completion → OpenAI ``chat.completion`` payload."""

import time
import uuid
from typing import Any, Mapping

from ..types.chat import ChatCompletion, OutboundChoice, Usage

THINK_OPEN = "<think>\n"
THINK_CLOSE = "</think>\n\n"


def empty_usage() -> Usage:
    return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


def merge_reasoning(content: str, reasoning: Any, show_reasoning: bool) -> str:
    """Prefix ``content`` with the reasoning block when display is enabled."""
    if not show_reasoning or not isinstance(reasoning, str) or not reasoning:
        return content
    return f"{THINK_OPEN}{reasoning}\n{THINK_CLOSE}{content}"


def transform_choice(choice: Mapping[str, Any], show_reasoning: bool) -> OutboundChoice:
    message = choice.get("message")
    if not isinstance(message, Mapping):
        message = {}
    content = message.get("content") or ""
    if not isinstance(content, str):
        content = str(content)
    return {
        "index": choice.get("index", 0),
        "message": {
            "role": message.get("role") or "assistant",
            "content": merge_reasoning(
                content, message.get("reasoning_content"), show_reasoning
            ),
        },
        "finish_reason": choice.get("finish_reason"),
    }


def build_chat_completion(
    payload: Mapping[str, Any], model: str, show_reasoning: bool
) -> ChatCompletion:
    """Rewrite an upstream completion for the client.

    ``model`` is the name the client asked for; the resolved upstream model
    never leaks into the response.
    """
    choices = payload.get("choices")
    if not isinstance(choices, list):
        choices = []
    usage = payload.get("usage")
    return {
        "id": f"chatcmpl-{uuid.uuid4().hex}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "choices": [
            transform_choice(choice, show_reasoning)
            for choice in choices
            if isinstance(choice, Mapping)
        ],
        "usage": usage if isinstance(usage, dict) else empty_usage(),
    }

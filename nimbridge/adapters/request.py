"""Inbound request → upstream request.

Resolves the upstream model, optionally nudges the conversation toward long
answers and fills in generation defaults. Nothing here raises: every step
degrades to a usable value.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from ..settings import FallbackModels, GatewaySettings
from ..types.chat import ChatCompletionRequest

logger = logging.getLogger("nim-bridge")

DETAILED_SYSTEM_PROMPT = """You are a helpful, knowledgeable assistant who provides comprehensive and detailed responses. When answering questions:
- Give thorough explanations with context and examples
- Break down complex topics into detailed sections
- Provide multiple perspectives when relevant
- Use elaboration rather than brevity
- Aim for complete, well-rounded answers that fully address the question
- Don't rush to conclude - explore the topic in depth"""

DETAILED_RESPONSE_SUFFIX = (
    "\n\nIMPORTANT: Provide detailed, comprehensive responses. "
    "Elaborate fully on your answers."
)

LARGE_TIER_HINTS = ("gpt-4", "claude-opus", "405b")
MEDIUM_TIER_HINTS = ("claude", "gemini", "70b")

GENERATION_PARAMETERS = (
    "temperature",
    "max_tokens",
    "top_p",
    "presence_penalty",
    "frequency_penalty",
)


class ModelProber(Protocol):
    async def probe_model(self, model: str) -> Optional[str]: ...


def fallback_model_for(model_name: str, fallbacks: FallbackModels) -> str:
    """Pick a default upstream model from hints in the requested name."""
    lowered = model_name.lower()
    if any(hint in lowered for hint in LARGE_TIER_HINTS):
        return fallbacks.large
    if any(hint in lowered for hint in MEDIUM_TIER_HINTS):
        return fallbacks.medium
    return fallbacks.small


async def resolve_model(
    model_name: str,
    settings: GatewaySettings,
    prober: Optional[ModelProber] = None,
) -> str:
    """Map an inbound model name to the upstream model to call.

    Order: alias table, then a live probe of the literal name (skipped when
    ``prober`` is None), then the name heuristic.
    """
    mapped = settings.model_mapping.get(model_name)
    if mapped:
        logger.debug("Model %s mapped to %s", model_name, mapped)
        return mapped

    if prober is not None:
        probed = await prober.probe_model(model_name)
        if probed:
            return probed

    fallback = fallback_model_for(model_name, settings.fallbacks)
    logger.info("Model %s not mapped; falling back to %s", model_name, fallback)
    return fallback


def augment_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return a copy of ``messages`` that asks for detailed answers.

    Without a system message the detailed system prompt is prepended;
    otherwise every system message gets the elaboration suffix appended, as a
    trailing text part when its content is a list of parts.
    """
    has_system_prompt = any(m.get("role") == "system" for m in messages)
    if not has_system_prompt:
        return [{"role": "system", "content": DETAILED_SYSTEM_PROMPT}] + [
            dict(m) for m in messages
        ]

    augmented: list[dict[str, Any]] = []
    for message in messages:
        updated = dict(message)
        if updated.get("role") == "system":
            content = updated.get("content")
            if isinstance(content, str):
                updated["content"] = content + DETAILED_RESPONSE_SUFFIX
            elif isinstance(content, list):
                updated["content"] = content + [
                    {"type": "text", "text": DETAILED_RESPONSE_SUFFIX}
                ]
            elif content is None:
                updated["content"] = DETAILED_RESPONSE_SUFFIX.lstrip("\n")
        augmented.append(updated)
    return augmented


def apply_generation_defaults(
    request: ChatCompletionRequest, settings: GatewaySettings
) -> dict[str, Any]:
    """Generation parameters with defaults filled in where the client sent none."""
    params: dict[str, Any] = {}
    for name in GENERATION_PARAMETERS:
        value = getattr(request, name)
        params[name] = getattr(settings.defaults, name) if value is None else value
    return params


def build_upstream_request(
    request: ChatCompletionRequest, upstream_model: str, settings: GatewaySettings
) -> dict[str, Any]:
    """Build the JSON body sent to the upstream completions endpoint."""
    messages = [m.model_dump(exclude_unset=True) for m in request.messages]
    if settings.features.force_detailed_responses:
        messages = augment_messages(messages)

    body: dict[str, Any] = {"model": upstream_model, "messages": messages}
    body.update(apply_generation_defaults(request, settings))
    if settings.features.enable_thinking_mode:
        body["chat_template_kwargs"] = {"thinking": True}
    body["stream"] = bool(request.stream)
    return body

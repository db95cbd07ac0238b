"""OpenAI-compatible chat completions endpoint."""

import json
import logging
from typing import Any, Mapping

from fastapi import Request, Response
from pydantic import ValidationError

from ...core.exceptions import InvalidRequestError, UpstreamError
from ...core.registry import get_gateway
from ...types.chat import ChatCompletionRequest
from .errors import error_response

logger = logging.getLogger("nim-bridge")


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"Invalid request: {location}: {first.get('msg', 'invalid value')}"


def parse_chat_request(body: bytes) -> ChatCompletionRequest:
    """Decode and validate a chat completions body.

    Raises:
        InvalidRequestError: The body is not a JSON object or fails validation.
    """
    try:
        payload: Any = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc
    if not isinstance(payload, Mapping):
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_json_shape"
        )
    try:
        return ChatCompletionRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError(
            _describe_validation_error(exc), code="invalid_parameter"
        ) from exc


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions
    """
    logger.info("Received chat completions request")
    body = await request.body()
    try:
        chat_request = parse_chat_request(body)
    except InvalidRequestError as exc:
        logger.error(f"Rejected chat request: {exc.message}")
        return error_response(exc.message, 400, code=exc.code)

    try:
        return await get_gateway().complete(
            chat_request, disconnect_checker=request.is_disconnected
        )
    except UpstreamError as exc:
        logger.error(f"Proxy error: {exc.message}")
        return error_response(exc.message, exc.status_code or 500)
    except Exception as exc:
        logger.exception(f"Error processing request for model {chat_request.model}: {exc}")
        return error_response(str(exc) or "Internal server error", 500)

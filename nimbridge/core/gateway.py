"""Runs one chat request through the adapters and the upstream call."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi import Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ..adapters.request import build_upstream_request, resolve_model
from ..adapters.response import build_chat_completion
from ..adapters.stream import StreamSession, relay_stream
from ..settings import GatewaySettings
from ..types.chat import ChatCompletionRequest, ModelCard
from .exceptions import UpstreamError
from .upstream import UpstreamClient

logger = logging.getLogger("nim-bridge")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ChatGateway:
    """Translates OpenAI chat requests to the upstream API and back.

    Holds only read-only state (settings and the upstream client config);
    everything request-scoped lives in locals or a ``StreamSession``.
    """

    def __init__(
        self, settings: GatewaySettings, client: Optional[UpstreamClient] = None
    ) -> None:
        self.settings = settings
        self.client = client or UpstreamClient(settings.upstream)

    def list_models(self, created: int) -> list[ModelCard]:
        return [
            {
                "id": alias,
                "object": "model",
                "created": created,
                "owned_by": self.settings.owned_by,
            }
            for alias in self.settings.model_mapping
        ]

    async def complete(
        self,
        request: ChatCompletionRequest,
        disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> Response:
        """Serve a chat completion, streamed or buffered per ``request.stream``.

        Raises:
            UpstreamError: The upstream call failed before any response
                bytes were committed to the client.
        """
        upstream_model = await resolve_model(request.model, self.settings, self.client)
        body = build_upstream_request(request, upstream_model, self.settings)
        show_reasoning = self.settings.features.show_reasoning
        logger.info(
            f"Processing request for model {request.model} -> {upstream_model}, "
            f"stream={body['stream']}"
        )

        if body["stream"]:
            upstream = await self.client.open_stream(body)
            session = StreamSession(show_reasoning=show_reasoning)
            return StreamingResponse(
                relay_stream(upstream, session, disconnect_checker),
                media_type="text/event-stream",
                headers=STREAM_HEADERS,
                background=BackgroundTask(upstream.aclose),
            )

        timeout = self.settings.upstream.request_timeout
        try:
            payload = await asyncio.wait_for(
                self.client.create_completion(body), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"Upstream request timed out after {timeout}s", status_code=504
            ) from exc
        logger.info(f"Request for model {request.model} completed successfully")
        return JSONResponse(
            build_chat_completion(payload, request.model, show_reasoning)
        )

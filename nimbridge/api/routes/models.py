"""Models listing endpoint - OpenAI compatible."""

import logging
import time

from ...core.registry import get_gateway

logger = logging.getLogger("nim-bridge")


async def list_models() -> dict:
    """List the model aliases clients may request.

    GET /v1/models
    """
    logger.info("Received models list request")
    models = get_gateway().list_models(created=int(time.time()))
    return {
        "object": "list",
        "data": models,
    }

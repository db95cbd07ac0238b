"""Main FastAPI application for the nim-bridge gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import chat_completions, health, http_exception_handler, list_models
from .core import ChatGateway
from .core.registry import set_gateway
from .logging import setup_logging
from .settings import GatewaySettings, load_settings

logger = logging.getLogger("nim-bridge")


def _enabled(flag: bool) -> str:
    return "ENABLED" if flag else "DISABLED"


def create_app(
    settings: Optional[GatewaySettings] = None,
    gateway: Optional[ChatGateway] = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Gateway settings; loaded from config when omitted.
        gateway: Pre-built gateway, mainly for tests.

    Returns:
        The configured FastAPI application instance.
    """
    if gateway is None:
        gateway = ChatGateway(settings or load_settings())
    settings = gateway.settings
    set_gateway(gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        features = settings.features
        logger.info(f"{settings.service_name} running on {settings.host}:{settings.port}")
        logger.info(f"Health check: http://{settings.host}:{settings.port}/health")
        logger.info(f"Upstream: {settings.upstream.api_base}")
        logger.info(f"Model aliases: {len(settings.model_mapping)}")
        logger.info(f"Reasoning display: {_enabled(features.show_reasoning)}")
        logger.info(f"Thinking mode: {_enabled(features.enable_thinking_mode)}")
        if features.force_detailed_responses:
            logger.info("Detailed responses: ENABLED (auto-injecting system prompt)")
        else:
            logger.info("Detailed responses: DISABLED")
        yield
        logger.info("nim-bridge shutting down")

    app = FastAPI(title="nim-bridge", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.get("/health")(health)
    app.get("/v1/models")(list_models)
    app.post("/v1/chat/completions")(chat_completions)
    return app


settings = load_settings()
setup_logging(settings.log_level)
app = create_app(settings)

SERVER_HOST = settings.host
SERVER_PORT = settings.port


__all__ = ["app", "create_app", "settings", "SERVER_HOST", "SERVER_PORT"]

"""nim-bridge - OpenAI-compatible gateway in front of NVIDIA NIM

Accepts OpenAI chat-completion requests, rewrites them for an upstream
OpenAI-style API (NVIDIA NIM by default) and translates the responses back,
including live SSE streams.

This package provides:
- ChatGateway: request adapter -> upstream call -> response adapter
- StreamSession: chunk reassembly and reasoning merge for SSE streams
- GatewaySettings: immutable configuration loaded once at startup

Example:
    >>> from nimbridge.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=3000)
"""

from .main import app, create_app, settings, SERVER_HOST, SERVER_PORT
from .adapters import StreamSession, build_chat_completion, build_upstream_request
from .core import ChatGateway, ProxyError, UpstreamError
from .config_loader import load_config
from .logging import logger, setup_logging
from .settings import GatewaySettings, load_settings

__all__ = [
    "app",
    "build_chat_completion",
    "build_upstream_request",
    "ChatGateway",
    "create_app",
    "GatewaySettings",
    "load_config",
    "load_settings",
    "logger",
    "ProxyError",
    "settings",
    "SERVER_HOST",
    "SERVER_PORT",
    "setup_logging",
    "StreamSession",
    "UpstreamError",
]

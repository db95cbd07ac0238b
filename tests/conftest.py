"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Generator

import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from nimbridge.settings import FeatureFlags, GatewaySettings, UpstreamSettings

UPSTREAM_BASE = "http://nim.test/v1"


# =============================================================================
# Transport Registry Fixtures
# =============================================================================


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transport registry after test.

    Use this fixture in tests that register fake transports.
    """
    from nimbridge.core.upstream_transport import clear_upstream_transports

    clear_upstream_transports()
    yield
    clear_upstream_transports()


# =============================================================================
# Settings Builders
# =============================================================================


def build_settings(
    *,
    show_reasoning: bool = False,
    enable_thinking_mode: bool = False,
    force_detailed_responses: bool = True,
    request_timeout: float = 5.0,
    **overrides: Any,
) -> GatewaySettings:
    """Build settings pointed at the fake upstream host.

    Args:
        show_reasoning: Reasoning display flag
        enable_thinking_mode: Thinking-mode flag
        force_detailed_responses: Detailed-response injection flag
        request_timeout: Upstream request deadline in seconds
        **overrides: Any other GatewaySettings field

    Returns:
        Frozen GatewaySettings
    """
    settings = GatewaySettings(
        upstream=UpstreamSettings(
            api_base=UPSTREAM_BASE,
            api_key="test-key",
            request_timeout=request_timeout,
            probe_timeout=request_timeout,
            stream_read_timeout=request_timeout,
        ),
        features=FeatureFlags(
            show_reasoning=show_reasoning,
            enable_thinking_mode=enable_thinking_mode,
            force_detailed_responses=force_detailed_responses,
        ),
    )
    if overrides:
        settings = replace(settings, **overrides)
    return settings


def parse_sse_frames(raw: bytes | str) -> list[Any]:
    """Split an SSE body into frames and decode each ``data:`` payload.

    JSON payloads are decoded; anything else (``[DONE]``, malformed lines)
    is returned as the raw payload string.
    """
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    frames: list[Any] = []
    for block in text.split("\n\n"):
        if not block:
            continue
        assert block.startswith("data:"), f"unexpected frame: {block!r}"
        data = block[len("data:"):].lstrip(" ")
        try:
            frames.append(json.loads(data))
        except json.JSONDecodeError:
            frames.append(data)
    return frames


# =============================================================================
# Harness Fixtures
# =============================================================================


@pytest.fixture
def fake_upstream(clear_transport_registry: None):
    """A FakeUpstream mounted at the test upstream base URL."""
    from nimbridge.testing import FakeUpstream

    upstream = FakeUpstream()
    upstream.mount(UPSTREAM_BASE)
    return upstream


@pytest.fixture
def make_client(clear_transport_registry: None):
    """Factory for a TestClient around a freshly built gateway app.

    Usage:
        def test_x(make_client):
            with make_client(show_reasoning=True) as client:
                client.get("/health")
    """
    from fastapi.testclient import TestClient

    from nimbridge.main import create_app

    def factory(**settings_kwargs: Any) -> TestClient:
        return TestClient(create_app(build_settings(**settings_kwargs)))

    return factory

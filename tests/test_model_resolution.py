"""Tests for upstream model resolution and the live model probe."""

from dataclasses import replace

import httpx
import pytest

from conftest import UPSTREAM_BASE, build_settings

from nimbridge.adapters.request import fallback_model_for, resolve_model
from nimbridge.core.upstream import UpstreamClient
from nimbridge.core.upstream_transport import register_upstream_transport
from nimbridge.settings import FallbackModels

LARGE = "meta/llama-3.1-405b-instruct"
MEDIUM = "meta/llama-3.1-70b-instruct"
SMALL = "meta/llama-3.1-8b-instruct"


class _RecordingProber:
    def __init__(self, result=None):
        self.result = result
        self.calls = []

    async def probe_model(self, model):
        self.calls.append(model)
        return self.result


@pytest.mark.parametrize(
    "model_name, expected",
    [
        ("gpt-4-0613", LARGE),
        ("GPT-4.1-mini", LARGE),
        ("claude-opus-4", LARGE),
        ("llama-405b", LARGE),
        ("claude-3-haiku", MEDIUM),
        ("Gemini-1.5-flash", MEDIUM),
        ("some-70B-model", MEDIUM),
        ("gpt-3.5-turbo-16k", SMALL),
        ("mistral-small", SMALL),
        ("", SMALL),
    ],
)
def test_fallback_heuristic(model_name, expected):
    assert fallback_model_for(model_name, FallbackModels()) == expected


@pytest.mark.asyncio
async def test_mapped_model_skips_probe():
    settings = build_settings()
    prober = _RecordingProber(result="should-not-be-used")

    for alias, target in settings.model_mapping.items():
        assert await resolve_model(alias, settings, prober) == target

    assert prober.calls == []


@pytest.mark.asyncio
async def test_successful_probe_adopts_literal_name():
    prober = _RecordingProber(result="nvidia/custom-model")

    resolved = await resolve_model("nvidia/custom-model", build_settings(), prober)

    assert resolved == "nvidia/custom-model"
    assert prober.calls == ["nvidia/custom-model"]


@pytest.mark.asyncio
async def test_failed_probe_falls_back_to_heuristic():
    prober = _RecordingProber(result=None)

    assert await resolve_model("claude-2", build_settings(), prober) == MEDIUM
    assert await resolve_model("tiny-model", build_settings(), prober) == SMALL
    assert prober.calls == ["claude-2", "tiny-model"]


@pytest.mark.asyncio
async def test_skipped_probe_uses_heuristic():
    assert await resolve_model("gpt-4-vision", build_settings(), None) == LARGE


@pytest.mark.asyncio
async def test_probe_returns_model_on_success(fake_upstream):
    fake_upstream.enqueue_json({"choices": []})
    client = UpstreamClient(build_settings().upstream)

    assert await client.probe_model("vendor/new-model") == "vendor/new-model"
    assert fake_upstream.received == [
        {
            "model": "vendor/new-model",
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
        }
    ]
    assert fake_upstream.received_headers[0]["authorization"] == "Bearer test-key"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 404, 500, 503])
async def test_probe_returns_none_on_error_status(fake_upstream, status_code):
    fake_upstream.enqueue_json({"error": {"message": "nope"}}, status_code=status_code)
    client = UpstreamClient(build_settings().upstream)

    assert await client.probe_model("vendor/unknown") is None


@pytest.mark.asyncio
async def test_probe_returns_none_on_connection_error(clear_transport_registry):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    register_upstream_transport(UPSTREAM_BASE, httpx.MockTransport(handler))
    client = UpstreamClient(build_settings().upstream)

    assert await client.probe_model("vendor/unknown") is None
    assert await resolve_model("vendor/unknown", build_settings(), client) == SMALL


@pytest.mark.asyncio
async def test_probe_returns_none_when_request_cannot_be_built(fake_upstream):
    upstream = replace(build_settings().upstream, api_key="clé-ünïcode")
    settings = build_settings(upstream=upstream)
    client = UpstreamClient(upstream)

    assert await client.probe_model("vendor/custom") is None
    assert await resolve_model("vendor/custom", settings, client) == SMALL
    assert fake_upstream.received == []

"""Testing utilities for in-process gateway simulations."""

from .fake_upstream import (
    FakeUpstream,
    UpstreamResponse,
    completion_body,
    delta_event,
    sse_chunks,
)

__all__ = [
    "FakeUpstream",
    "UpstreamResponse",
    "completion_body",
    "delta_event",
    "sse_chunks",
]

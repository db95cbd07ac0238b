"""Upstream SSE byte stream → OpenAI-compatible SSE stream.

``StreamSession`` reassembles raw upstream chunks into complete lines and
rewrites each ``data:`` event. Chunk boundaries carry no meaning: a line is
only handled once its terminating newline has arrived, so the output does
not depend on how the upstream happened to split its bytes.
"""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

import httpx

from .response import THINK_CLOSE, THINK_OPEN

logger = logging.getLogger("nim-bridge")

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def encode_event(payload: Any) -> bytes:
    data = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"{DATA_PREFIX} {data}\n\n".encode("utf-8")


def encode_verbatim(line: str) -> bytes:
    return f"{line}\n\n".encode("utf-8")


class StreamSession:
    """Per-stream buffering and rewriting state.

    Holds the partial-line buffer and, when reasoning display is on, whether
    a ``<think>`` block has been opened but not yet closed.
    """

    def __init__(self, show_reasoning: bool = False) -> None:
        self.show_reasoning = show_reasoning
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._reasoning_open = False

    @property
    def reasoning_open(self) -> bool:
        return self._reasoning_open

    def feed(self, chunk: bytes) -> list[bytes]:
        """Consume one raw chunk and return the outbound frames it completes."""
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        output: list[bytes] = []
        for line in lines:
            frame = self.process_line(line)
            if frame is not None:
                output.append(frame)
        return output

    def finish(self) -> list[bytes]:
        """Flush the decoder and handle an unterminated trailing line."""
        self._buffer += self._decoder.decode(b"", final=True)
        leftover, self._buffer = self._buffer, ""
        if not leftover:
            return []
        frame = self.process_line(leftover)
        return [frame] if frame is not None else []

    def process_line(self, line: str) -> Optional[bytes]:
        """Rewrite one complete line. Returns None for lines to drop."""
        if not line.startswith(DATA_PREFIX):
            return None
        data = line[len(DATA_PREFIX):]
        if data.startswith(" "):
            data = data[1:]
        if data.strip() == DONE_SENTINEL:
            return encode_verbatim(line)

        try:
            event = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Passing through unparseable stream line: %r", line)
            return encode_verbatim(line)

        self.rewrite_event(event)
        return encode_event(event)

    def rewrite_event(self, event: Any) -> None:
        """Merge or strip reasoning in the first choice's delta, in place."""
        if not isinstance(event, dict):
            return
        choices = event.get("choices")
        if not isinstance(choices, list) or not choices:
            return
        first = choices[0]
        if not isinstance(first, dict):
            return
        delta = first.get("delta")
        if not isinstance(delta, dict):
            return

        reasoning = delta.pop("reasoning_content", None)
        content = delta.get("content")

        if not self.show_reasoning:
            delta["content"] = content if content else ""
            return

        combined = ""
        if reasoning:
            if not self._reasoning_open:
                combined = THINK_OPEN + str(reasoning)
                self._reasoning_open = True
            else:
                combined = str(reasoning)
        if content:
            if self._reasoning_open:
                combined += THINK_CLOSE + str(content)
                self._reasoning_open = False
            else:
                combined += str(content)
        if combined:
            delta["content"] = combined


class ByteStream(Protocol):
    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


async def relay_stream(
    upstream: ByteStream,
    session: StreamSession,
    disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[bytes]:
    """Yield rewritten SSE frames for the lifetime of an upstream stream.

    An upstream transport error ends the stream without a synthetic error
    event: headers are already committed, so the client just sees the close.
    The upstream response is always closed on exit.
    """
    chunk_count = 0
    try:
        async for chunk in upstream.aiter_bytes():
            if disconnect_checker is not None and await disconnect_checker():
                logger.info("Client disconnected; closing upstream stream")
                return
            chunk_count += 1
            for frame in session.feed(chunk):
                yield frame
        for frame in session.finish():
            yield frame
    except httpx.HTTPError as exc:
        logger.error(f"Stream error: {exc.__class__.__name__}: {exc}")
    except asyncio.CancelledError:
        logger.info("Stream cancelled by client")
        raise
    finally:
        logger.debug(f"Stream completed, total chunks: {chunk_count}")
        await upstream.aclose()

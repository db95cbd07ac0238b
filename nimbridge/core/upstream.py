"""HTTP client for the upstream chat-completion API."""

import json
import logging
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from ..settings import UpstreamSettings
from ..types.chat import UpstreamCompletion
from .exceptions import UpstreamError
from .upstream_transport import get_upstream_transport

logger = logging.getLogger("nim-bridge")

PROBE_MESSAGES = [{"role": "user", "content": "test"}]


def format_httpx_error(exc: httpx.HTTPError, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except RuntimeError:
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    return "; ".join(parts)


def describe_error_body(status_code: int, body: bytes) -> str:
    """Build an error message from a non-2xx upstream body.

    Prefers the upstream's own ``error.message`` / ``detail`` text when the
    body is JSON.
    """
    detail: Optional[str] = None
    try:
        payload = json.loads(body or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
    if isinstance(payload, Mapping):
        error_obj = payload.get("error")
        if isinstance(error_obj, Mapping) and error_obj.get("message"):
            detail = str(error_obj["message"])
        elif isinstance(error_obj, str) and error_obj:
            detail = error_obj
        elif payload.get("detail"):
            detail = str(payload["detail"])
    base = f"Request failed with status code {status_code}"
    if detail:
        return f"{base}: {detail}"
    return base


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class UpstreamStream:
    """An open streamed upstream response.

    Owns both the httpx client and response; ``aclose`` releases them and is
    safe to call more than once.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response) -> None:
        self._client = client
        self._response = response
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class UpstreamClient:
    """Issues probe, buffered and streamed completion calls upstream."""

    def __init__(self, settings: UpstreamSettings) -> None:
        self.settings = settings

    @property
    def completions_url(self) -> str:
        return self.settings.completions_url

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def probe_model(self, model: str) -> Optional[str]:
        """Check whether the upstream serves ``model`` verbatim.

        Sends a one-token completion. Returns ``model`` on a 2xx reply and
        None on any other status or error.
        """
        url = self.completions_url
        body = {"model": model, "messages": PROBE_MESSAGES, "max_tokens": 1}
        transport = get_upstream_transport(url)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.probe_timeout,
                transport=transport,
                follow_redirects=True,
            ) as client:
                resp = await client.post(url, headers=self.build_headers(), json=body)
        except httpx.HTTPError as exc:
            logger.debug("Model probe for %s failed: %s", model, format_httpx_error(exc, url))
            return None
        except ValueError as exc:
            # Raised before any I/O, e.g. a non-ASCII API key in the header
            logger.debug("Model probe for %s could not be sent: %s", model, exc)
            return None

        if _is_success(resp.status_code):
            logger.info("Upstream accepts model %s as-is", model)
            return model
        logger.debug("Model probe for %s returned status %s", model, resp.status_code)
        return None

    async def create_completion(self, body: Mapping[str, Any]) -> UpstreamCompletion:
        """POST a non-streaming completion and return the decoded JSON body."""
        url = self.completions_url
        transport = get_upstream_transport(url)
        logger.debug(f"Initiating non-streaming request to {url}")
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout,
                transport=transport,
                follow_redirects=True,
            ) as client:
                resp = await client.post(url, headers=self.build_headers(), json=dict(body))
        except httpx.HTTPError as exc:
            raise UpstreamError(format_httpx_error(exc, url)) from exc

        logger.debug(f"Received response from {url}: status {resp.status_code}")
        if not _is_success(resp.status_code):
            raise UpstreamError(
                describe_error_body(resp.status_code, resp.content),
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise UpstreamError(f"Upstream returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Upstream returned a non-object JSON body")
        return payload

    async def open_stream(self, body: Mapping[str, Any]) -> UpstreamStream:
        """POST a streaming completion and return the open response.

        The status is checked before returning, so a non-2xx reply surfaces
        as ``UpstreamError`` while response headers can still be chosen.
        """
        url = self.completions_url
        timeout = self.settings.request_timeout
        stream_timeout = httpx.Timeout(
            connect=timeout,
            read=self.settings.stream_read_timeout,
            write=timeout,
            pool=timeout,
        )
        transport = get_upstream_transport(url)
        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=transport, follow_redirects=True
        )
        try:
            request = client.build_request(
                "POST", url, headers=self.build_headers(), json=dict(body)
            )
            logger.debug(f"Sending streaming request to {url}")
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            raise UpstreamError(format_httpx_error(exc, url)) from exc
        except BaseException:
            await client.aclose()
            raise

        stream = UpstreamStream(client, resp)
        if not _is_success(resp.status_code):
            try:
                data = await resp.aread()
            except httpx.HTTPError:
                data = b""
            finally:
                await stream.aclose()
            raise UpstreamError(
                describe_error_body(resp.status_code, data), status_code=resp.status_code
            )

        logger.info(f"Streaming request to {url} successful, status {resp.status_code}")
        return stream

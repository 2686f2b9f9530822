# prismchat/backends/sse.py
"""Shared httpx streaming for server-sent-event providers.

Opens a streaming POST, turns HTTP failures into ProviderError and yields
the raw event-stream lines for the decoder.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import httpx

from prismchat.backends import Chunk, FrameDecodeError, ProviderError
from prismchat.config import CONNECT_TIMEOUT, DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from prismchat.conversation import Message


def _raw_log(message: str) -> None:
    """Log raw event to the chat debug log if available."""
    # Lazy import to avoid circular dependency at module load time
    from prismchat.chat import _log_debug
    _log_debug(message)


def wrap_httpx_error(exc: httpx.HTTPError, provider: str) -> ProviderError:
    """Translate an httpx exception into a ProviderError.

    Args:
        exc: The httpx exception.
        provider: Provider name for the error message.

    Returns:
        ProviderError carrying the status code and a body snippet when available.

    """
    if isinstance(exc, httpx.TimeoutException):
        return ProviderError(f"{provider}: request timed out", provider=provider)
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        message = f"{provider}: HTTP {status_code}"
        try:
            body = exc.response.text.strip()
        except httpx.ResponseNotRead:
            body = ""
        if body:
            message = f"{message}\n\nProvider response (truncated):\n{body[:2000]}"
        return ProviderError(message, provider=provider, status_code=status_code)
    if isinstance(exc, httpx.NetworkError):
        return ProviderError(f"{provider}: network error: {exc}", provider=provider)
    return ProviderError(f"{provider}: {exc or exc.__class__.__name__}", provider=provider)


def sse_data(frame: str) -> dict[str, Any] | None:
    """Decode the JSON payload of an SSE ``data:`` line.

    Args:
        frame: One raw event-stream line.

    Returns:
        The decoded object, or None for non-data lines, keep-alives and ``[DONE]``.

    Raises:
        FrameDecodeError: If the payload is not a JSON object.

    """
    line = frame.strip()
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload or payload == "[DONE]":
        return None
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise FrameDecodeError(f"unparseable frame: {payload[:200]}") from e
    if not isinstance(data, dict):
        raise FrameDecodeError(f"frame is not a JSON object: {payload[:200]}")
    return data


class SSEBackend:
    """Base for backends that stream a chat over HTTP server-sent events.

    Subclasses provide ``build_request`` and ``decode_frame``.

    Args:
        model: Model name.
        api_key: Provider API key.
        timeout: HTTP read timeout in seconds.
        base_url: API base URL.
        transport: Optional httpx transport, used by tests.

    """

    name = ""

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def build_request(
        self,
        messages: list[Message],
        system_prompt: str | None,
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (url, headers, json body) for a streaming request."""
        raise NotImplementedError

    def decode_frame(self, frame: str) -> Chunk | None:
        """Decode one raw line into a Chunk, or None if it carries nothing."""
        raise NotImplementedError

    async def stream(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
    ) -> AsyncIterator[str | None]:
        """Send the conversation and yield raw event-stream lines.

        Args:
            messages: Conversation so far, ending with the user's message.
            system_prompt: Optional system prompt.

        Yields:
            Raw lines in arrival order.

        Raises:
            ProviderError: On HTTP status errors, timeouts and network failures.

        """
        url, headers, body = self.build_request(messages, system_prompt)
        _raw_log(f"[HTTP] POST {url} model={self.model} messages={len(messages)}\n")
        timeout = httpx.Timeout(self.timeout, connect=CONNECT_TIMEOUT)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                async with client.stream("POST", url, headers=headers, json=body) as response:
                    if response.is_error:
                        await response.aread()
                        response.raise_for_status()
                    async for line in response.aiter_lines():
                        yield line
        except httpx.HTTPError as exc:
            _raw_log(f"[HTTP_ERROR] {type(exc).__name__}: {exc}\n")
            raise wrap_httpx_error(exc, self.name) from exc

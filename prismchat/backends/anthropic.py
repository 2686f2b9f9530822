# prismchat/backends/anthropic.py
"""Anthropic Messages API streaming backend for prismchat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from prismchat.backends import Chunk, FinishSignal, ProviderError
from prismchat.backends.sse import SSEBackend, sse_data
from prismchat.config import (
    ANTHROPIC_MAX_TOKENS,
    ANTHROPIC_VERSION,
    BASE_URLS,
    DEFAULT_TIMEOUT,
    EMPTY_REPLY_PLACEHOLDER,
)

if TYPE_CHECKING:
    from prismchat.conversation import Message

_STOP_REASONS: dict[str, FinishSignal] = {
    "end_turn": FinishSignal.NATURAL_STOP,
    "stop_sequence": FinishSignal.NATURAL_STOP,
    "max_tokens": FinishSignal.LENGTH_LIMIT,
    "refusal": FinishSignal.SAFETY_BLOCK,
}


class AnthropicBackend(SSEBackend):
    """Backend for ``/messages`` with ``stream: true``.

    Text arrives in ``content_block_delta`` events; the stop reason arrives
    in ``message_delta``. Other event types (``message_start``, ``ping``,
    ``content_block_start`` ...) carry nothing for the decoder.
    """

    name = "anthropic"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URLS["anthropic"],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, api_key, timeout, base_url, transport)

    def build_request(
        self,
        messages: list[Message],
        system_prompt: str | None,
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "messages": [
                {"role": m.role, "content": m.content or EMPTY_REPLY_PLACEHOLDER}
                for m in messages
            ],
            "stream": True,
        }
        if system_prompt:
            body["system"] = system_prompt
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        return f"{self.base_url}/messages", headers, body

    def decode_frame(self, frame: str) -> Chunk | None:
        data = sse_data(frame)
        if data is None:
            return None

        event_type = data.get("type", "")
        if event_type == "content_block_delta":
            delta = data.get("delta")
            if isinstance(delta, dict) and delta.get("type") == "text_delta":
                text = delta.get("text")
                return Chunk(text=text if isinstance(text, str) else "")
            return None

        if event_type == "message_delta":
            delta = data.get("delta")
            reason = delta.get("stop_reason") if isinstance(delta, dict) else None
            if isinstance(reason, str) and reason:
                return Chunk(finish=_STOP_REASONS.get(reason, FinishSignal.OTHER))
            return None

        if event_type == "error":
            error = data.get("error")
            message = error.get("message", "unknown error") if isinstance(error, dict) else "unknown error"
            raise ProviderError(f"anthropic: {message}", provider=self.name)

        return None

# prismchat/backends/openai.py
"""OpenAI chat completions streaming backend for prismchat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from prismchat.backends import Chunk, FinishSignal, ProviderError
from prismchat.backends.sse import SSEBackend, sse_data
from prismchat.config import BASE_URLS, DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from prismchat.conversation import Message

_FINISH_REASONS: dict[str, FinishSignal] = {
    "stop": FinishSignal.NATURAL_STOP,
    "length": FinishSignal.LENGTH_LIMIT,
    "content_filter": FinishSignal.SAFETY_BLOCK,
}


class OpenAIBackend(SSEBackend):
    """Backend for ``/chat/completions`` with ``stream: true``.

    Frames look like ``data: {"choices": [{"delta": {"content": "Hi"}}]}``;
    the stream ends with ``data: [DONE]``.
    """

    name = "openai"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URLS["openai"],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, api_key, timeout, base_url, transport)

    def build_request(
        self,
        messages: list[Message],
        system_prompt: str | None,
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        payload: list[dict[str, str]] = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend({"role": m.role, "content": m.content} for m in messages)
        headers = {"Authorization": f"Bearer {self.api_key}"}
        body = {"model": self.model, "messages": payload, "stream": True}
        return f"{self.base_url}/chat/completions", headers, body

    def decode_frame(self, frame: str) -> Chunk | None:
        data = sse_data(frame)
        if data is None:
            return None

        error = data.get("error")
        if isinstance(error, dict):
            raise ProviderError(
                f"openai: {error.get('message', 'unknown error')}", provider=self.name
            )

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        choice = choices[0]

        delta = choice.get("delta")
        content = delta.get("content") if isinstance(delta, dict) else None
        text = content if isinstance(content, str) else ""

        reason = choice.get("finish_reason")
        finish = None
        if isinstance(reason, str) and reason:
            finish = _FINISH_REASONS.get(reason, FinishSignal.OTHER)
        return Chunk(text=text, finish=finish)

# prismchat/backends/gemini.py
"""Gemini ``streamGenerateContent`` backend for prismchat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from prismchat.backends import Chunk, FinishSignal
from prismchat.backends.sse import SSEBackend, sse_data
from prismchat.config import BASE_URLS, DEFAULT_TIMEOUT, EMPTY_REPLY_PLACEHOLDER

if TYPE_CHECKING:
    from prismchat.conversation import Message

_SAFETY_REASONS = {
    "SAFETY",
    "RECITATION",
    "BLOCKLIST",
    "PROHIBITED_CONTENT",
    "SPII",
    "IMAGE_SAFETY",
}


def _map_finish_reason(reason: Any) -> FinishSignal | None:
    if not isinstance(reason, str) or reason in ("", "FINISH_REASON_UNSPECIFIED"):
        return None
    if reason == "STOP":
        return FinishSignal.NATURAL_STOP
    if reason == "MAX_TOKENS":
        return FinishSignal.LENGTH_LIMIT
    if reason in _SAFETY_REASONS:
        return FinishSignal.SAFETY_BLOCK
    return FinishSignal.OTHER


class GeminiBackend(SSEBackend):
    """Backend for ``models/{model}:streamGenerateContent?alt=sse``.

    Gemini calls the assistant role ``model`` and carries text in
    ``candidates[0].content.parts``. A blocked prompt arrives as
    ``promptFeedback.blockReason`` with no candidates.
    """

    name = "gemini"

    def __init__(
        self,
        model: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URLS["gemini"],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(model, api_key, timeout, base_url, transport)

    def build_request(
        self,
        messages: list[Message],
        system_prompt: str | None,
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content or EMPTY_REPLY_PLACEHOLDER}],
            }
            for m in messages
        ]
        body: dict[str, Any] = {"contents": contents}
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        headers = {"x-goog-api-key": self.api_key}
        url = f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse"
        return url, headers, body

    def decode_frame(self, frame: str) -> Chunk | None:
        data = sse_data(frame)
        if data is None:
            return None

        # Some gateways wrap the payload
        root = data.get("response") if isinstance(data.get("response"), dict) else data

        feedback = root.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            return Chunk(finish=FinishSignal.SAFETY_BLOCK)

        candidates = root.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return None
        cand0 = candidates[0]

        content = cand0.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        text_parts: list[str] = []
        for part in parts if isinstance(parts, list) else []:
            if not isinstance(part, dict) or part.get("thought") is True:
                continue
            text = part.get("text")
            if isinstance(text, str):
                text_parts.append(text)

        return Chunk(text="".join(text_parts), finish=_map_finish_reason(cand0.get("finishReason")))

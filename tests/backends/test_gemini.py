# tests/backends/test_gemini.py
"""Tests for GeminiBackend framing and streaming."""

import json

import httpx
import pytest

from prismchat.backends import Chunk, FinishSignal
from prismchat.backends.gemini import GeminiBackend
from prismchat.config import EMPTY_REPLY_PLACEHOLDER
from prismchat.conversation import Message


def _frame(payload: dict) -> str:
    return "data: " + json.dumps(payload)


def _candidate(text: str | None = None, finish: str | None = None, parts: list | None = None) -> str:
    candidate: dict = {"content": {"role": "model", "parts": parts if parts is not None else [{"text": text}]}}
    if finish:
        candidate["finishReason"] = finish
    return _frame({"candidates": [candidate]})


@pytest.fixture
def backend():
    return GeminiBackend(model="gemini-2.0-flash", api_key="g-key")


def test_decode_text(backend):
    assert backend.decode_frame(_candidate("Hello")) == Chunk(text="Hello")


def test_decode_joins_parts_and_skips_thoughts(backend):
    parts = [{"text": "thinking...", "thought": True}, {"text": "A"}, {"text": "B"}, {"inlineData": {}}]
    assert backend.decode_frame(_candidate(parts=parts)) == Chunk(text="AB")


@pytest.mark.parametrize(
    ("reason", "finish"),
    [
        ("STOP", FinishSignal.NATURAL_STOP),
        ("MAX_TOKENS", FinishSignal.LENGTH_LIMIT),
        ("SAFETY", FinishSignal.SAFETY_BLOCK),
        ("RECITATION", FinishSignal.SAFETY_BLOCK),
        ("MALFORMED_FUNCTION_CALL", FinishSignal.OTHER),
        ("FINISH_REASON_UNSPECIFIED", None),
    ],
)
def test_decode_finish_reason(backend, reason, finish):
    chunk = backend.decode_frame(_candidate("x", finish=reason))
    assert chunk == Chunk(text="x", finish=finish)


def test_decode_blocked_prompt(backend):
    frame = _frame({"promptFeedback": {"blockReason": "SAFETY"}})
    assert backend.decode_frame(frame) == Chunk(finish=FinishSignal.SAFETY_BLOCK)


def test_decode_wrapped_response(backend):
    frame = _frame({"response": {"candidates": [{"content": {"parts": [{"text": "hi"}]}}]}})
    assert backend.decode_frame(frame) == Chunk(text="hi")


def test_decode_frame_without_candidates(backend):
    assert backend.decode_frame(_frame({"usageMetadata": {"totalTokenCount": 3}})) is None


def test_build_request_maps_roles(backend):
    messages = [Message("user", "hi"), Message("assistant", "hello"), Message("user", "again")]
    url, headers, body = backend.build_request(messages, "sys")

    assert url.endswith("/models/gemini-2.0-flash:streamGenerateContent?alt=sse")
    assert headers == {"x-goog-api-key": "g-key"}
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][1]["parts"] == [{"text": "hello"}]
    assert body["systemInstruction"] == {"parts": [{"text": "sys"}]}


def test_build_request_fills_empty_reply(backend):
    messages = [Message("user", "hi"), Message("assistant", ""), Message("user", "again")]
    _, _, body = backend.build_request(messages, None)
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][1]["parts"] == [{"text": EMPTY_REPLY_PLACEHOLDER}]


def test_build_request_without_system_prompt(backend):
    _, _, body = backend.build_request([Message("user", "hi")], None)
    assert "systemInstruction" not in body


@pytest.mark.asyncio
async def test_stream_yields_event_lines():
    body = _candidate("Hi ") + "\r\n\r\n" + _candidate("there", finish="STOP") + "\r\n\r\n"

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["alt"] == "sse"
        return httpx.Response(200, text=body)

    backend = GeminiBackend(model="gemini-2.0-flash", api_key="g-key", transport=httpx.MockTransport(handler))
    lines = [line async for line in backend.stream([Message("user", "hi")])]

    chunks = [c for c in (backend.decode_frame(line) for line in lines) if c is not None]
    assert "".join(c.text for c in chunks) == "Hi there"
    assert chunks[-1].finish is FinishSignal.NATURAL_STOP

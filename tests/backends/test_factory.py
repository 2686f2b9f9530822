# tests/backends/test_factory.py
"""Tests for the backend factory and shared SSE helpers."""

import httpx
import pytest

from prismchat.backends import FrameDecodeError, ProviderError, create_backend
from prismchat.backends.anthropic import AnthropicBackend
from prismchat.backends.gemini import GeminiBackend
from prismchat.backends.openai import OpenAIBackend
from prismchat.backends.sse import sse_data, wrap_httpx_error
from prismchat.config import DEFAULT_MODELS, ConfigError


@pytest.mark.parametrize(
    ("name", "cls"),
    [
        ("openai", OpenAIBackend),
        ("gemini", GeminiBackend),
        ("anthropic", AnthropicBackend),
    ],
)
def test_create_backend_by_name(name, cls):
    backend = create_backend(name, api_key="key")
    assert isinstance(backend, cls)
    assert backend.name == name
    assert backend.model == DEFAULT_MODELS[name]


def test_create_backend_with_model():
    backend = create_backend("openai", model="gpt-4o", api_key="key")
    assert backend.model == "gpt-4o"


def test_create_backend_reads_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    backend = create_backend("gemini")
    assert backend.api_key == "from-env"


def test_create_backend_missing_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
        create_backend("anthropic")


def test_create_backend_unknown():
    with pytest.raises(ValueError, match="Unknown provider"):
        create_backend("nonexistent", api_key="key")


# =============================================================================
# SSE helpers
# =============================================================================


def test_sse_data_decodes_object():
    assert sse_data('data: {"a": 1}') == {"a": 1}
    assert sse_data('data:{"a": 1}\r') == {"a": 1}


@pytest.mark.parametrize("frame", ["", "event: message_start", ": keep-alive", "data: ", "data: [DONE]"])
def test_sse_data_ignores_non_payload_lines(frame):
    assert sse_data(frame) is None


@pytest.mark.parametrize("frame", ["data: {broken", "data: [1, 2]", 'data: "text"'])
def test_sse_data_rejects_bad_payloads(frame):
    with pytest.raises(FrameDecodeError):
        sse_data(frame)


def test_wrap_status_error_includes_body():
    request = httpx.Request("POST", "https://example.test/v1/chat")
    response = httpx.Response(429, text="slow down", request=request)
    exc = httpx.HTTPStatusError("429", request=request, response=response)

    error = wrap_httpx_error(exc, "openai")

    assert isinstance(error, ProviderError)
    assert error.status_code == 429
    assert error.provider == "openai"
    assert "HTTP 429" in str(error)
    assert "slow down" in str(error)


def test_wrap_timeout():
    error = wrap_httpx_error(httpx.ReadTimeout("read timed out"), "gemini")
    assert "timed out" in str(error)
    assert error.status_code is None


def test_wrap_network_error():
    error = wrap_httpx_error(httpx.ConnectError("refused"), "anthropic")
    assert "network error" in str(error)
    assert "refused" in str(error)

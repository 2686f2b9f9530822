# prismchat/backends/__init__.py
"""Provider backend abstraction layer for prismchat.

Defines the Chunk produced by decoding one provider frame, the Backend
protocol, and the factory function. Backends stream raw event-stream lines;
the decoder turns each line into a Chunk with ``decode_frame`` so that a
malformed frame can be skipped without losing the rest of the response.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import httpx

from prismchat.config import DEFAULT_MODELS, DEFAULT_TIMEOUT, PROVIDERS, get_api_key

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from prismchat.conversation import Message


class FinishSignal(Enum):
    """Why the provider ended the response."""

    NATURAL_STOP = "natural_stop"
    LENGTH_LIMIT = "length_limit"
    SAFETY_BLOCK = "safety_block"
    OTHER = "other"


@dataclass
class Chunk:
    """One decoded frame: a (possibly empty) text delta and an optional finish signal."""

    text: str = ""
    finish: FinishSignal | None = None


class ProviderError(Exception):
    """Raised when a provider request fails or the provider reports an error."""

    def __init__(self, message: str, provider: str = "", status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class FrameDecodeError(ValueError):
    """Raised when a single stream frame cannot be decoded."""


class Backend(Protocol):
    """Protocol for provider backends.

    ``stream`` yields raw frames in arrival order; ``None`` means no frame is
    available yet, not end of stream.
    """

    name: str
    model: str

    def stream(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
    ) -> AsyncIterator[str | None]: ...

    def decode_frame(self, frame: str) -> Chunk | None: ...


def create_backend(
    name: str,
    model: str | None = None,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Backend:
    """Create a backend by provider name.

    Args:
        name: Provider name ("openai", "gemini" or "anthropic").
        model: Optional model override. Each provider has its own default.
        api_key: API key; read from the provider's environment variable if omitted.
        timeout: HTTP read timeout in seconds.
        transport: Optional httpx transport, used by tests.

    Returns:
        A Backend instance.

    Raises:
        ValueError: If the provider name is unknown.
        ConfigError: If no API key is available.

    """
    if name not in PROVIDERS:
        raise ValueError(f"Unknown provider: {name!r}. Expected one of: {', '.join(PROVIDERS)}.")
    key = api_key or get_api_key(name)
    model = model or DEFAULT_MODELS[name]
    if name == "openai":
        from prismchat.backends.openai import OpenAIBackend
        return OpenAIBackend(model=model, api_key=key, timeout=timeout, transport=transport)
    if name == "gemini":
        from prismchat.backends.gemini import GeminiBackend
        return GeminiBackend(model=model, api_key=key, timeout=timeout, transport=transport)
    from prismchat.backends.anthropic import AnthropicBackend
    return AnthropicBackend(model=model, api_key=key, timeout=timeout, transport=transport)


__all__ = [
    "Backend",
    "Chunk",
    "FinishSignal",
    "FrameDecodeError",
    "ProviderError",
    "create_backend",
]

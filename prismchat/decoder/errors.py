"""Error types for a decoded chat turn."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prismchat.backends import FinishSignal


class TurnError(Exception):
    """Base class for turns that ended without a committed assistant message.

    Args:
        message: Human readable description.
        partial_text: Raw text received before the turn failed.

    """

    def __init__(self, message: str, partial_text: str = ""):
        self.partial_text = partial_text
        super().__init__(message)


class ResponseStoppedError(TurnError):
    """Provider ended the response early (safety block, length limit, ...)."""

    def __init__(self, finish: FinishSignal, partial_text: str = ""):
        self.finish = finish
        super().__init__(f"Response stopped by provider: {finish.value}", partial_text)


class StreamInterruptedError(TurnError):
    """Transport failed or the stream ended without a finish signal."""

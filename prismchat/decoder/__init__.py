"""Streaming response decoder.

Turns a provider's chunked text stream into wrapped, colored terminal output.

Pipeline:
    segmenter: WordSegmenter holds back partial words between deltas.
    resolver: ColorTagResolver splits words on color tags.
    printer: LineWrappingPrinter wraps words to the terminal width.
    driver: DecodeSession pulls frames and commits the finished message.
"""

from prismchat.decoder.driver import (
    CancellationToken,
    DecodeSession,
    DecodeState,
    TurnResult,
    TurnStatus,
)
from prismchat.decoder.errors import ResponseStoppedError, StreamInterruptedError, TurnError
from prismchat.decoder.printer import LineWrappingPrinter
from prismchat.decoder.resolver import ColorTagResolver, Segment
from prismchat.decoder.segmenter import WordSegmenter

__all__ = [
    "CancellationToken",
    "ColorTagResolver",
    "DecodeSession",
    "DecodeState",
    "LineWrappingPrinter",
    "ResponseStoppedError",
    "Segment",
    "StreamInterruptedError",
    "TurnError",
    "TurnResult",
    "TurnStatus",
    "WordSegmenter",
]

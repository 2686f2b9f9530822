"""Stream driver: pull frames, decode them and run the print pipeline.

One DecodeSession handles exactly one assistant turn. Its color and cursor
state is discarded with it, so concurrent chats never share decoding state.
"""

import threading
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rich.console import Console

from prismchat.backends import Chunk, FinishSignal, FrameDecodeError, ProviderError
from prismchat.config import TAG_DELIMITER
from prismchat.decoder.errors import ResponseStoppedError, StreamInterruptedError
from prismchat.decoder.printer import LineWrappingPrinter
from prismchat.decoder.resolver import ColorTagResolver
from prismchat.decoder.segmenter import WordSegmenter


def _raw_log(message: str) -> None:
    """Log to the chat debug log if available."""
    # Lazy import to avoid circular dependency at module load time
    from prismchat.chat import _log_debug
    _log_debug(message)


class CancellationToken:
    """Cooperative cancellation flag, safe to set from a signal handler."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class HistorySink(Protocol):
    """Anything that accepts the finished assistant message."""

    def append(self, role: str, content: str) -> object: ...


class DecodeState(Enum):
    STREAMING = "streaming"
    DONE = "done"


class TurnStatus(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class TurnResult:
    """Outcome of a turn that produced an assistant message."""

    status: TurnStatus
    text: str
    finish: FinishSignal | None = None


class DecodeSession:
    """Decode one streamed response onto the terminal.

    Args:
        console: Rich Console to print to.
        assistant_color: Rich color for assistant text and RESET tags.
        history: Receives the assistant message when the turn completes.
            None renders without committing anything.
        cancel: Optional token checked around every read.
        width_source: Optional callable returning the wrap width.
        delimiter: Color tag delimiter.

    Usage:
        session = DecodeSession(console, "bright_green", conversation)
        result = await session.run(backend.stream(messages), backend.decode_frame)

    """

    def __init__(
        self,
        console: Console,
        assistant_color: str,
        history: HistorySink | None = None,
        cancel: CancellationToken | None = None,
        width_source: Callable[[], int] | None = None,
        delimiter: str = TAG_DELIMITER,
    ) -> None:
        self.segmenter = WordSegmenter()
        self.resolver = ColorTagResolver(assistant_color, delimiter=delimiter)
        self.printer = LineWrappingPrinter(console, width_source)
        self.state = DecodeState.STREAMING
        self._history = history
        self._cancel = cancel
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        """Raw accumulated response text, tags included."""
        return "".join(self._parts)

    def feed(self, delta: str) -> None:
        """Accumulate a delta and print every word it completes."""
        if not delta:
            return
        self._parts.append(delta)
        for word in self.segmenter.feed(delta):
            self.printer.print_segments(self.resolver.resolve(word))

    def finish(self) -> None:
        """Print the held-back word, release any open tag and end the line."""
        if self.state is DecodeState.DONE:
            return
        word = self.segmenter.flush()
        if word is not None:
            self.printer.print_segments(self.resolver.resolve(word))
        self.printer.print_segments(self.resolver.finish())
        self.printer.newline()
        self.state = DecodeState.DONE

    async def run(
        self,
        frames: AsyncIterable[str | None],
        decode_frame: Callable[[str], Chunk | None],
    ) -> TurnResult:
        """Consume frames until the provider finishes, then commit the message.

        Args:
            frames: Raw provider frames; None means no frame yet.
            decode_frame: Provider framing decoder.

        Returns:
            TurnResult with status COMPLETED, or CANCELLED when the token fired.

        Raises:
            ResponseStoppedError: The provider stopped for a reason other than a
                natural stop. Nothing is committed.
            StreamInterruptedError: The transport failed or the stream ended
                without a finish signal. Nothing is committed.

        """
        if self.state is DecodeState.DONE:
            raise RuntimeError("DecodeSession already finished")

        finish: FinishSignal | None = None
        cancelled = False
        iterator = frames.__aiter__()
        try:
            while True:
                if self._is_cancelled():
                    cancelled = True
                    break
                try:
                    frame = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                if self._is_cancelled():
                    cancelled = True
                    break
                if frame is None:
                    continue

                chunk = self._decode(decode_frame, frame)
                if chunk is None:
                    continue
                self.feed(chunk.text)
                if chunk.finish is not None:
                    finish = chunk.finish
                    break
        except ProviderError as exc:
            self.finish()
            _raw_log(f"[TURN_ERROR] {exc}\n")
            raise StreamInterruptedError(str(exc), self.text) from exc
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        self.finish()
        text = self.text

        if cancelled:
            _raw_log(f"[TURN] cancelled after {len(text)} chars\n")
            if text:
                self._commit(text)
            return TurnResult(status=TurnStatus.CANCELLED, text=text)

        if finish is None:
            _raw_log(f"[TURN_ERROR] stream ended without finish signal after {len(text)} chars\n")
            raise StreamInterruptedError("Stream ended before the response was finished", text)

        if finish is not FinishSignal.NATURAL_STOP:
            _raw_log(f"[TURN_ERROR] stopped: {finish.value}\n")
            raise ResponseStoppedError(finish, text)

        _raw_log(f"[TURN] completed with {len(text)} chars\n")
        self._commit(text)
        return TurnResult(status=TurnStatus.COMPLETED, text=text, finish=finish)

    def _is_cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.cancelled

    def _decode(self, decode_frame: Callable[[str], Chunk | None], frame: str) -> Chunk | None:
        if frame.strip():
            _raw_log(f"[FRAME] {frame[:1000]}\n")
        try:
            return decode_frame(frame)
        except FrameDecodeError as exc:
            _raw_log(f"[FRAME_ERROR] {exc}\n")
            return None

    def _commit(self, text: str) -> None:
        if self._history is not None:
            self._history.append("assistant", text)

"""Word segmentation for streamed text.

Providers split text at arbitrary points, so a word (or a color tag inside
it) can arrive across several deltas. The segmenter only releases a run once
the next run has started, which proves the earlier one is complete.
"""

import re

_RUN_PATTERN = re.compile(r"\s+|\S+")


class WordSegmenter:
    """Buffer text deltas and emit complete whitespace/non-whitespace runs.

    Usage:
        segmenter = WordSegmenter()
        for delta in deltas:
            for word in segmenter.feed(delta):
                ...
        last = segmenter.flush()

    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        """Text held back because it may still grow."""
        return self._pending

    def feed(self, delta: str) -> list[str]:
        """Add a delta and return the runs it proved complete.

        Args:
            delta: Next piece of streamed text.

        Returns:
            Complete runs in arrival order. The trailing run is kept pending.

        """
        if not delta:
            return []
        runs = _RUN_PATTERN.findall(self._pending + delta)
        self._pending = runs.pop()
        return runs

    def flush(self) -> str | None:
        """Release the pending run at end of stream.

        Returns:
            The pending run, or None if nothing is pending.

        """
        word, self._pending = self._pending, ""
        return word or None

"""Inline color tag resolution.

A word such as ``§RED§warning§RESET§!`` splits on the delimiter into literal
pieces (even indices) and tag names (odd indices). Tags update the active
color for everything printed after them, in this word and later ones.
"""

from dataclasses import dataclass

from prismchat.colors import RESET_TAG, lookup, normalize_tag
from prismchat.config import MAX_TAG_LENGTH, TAG_DELIMITER


def _raw_log(message: str) -> None:
    """Log to the chat debug log if available."""
    # Lazy import to avoid circular dependency at module load time
    from prismchat.chat import _log_debug
    _log_debug(message)


@dataclass(frozen=True)
class Segment:
    """Literal text and the color it is printed in."""

    text: str
    color: str


class ColorTagResolver:
    """Split words into colored segments, tracking the active color.

    Model output is untrusted: unknown, empty and malformed tags never raise,
    they fall back to the default color.

    Args:
        default_color: Rich color for assistant text; also the RESET color.
        delimiter: Tag delimiter character.
        max_tag_length: Longest carried text still treated as a tag name.

    """

    def __init__(
        self,
        default_color: str,
        delimiter: str = TAG_DELIMITER,
        max_tag_length: int = MAX_TAG_LENGTH,
    ) -> None:
        self.default_color = default_color
        self.active_color = default_color
        self._delimiter = delimiter
        self._max_tag_length = max_tag_length
        # Tag opened in an earlier word and not closed yet
        self._open_tag: str | None = None

    @property
    def has_open_tag(self) -> bool:
        """True while a tag spanning word boundaries is waiting for its close."""
        return self._open_tag is not None

    def resolve(self, word: str) -> list[Segment]:
        """Resolve one word into literal segments.

        A word with ``2k`` delimiters yields ``k + 1`` segments (possibly
        empty). With an odd count the text after the last delimiter opens a
        tag that is completed by later words.

        Args:
            word: A complete whitespace or non-whitespace run.

        Returns:
            Literal segments with the color active when each was reached.

        """
        segments: list[Segment] = []

        if self._open_tag is not None:
            head, found, rest = word.partition(self._delimiter)
            carried = self._open_tag + head
            self._open_tag = None
            if len(carried) > self._max_tag_length or "\n" in carried:
                # Not a tag after all; a delimiter in this word opens the next one
                segments.append(Segment(self._delimiter + carried, self.active_color))
                if not found:
                    return segments
                word = found + rest
            elif not found:
                self._open_tag = carried
                return []
            else:
                self._apply_tag(carried)
                word = rest

        parts = word.split(self._delimiter)
        if len(parts) % 2 == 0:
            self._open_tag = parts.pop()

        for index, part in enumerate(parts):
            if index % 2 == 0:
                segments.append(Segment(part, self.active_color))
            else:
                self._apply_tag(part)
        return segments

    def finish(self) -> list[Segment]:
        """Release an unclosed tag as literal text at end of stream."""
        if self._open_tag is None:
            return []
        text = self._delimiter + self._open_tag
        self._open_tag = None
        return [Segment(text, self.active_color)]

    def resolve_tag(self, name: str) -> str:
        """Resolve a tag name to a color without changing state.

        Args:
            name: Raw tag text between delimiters.

        Returns:
            Rich color name; the default color for RESET and unknown names.

        """
        cleaned = name.strip()
        if cleaned.startswith("/"):
            cleaned = cleaned[1:]
        if normalize_tag(cleaned) == RESET_TAG:
            return self.default_color
        color = lookup(cleaned)
        if color is None:
            _raw_log(f"[UNKNOWN_TAG] {name[:80]!r}\n")
            return self.default_color
        return color

    def _apply_tag(self, name: str) -> None:
        self.active_color = self.resolve_tag(name)

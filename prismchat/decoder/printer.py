"""Terminal printer that wraps streamed words to the current width."""

from collections.abc import Callable, Iterable

from rich.cells import cell_len
from rich.console import Console
from rich.text import Text

from prismchat.decoder.resolver import Segment

TAB_SIZE = 8


class LineWrappingPrinter:
    """Write colored words, breaking lines before a word that would overflow.

    The printer tracks its own cursor column instead of querying the
    terminal. The width is sampled on every call, so a resize affects only
    text printed afterwards.

    Args:
        console: Rich Console to write to.
        width_source: Callable returning the wrap width. Defaults to the
            console's current width.

    """

    def __init__(self, console: Console, width_source: Callable[[], int] | None = None) -> None:
        self._console = console
        self._width_source = width_source or (lambda: console.width)
        self.column = 0

    @property
    def width(self) -> int:
        """Current wrap width (at least 1)."""
        return max(1, self._width_source())

    def print(self, text: str, color: str) -> None:
        """Print one literal piece of text in the given color."""
        self.print_segments([Segment(text, color)])

    def print_segments(self, segments: Iterable[Segment]) -> None:
        """Print the segments of one word, wrapping on their combined width.

        Widths are terminal cells, so wide characters count double. Tabs are
        expanded to spaces against the printer's own column.

        Args:
            segments: Colored pieces of a single word.

        """
        pieces = [segment for segment in segments if segment.text]
        if not pieces:
            return
        width = self.width
        expanded = self._expand_tabs(pieces, self.column)
        text = "".join(segment.text for segment in expanded)

        if "\n" in text:
            self._write(expanded)
            self.column = self._fold(cell_len(text[text.rfind("\n") + 1:]), width)
            return

        length = cell_len(text)
        overflow = length > width - self.column
        if overflow and text.isspace():
            # Drop the whitespace instead of starting the next line with it
            if self.column > 0:
                self.newline()
            return
        if overflow and self.column > 0:
            self.newline()
            expanded = self._expand_tabs(pieces, 0)
            length = cell_len("".join(segment.text for segment in expanded))

        self._write(expanded)
        self.column = self._fold(self.column + length, width)

    def newline(self) -> None:
        """Emit a line break and reset the cursor column."""
        self._console.print()
        self.column = 0

    def _write(self, pieces: list[Segment]) -> None:
        for segment in pieces:
            self._console.print(
                Text(segment.text, style=segment.color),
                end="",
                soft_wrap=True,
            )

    @staticmethod
    def _expand_tabs(pieces: list[Segment], column: int) -> list[Segment]:
        # Tab stops are relative to the line start, as the terminal sees them
        if not any("\t" in segment.text for segment in pieces):
            return pieces
        expanded = []
        for segment in pieces:
            chars = []
            for char in segment.text:
                if char == "\t":
                    pad = TAB_SIZE - column % TAB_SIZE
                    chars.append(" " * pad)
                    column += pad
                    continue
                chars.append(char)
                column = 0 if char == "\n" else column + cell_len(char)
            expanded.append(Segment("".join(chars), segment.color))
        return expanded

    @staticmethod
    def _fold(column: int, width: int) -> int:
        # Words longer than the terminal wrap on their own
        return column % width if column > width else column

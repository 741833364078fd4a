"""Character stream with pushback, position tracking and checkpoints."""

from __future__ import annotations

from dataclasses import dataclass

# Returned by CharStream.next() once the source is exhausted.
EOF = ""


@dataclass(frozen=True, slots=True)
class Location:
    """Source location: 1-based line, column of the character (1 = first)."""

    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Saved stream state, restored by CharStream.restore()."""

    offset: int
    line: int
    column: int
    pushback: tuple[str, ...]


class CharStream:
    """Read characters one at a time from a source string.

    Pushed-back characters are returned in last-in-first-out order before
    reading resumes from the source. Each instance owns its own pushback
    buffer, so nested parses (includes, macro bodies) never share state.
    """

    def __init__(self, source: str, filename: str = "<string>", line: int = 1) -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._first_line = line
        self._line = line
        self._col = 0
        self._pushback: list[str] = []
        # Column reached at the end of each completed line; lets push_back
        # of a newline restore the previous line's column.
        self._line_ends: list[int] = []

    @property
    def source(self) -> str:
        return self._source

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def first_line(self) -> int:
        """Line number of the first line of the source."""
        return self._first_line

    @property
    def offset(self) -> int:
        """Offset into the source of the next unread source character."""
        return self._pos

    @property
    def line(self) -> int:
        return self._line

    @property
    def column(self) -> int:
        return self._col

    def location(self) -> Location:
        """Location of the next character to be read."""
        return Location(self._filename, self._line, self._col + 1)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def next(self) -> str:
        """Return the next character, or EOF."""
        if self._pushback:
            ch = self._pushback.pop()
        elif self._pos < len(self._source):
            ch = self._source[self._pos]
            self._pos += 1
        else:
            return EOF
        if ch == "\n":
            self._line_ends.append(self._col + 1)
            self._line += 1
            self._col = 0
        else:
            self._col += 1
        return ch

    def peek(self) -> str:
        """Return the next character without consuming it."""
        if self._pushback:
            return self._pushback[-1]
        if self._pos < len(self._source):
            return self._source[self._pos]
        return EOF

    def push_back(self, ch: str) -> None:
        """Return *ch* to the stream; the next call to next() yields it."""
        if ch == EOF:
            return
        self._pushback.append(ch)
        if ch == "\n" and self._line_ends:
            self._line -= 1
            self._col = self._line_ends.pop() - 1
        else:
            self._col = max(0, self._col - 1)

    def at_eof(self) -> bool:
        return self.peek() == EOF

    def skip_whitespace(self) -> None:
        while True:
            ch = self.next()
            if ch == EOF:
                return
            if not ch.isspace():
                self.push_back(ch)
                return

    def read_line(self) -> str:
        """Read up to and including the next newline (or to EOF).

        Returns the empty string only at end of input.
        """
        chars: list[str] = []
        while True:
            ch = self.next()
            if ch == EOF:
                break
            chars.append(ch)
            if ch == "\n":
                break
        return "".join(chars)

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------

    def checkpoint(self) -> Checkpoint:
        return Checkpoint(self._pos, self._line, self._col, tuple(self._pushback))

    def restore(self, cp: Checkpoint) -> None:
        """Rewind to an earlier checkpoint taken on this stream."""
        self._pos = cp.offset
        self._line = cp.line
        self._col = cp.column
        self._pushback = list(cp.pushback)
        del self._line_ends[cp.line - self._first_line :]

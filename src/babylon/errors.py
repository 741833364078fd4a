"""Error types with formatted source context."""

from __future__ import annotations

from enum import Enum

from babylon.stream import Location


class ErrorKind(Enum):
    INVALID_ARGUMENT = "invalid argument"
    FILE_READ_ERROR = "file read error"
    OUT_OF_MEMORY = "out of memory"
    SYNTAX_ERROR = "syntax error"
    UNTERMINATED_TREE = "unterminated tree"
    INCLUDE_CYCLE = "include cycle"
    MACRO_CYCLE = "macro cycle"
    UNKNOWN_DIRECTIVE = "unknown directive"
    LIMIT_EXCEEDED = "limit exceeded"


class BabylonError(Exception):
    """Base error: an ErrorKind, a message and (usually) a source location."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        location: Location | None = None,
        source: str = "",
        path: str | None = None,
        first_line: int = 1,
    ) -> None:
        self.kind = kind
        self.message = message
        self.location = location
        self.source = source
        self.path = path
        # Line number of the first line of *source*; macro bodies start mid-file
        self.first_line = first_line
        super().__init__(self.format())

    def format(self) -> str:
        if self.location is None:
            return f"error: {self.message}"

        loc = self.location
        lines = self.source.splitlines(keepends=True)
        line_idx = loc.line - self.first_line

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        pad = " " * max(0, loc.column - 1)

        line_num = str(loc.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        result = f"error: {self.message}\n{' ' * gutter_width}--> {loc}"
        if source_line:
            result += f"\n{blank_gutter}\n{line_gutter} {source_line}\n{blank_gutter} {pad}^"
        return result


class ParseError(BabylonError):
    """Raised on the first document or macro-file error."""


class ExpansionError(BabylonError):
    """Raised when macro expansion fails; carries the expansion chain."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        location: Location | None = None,
        source: str = "",
        chain: list[str] | None = None,
        first_line: int = 1,
    ) -> None:
        self.chain = chain or []
        super().__init__(kind, message, location, source, first_line=first_line)

    def format(self) -> str:
        result = super().format()
        if self.chain:
            result += f"\n  in expansion chain: {' -> '.join(self.chain)}"
        return result

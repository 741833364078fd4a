"""Macro-definition file reader.

The format is line oriented and independent of the document grammar::

    name
    body line one
    body line two

    other-name

Blocks are separated by blank lines. The first non-blank line of a block,
trimmed, is the macro name; the raw lines after it up to the next blank line
(terminators kept) are the body. A name with no body lines has an empty body.
"""

from __future__ import annotations

import logging
from pathlib import Path

from babylon.ast import MacroDefinition, MacroTable
from babylon.errors import ErrorKind, ParseError
from babylon.stream import CharStream, Location

logger = logging.getLogger(__name__)


class MacroReader:
    """Read name/body blocks from a CharStream into a MacroTable."""

    def __init__(self, stream: CharStream) -> None:
        self._stream = stream

    def read(self) -> MacroTable:
        definitions: dict[str, MacroDefinition] = {}

        while True:
            defn = self._read_definition()
            if defn is None:
                break
            previous = definitions.get(defn.name)
            if previous is not None:
                logger.warning(
                    "%s: macro '%s' redefined, overriding definition at %s",
                    defn.location,
                    defn.name,
                    previous.location,
                )
            definitions[defn.name] = defn

        return MacroTable(definitions)

    def _read_definition(self) -> MacroDefinition | None:
        # Skip blank lines up to the name line
        while True:
            line_no = self._stream.line
            line = self._stream.read_line()
            if not line:
                return None
            if line.strip():
                break

        name = line.strip()
        column = len(line) - len(line.lstrip()) + 1
        location = Location(self._stream.filename, line_no, column)

        body: list[str] = []
        while True:
            raw = self._stream.read_line()
            if not raw or not raw.strip():
                break
            body.append(raw)

        return MacroDefinition(name, "".join(body), location)


def parse_macros(source: str, filename: str = "<string>") -> MacroTable:
    """Read macro definitions from text held in memory."""
    try:
        return MacroReader(CharStream(source, filename)).read()
    except MemoryError:
        raise ParseError(
            ErrorKind.OUT_OF_MEMORY, f"out of memory while reading macros from {filename}"
        ) from None


def read_macros(path: str | Path) -> MacroTable:
    """Read the macro-definition file at *path*."""
    if not path:
        raise ParseError(ErrorKind.INVALID_ARGUMENT, "no macro file path given")
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, ValueError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise ParseError(
            ErrorKind.FILE_READ_ERROR,
            f"cannot read macro file '{path}': {reason}",
            path=str(path),
        ) from None

    logger.debug("reading macros from %s", path)
    return parse_macros(source, str(path))

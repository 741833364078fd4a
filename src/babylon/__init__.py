"""Babylon tagged-document and macro-file parser."""

from __future__ import annotations

from typing import TYPE_CHECKING

# Load the submodule before defining expand() below, so importing
# babylon.expand later does not rebind the package attribute to the module.
import babylon.expand  # noqa: F401

if TYPE_CHECKING:
    from pathlib import Path
    from typing import TextIO

    from babylon.ast import Document, MacroTable
    from babylon.parser import ParseOptions

__version__ = "0.1.0"


def parse_document(path: str | Path, options: ParseOptions | None = None) -> Document:
    """Parse the document file at *path*, resolving #include directives."""
    from babylon.parser import parse_document as _parse_document

    return _parse_document(path, options)


def read_macros(path: str | Path) -> MacroTable:
    """Read a macro-definition file into a MacroTable."""
    from babylon.macros import read_macros as _read_macros

    return _read_macros(path)


def expand(doc: Document, macros: MacroTable) -> Document:
    """Return a new Document with macro references substituted."""
    from babylon.expand import expand as _expand

    return _expand(doc, macros)


def write_debug_dump(doc: Document, file: TextIO | None = None) -> None:
    """Write a human-readable dump of *doc* to *file* (default: stdout)."""
    import sys

    from babylon.debug import write_debug_dump as _write_debug_dump

    _write_debug_dump(doc, file if file is not None else sys.stdout)

"""Human-readable tree dump (--debug output). Not meant to round-trip."""

from __future__ import annotations

import io
import sys
from typing import TextIO

from babylon.ast import Document, Tree, Value


def write_debug_dump(doc: Document, file: TextIO = sys.stdout) -> None:
    """Write every node of *doc* to *file*, children in source order."""
    file.write("Document\n")
    _dump_tree(doc.root, 1, file)
    for diag in doc.diagnostics:
        file.write(f"{_indent(1)}Diagnostic {diag.location}: {diag.message}\n")


def dump_document(doc: Document) -> str:
    """Return the debug dump as a string."""
    buf = io.StringIO()
    write_debug_dump(doc, buf)
    return buf.getvalue()


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_tree(node: Tree, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Tree {node.text!r} @ {node.location}")
    if node.attributes:
        attrs = ", ".join(f"{k}={v!r}" for k, v in sorted(node.attributes.items()))
        f.write(f" {{{attrs}}}")
    f.write("\n")
    for child in node.children:
        if isinstance(child, Tree):
            _dump_tree(child, depth + 1, f)
        else:
            _dump_value(child, depth + 1, f)


def _dump_value(node: Value, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Value {node.text!r} @ {node.location}\n")

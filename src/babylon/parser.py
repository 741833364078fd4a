"""Babylon document parser: builds a Tree from a CharStream."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from babylon.ast import Diagnostic, Document, Tree, Value
from babylon.errors import ErrorKind, ParseError
from babylon.scanner import STRUCTURAL, scan_word, try_read_attribute
from babylon.stream import EOF, CharStream, Location

logger = logging.getLogger(__name__)

UNKNOWN_DIRECTIVE_POLICIES = ("error", "warn")


class Directive(Enum):
    INCLUDE = "include"


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Limits and policies for one top-level parse."""

    max_include_depth: int = 16
    max_depth: int = 256
    max_nodes: int = 1_000_000
    unknown_directive: str = "error"

    def __post_init__(self) -> None:
        if self.unknown_directive not in UNKNOWN_DIRECTIVE_POLICIES:
            raise ValueError(
                f"unknown_directive must be one of {UNKNOWN_DIRECTIVE_POLICIES}, "
                f"got {self.unknown_directive!r}"
            )


@dataclass
class ParseContext:
    """State shared by a top-level parse and the includes it opens."""

    options: ParseOptions
    include_stack: list[str] = field(default_factory=list)
    node_count: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)


class DocumentParser:
    """Recursive descent parser for the bracketed document grammar."""

    def __init__(self, stream: CharStream, ctx: ParseContext, depth: int = 0) -> None:
        self._stream = stream
        self._ctx = ctx
        self._depth = depth

    def parse(self) -> Tree:
        """Parse elements to end of input and return them under a 'root' Tree."""
        location = self._stream.location()
        children: list[Tree | Value] = []

        while True:
            self._stream.skip_whitespace()
            ch = self._stream.peek()
            if ch == EOF:
                break
            if ch == "]":
                raise self._error(
                    ErrorKind.SYNTAX_ERROR,
                    "unbalanced ']' outside any tree",
                    self._stream.location(),
                )
            children.extend(self._parse_element(self._depth))

        return Tree("root", location, {}, tuple(children))

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def _parse_element(self, depth: int) -> list[Tree | Value]:
        ch = self._stream.peek()
        if ch == "[":
            return [self._parse_tree(depth + 1)]
        if ch == "#":
            return self._parse_directive(depth)
        value = self._parse_value()
        return [value] if value is not None else []

    def _parse_tree(self, depth: int) -> Tree:
        location = self._stream.location()
        if depth > self._ctx.options.max_depth:
            raise self._error(
                ErrorKind.LIMIT_EXCEEDED,
                f"tree nesting depth limit ({self._ctx.options.max_depth}) exceeded",
                location,
            )
        self._count_node(location)
        self._stream.next()  # consume '['
        self._stream.skip_whitespace()

        if self._stream.at_eof():
            raise self._unterminated(location, "")

        tag = scan_word(self._stream, STRUCTURAL)
        if tag is None:
            raise self._error(ErrorKind.SYNTAX_ERROR, "expected tag name after '['", location)
        if tag.terminator in STRUCTURAL:
            self._stream.push_back(tag.terminator)

        attributes: dict[str, str] = {}
        while True:
            attr = try_read_attribute(self._stream)
            if attr is None:
                break
            attributes[attr.name] = attr.value

        children: list[Tree | Value] = []
        while True:
            self._stream.skip_whitespace()
            ch = self._stream.peek()
            if ch == EOF:
                raise self._unterminated(location, tag.text)
            if ch == "]":
                self._stream.next()
                break
            children.extend(self._parse_element(depth))

        return Tree(tag.text, location, attributes, tuple(children))

    def _parse_value(self) -> Value | None:
        word = scan_word(self._stream, STRUCTURAL)
        if word is None:
            # Only a trailing lone backslash gets here
            return None
        if word.terminator in STRUCTURAL:
            self._stream.push_back(word.terminator)
        self._count_node(word.location)
        return Value(word.text, word.location)

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    def _parse_directive(self, depth: int) -> list[Tree | Value]:
        location = self._stream.location()
        self._stream.next()  # consume '#'
        self._stream.skip_whitespace()

        name = scan_word(self._stream, STRUCTURAL)
        if name is None:
            raise self._error(ErrorKind.SYNTAX_ERROR, "expected directive name after '#'", location)
        if name.terminator in STRUCTURAL:
            self._stream.push_back(name.terminator)

        try:
            directive = Directive(name.text)
        except ValueError:
            return self._unknown_directive(name.text, location)

        if directive is Directive.INCLUDE:
            return self._parse_include(location, depth)
        return []

    def _unknown_directive(self, name: str, location: Location) -> list[Tree | Value]:
        message = f"unknown directive '#{name}'"
        if self._ctx.options.unknown_directive == "warn":
            logger.warning("%s: %s (dropped)", location, message)
            self._ctx.diagnostics.append(Diagnostic(message, location))
            return []
        raise self._error(ErrorKind.UNKNOWN_DIRECTIVE, message, location)

    def _parse_include(self, location: Location, depth: int) -> list[Tree | Value]:
        self._stream.skip_whitespace()
        target = scan_word(self._stream, STRUCTURAL)
        if target is None or not target.text:
            raise self._error(
                ErrorKind.INVALID_ARGUMENT, "expected file name after '#include'", location
            )
        if target.terminator in STRUCTURAL:
            self._stream.push_back(target.terminator)

        path = Path(self._stream.filename).parent / target.text
        logger.debug("%s: including %s", location, path)
        root = _parse_file(
            path, self._ctx, depth, location, self._stream.source, self._stream.first_line
        )
        # The included root is discarded; its children take the directive's place
        return list(root.children)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _count_node(self, location: Location) -> None:
        self._ctx.node_count += 1
        if self._ctx.node_count > self._ctx.options.max_nodes:
            raise self._error(
                ErrorKind.LIMIT_EXCEEDED,
                f"node count limit ({self._ctx.options.max_nodes}) exceeded",
                location,
            )

    def _unterminated(self, location: Location, tag: str) -> ParseError:
        return self._error(
            ErrorKind.UNTERMINATED_TREE,
            f"unterminated tree '[{tag}': expected closing ']' before end of input",
            location,
        )

    def _error(self, kind: ErrorKind, message: str, location: Location) -> ParseError:
        return ParseError(
            kind, message, location, self._stream.source, first_line=self._stream.first_line
        )


def _parse_file(
    path: Path,
    ctx: ParseContext,
    depth: int,
    origin: Location | None,
    origin_source: str,
    origin_first_line: int = 1,
) -> Tree:
    """Read and parse *path*, tracking it on the include stack.

    *origin* is the location of the including directive (None at top level);
    errors about opening the file are reported there.
    """

    def fail(kind: ErrorKind, message: str) -> ParseError:
        return ParseError(
            kind,
            message,
            origin,
            origin_source,
            path=str(path),
            first_line=origin_first_line,
        )

    try:
        resolved = str(path.resolve())
    except (OSError, ValueError) as exc:
        raise fail(ErrorKind.FILE_READ_ERROR, f"cannot read file '{path}': {exc}") from None

    if resolved in ctx.include_stack:
        raise fail(ErrorKind.INCLUDE_CYCLE, f"circular include detected: {path}")

    if len(ctx.include_stack) >= ctx.options.max_include_depth:
        raise fail(
            ErrorKind.LIMIT_EXCEEDED,
            f"include depth limit ({ctx.options.max_include_depth}) exceeded",
        )

    # ValueError covers undecodable bytes and paths with embedded NULs
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, ValueError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise fail(ErrorKind.FILE_READ_ERROR, f"cannot read file '{path}': {reason}") from None

    logger.debug("parsing %s", path)
    ctx.include_stack.append(resolved)
    try:
        return DocumentParser(CharStream(source, str(path)), ctx, depth).parse()
    finally:
        ctx.include_stack.pop()


def parse(
    source: str,
    filename: str = "<string>",
    options: ParseOptions | None = None,
    *,
    line: int = 1,
) -> Document:
    """Parse document text held in memory.

    *filename* is used for locations and as the base for relative includes.
    """
    ctx = ParseContext(options or ParseOptions())
    ctx.include_stack.append(str(Path(filename).resolve()))
    stream = CharStream(source, filename, line)
    try:
        root = DocumentParser(stream, ctx).parse()
    except MemoryError:
        raise ParseError(
            ErrorKind.OUT_OF_MEMORY, f"out of memory while parsing {filename}"
        ) from None
    return Document(root, tuple(ctx.diagnostics))


def parse_document(path: str | Path, options: ParseOptions | None = None) -> Document:
    """Read and parse the document file at *path*, resolving includes."""
    if not path:
        raise ParseError(ErrorKind.INVALID_ARGUMENT, "no document path given")
    ctx = ParseContext(options or ParseOptions())
    try:
        root = _parse_file(Path(path), ctx, 0, None, "")
    except MemoryError:
        raise ParseError(ErrorKind.OUT_OF_MEMORY, f"out of memory while parsing {path}") from None
    return Document(root, tuple(ctx.diagnostics))

"""Minimal LSP server for Babylon documents, diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from babylon import __version__
from babylon.errors import ParseError
from babylon.parser import ParseOptions, parse
from babylon.stream import Location

server = LanguageServer(
    "babylon-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)

# Unknown directives are reported as warnings rather than stopping the parse
_OPTIONS = ParseOptions(unknown_directive="warn")


def _range(location: Location | None) -> Range:
    if location is None:
        return Range(start=Position(line=0, character=0), end=Position(line=0, character=1))
    line = location.line - 1
    col = max(0, location.column - 1)
    return Range(
        start=Position(line=line, character=col),
        end=Position(line=line, character=col + 1),
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse the document and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = doc.path or uri
    diagnostics: list[Diagnostic] = []

    try:
        parsed = parse(source, filename, _OPTIONS)
    except ParseError as exc:
        location = exc.location
        message = exc.message
        if location is not None and location.filename != filename:
            # Failure inside an included file: point at the top of this one
            message = f"{location}: {message}"
            location = None
        diagnostics.append(
            Diagnostic(
                range=_range(location),
                message=message,
                severity=DiagnosticSeverity.Error,
                source="babylon",
            )
        )
    else:
        for diag in parsed.diagnostics:
            # Diagnostics from included files are reported by their own documents
            if diag.location.filename != filename:
                continue
            diagnostics.append(
                Diagnostic(
                    range=_range(diag.location),
                    message=diag.message,
                    severity=DiagnosticSeverity.Warning,
                    source="babylon",
                )
            )

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()

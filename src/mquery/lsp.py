"""Minimal LSP server for mdoc manual pages — diagnostics only."""

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

from mquery import __version__
from mquery.errors import QueryError
from mquery.lists import empty_items
from mquery.locate import find_first_section, walk
from mquery.macros import Macro
from mquery.mandoc import MandocRunner
from mquery.query import check_document
from mquery.tree import NodeKind, Tree
from mquery.tree import Position as SourcePosition

server = LanguageServer("mquery-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)

runner = MandocRunner()

# list types whose items are expected to carry a head
_HEADED_LISTS = frozenset({"tag", "hang", "ohang", "inset", "diag"})


def _range(position: SourcePosition | None) -> Range:
    if position is None or position.line < 1:
        return Range(start=Position(line=0, character=0), end=Position(line=0, character=0))
    line = position.line - 1
    col = max(0, position.column - 1)
    return Range(
        start=Position(line=line, character=col),
        end=Position(line=line, character=col + 1),
    )


def _warning(message: str, position: SourcePosition | None) -> Diagnostic:
    return Diagnostic(
        range=_range(position),
        message=message,
        severity=DiagnosticSeverity.Warning,
        source="mquery",
    )


def _list_warnings(tree: Tree) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for node in walk(tree, tree.first_child(tree.root)):
        if node.kind is not NodeKind.BLOCK or node.macro is not Macro.BL:
            continue
        body = tree.body(node)
        if body is None:
            continue
        if _HEADED_LISTS.intersection(node.args):
            for found in empty_items(tree, body, "head"):
                diagnostics.append(_warning(found.message, found.position))
        for found in empty_items(tree, body, "body"):
            diagnostics.append(_warning(found.message, found.position))
    return diagnostics


def _validate(ls: LanguageServer, uri: str) -> None:
    """Load the page through mandoc and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    source = doc.source
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    try:
        tree = runner.load_source(source, filename)
        check_document(tree)
    except QueryError as exc:
        diagnostics.append(
            Diagnostic(
                range=_range(exc.position),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="mquery",
            )
        )
    else:
        if find_first_section(tree, tree.first_child(tree.root), "NAME") is None:
            diagnostics.append(_warning("section not found: NAME", None))
        diagnostics.extend(_list_warnings(tree))

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

"""Expression language server, pygls-based.

Each open document holds a single expression. Provides diagnostics, hover,
completion and formatting via stdio transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from spel import __version__
from spel.ast_nodes import Expr, walk
from spel.config import ParserConfig, discover_config
from spel.errors import Diagnostic, ExpressionError, Severity
from spel.formatter import ExpressionFormatter
from spel.lexer import Lexer
from spel.parser import ParsedExpression, Parser
from spel.source import SourceText, Span
from spel.tokens import ALTERNATIVE_OPERATOR_NAMES, KEYWORDS, Token

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_KEYWORD_COMPLETIONS = sorted(KEYWORDS)
_OPERATOR_COMPLETIONS = sorted(name.lower() for name in ALTERNATIVE_OPERATOR_NAMES)


def span_to_range(span: Span, source: SourceText) -> lsp.Range:
    """Convert a 0-indexed offset Span to a 0-indexed LSP Range."""
    sl, sc = source.location(span.start)
    el, ec = source.location(span.end)
    return lsp.Range(
        start=lsp.Position(line=sl - 1, character=sc - 1),
        end=lsp.Position(line=el - 1, character=ec - 1),
    )


def to_lsp_diagnostic(diag: Diagnostic, source: SourceText) -> lsp.Diagnostic:
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if diag.labels:
        span_range = span_to_range(diag.labels[0].span, source)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(diag.severity, lsp.DiagnosticSeverity.Error),
        source="spel",
        code=diag.code,
        message=f"[{diag.code}] {diag.message}",
    )


def node_at(ast: Expr, offset: int) -> Expr | None:
    """Return the innermost node whose span contains ``offset``."""
    found: Expr | None = None
    for node in walk(ast):
        if node.span.contains(offset):
            found = node
    return found


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: SourceText = field(default_factory=lambda: SourceText(""))
    tokens: list[Token] = field(default_factory=list)
    parsed: ParsedExpression | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "spel-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}
_parser_config = ParserConfig()


def _analyze(uri: str, text: str) -> DocumentState:
    """Lex and parse one document, cache the results and return them."""
    source = SourceText(text, uri)
    ds = DocumentState(source=source)

    if text.strip():
        try:
            ds.tokens = Lexer(text).lex()
            ds.parsed = Parser(_parser_config).parse(text)
        except ExpressionError as e:
            ds.diagnostics.append(to_lsp_diagnostic(e.to_diagnostic(), source))
        except Exception as e:
            logger.exception("internal error analyzing %s", uri)
            ds.diagnostics.append(lsp.Diagnostic(
                range=lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0)),
                severity=lsp.DiagnosticSeverity.Error, source="spel",
                message=f"[internal] parser error: {e}",
            ))

    logger.debug("analyzed %s: %d diagnostics", uri, len(ds.diagnostics))
    _state[uri] = ds
    return ds


def hover_text(ds: DocumentState, offset: int) -> str | None:
    """Markdown describing the innermost node at ``offset``."""
    if ds.parsed is None:
        return None
    node = node_at(ds.parsed.ast, offset)
    if node is None:
        return None
    kind = type(node).__name__
    text = ExpressionFormatter().format(node)
    value = getattr(node, "value", None)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"**{kind}** `{text}` = `{value!r}`"
    return f"**{kind}** `{text}`"


def _publish(uri: str, ds: DocumentState) -> None:
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    _publish(uri, _analyze(uri, params.text_document.text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole document
    text = params.content_changes[-1].text if params.content_changes else ""
    _publish(uri, _analyze(uri, text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    offset = ds.source.offset(params.position.line + 1, params.position.character + 1)
    content = hover_text(ds, offset)
    if content is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=["#", "@"]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    items: list[lsp.CompletionItem] = []
    for kw in _KEYWORD_COMPLETIONS:
        items.append(lsp.CompletionItem(
            label=kw,
            kind=lsp.CompletionItemKind.Keyword,
        ))
    for op in _OPERATOR_COMPLETIONS:
        items.append(lsp.CompletionItem(
            label=op,
            kind=lsp.CompletionItemKind.Operator,
        ))
    return lsp.CompletionList(is_incomplete=False, items=items)


def format_edits(ds: DocumentState) -> list[lsp.TextEdit] | None:
    """Replace the whole document with its canonical form, if it differs."""
    if ds.parsed is None:
        return None

    formatted = str(ds.parsed)
    if formatted == ds.source.text:
        return None

    whole = span_to_range(Span(0, len(ds.source.text)), ds.source)
    return [lsp.TextEdit(range=whole, new_text=formatted)]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return format_edits(ds)


def main() -> None:
    """Start the expression language server on stdio."""
    global _parser_config
    _parser_config = discover_config().parser
    server.start_io()

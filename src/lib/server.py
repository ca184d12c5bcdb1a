"""
zen-nix language server

Wires the diagnostic orchestrator, the formatter and the completion
registry to an editor over the Language Server Protocol (stdio).

Features:
    textDocument/didOpen, didChange   heuristic diagnostics at once, parser
                                      diagnostics after the debounce delay
    textDocument/didClose             clear diagnostics
    textDocument/formatting           one whole-document edit, or a warning
    textDocument/completion           catalog-driven suggestions

Only documents with the zen-nix language id (or a dialect file suffix) are
handled; everything else is ignored.

Usage:
    zennix-lsp

Initialization options:
    {"verbosity": 2}    log level on stderr (1=normal, 2=verbose, 3=debug)
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..models.completions import CompletionItem
from ..models.diagnostics import Diagnostic, Range
from .completions import TRIGGER_CHARACTERS, CompletionRegistry
from .external import FormatError, document_format
from .log import LOG, state_connectToLogger
from .orchestrator import DiagnosticOrchestrator


RETRIGGER_COMMAND = lsp.Command(title="Re-trigger completions", command="editor.action.triggerSuggest")


@dataclass
class ServerState:
    """
    Session state of the language server

    Attributes:
        verbosity: Logging verbosity level (1-3)
        documents: URIs of open dialect documents
    """

    verbosity: int = 1
    documents: Set[str] = field(default_factory=set)


def range_toLsp(source: Range) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=source.start.line, character=source.start.character),
        end=lsp.Position(line=source.end.line, character=source.end.character),
    )


def diagnostic_toLsp(diagnostic: Diagnostic) -> lsp.Diagnostic:
    """
    Convert a zennix Diagnostic to its protocol form

    Args:
        diagnostic: Diagnostic produced by the scanner, checker or parser

    Returns:
        lsp.Diagnostic with the same range, message, severity, code and source
    """
    return lsp.Diagnostic(
        range=range_toLsp(diagnostic.range),
        message=diagnostic.message,
        severity=lsp.DiagnosticSeverity(diagnostic.severity.value),
        code=diagnostic.code or None,
        source=diagnostic.source,
    )


def completion_toLsp(item: CompletionItem, line: int, character: int) -> lsp.CompletionItem:
    """
    Convert a CompletionItem to its protocol form

    Items with a replace_start become a TextEdit over the typed prefix
    (replace_start up to the cursor); the others insert at the cursor.

    Args:
        item: Item from CompletionRegistry.completions_get()
        line: Cursor line
        character: Cursor column

    Returns:
        lsp.CompletionItem ready to send
    """
    text_edit: Optional[lsp.TextEdit] = None
    if item.replace_start is not None:
        text_edit = lsp.TextEdit(
            range=lsp.Range(
                start=lsp.Position(line=line, character=min(item.replace_start, character)),
                end=lsp.Position(line=line, character=character),
            ),
            new_text=item.insert_text,
        )

    return lsp.CompletionItem(
        label=item.label,
        kind=lsp.CompletionItemKind(item.kind.value),
        detail=item.detail or None,
        insert_text=None if text_edit else item.insert_text,
        text_edit=text_edit,
        filter_text=item.filter_text,
        insert_text_format=lsp.InsertTextFormat.Snippet if item.is_snippet else lsp.InsertTextFormat.PlainText,
        command=RETRIGGER_COMMAND if item.retrigger else None,
    )


def verbosity_fromOptions(options: object) -> Optional[int]:
    """Read the 'verbosity' initialization option, if present and valid"""
    if options is None:
        return None
    raw = options.get("verbosity") if isinstance(options, dict) else getattr(options, "verbosity", None)
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        LOG(f"Ignoring invalid verbosity option: {raw!r}", level=1)
        return None


server = LanguageServer(
    "zennix-lsp",
    __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)

state = ServerState()
registry = CompletionRegistry()


def diagnostics_publish(uri: str, diagnostics: List[Diagnostic]) -> None:
    """Send a complete diagnostic set for one document"""
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=[diagnostic_toLsp(d) for d in diagnostics],
        )
    )


orchestrator = DiagnosticOrchestrator(publish=diagnostics_publish)


@server.feature(lsp.INITIALIZE)
def on_initialize(params: lsp.InitializeParams) -> None:
    verbosity = verbosity_fromOptions(getattr(params, "initialization_options", None))
    if verbosity is not None:
        state.verbosity = verbosity
    LOG(f"zennix-lsp {__version__} initialized (verbosity={state.verbosity})", level=1)


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    document = params.text_document
    if not DiagnosticOrchestrator.document_isDialect(document.uri, document.language_id):
        return
    state.documents.add(document.uri)
    orchestrator.document_changed(document.uri, document.text)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    if uri not in state.documents:
        return
    document = server.workspace.get_text_document(uri)
    orchestrator.document_changed(uri, document.source)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    uri = params.text_document.uri
    if uri not in state.documents:
        return
    state.documents.discard(uri)
    orchestrator.document_closed(uri)


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
async def formatting(params: lsp.DocumentFormattingParams) -> Optional[List[lsp.TextEdit]]:
    """
    Format the whole document

    Returns one edit replacing the full text, or None (with a warning shown
    to the user) when the formatter fails.
    """
    uri = params.text_document.uri
    if uri not in state.documents:
        return None
    text = server.workspace.get_text_document(uri).source

    try:
        formatted = await document_format(text)
    except FormatError as e:
        LOG(f"Formatting {uri} failed: {e}", level=1)
        server.window_show_message(
            lsp.ShowMessageParams(
                type=lsp.MessageType.Warning,
                message=str(e).strip(),
            )
        )
        return None

    return [lsp.TextEdit(range=range_toLsp(Range.fromOffsets(text, 0, len(text))), new_text=formatted)]


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=TRIGGER_CHARACTERS),
)
def completion(params: lsp.CompletionParams) -> Optional[lsp.CompletionList]:
    uri = params.text_document.uri
    if uri not in state.documents:
        return None
    text = server.workspace.get_text_document(uri).source
    line, character = params.position.line, params.position.character
    items = registry.completions_get(text, line, character)
    return lsp.CompletionList(
        is_incomplete=False,
        items=[completion_toLsp(item, line, character) for item in items],
    )


def main() -> None:
    """Run the language server on stdio"""
    state_connectToLogger(state)
    server.start_io()


if __name__ == "__main__":
    main()

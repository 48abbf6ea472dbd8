"""Schema language server - diagnostics, completion, hover via pygls."""

from __future__ import annotations

import re

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from typed_stores.emitter import INTRINSIC_TS_TYPES, TypeScriptEmitter
from typed_stores.errors import EmitterError
from typed_stores.parsing import TypeParser
from typed_stores.store import StoreDeclarationBuilder
from typed_stores.types import INTRINSIC_NAMES

# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

KEYWORDS: dict[str, str] = {
    "model": "Declare a model (optionally a template: model Page<T> { ... })",
    "enum": "Declare an enumeration (emitted as an opaque {} reference)",
    "alias": "Give a type expression a name: alias Id = string | int32;",
    "store": "Decorator marking a model as a store: @store or @store(\"collection\")",
}

# Regex to extract position from parser error messages
_POSITION_RE = re.compile(r"(?:at position|\(position) (\d+)")

# Regex to find user-declared type names in source
_USER_TYPE_RE = re.compile(r"\b(?:model|enum|alias)\s+(\w+)")


def describe_intrinsic(name: str) -> str:
    """Return a one-line description of an intrinsic type."""
    ts_type = INTRINSIC_TS_TYPES.get(name)
    if ts_type is None:
        return "Intrinsic type with no TypeScript mapping (stores using it fail to emit)"
    return f"Intrinsic type, emitted as `{ts_type}`"


# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(source: str, lexpos: int) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``."""
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    return types.Position(line=line, character=character)


def _extract_position_from_error(message: str) -> int | None:
    """Return the integer position embedded in an error message, or None."""
    m = _POSITION_RE.search(message)
    return int(m.group(1)) if m else None


def _find_user_types(source: str) -> list[str]:
    """Return user-declared type names found in *source*."""
    return [m.group(1) for m in _USER_TYPE_RE.finditer(source)]


def _find_store_position(source: str, model_name: str) -> int | None:
    """Return the offset of ``model <model_name>`` in *source*, or None."""
    m = re.search(rf"\bmodel\s+({re.escape(model_name)})\b", source)
    return m.start(1) if m else None


def _word_at_position(line_text: str, character: int) -> str:
    """Return the contiguous identifier-like word surrounding *character*."""
    if character < 0 or character >= len(line_text):
        return ""
    ch = line_text[character]
    if not (ch.isalnum() or ch == "_"):
        return ""
    # Scan left
    left = character
    while left > 0 and (line_text[left - 1].isalnum() or line_text[left - 1] == "_"):
        left -= 1
    # Scan right
    right = character
    while right < len(line_text) and (line_text[right].isalnum() or line_text[right] == "_"):
        right += 1
    return line_text[left:right]


def _make_diagnostic(source: str, message: str, offset: int | None) -> types.Diagnostic:
    if offset is not None:
        start = lexpos_to_position(source, offset)
    else:
        # Fallback: end of document
        lines = source.split("\n")
        start = types.Position(line=max(len(lines) - 1, 0), character=0)
    end = types.Position(line=start.line, character=start.character + 1)
    return types.Diagnostic(
        range=types.Range(start=start, end=end),
        severity=types.DiagnosticSeverity.Error,
        source="typed-stores",
        message=message,
    )


def collect_diagnostics(source: str) -> list[types.Diagnostic]:
    """Parse *source* and dry-run every store, returning any errors found."""
    try:
        registry = TypeParser().parse(source)
    except (SyntaxError, ValueError) as exc:
        msg = str(exc)
        return [_make_diagnostic(source, msg, _extract_position_from_error(msg))]

    diagnostics: list[types.Diagnostic] = []
    builder = StoreDeclarationBuilder(TypeScriptEmitter())
    for registration in registry.stores():
        try:
            builder.build(registration)
        except EmitterError as exc:
            offset = _find_store_position(source, registration.model.name)
            diagnostics.append(_make_diagnostic(source, str(exc), offset))
    return diagnostics


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("typed-stores-language-server", "0.1.0")


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


def _validate_document(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    diagnostics = collect_diagnostics(doc.source)
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=[":", " ", "<", "|"]),
)
def completions(params: types.CompletionParams) -> types.CompletionList:
    doc = server.workspace.get_text_document(params.text_document.uri)
    line_text = doc.lines[params.position.line] if params.position.line < len(doc.lines) else ""
    prefix = line_text[: params.position.character].rstrip()

    items: list[types.CompletionItem] = []

    if prefix.endswith((":", "<", "|", ",")):
        # Type context - offer intrinsic types + user-declared types
        for name in INTRINSIC_NAMES:
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.TypeParameter,
                    detail=describe_intrinsic(name),
                )
            )
        for name in _find_user_types(doc.source):
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.Class,
                    detail="User-declared type",
                )
            )

    return types.CompletionList(is_incomplete=False, items=items)


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(params: types.HoverParams) -> types.Hover | None:
    doc = server.workspace.get_text_document(params.text_document.uri)
    if params.position.line >= len(doc.lines):
        return None
    line_text = doc.lines[params.position.line]
    word = _word_at_position(line_text, params.position.character)
    if not word:
        return None

    content: str | None = None
    if word in INTRINSIC_NAMES:
        content = f"**{word}** - {describe_intrinsic(word)}"
    elif word in KEYWORDS:
        content = f"**{word}** - {KEYWORDS[word]}"

    if content is None:
        return None
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=content,
        )
    )


def main() -> None:
    server.start_io()


if __name__ == "__main__":
    main()

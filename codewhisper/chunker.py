"""Turn a parsed file into embeddable chunks.

One chunk per top-level symbol, one imports chunk when import lines exist, and
a truncated whole-file ``module`` chunk when neither produced anything. Chunk
ids depend only on the path and symbol name, so re-indexing the same symbol
overwrites its vector instead of adding a new one.
"""

from codewhisper.core.models import CodeChunk, ParsedFile, Symbol
from codewhisper.core.types import ChunkKind, Language, SymbolKind

MODULE_CHUNK_MAX_CHARS = 4000

_IMPORT_PREFIXES: dict[Language, tuple[str, ...]] = {
    Language.TYPESCRIPT: ("import ", "import{"),
    Language.JAVASCRIPT: ("import ", "import{"),
    Language.PYTHON: ("import ", "from "),
    Language.GO: ("import ",),
    Language.RUST: ("use ", "pub use "),
}

_CHUNKABLE_KINDS = frozenset(
    {
        SymbolKind.FUNCTION,
        SymbolKind.CLASS,
        SymbolKind.INTERFACE,
        SymbolKind.TYPE,
        SymbolKind.VARIABLE,
    }
)


def _is_import_line(language: Language, trimmed: str) -> bool:
    if trimmed.startswith(_IMPORT_PREFIXES.get(language, ("import ",))):
        return True
    if language in (Language.TYPESCRIPT, Language.JAVASCRIPT):
        return trimmed.startswith(("const ", "let ", "var ")) and "require(" in trimmed
    return False


def _import_line_numbers(parsed: ParsedFile, lines: list[str]) -> list[int]:
    """0-based indexes of lines that look like imports."""
    found: list[int] = []
    # closing token of a multi-line import still open
    closer: str | None = None
    for i, line in enumerate(lines):
        trimmed = line.strip()
        if closer:
            found.append(i)
            if closer in trimmed:
                closer = None
            continue
        if line[:1].isspace() or not _is_import_line(parsed.language, trimmed):
            continue
        found.append(i)
        if parsed.language == Language.GO and trimmed.endswith("("):
            closer = ")"
        elif trimmed.startswith("import") and "{" in trimmed and "}" not in trimmed:
            closer = "}"
    return found


def _symbol_context(parsed: ParsedFile, symbol: Symbol) -> str:
    if symbol.kind == SymbolKind.CLASS:
        methods = ", ".join(child.name for child in parsed.children_of(symbol.name))
        return f"class {symbol.name} {{ {methods} }}"
    return symbol.signature


def chunk_file(parsed: ParsedFile, content: str) -> list[CodeChunk]:
    lines = content.split("\n")
    chunks: list[CodeChunk] = []

    import_lines = _import_line_numbers(parsed, lines)
    if import_lines:
        chunks.append(
            CodeChunk(
                id=f"{parsed.path}::imports",
                file_path=parsed.path,
                symbol_name=None,
                kind=ChunkKind.IMPORTS,
                content="\n".join(lines[i] for i in import_lines),
                line_start=import_lines[0] + 1,
                line_end=import_lines[-1] + 1,
                context=f"imports from {parsed.path}",
            )
        )

    seen: set[str] = set()
    for symbol in parsed.top_level_symbols():
        if symbol.kind not in _CHUNKABLE_KINDS or symbol.name in seen:
            continue
        body = "\n".join(lines[symbol.line_start - 1 : symbol.line_end])
        if not body.strip():
            continue
        seen.add(symbol.name)
        chunks.append(
            CodeChunk(
                id=f"{parsed.path}::{symbol.name}",
                file_path=parsed.path,
                symbol_name=symbol.name,
                kind=ChunkKind.CLASS if symbol.kind == SymbolKind.CLASS else ChunkKind.FUNCTION,
                content=body,
                line_start=symbol.line_start,
                line_end=symbol.line_end,
                context=_symbol_context(parsed, symbol),
            )
        )

    if not chunks and content.strip():
        chunks.append(
            CodeChunk(
                id=f"{parsed.path}::module",
                file_path=parsed.path,
                symbol_name=None,
                kind=ChunkKind.MODULE,
                content=content[:MODULE_CHUNK_MAX_CHARS],
                line_start=1,
                line_end=len(lines),
                context=parsed.path,
            )
        )

    return chunks

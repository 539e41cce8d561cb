"""Domain models for the code context engine.

Parsed symbols and chunks are immutable value objects produced fresh on every
indexing pass. Store-facing records (vectors, symbol rows, repo maps) carry the
session identifier that partitions all persisted data.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any

from codewhisper.core.types import ChangeKind, ChunkKind, Language, SymbolKind


def make_vector_id(session_id: str, chunk_id: str) -> str:
    """Vector ids are session-scoped chunk ids so re-indexing overwrites."""
    return f"{session_id}::{chunk_id}"


def make_symbol_row_id(session_id: str, file_path: str, name: str, line_start: int) -> str:
    return f"{session_id}::{file_path}::{name}::{line_start}"


@dataclass(frozen=True)
class Symbol:
    """A named code construct found by the structural parser.

    ``parent`` holds the enclosing class *name*, resolved through
    ``ParsedFile.symbol_index()`` rather than an object reference.
    """

    name: str
    kind: SymbolKind
    signature: str
    line_start: int
    line_end: int
    parent: str | None = None


@dataclass
class ParsedFile:
    """Structural view of one source file for one indexing pass."""

    path: str
    language: Language
    symbols: list[Symbol] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)

    def symbol_index(self) -> dict[str, Symbol]:
        """Map top-level symbol names to symbols (first definition wins)."""
        index: dict[str, Symbol] = {}
        for symbol in self.symbols:
            if symbol.parent is None and symbol.name not in index:
                index[symbol.name] = symbol
        return index

    def top_level_symbols(self) -> list[Symbol]:
        return [s for s in self.symbols if s.parent is None]

    def children_of(self, parent_name: str) -> list[Symbol]:
        """Symbols whose parent resolves to ``parent_name`` in this file."""
        if parent_name not in self.symbol_index():
            return []
        return [s for s in self.symbols if s.parent == parent_name]


@dataclass(frozen=True)
class CodeChunk:
    """Content-addressable unit of embedding.

    ``id`` is ``path::symbol``, ``path::imports`` or ``path::module`` and is
    stable across runs for the same symbol.
    """

    id: str
    file_path: str
    symbol_name: str | None
    kind: ChunkKind
    content: str
    line_start: int
    line_end: int
    context: str

    def embedding_text(self, max_chars: int) -> str:
        return f"{self.context}\n\n{self.content}"[:max_chars]


@dataclass(frozen=True)
class SourceFile:
    """A path plus its full text, as handed to the indexing pipeline."""

    path: str
    content: str


@dataclass
class VectorRecord:
    id: str
    embedding: list[float]
    metadata: dict[str, Any]


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: dict[str, Any]


@dataclass
class SymbolInfo:
    """Symbol row as returned by lookups."""

    name: str
    kind: str
    signature: str
    file_path: str
    line_start: int
    line_end: int
    parent: str | None = None


@dataclass
class RepoMapFile:
    path: str
    language: str
    symbols: list[str] = field(default_factory=list)


@dataclass
class RepoMap:
    """Per-session summary of files and their ``kind:name`` symbols."""

    files: list[RepoMapFile] = field(default_factory=list)
    ts: float = field(default_factory=time.time)

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def total_symbols(self) -> int:
        return sum(len(f.symbols) for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [asdict(f) for f in self.files],
            "count": self.count,
            "totalSymbols": self.total_symbols,
            "ts": self.ts,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoMap":
        files = [
            RepoMapFile(
                path=f["path"],
                language=f.get("language", "unknown"),
                symbols=list(f.get("symbols", [])),
            )
            for f in data.get("files", [])
        ]
        return cls(files=files, ts=float(data.get("ts", time.time())))


@dataclass
class RetrievedChunk:
    """A vector hit, hydrated with its stored content when available."""

    chunk_id: str
    file_path: str
    symbol_name: str | None
    kind: str
    line_start: int
    line_end: int
    score: float
    content: str | None = None


@dataclass
class FocusContext:
    """What the user is currently looking at in their editor."""

    file_path: str | None = None
    selection: str | None = None
    line_start: int | None = None
    line_end: int | None = None

    def is_empty(self) -> bool:
        return not (self.file_path or self.selection)


@dataclass
class RetrievalContext:
    chunks: list[RetrievedChunk] = field(default_factory=list)
    repo_map: RepoMap | None = None
    symbols: list[SymbolInfo] = field(default_factory=list)


@dataclass(frozen=True)
class FileEvent:
    """One file-change notification from the watcher."""

    path: str
    content: str | None
    kind: ChangeKind
    timestamp: float


@dataclass
class IndexBatch:
    """Dirty files resolved at flush time.

    ``removed_paths`` lists dirty paths that no longer exist in the snapshot;
    they never appear in ``files``.
    """

    session_id: str
    files: list[SourceFile]
    removed_paths: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.files and not self.removed_paths


@dataclass
class IndexAck:
    session_id: str
    queued: int
    ok: bool = True


@dataclass
class ConversationMessage:
    role: str
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)
    metadata: dict[str, Any] | None = None

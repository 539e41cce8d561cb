"""Retrieval service - combines vector search, symbol lookup and the repo map.

Every read is scoped by session id. Each sub-query degrades to an empty result
on failure so a question always gets some context.
"""

import asyncio
import re
from typing import Callable

from loguru import logger

from codewhisper.core.config.retrieval_config import RetrievalConfig
from codewhisper.core.models import (
    CodeChunk,
    FocusContext,
    RepoMap,
    RetrievalContext,
    RetrievedChunk,
    SymbolInfo,
)
from codewhisper.embeddings import EmbeddingProvider
from codewhisper.interfaces.stores import SymbolStore, VectorStore

from .repo_map_cache import RepoMapCache

# (session_id, path) -> current file text, or None when the session has no such file
FileSource = Callable[[str, str], str | None]

_IDENTIFIER = re.compile(r"\b([A-Z][a-zA-Z0-9]*|[a-z][a-zA-Z0-9]*(?:_[a-z][a-zA-Z0-9]*)*)\b")

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "can", "this", "that", "these",
        "those", "what", "which", "who", "whom", "where", "when", "why", "how",
        "all", "each", "every", "both", "few", "more", "most", "other", "some",
        "such", "no", "nor", "not", "only", "own", "same", "so", "than", "too",
        "very", "just", "also", "now", "here", "there", "then", "once",
        "always", "function", "class", "method", "file", "code", "error",
        "bug", "fix",
    }
)  # fmt: skip

SNIPPET_MAX_CHARS = 400


def extract_symbol_candidates(query: str, min_length: int = 3) -> list[str]:
    """Identifier-looking tokens of ``query`` minus stop words, in first-seen order."""
    seen: dict[str, None] = {}
    for token in _IDENTIFIER.findall(query):
        if len(token) < min_length or token.lower() in STOP_WORDS:
            continue
        seen.setdefault(token, None)
    return list(seen)


def _strip_session_prefix(session_id: str, vector_id: str) -> str:
    prefix = f"{session_id}::"
    return vector_id[len(prefix) :] if vector_id.startswith(prefix) else vector_id


def _normalize_path(path: str) -> str:
    path = path.strip().strip("'\"").replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def format_context_for_prompt(ctx: RetrievalContext, file_limit: int = 15) -> str:
    parts: list[str] = []

    if ctx.repo_map and ctx.repo_map.files:
        file_list = "\n".join(
            f"  {f.path} ({len(f.symbols)} symbols)" for f in ctx.repo_map.files[:file_limit]
        )
        parts.append(f"Project structure ({ctx.repo_map.count} files):\n{file_list}")

    if ctx.chunks:
        chunk_list = "\n".join(
            f"  {c.file_path}:{c.line_start}-{c.line_end} [{c.kind}] {c.symbol_name or 'module'}"
            for c in ctx.chunks
        )
        parts.append(f"Relevant code locations:\n{chunk_list}")

    if ctx.symbols:
        sig_list = "\n".join(f"  {s.kind} {s.name}: {s.signature}" for s in ctx.symbols)
        parts.append(f"Symbol definitions:\n{sig_list}")

    return "\n\n".join(parts)


class RetrievalService:
    """Builds retrieval context and serves the agent's text tools."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        symbol_store: SymbolStore,
        repo_map_cache: RepoMapCache,
        config: RetrievalConfig | None = None,
        file_source: FileSource | None = None,
    ):
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._symbol_store = symbol_store
        self._repo_map_cache = repo_map_cache
        self._config = config or RetrievalConfig()
        self._file_source = file_source

    async def retrieve(
        self, query: str, session_id: str, focus: FocusContext | None = None
    ) -> RetrievalContext:
        search_text = query
        if focus and not focus.is_empty():
            extra = [f"File: {focus.file_path}"] if focus.file_path else []
            if focus.selection:
                extra.append(focus.selection)
            search_text = "\n\n".join([query, *extra])

        chunks, symbols, repo_map = await asyncio.gather(
            self._search_chunks(search_text, session_id, self._config.top_k),
            self._lookup_symbols(query, session_id),
            self._get_repo_map(session_id),
        )
        return RetrievalContext(chunks=chunks, repo_map=repo_map, symbols=symbols)

    async def _search_chunks(self, text: str, session_id: str, top_k: int) -> list[RetrievedChunk]:
        try:
            vectors = await self._embedding_provider.embed([text])
            if not vectors:
                return []
            matches = await self._vector_store.query(
                vectors[0], top_k=top_k, filter={"sessionId": session_id}
            )
            chunk_ids = [_strip_session_prefix(session_id, m.id) for m in matches]
            bodies = await self._symbol_store.get_chunks(session_id, chunk_ids)
        except Exception as e:
            logger.error(f"[Retrieval] Vector search failed for {session_id}: {e}")
            return []

        results = []
        for match, chunk_id in zip(matches, chunk_ids):
            meta = match.metadata
            stored = bodies.get(chunk_id)
            results.append(
                RetrievedChunk(
                    chunk_id=chunk_id,
                    file_path=meta.get("filePath") or "",
                    symbol_name=meta.get("symbolName"),
                    kind=meta.get("kind") or "unknown",
                    line_start=meta.get("lineStart") or 0,
                    line_end=meta.get("lineEnd") or 0,
                    score=match.score,
                    content=stored.content if stored else None,
                )
            )
        return results

    async def _lookup_symbols(self, query: str, session_id: str) -> list[SymbolInfo]:
        candidates = extract_symbol_candidates(query, self._config.min_token_length)
        if not candidates:
            return []
        try:
            return await self._symbol_store.find_symbols(
                session_id, candidates, self._config.symbol_limit
            )
        except Exception as e:
            logger.error(f"[Retrieval] Symbol lookup failed for {session_id}: {e}")
            return []

    async def _get_repo_map(self, session_id: str) -> RepoMap | None:
        try:
            repo_map = await self._repo_map_cache.get_or_rebuild(session_id)
        except Exception as e:
            logger.error(f"[Retrieval] Repo map unavailable for {session_id}: {e}")
            return None
        return repo_map if repo_map.files else None

    # Tool primitives. These return text and never raise.

    async def read_file(self, session_id: str, path: str) -> str:
        path = _normalize_path(path)
        if not path:
            return "read_file needs a file path."
        try:
            content = self._file_source(session_id, path) if self._file_source else None
            if content is None:
                chunks = await self._symbol_store.get_file_chunks(session_id, path)
                if not chunks:
                    return f"File not found: {path}"
                content = self._reconstruct(chunks)
                header = f"{path} (reconstructed from indexed chunks):\n"
            else:
                header = f"{path}:\n"
        except Exception as e:
            logger.warning(f"[Retrieval] read_file failed for {path}: {e}")
            return f"Error reading {path}: {e}"

        limit = self._config.read_file_max_chars
        if len(content) > limit:
            content = content[:limit] + f"\n... (truncated, {len(content) - limit} more characters)"
        return header + content

    @staticmethod
    def _reconstruct(chunks: list[CodeChunk]) -> str:
        return "\n\n".join(
            f"[lines {c.line_start}-{c.line_end}]\n{c.content}" for c in chunks
        )

    async def search_code(self, session_id: str, query: str) -> str:
        query = query.strip()
        if not query:
            return "search_code needs a query."
        try:
            chunks, symbols = await asyncio.gather(
                self._search_chunks(query, session_id, self._config.top_k),
                self._lookup_symbols(query, session_id),
            )
        except Exception as e:
            logger.warning(f"[Retrieval] search_code failed: {e}")
            return f"Error searching for {query}: {e}"

        if not chunks and not symbols:
            return f"No matching code found for: {query}"

        lines: list[str] = []
        for s in symbols:
            lines.append(f"{s.kind} {s.name} at {s.file_path}:{s.line_start}-{s.line_end}: {s.signature}")
        for c in chunks:
            lines.append(
                f"{c.file_path}:{c.line_start}-{c.line_end} [{c.kind}] "
                f"{c.symbol_name or 'module'} (score {c.score:.2f})"
            )
            if c.content:
                snippet = c.content[:SNIPPET_MAX_CHARS]
                if len(c.content) > SNIPPET_MAX_CHARS:
                    snippet += "\n..."
                lines.append(snippet)
        return "\n".join(lines)

    async def list_files(self, session_id: str, path_prefix: str | None = None) -> str:
        prefix = _normalize_path(path_prefix) if path_prefix else ""
        try:
            repo_map = await self._repo_map_cache.get_or_rebuild(session_id)
        except Exception as e:
            logger.warning(f"[Retrieval] list_files failed: {e}")
            return f"Error listing files: {e}"

        files = [f for f in repo_map.files if f.path.startswith(prefix)]
        if not files:
            return f"No files found under {prefix}" if prefix else "No files indexed yet."

        limit = self._config.list_files_limit
        lines = [f"{len(files)} files" + (f" under {prefix}" if prefix else "") + ":"]
        lines.extend(f"  {f.path} ({len(f.symbols)} symbols)" for f in files[:limit])
        if len(files) > limit:
            lines.append(f"  ... and {len(files) - limit} more")
        return "\n".join(lines)

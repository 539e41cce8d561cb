"""Parse -> chunk -> embed -> persist for one batch of changed files.

The three persistence stages (vectors, symbols/chunk bodies, repo map) run
concurrently against disjoint stores with no cross-store transaction. A reader
racing a run can observe old data in one store and new data in another.
"""

import asyncio
from dataclasses import dataclass, field

from loguru import logger

from codewhisper.chunker import chunk_file
from codewhisper.core.config.indexing_config import IndexingConfig
from codewhisper.core.models import (
    CodeChunk,
    IndexAck,
    IndexBatch,
    ParsedFile,
    SourceFile,
    SymbolInfo,
    VectorRecord,
    make_vector_id,
)
from codewhisper.embeddings import EmbeddingProvider
from codewhisper.interfaces.stores import SymbolStore, VectorStore
from codewhisper.parsers import parse_file

from .repo_map_cache import RepoMapCache


@dataclass
class IndexRunResult:
    session_id: str
    files_parsed: int = 0
    files_skipped: int = 0
    files_removed: int = 0
    chunks: int = 0
    vectors_stored: int = 0
    failed_batches: int = 0
    symbols: int = 0
    errors: list[str] = field(default_factory=list)


def _symbol_rows(parsed: ParsedFile) -> list[SymbolInfo]:
    return [
        SymbolInfo(
            name=s.name,
            kind=s.kind.value,
            signature=s.signature,
            file_path=parsed.path,
            line_start=s.line_start,
            line_end=s.line_end,
            parent=s.parent,
        )
        for s in parsed.symbols
    ]


class IndexingPipeline:
    """Indexes file batches in the background, one task per accepted batch."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        symbol_store: SymbolStore,
        repo_map_cache: RepoMapCache,
        config: IndexingConfig | None = None,
    ):
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._symbol_store = symbol_store
        self._repo_map_cache = repo_map_cache
        self._config = config or IndexingConfig()
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_runs(self) -> int:
        return len(self._tasks)

    def index(
        self,
        session_id: str,
        files: list[SourceFile],
        removed_paths: list[str] | None = None,
    ) -> IndexAck:
        """Accept a batch and index it in a detached task.

        Must be called from a running event loop. The returned ack only means
        the batch was queued.
        """
        task = asyncio.create_task(
            self.run(session_id, files, removed_paths or []),
            name=f"codewhisper-index-{session_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_run_done)
        queued = len(files) + len(removed_paths or [])
        logger.debug(f"[Indexing] Accepted batch of {queued} paths for {session_id}")
        return IndexAck(session_id=session_id, queued=queued)

    def index_batch(self, batch: IndexBatch) -> IndexAck:
        return self.index(batch.session_id, batch.files, batch.removed_paths)

    def _on_run_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"[Indexing] Background run {task.get_name()} crashed")

    async def wait_idle(self) -> None:
        """Wait for every background run accepted so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run(
        self,
        session_id: str,
        files: list[SourceFile],
        removed_paths: list[str] | None = None,
    ) -> IndexRunResult:
        removed = [p for p in (removed_paths or []) if p not in {f.path for f in files}]
        result = IndexRunResult(session_id=session_id, files_removed=len(removed))

        parsed_files: list[ParsedFile] = []
        chunks: list[CodeChunk] = []
        for source in files:
            parsed = parse_file(source.path, source.content)
            if parsed is None:
                logger.debug(f"[Indexing] Skipping unsupported file {source.path}")
                result.files_skipped += 1
                continue
            parsed_files.append(parsed)
            chunks.extend(chunk_file(parsed, source.content))

        result.files_parsed = len(parsed_files)
        result.chunks = len(chunks)
        result.symbols = sum(len(p.symbols) for p in parsed_files)

        if not parsed_files and not removed:
            logger.debug(f"[Indexing] Nothing to index for {session_id}")
            return result

        stages = await asyncio.gather(
            self._embed_and_upsert(session_id, chunks, removed, result),
            self._replace_symbols(session_id, parsed_files, chunks, removed),
            self._repo_map_cache.update(session_id, parsed_files, removed),
            return_exceptions=True,
        )
        for stage, outcome in zip(("vectors", "symbols", "repo_map"), stages):
            if isinstance(outcome, BaseException):
                logger.error(f"[Indexing] {stage} stage failed for {session_id}: {outcome}")
                result.errors.append(f"{stage}: {outcome}")

        logger.info(
            f"[Indexing] {session_id}: {result.files_parsed} files, {result.chunks} chunks, "
            f"{result.vectors_stored} vectors, {result.failed_batches} failed batches, "
            f"{result.files_removed} removed"
        )
        return result

    async def _embed_and_upsert(
        self,
        session_id: str,
        chunks: list[CodeChunk],
        removed_paths: list[str],
        result: IndexRunResult,
    ) -> None:
        if removed_paths:
            await self._vector_store.delete_files(session_id, removed_paths)

        batch_size = self._config.embedding_batch_size
        max_chars = self._config.embed_text_max_chars

        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            try:
                embeddings = await self._embedding_provider.embed(
                    [c.embedding_text(max_chars) for c in batch]
                )
                if len(embeddings) != len(batch):
                    raise ValueError(
                        f"provider returned {len(embeddings)} vectors for {len(batch)} texts"
                    )
                records = [
                    VectorRecord(
                        id=make_vector_id(session_id, chunk.id),
                        embedding=embedding,
                        metadata={
                            "sessionId": session_id,
                            "filePath": chunk.file_path,
                            "symbolName": chunk.symbol_name,
                            "kind": chunk.kind.value,
                            "lineStart": chunk.line_start,
                            "lineEnd": chunk.line_end,
                        },
                    )
                    for chunk, embedding in zip(batch, embeddings)
                ]
                await self._vector_store.upsert(records)
                result.vectors_stored += len(records)
            except Exception as e:
                result.failed_batches += 1
                logger.warning(
                    f"[Indexing] Embedding batch {start // batch_size + 1} "
                    f"({len(batch)} chunks) failed for {session_id}: {e}"
                )

    async def _replace_symbols(
        self,
        session_id: str,
        parsed_files: list[ParsedFile],
        chunks: list[CodeChunk],
        removed_paths: list[str],
    ) -> None:
        paths = [p.path for p in parsed_files]
        symbols = [row for parsed in parsed_files for row in _symbol_rows(parsed)]

        if removed_paths:
            await self._symbol_store.delete_files(session_id, removed_paths)
        await self._symbol_store.replace_symbols(session_id, paths, symbols)
        await self._symbol_store.replace_chunks(session_id, paths, chunks)

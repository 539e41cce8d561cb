"""Composition root - builds every service from one Config.

CLI commands and tests get the same wiring: DuckDB stores sharing one
connection, the indexing pipeline, the session state manager dispatching
flushed batches to the pipeline, retrieval reading live file content from the
session snapshot, and the responder logging into the session conversation.
"""

from dataclasses import dataclass

from loguru import logger

from codewhisper.core.config import Config
from codewhisper.core.models import FocusContext, SourceFile
from codewhisper.embeddings import EmbeddingProvider, create_embedding_provider
from codewhisper.interfaces.llm_provider import LLMProvider
from codewhisper.providers.database import (
    DuckDBConnectionManager,
    DuckDBKeyValueCache,
    DuckDBSymbolStore,
    DuckDBVectorStore,
)
from codewhisper.providers.llm import create_llm_provider
from codewhisper.services.agent_responder import AgenticResponder
from codewhisper.services.indexing_pipeline import IndexingPipeline, IndexRunResult
from codewhisper.services.repo_map_cache import RepoMapCache
from codewhisper.services.retrieval_service import RetrievalService
from codewhisper.services.session_state import SessionStateManager


@dataclass
class CodeWhisperEngine:
    """All services of one running engine."""

    config: Config
    connection_manager: DuckDBConnectionManager
    vector_store: DuckDBVectorStore
    symbol_store: DuckDBSymbolStore
    repo_map_cache: RepoMapCache
    pipeline: IndexingPipeline
    sessions: SessionStateManager
    retrieval: RetrievalService
    responder: AgenticResponder | None = None

    async def index_files(self, session_id: str, files: list[SourceFile]) -> IndexRunResult:
        """Replace the session's index with ``files`` and wait for it.

        This is the full-scan CLI path: any stored path missing from ``files``
        is dropped. The watcher path is debounced and incremental.
        """
        stored = set(await self.symbol_store.list_file_paths(session_id))
        repo_map = await self.repo_map_cache.get(session_id)
        if repo_map is not None:
            stored.update(f.path for f in repo_map.files)
        removed = sorted(stored - {f.path for f in files})
        if removed:
            logger.info(f"[Engine] {len(removed)} files vanished from {session_id} since last index")
        return await self.pipeline.run(session_id, files, removed)

    async def ask(
        self, session_id: str, question: str, focus: FocusContext | None = None
    ) -> str:
        if self.responder is None:
            raise RuntimeError("Engine was created without a language model")
        return await self.responder.generate_response(question, None, session_id, focus)

    async def clear_session(self, session_id: str) -> None:
        """Drop a session's snapshot, conversation and every stored row."""
        await self.sessions.clear_session(session_id)
        await self.vector_store.delete_session(session_id)
        await self.symbol_store.clear_session(session_id)
        await self.repo_map_cache.delete(session_id)

    async def close(self) -> None:
        await self.sessions.shutdown()
        await self.pipeline.wait_idle()
        self.connection_manager.disconnect()


def create_engine(
    config: Config,
    embedding_provider: EmbeddingProvider | None = None,
    llm_provider: LLMProvider | None = None,
    with_llm: bool = True,
) -> CodeWhisperEngine:
    """Create an engine with all dependencies injected.

    Providers default to the ones described by ``config``; tests pass fakes.
    With ``with_llm=False`` no chat provider is built and the engine can only
    index and retrieve.
    """
    connection_manager = DuckDBConnectionManager(config.database.path)
    connection_manager.connect()

    if embedding_provider is None:
        embedding_provider = create_embedding_provider(config.embedding)
    if llm_provider is None and with_llm:
        llm_provider = create_llm_provider(config.llm)

    vector_store = DuckDBVectorStore(connection_manager)
    symbol_store = DuckDBSymbolStore(connection_manager)
    repo_map_cache = RepoMapCache(
        DuckDBKeyValueCache(connection_manager),
        symbol_store,
        ttl_seconds=config.retrieval.repo_map_ttl_seconds,
    )

    pipeline = IndexingPipeline(
        embedding_provider, vector_store, symbol_store, repo_map_cache, config.indexing
    )
    sessions = SessionStateManager(
        on_batch=pipeline.index_batch, debounce_seconds=config.indexing.debounce_seconds
    )
    retrieval = RetrievalService(
        embedding_provider,
        vector_store,
        symbol_store,
        repo_map_cache,
        config.retrieval,
        file_source=sessions.get_file_content,
    )
    responder = (
        AgenticResponder(llm_provider, retrieval, config.agent, conversation_log=sessions)
        if llm_provider is not None
        else None
    )

    logger.debug(
        f"[Engine] Ready (db={config.database.path}, embeddings={embedding_provider.name}, "
        f"llm={llm_provider.model if llm_provider else None})"
    )
    return CodeWhisperEngine(
        config=config,
        connection_manager=connection_manager,
        vector_store=vector_store,
        symbol_store=symbol_store,
        repo_map_cache=repo_map_cache,
        pipeline=pipeline,
        sessions=sessions,
        retrieval=retrieval,
        responder=responder,
    )

"""Store interfaces consumed by the indexing pipeline and retrieval service.

Every read and write is partitioned by ``session_id``. There is no stronger
isolation than that filter.
"""

from typing import Any, Protocol

from codewhisper.core.models import CodeChunk, SymbolInfo, VectorMatch, VectorRecord


class VectorStore(Protocol):
    async def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or overwrite records by id."""
        ...

    async def query(
        self, vector: list[float], top_k: int, filter: dict[str, Any]
    ) -> list[VectorMatch]:
        """Nearest records by cosine similarity. ``filter`` must carry ``sessionId``."""
        ...

    async def delete_files(self, session_id: str, file_paths: list[str]) -> None:
        ...

    async def delete_session(self, session_id: str) -> None:
        ...


class SymbolStore(Protocol):
    async def replace_symbols(
        self, session_id: str, file_paths: list[str], symbols: list[SymbolInfo]
    ) -> None:
        """Delete the rows of ``file_paths`` then insert ``symbols``."""
        ...

    async def replace_chunks(
        self, session_id: str, file_paths: list[str], chunks: list[CodeChunk]
    ) -> None:
        ...

    async def delete_files(self, session_id: str, file_paths: list[str]) -> None:
        ...

    async def find_symbols(
        self, session_id: str, names: list[str], limit: int
    ) -> list[SymbolInfo]:
        ...

    async def get_chunks(self, session_id: str, chunk_ids: list[str]) -> dict[str, CodeChunk]:
        ...

    async def get_file_chunks(self, session_id: str, file_path: str) -> list[CodeChunk]:
        ...

    async def get_all_symbols(self, session_id: str) -> list[SymbolInfo]:
        ...

    async def list_file_paths(self, session_id: str) -> list[str]:
        ...

    async def clear_session(self, session_id: str) -> None:
        ...


class KeyValueCache(Protocol):
    async def get(self, key: str) -> str | None:
        ...

    async def put(self, key: str, value: str, expiration_ttl: int | None = None) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

"""Per-session repo map kept in the key/value cache.

The map is derived data: when the cached entry is missing or expired it is
rebuilt from the symbol store and written back.
"""

import json
import time

from loguru import logger

from codewhisper.core.models import ParsedFile, RepoMap, RepoMapFile
from codewhisper.core.types import Language
from codewhisper.interfaces.stores import KeyValueCache, SymbolStore


def repo_map_key(session_id: str) -> str:
    return f"{session_id}::repo_map"


def repo_map_entry(parsed: ParsedFile) -> RepoMapFile:
    return RepoMapFile(
        path=parsed.path,
        language=parsed.language.value,
        symbols=[f"{s.kind.value}:{s.name}" for s in parsed.symbols],
    )


class RepoMapCache:
    def __init__(self, cache: KeyValueCache, symbol_store: SymbolStore, ttl_seconds: int):
        self._cache = cache
        self._symbol_store = symbol_store
        self._ttl_seconds = ttl_seconds

    async def get(self, session_id: str) -> RepoMap | None:
        raw = await self._cache.get(repo_map_key(session_id))
        if raw is None:
            return None
        try:
            return RepoMap.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"[RepoMap] Discarding unreadable cache entry for {session_id}: {e}")
            return None

    async def put(self, session_id: str, repo_map: RepoMap) -> None:
        await self._cache.put(
            repo_map_key(session_id),
            json.dumps(repo_map.to_dict()),
            expiration_ttl=self._ttl_seconds,
        )

    async def delete(self, session_id: str) -> None:
        await self._cache.delete(repo_map_key(session_id))

    async def update(
        self,
        session_id: str,
        parsed_files: list[ParsedFile],
        removed_paths: list[str] | None = None,
    ) -> RepoMap:
        """Merge freshly parsed files into the cached map and store it.

        Entries are replaced by path; ``removed_paths`` are dropped.
        """
        current = await self.get(session_id)
        if current is None:
            current = await self.rebuild(session_id, store=False)

        by_path = {f.path: f for f in current.files}
        for path in removed_paths or []:
            by_path.pop(path, None)
        for parsed in parsed_files:
            by_path[parsed.path] = repo_map_entry(parsed)

        repo_map = RepoMap(files=sorted(by_path.values(), key=lambda f: f.path), ts=time.time())
        await self.put(session_id, repo_map)
        logger.debug(
            f"[RepoMap] {session_id}: {repo_map.count} files, {repo_map.total_symbols} symbols"
        )
        return repo_map

    async def rebuild(self, session_id: str, store: bool = True) -> RepoMap:
        """Recompute the map from the symbol store."""
        symbols = await self._symbol_store.get_all_symbols(session_id)
        paths = await self._symbol_store.list_file_paths(session_id)

        by_path = {
            path: RepoMapFile(path=path, language=Language.from_file_extension(path).value)
            for path in paths
        }
        for symbol in symbols:
            entry = by_path.setdefault(
                symbol.file_path,
                RepoMapFile(
                    path=symbol.file_path,
                    language=Language.from_file_extension(symbol.file_path).value,
                ),
            )
            entry.symbols.append(f"{symbol.kind}:{symbol.name}")

        repo_map = RepoMap(files=sorted(by_path.values(), key=lambda f: f.path), ts=time.time())
        if store:
            await self.put(session_id, repo_map)
        return repo_map

    async def get_or_rebuild(self, session_id: str) -> RepoMap:
        cached = await self.get(session_id)
        if cached is not None:
            return cached
        logger.debug(f"[RepoMap] Cache miss for {session_id}, rebuilding from symbol store")
        return await self.rebuild(session_id)

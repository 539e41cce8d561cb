"""Tests for the DuckDB-backed vector, symbol and key/value stores."""

import pytest

from codewhisper.core.models import SymbolInfo, VectorRecord
from codewhisper.providers.database import DuckDBKeyValueCache
from codewhisper.services.repo_map_cache import repo_map_key


def _record(session_id, path, name, embedding):
    return VectorRecord(
        id=f"{session_id}::{path}::{name}",
        embedding=embedding,
        metadata={
            "sessionId": session_id,
            "filePath": path,
            "symbolName": name,
            "kind": "function",
            "lineStart": 1,
            "lineEnd": 3,
        },
    )


def _symbol(path, name, line_start=1):
    return SymbolInfo(
        name=name,
        kind="function",
        signature=f"function {name}()",
        file_path=path,
        line_start=line_start,
        line_end=line_start + 2,
    )


async def test_vector_query_is_session_scoped(vector_store):
    await vector_store.upsert(
        [
            _record("s1", "a.ts", "foo", [1.0, 0.0, 0.0]),
            _record("s1", "b.ts", "bar", [0.0, 1.0, 0.0]),
            _record("s2", "a.ts", "foo", [1.0, 0.0, 0.0]),
        ]
    )

    matches = await vector_store.query([1.0, 0.1, 0.0], top_k=5, filter={"sessionId": "s1"})

    assert [m.id for m in matches] == ["s1::a.ts::foo", "s1::b.ts::bar"]
    assert matches[0].score == pytest.approx(0.995, abs=1e-3)
    assert matches[0].metadata == {
        "sessionId": "s1",
        "filePath": "a.ts",
        "symbolName": "foo",
        "kind": "function",
        "lineStart": 1,
        "lineEnd": 3,
    }


async def test_vector_query_filters_and_limits(vector_store):
    await vector_store.upsert(
        [
            _record("s1", "a.ts", "foo", [1.0, 0.0]),
            _record("s1", "b.ts", "bar", [0.9, 0.1]),
        ]
    )

    by_file = await vector_store.query([1.0, 0.0], top_k=5, filter={"sessionId": "s1", "filePath": "b.ts"})
    limited = await vector_store.query([1.0, 0.0], top_k=1, filter={"sessionId": "s1"})

    assert [m.id for m in by_file] == ["s1::b.ts::bar"]
    assert [m.id for m in limited] == ["s1::a.ts::foo"]


async def test_vector_query_rejects_bad_filters(vector_store):
    with pytest.raises(ValueError, match="sessionId"):
        await vector_store.query([1.0], top_k=1, filter={})
    with pytest.raises(ValueError, match="Unsupported"):
        await vector_store.query([1.0], top_k=1, filter={"sessionId": "s1", "owner": "me"})


async def test_degenerate_query_vectors_return_nothing(vector_store):
    await vector_store.upsert([_record("s1", "a.ts", "foo", [1.0, 0.0])])

    assert await vector_store.query([0.0, 0.0], top_k=5, filter={"sessionId": "s1"}) == []
    assert await vector_store.query([float("nan"), 1.0], top_k=5, filter={"sessionId": "s1"}) == []
    # other dimensionality never compares
    assert await vector_store.query([1.0, 0.0, 0.0], top_k=5, filter={"sessionId": "s1"}) == []


async def test_upsert_replaces_by_id(vector_store, connection_manager):
    await vector_store.upsert([_record("s1", "a.ts", "foo", [1.0, 0.0])])
    await vector_store.upsert([_record("s1", "a.ts", "foo", [0.0, 1.0])])

    rows = await connection_manager.fetch_all("SELECT count(*) FROM vectors")
    matches = await vector_store.query([0.0, 1.0], top_k=1, filter={"sessionId": "s1"})

    assert rows[0][0] == 1
    assert matches[0].score == pytest.approx(1.0)


async def test_vector_deletes(vector_store):
    await vector_store.upsert(
        [
            _record("s1", "a.ts", "foo", [1.0, 0.0]),
            _record("s1", "b.ts", "bar", [1.0, 0.0]),
            _record("s2", "a.ts", "foo", [1.0, 0.0]),
        ]
    )

    await vector_store.delete_files("s1", ["a.ts"])
    assert [m.id for m in await vector_store.query([1.0, 0.0], 5, {"sessionId": "s1"})] == [
        "s1::b.ts::bar"
    ]

    await vector_store.delete_session("s1")
    assert await vector_store.query([1.0, 0.0], 5, {"sessionId": "s1"}) == []
    assert len(await vector_store.query([1.0, 0.0], 5, {"sessionId": "s2"})) == 1


async def test_replace_symbols_only_touches_given_files(symbol_store):
    await symbol_store.replace_symbols("s1", ["a.ts", "b.ts"], [_symbol("a.ts", "foo"), _symbol("b.ts", "bar")])

    await symbol_store.replace_symbols("s1", ["a.ts"], [_symbol("a.ts", "fooRenamed")])

    names = [s.name for s in await symbol_store.get_all_symbols("s1")]
    assert names == ["fooRenamed", "bar"]


async def test_find_symbols_is_case_insensitive_and_limited(symbol_store):
    await symbol_store.replace_symbols(
        "s1",
        ["a.ts", "b.ts"],
        [_symbol("a.ts", "Parser"), _symbol("b.ts", "parser", 10), _symbol("b.ts", "other", 20)],
    )

    found = await symbol_store.find_symbols("s1", ["PARSER"], limit=10)
    limited = await symbol_store.find_symbols("s1", ["parser"], limit=1)

    assert [(s.name, s.file_path) for s in found] == [("Parser", "a.ts"), ("parser", "b.ts")]
    assert len(limited) == 1
    assert await symbol_store.find_symbols("s1", [], limit=10) == []
    assert await symbol_store.find_symbols("s2", ["parser"], limit=10) == []


async def test_clear_session_removes_symbols(symbol_store):
    await symbol_store.replace_symbols("s1", ["a.ts"], [_symbol("a.ts", "foo")])
    await symbol_store.replace_symbols("s2", ["a.ts"], [_symbol("a.ts", "foo")])

    await symbol_store.clear_session("s1")

    assert await symbol_store.list_file_paths("s1") == []
    assert await symbol_store.list_file_paths("s2") == ["a.ts"]


async def test_kv_cache_expires_entries(connection_manager):
    now = [1000.0]
    cache = DuckDBKeyValueCache(connection_manager, clock=lambda: now[0])

    await cache.put("short", "v1", expiration_ttl=10)
    await cache.put("forever", "v2")
    assert await cache.get("short") == "v1"

    now[0] += 11
    assert await cache.get("short") is None
    assert await cache.get("forever") == "v2"

    await cache.delete("forever")
    assert await cache.get("forever") is None


async def test_unreadable_repo_map_entry_is_ignored(kv_cache, repo_map_cache):
    await kv_cache.put(repo_map_key("s1"), "{not json")

    assert await repo_map_cache.get("s1") is None
    rebuilt = await repo_map_cache.get_or_rebuild("s1")
    assert rebuilt.files == []

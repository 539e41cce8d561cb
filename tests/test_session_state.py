"""Tests for per-session snapshots, dirty tracking and debounced flushing."""

import asyncio

import pytest

from codewhisper.core.models import FileEvent
from codewhisper.core.types import ChangeKind, UnknownChangeKindError
from codewhisper.services.session_state import SessionState, SessionStateManager


def _event(path, content, kind, timestamp=0.0):
    return FileEvent(path=path, content=content, kind=kind, timestamp=timestamp)


@pytest.fixture
def state():
    return SessionState("s1", debounce_seconds=2.0)


def test_events_collapse_into_one_batch(state):
    state.apply_file_event(_event("a.ts", "v1", ChangeKind.ADD), now=0.0)
    state.apply_file_event(_event("b.ts", "b", ChangeKind.ADD), now=0.5)
    state.apply_file_event(_event("a.ts", "v2", ChangeKind.CHANGE), now=1.0)

    assert state.flush_if_due(now=2.9) is None

    batch = state.flush_if_due(now=3.0)
    assert batch.session_id == "s1"
    assert [(f.path, f.content) for f in batch.files] == [("a.ts", "v2"), ("b.ts", "b")]
    assert batch.removed_paths == []
    assert state.pending_dirty == {}
    assert state.flush_if_due(now=10.0) is None


def test_changed_then_deleted_file_is_removed(state):
    state.apply_file_event(_event("a.ts", "v1", ChangeKind.ADD), now=0.0)
    state.apply_file_event(_event("a.ts", None, ChangeKind.DELETE), now=0.1)

    batch = state.flush()

    assert batch.files == []
    assert batch.removed_paths == ["a.ts"]
    assert state.get_file_content("a.ts") is None


def test_flush_with_nothing_pending(state):
    assert state.flush() is None


def test_unknown_kind_is_rejected(state):
    with pytest.raises(UnknownChangeKindError, match="Unknown sync type: rename"):
        state.apply_file_event(_event("a.ts", "x", "rename"), now=0.0)

    assert state.pending_dirty == {}


def test_change_kind_parse():
    assert ChangeKind.parse("add") is ChangeKind.ADD
    assert ChangeKind.parse(ChangeKind.DELETE) is ChangeKind.DELETE
    with pytest.raises(UnknownChangeKindError):
        ChangeKind.parse("ADD")


async def test_debounce_dispatches_exactly_once():
    batches = []
    manager = SessionStateManager(on_batch=batches.append, debounce_seconds=0.05)
    try:
        for i in range(5):
            await manager.apply_file_event("s1", "a.ts", f"v{i}", "change")
        await manager.apply_file_event("s1", "b.ts", "b", "add")

        await asyncio.sleep(0.3)

        assert len(batches) == 1
        assert [(f.path, f.content) for f in batches[0].files] == [("a.ts", "v4"), ("b.ts", "b")]
        assert manager.get_session_stats("s1")["batches_dispatched"] == 1
        assert manager.get_session_stats("s1")["pending_count"] == 0
    finally:
        await manager.shutdown()


async def test_new_event_pushes_the_deadline_out():
    batches = []
    manager = SessionStateManager(on_batch=batches.append, debounce_seconds=0.3)
    try:
        await manager.apply_file_event("s1", "a.ts", "v1", "add")
        await asyncio.sleep(0.15)
        await manager.apply_file_event("s1", "a.ts", "v2", "change")
        await asyncio.sleep(0.2)

        assert batches == []

        await asyncio.sleep(0.4)
        assert len(batches) == 1
    finally:
        await manager.shutdown()


async def test_flush_now_dispatches_and_cancels_the_timer():
    batches = []
    manager = SessionStateManager(on_batch=batches.append, debounce_seconds=0.1)
    try:
        await manager.apply_file_event("s1", "a.ts", "v1", "add")

        batch = await manager.flush_now("s1")
        await asyncio.sleep(0.25)

        assert batch is batches[0]
        assert len(batches) == 1
        assert await manager.flush_now("s1") is None
    finally:
        await manager.shutdown()


async def test_flush_if_due_before_the_deadline():
    manager = SessionStateManager(on_batch=lambda batch: None, debounce_seconds=60)
    try:
        await manager.apply_file_event("s1", "a.ts", "v1", "add")

        assert await manager.flush_if_due("s1") is None
        assert await manager.flush_if_due("unknown") is None
    finally:
        await manager.shutdown()


async def test_manager_rejects_unknown_kind():
    manager = SessionStateManager(on_batch=lambda batch: None)
    try:
        with pytest.raises(UnknownChangeKindError):
            await manager.apply_file_event("s1", "a.ts", "x", "modify")
    finally:
        await manager.shutdown()


async def test_snapshot_and_conversation_per_session():
    manager = SessionStateManager(on_batch=lambda batch: None, debounce_seconds=60)
    try:
        await manager.apply_file_event("s1", "src/b.ts", "b", "add")
        await manager.apply_file_event("s1", "src/a.ts", "a", "add")
        await manager.apply_file_event("s2", "other.ts", "o", "add")
        manager.add_conversation_message("s1", "user", "hi")

        assert manager.get_file_paths("s1") == ["src/a.ts", "src/b.ts"]
        assert manager.get_file_content("s1", "src/a.ts") == "a"
        assert manager.get_file_content("s2", "src/a.ts") is None

        stats = manager.get_session_stats("s1")
        assert stats["files_count"] == 2
        assert stats["pending_count"] == 2
        assert stats["conversation_length"] == 1

        await manager.clear_session("s1")

        assert manager.get_file_paths("s1") == []
        assert manager.get_conversation_history("s1") == []
        assert manager.get_file_paths("s2") == ["other.ts"]
    finally:
        await manager.shutdown()


def test_conversation_history_limit():
    manager = SessionStateManager(on_batch=lambda batch: None)
    for i in range(5):
        manager.add_conversation_message("s1", "user", f"q{i}")

    assert [m.content for m in manager.get_conversation_history("s1", limit=2)] == ["q3", "q4"]
    assert len(manager.get_conversation_history("s1")) == 5

"""Tests for the local file watcher feeding session state."""

import asyncio
from pathlib import Path

import pytest

from codewhisper.core.config.indexing_config import IndexingConfig
from codewhisper.core.types import ChangeKind
from codewhisper.services.file_watcher import LocalFileWatcher, should_index
from codewhisper.services.session_state import SessionStateManager

BAZ = "export function baz() { return 3 }"


@pytest.fixture
async def state_manager():
    manager = SessionStateManager(on_batch=lambda batch: None, debounce_seconds=60)
    yield manager
    await manager.shutdown()


@pytest.fixture
def project(temp_project_dir):
    (temp_project_dir / "src").mkdir()
    (temp_project_dir / "src" / "a.ts").write_text("export function foo() { return 1 }")
    (temp_project_dir / "src" / "b.py").write_text("def bar():\n    return 2\n")
    (temp_project_dir / "node_modules" / "lib").mkdir(parents=True)
    (temp_project_dir / "node_modules" / "lib" / "index.js").write_text("module.exports = 1")
    (temp_project_dir / "README.md").write_text("# Project")
    return temp_project_dir


def test_should_index_patterns():
    config = IndexingConfig()

    assert should_index(Path("/work/src/app.ts"), config)
    assert should_index(Path("/work/main.go"), config)
    assert not should_index(Path("/work/node_modules/pkg/index.js"), config)
    assert not should_index(Path("/work/types/global.d.ts"), config)
    assert not should_index(Path("/work/README.md"), config)


async def test_initial_scan_sends_matching_files(project, state_manager):
    watcher = LocalFileWatcher(project, "s1", state_manager)

    count = await watcher.initial_scan()

    assert count == 2
    assert state_manager.get_file_paths("s1") == ["src/a.ts", "src/b.py"]
    assert state_manager.get_file_content("s1", "src/a.ts") == "export function foo() { return 1 }"
    assert state_manager.get_session_stats("s1")["pending_count"] == 2


async def test_large_files_are_skipped(temp_project_dir, state_manager):
    (temp_project_dir / "big.ts").write_text("x" * 4096)
    watcher = LocalFileWatcher(
        temp_project_dir, "s1", state_manager, IndexingConfig(max_file_size_kb=1)
    )

    assert await watcher.initial_scan() == 0
    assert state_manager.get_file_paths("s1") == []


async def test_vanished_file_becomes_a_delete(project, state_manager):
    watcher = LocalFileWatcher(project, "s1", state_manager)
    await watcher.initial_scan()
    (project / "src" / "a.ts").unlink()

    assert await watcher._sync_file(ChangeKind.CHANGE, project / "src" / "a.ts")

    assert state_manager.get_file_paths("s1") == ["src/b.py"]


async def test_paths_outside_the_root_are_ignored(project, state_manager, tmp_path):
    outside = tmp_path / "elsewhere.ts"
    outside.write_text("export const x = 1;")
    watcher = LocalFileWatcher(project, "s1", state_manager)

    assert not await watcher._sync_file(ChangeKind.ADD, outside)


async def test_watcher_picks_up_new_files(project, state_manager):
    watcher = LocalFileWatcher(project, "s1", state_manager)
    await watcher.start()
    try:
        (project / "src" / "c.ts").write_text(BAZ)

        for _ in range(50):
            if state_manager.get_file_content("s1", "src/c.ts") == BAZ:
                break
            await asyncio.sleep(0.1)

        assert state_manager.get_file_content("s1", "src/c.ts") == BAZ
        assert watcher.get_stats()["observer_alive"]
    finally:
        await watcher.stop()

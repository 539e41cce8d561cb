"""Local filesystem watcher feeding file events into the session state manager.

Watchdog delivers events on its own thread; they are handed to the event loop
through an asyncio queue and applied from a single consumer task.
"""

import asyncio
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

from loguru import logger
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from codewhisper.core.config.indexing_config import IndexingConfig
from codewhisper.core.types import ChangeKind

from .session_state import SessionStateManager

# watchdog event type -> change kind
_EVENT_KINDS = {
    "created": ChangeKind.ADD,
    "modified": ChangeKind.CHANGE,
    "deleted": ChangeKind.DELETE,
}


def should_index(file_path: Path, config: IndexingConfig) -> bool:
    """Check include/exclude glob patterns against the absolute path and name."""
    file_str = str(file_path)
    file_name = file_path.name

    for pattern in config.exclude:
        if fnmatch(file_str, pattern) or fnmatch(file_name, pattern):
            return False

    for pattern in config.include:
        if fnmatch(file_str, pattern) or fnmatch(file_name, pattern):
            return True

    return False


class SimpleEventHandler(FileSystemEventHandler):
    """Sync watchdog handler that forwards matching events to an asyncio queue."""

    def __init__(
        self,
        event_queue: asyncio.Queue,
        config: IndexingConfig,
        loop: asyncio.AbstractEventLoop,
    ):
        self.event_queue = event_queue
        self.config = config
        self.loop = loop

    def on_any_event(self, event: Any) -> None:
        if event.is_directory:
            return

        # atomic writes show up as temp file -> final file moves
        if event.event_type == "moved":
            src, dest = Path(event.src_path), Path(event.dest_path)
            if should_index(src, self.config):
                self._queue_event("deleted", src)
            if should_index(dest, self.config):
                self._queue_event("created", dest)
            return

        if event.event_type not in _EVENT_KINDS:
            return

        file_path = Path(event.src_path)
        if should_index(file_path, self.config):
            self._queue_event(event.event_type, file_path)

    def _queue_event(self, event_type: str, file_path: Path) -> None:
        try:
            if not self.loop.is_closed():
                future = asyncio.run_coroutine_threadsafe(
                    self.event_queue.put((event_type, file_path)), self.loop
                )
                future.result(timeout=1.0)
        except Exception as e:
            logger.warning(f"[Watcher] Failed to queue {event_type} event for {file_path}: {e}")


class LocalFileWatcher:
    """Watches one directory tree on behalf of one session."""

    def __init__(
        self,
        root: Path,
        session_id: str,
        state_manager: SessionStateManager,
        config: IndexingConfig | None = None,
    ):
        self.root = root.resolve()
        self.session_id = session_id
        self.state_manager = state_manager
        self.config = config or IndexingConfig()

        self.event_queue: asyncio.Queue[tuple[str, Path]] = asyncio.Queue(maxsize=1000)
        self.observer: Any | None = None
        self.consumer_task: asyncio.Task | None = None
        self.failed_files: set[str] = set()

    def relative_path(self, file_path: Path) -> str:
        return file_path.resolve().relative_to(self.root).as_posix()

    async def start(self) -> None:
        handler = SimpleEventHandler(self.event_queue, self.config, asyncio.get_running_loop())
        self.observer = Observer()
        self.observer.schedule(handler, str(self.root), recursive=True)
        self.observer.start()
        self.consumer_task = asyncio.create_task(self._consume_events())
        logger.info(f"[Watcher] Watching {self.root} for session {self.session_id}")

    async def stop(self) -> None:
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None

        if self.consumer_task:
            self.consumer_task.cancel()
            try:
                await self.consumer_task
            except asyncio.CancelledError:
                pass
            self.consumer_task = None

    def iter_files(self) -> list[Path]:
        return sorted(
            p for p in self.root.rglob("*") if p.is_file() and should_index(p, self.config)
        )

    async def initial_scan(self) -> int:
        """Send an ``add`` event for every matching file under the root."""
        count = 0
        for file_path in self.iter_files():
            if await self._sync_file(ChangeKind.ADD, file_path):
                count += 1
        logger.info(f"[Watcher] Initial scan queued {count} files")
        return count

    async def _consume_events(self) -> None:
        while True:
            event_type, file_path = await self.event_queue.get()
            try:
                await self._sync_file(_EVENT_KINDS[event_type], file_path)
            except Exception as e:
                logger.error(f"[Watcher] Error handling {event_type} for {file_path}: {e}")
                self.failed_files.add(str(file_path))
            finally:
                self.event_queue.task_done()

    async def _sync_file(self, kind: ChangeKind, file_path: Path) -> bool:
        try:
            rel_path = self.relative_path(file_path)
        except ValueError:
            logger.debug(f"[Watcher] Ignoring path outside root: {file_path}")
            return False

        content: str | None = None
        if kind != ChangeKind.DELETE:
            try:
                if file_path.stat().st_size > self.config.max_file_size_kb * 1024:
                    logger.debug(f"[Watcher] Skipping large file {rel_path}")
                    return False
                content = file_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                kind = ChangeKind.DELETE
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[Watcher] Cannot read {rel_path}: {e}")
                return False

        await self.state_manager.apply_file_event(self.session_id, rel_path, content, kind)
        return True

    def get_stats(self) -> dict[str, Any]:
        return {
            "queue_size": self.event_queue.qsize(),
            "failed_files": len(self.failed_files),
            "observer_alive": self.observer.is_alive() if self.observer else False,
            "watching_directory": str(self.root),
        }

"""Per-session file snapshot, dirty tracking and debounced re-indexing.

``SessionState`` is plain data plus transitions and takes the current time as
an argument, so it can be driven by tests without timers. ``SessionActor`` is
the only writer of one session's state: file events, timer fires and flush
requests all go through its mailbox and are handled one at a time, so a timer
can never be re-armed concurrently with a flush. ``SessionStateManager`` owns
the actors plus each session's conversation log.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from codewhisper.core.models import (
    ConversationMessage,
    FileEvent,
    IndexBatch,
    SourceFile,
)
from codewhisper.core.types import ChangeKind

DEFAULT_DEBOUNCE_SECONDS = 2.0

BatchHandler = Callable[[IndexBatch], Any]


@dataclass
class TrackedFile:
    content: str
    last_modified: float


class SessionState:
    """Snapshot of one session's files and the paths waiting to be indexed."""

    def __init__(self, session_id: str, debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS):
        self.session_id = session_id
        self.debounce_seconds = debounce_seconds
        self.files: dict[str, TrackedFile] = {}
        # insertion-ordered set
        self.pending_dirty: dict[str, None] = {}
        self.due_at: float | None = None
        self.created_at = time.time()
        self.last_activity = self.created_at

    def apply_file_event(self, event: FileEvent, now: float) -> None:
        """Update the snapshot, mark the path dirty and push the deadline out."""
        kind = ChangeKind.parse(event.kind)
        if kind in (ChangeKind.ADD, ChangeKind.CHANGE):
            self.files[event.path] = TrackedFile(
                content=event.content or "", last_modified=event.timestamp
            )
        else:
            self.files.pop(event.path, None)

        self.pending_dirty[event.path] = None
        self.due_at = now + self.debounce_seconds
        self.last_activity = time.time()

    def flush_if_due(self, now: float) -> IndexBatch | None:
        """Flush when the quiet period has elapsed, otherwise return None."""
        if self.due_at is None or now < self.due_at:
            return None
        return self.flush()

    def flush(self) -> IndexBatch | None:
        """Resolve dirty paths against the snapshot and clear them.

        Paths no longer in the snapshot go to ``removed_paths``. Returns None
        when nothing was pending.
        """
        self.due_at = None
        if not self.pending_dirty:
            return None

        files: list[SourceFile] = []
        removed: list[str] = []
        for path in self.pending_dirty:
            tracked = self.files.get(path)
            if tracked is None:
                removed.append(path)
            else:
                files.append(SourceFile(path=path, content=tracked.content))
        self.pending_dirty.clear()

        return IndexBatch(session_id=self.session_id, files=files, removed_paths=removed)

    def clear_pending(self) -> None:
        self.pending_dirty.clear()

    def get_file_content(self, path: str) -> str | None:
        tracked = self.files.get(path)
        return tracked.content if tracked else None


class SessionActor:
    """Single owner of one SessionState, driven through an asyncio mailbox."""

    def __init__(self, state: SessionState, on_batch: BatchHandler):
        self.state = state
        self._on_batch = on_batch
        self._mailbox: asyncio.Queue[tuple[str, Any, asyncio.Future | None]] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._timer: asyncio.TimerHandle | None = None
        # bumped on every event; a timer only flushes if it is still current
        self._generation = 0
        self.batches_dispatched = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"codewhisper-session-{self.state.session_id}"
        )

    async def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _request(self, kind: str, payload: Any = None) -> Any:
        future = asyncio.get_running_loop().create_future()
        await self._mailbox.put((kind, payload, future))
        return await future

    async def send_event(self, event: FileEvent) -> None:
        await self._request("event", event)

    async def flush_if_due(self) -> IndexBatch | None:
        return await self._request("poll")

    async def flush_now(self) -> IndexBatch | None:
        """Flush immediately, dispatching the batch like a timer fire would."""
        return await self._request("flush")

    async def clear_pending(self) -> None:
        await self._request("clear")

    def _on_timer(self, generation: int) -> None:
        self._mailbox.put_nowait(("timer", generation, None))

    async def _run(self) -> None:
        while True:
            kind, payload, future = await self._mailbox.get()
            try:
                result = self._handle(kind, payload)
            except Exception as e:
                if future is None:
                    logger.error(f"[Session] {self.state.session_id}: {kind} failed: {e}")
                elif not future.done():
                    future.set_exception(e)
                continue
            if future is not None and not future.done():
                future.set_result(result)

    def _handle(self, kind: str, payload: Any) -> Any:
        loop = asyncio.get_running_loop()

        if kind == "event":
            self.state.apply_file_event(payload, loop.time())
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
            self._timer = loop.call_later(
                self.state.debounce_seconds, self._on_timer, self._generation
            )
            return None

        if kind == "timer":
            if payload != self._generation:
                return None
            self._timer = None
            return self._dispatch(self.state.flush())

        if kind == "poll":
            batch = self.state.flush_if_due(loop.time())
            if batch is not None:
                self._cancel_timer()
            return batch

        if kind == "flush":
            self._cancel_timer()
            return self._dispatch(self.state.flush())

        if kind == "clear":
            self._cancel_timer()
            self.state.clear_pending()
            self.state.due_at = None
            return None

        raise ValueError(f"Unknown session message: {kind}")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1

    def _dispatch(self, batch: IndexBatch | None) -> IndexBatch | None:
        if batch is None or batch.is_empty():
            logger.debug(f"[Session] {self.state.session_id}: nothing pending at flush")
            return None
        logger.info(
            f"[Session] {self.state.session_id}: flushing {len(batch.files)} files, "
            f"{len(batch.removed_paths)} removed"
        )
        self.batches_dispatched += 1
        self._on_batch(batch)
        return batch


class SessionStateManager:
    """Registry of session actors and conversation logs."""

    def __init__(
        self,
        on_batch: BatchHandler,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self._on_batch = on_batch
        self._debounce_seconds = debounce_seconds
        self._actors: dict[str, SessionActor] = {}
        self._conversations: dict[str, list[ConversationMessage]] = {}

    def _actor(self, session_id: str) -> SessionActor:
        actor = self._actors.get(session_id)
        if actor is None:
            actor = SessionActor(SessionState(session_id, self._debounce_seconds), self._on_batch)
            self._actors[session_id] = actor
            logger.debug(f"[Session] Created session {session_id}")
        actor.start()
        return actor

    async def apply_file_event(
        self,
        session_id: str,
        path: str,
        content: str | None,
        kind: ChangeKind | str,
        timestamp: float | None = None,
    ) -> None:
        """Record one file change and (re)arm the debounce timer.

        Raises UnknownChangeKindError for a kind outside add/change/delete.
        """
        event = FileEvent(
            path=path,
            content=content,
            kind=ChangeKind.parse(kind),
            timestamp=timestamp if timestamp is not None else time.time(),
        )
        await self._actor(session_id).send_event(event)

    async def flush_if_due(self, session_id: str) -> IndexBatch | None:
        """Return the pending batch if its quiet period elapsed (no dispatch)."""
        actor = self._actors.get(session_id)
        if actor is None:
            return None
        return await actor.flush_if_due()

    async def flush_now(self, session_id: str) -> IndexBatch | None:
        actor = self._actors.get(session_id)
        if actor is None:
            return None
        return await actor.flush_now()

    def get_file_content(self, session_id: str, path: str) -> str | None:
        actor = self._actors.get(session_id)
        return actor.state.get_file_content(path) if actor else None

    def get_file_paths(self, session_id: str) -> list[str]:
        actor = self._actors.get(session_id)
        return sorted(actor.state.files) if actor else []

    def add_conversation_message(
        self, session_id: str, role: str, content: str, metadata: dict | None = None
    ) -> ConversationMessage:
        message = ConversationMessage(role=role, content=content, metadata=metadata)
        self._conversations.setdefault(session_id, []).append(message)
        actor = self._actors.get(session_id)
        if actor is not None:
            actor.state.last_activity = message.timestamp
        return message

    def get_conversation_history(
        self, session_id: str, limit: int | None = None
    ) -> list[ConversationMessage]:
        history = self._conversations.get(session_id, [])
        if limit and limit > 0:
            return history[-limit:]
        return list(history)

    def get_session_stats(self, session_id: str) -> dict[str, Any]:
        actor = self._actors.get(session_id)
        state = actor.state if actor else None
        return {
            "session_id": session_id,
            "files_count": len(state.files) if state else 0,
            "pending_count": len(state.pending_dirty) if state else 0,
            "conversation_length": len(self._conversations.get(session_id, [])),
            "created_at": state.created_at if state else None,
            "last_activity": state.last_activity if state else None,
            "batches_dispatched": actor.batches_dispatched if actor else 0,
        }

    async def clear_session(self, session_id: str) -> None:
        """Forget the snapshot, pending set and conversation of a session."""
        actor = self._actors.pop(session_id, None)
        if actor is not None:
            await actor.stop()
        self._conversations.pop(session_id, None)
        logger.info(f"[Session] Cleared session {session_id}")

    async def shutdown(self) -> None:
        for actor in list(self._actors.values()):
            await actor.stop()

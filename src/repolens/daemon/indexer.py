"""Background indexing with a per-repository in-flight guard."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from repolens.core.errors import InternalError
from repolens.index.models import IndexRequest, Repository, RepositoryKey, RepositoryStatus

if TYPE_CHECKING:
    from repolens.index.ops import IndexCoordinator

logger = structlog.get_logger()


class IndexerState(Enum):
    """Background indexer state."""

    IDLE = "idle"
    INDEXING = "indexing"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class IndexerStatus:
    """Current indexer status."""

    state: IndexerState
    in_flight: list[str]
    last_error: str | None = None


@dataclass
class BackgroundIndexer:
    """
    Fire-and-forget indexing passes on the running event loop.

    Design:
    - ``request`` registers the repository and returns its record at once;
      callers poll ``IndexCoordinator.get_status`` for progress
    - At most one pass per repository key runs at a time; a request for a
      key already in flight attaches to the running pass
    - Pass failures end up on the Repository record and in the log, and
      ``on_complete`` failures in ``last_error``; neither is left as an
      unretrieved task exception
    """

    coordinator: IndexCoordinator

    _stopping: bool = field(default=False, init=False)
    _stopped: bool = field(default=False, init=False)
    _tasks: dict[str, asyncio.Task[None]] = field(default_factory=dict, init=False)
    _last_error: str | None = field(default=None, init=False)
    _on_complete: Callable[[Repository], Awaitable[None]] | None = field(default=None, init=False)

    def request(self, request: IndexRequest) -> Repository:
        """Start indexing ``request`` in the background.

        Must be called from a running event loop. Returns the current record:
        pending for a newly started pass, or the existing one when the fast
        path applies (already ready, or already indexing).
        """
        if self._stopping or self._stopped:
            raise InternalError.unexpected("background indexer is stopped")

        key = request.key
        running = self._tasks.get(key.id)
        if running is not None and not running.done():
            logger.debug("indexing_attached", repository=key.id)
            return self.coordinator.get_status(key)

        record = self.coordinator.register(key, force_reload=request.force_reload)
        if record.status != RepositoryStatus.PENDING:
            return record

        task = asyncio.get_running_loop().create_task(self._run(key), name=f"index:{key.id}")
        self._tasks[key.id] = task
        task.add_done_callback(lambda t, repo_id=key.id: self._forget(repo_id, t))
        logger.debug("indexing_scheduled", repository=key.id, in_flight=len(self._tasks))
        return record

    async def wait(self, key: RepositoryKey) -> Repository:
        """Wait for the in-flight pass of ``key`` (if any), then return its record."""
        task = self._tasks.get(key.id)
        if task is not None:
            await asyncio.wait({task})
        return self.coordinator.get_status(key)

    async def wait_all(self) -> None:
        """Wait for every in-flight pass."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.wait(tasks)

    async def stop(self) -> None:
        """Cancel in-flight passes and refuse new requests."""
        self._stopping = True
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._stopping = False
        self._stopped = True
        logger.info("background_indexer_stopped", cancelled=len(tasks))

    def set_on_complete(self, callback: Callable[[Repository], Awaitable[None]]) -> None:
        """Set callback to invoke after a successful pass."""
        self._on_complete = callback

    def is_indexing(self, key: RepositoryKey) -> bool:
        task = self._tasks.get(key.id)
        return task is not None and not task.done()

    @property
    def status(self) -> IndexerStatus:
        """Get current indexer status."""
        in_flight = [repo_id for repo_id, task in self._tasks.items() if not task.done()]
        if self._stopped:
            state = IndexerState.STOPPED
        elif self._stopping:
            state = IndexerState.STOPPING
        elif in_flight:
            state = IndexerState.INDEXING
        else:
            state = IndexerState.IDLE
        return IndexerStatus(state=state, in_flight=in_flight, last_error=self._last_error)

    async def _run(self, key: RepositoryKey) -> None:
        try:
            await self.coordinator.run_pass(key)
        except Exception as e:
            # The coordinator already recorded and logged pass failures
            self._last_error = str(e)
            logger.debug("background_pass_failed", repository=key.id, error=str(e))
            return

        self._last_error = None
        if self._on_complete is None:
            return
        try:
            await self._on_complete(self.coordinator.get_status(key))
        except Exception as e:
            self._last_error = str(e)
            logger.error("on_complete_failed", repository=key.id, error=str(e))

    def _forget(self, repo_id: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(repo_id) is task:
            del self._tasks[repo_id]

"""Tests for BackgroundIndexer."""

import asyncio
from pathlib import Path

import pytest

from repolens.core.errors import InternalError
from repolens.daemon.indexer import BackgroundIndexer, IndexerState
from repolens.files.ops import DirectoryEntry
from repolens.index import IndexCoordinator, IndexRequest, Repository, RepositoryStatus


class GatedSource:
    """FileSource whose listing blocks until the gate opens."""

    def __init__(self, files: dict[str, str], fail_listing: bool = False) -> None:
        self.files = files
        self.fail_listing = fail_listing
        self.gate = asyncio.Event()
        self.listings = 0

    async def list_files(self, root: Path) -> list[str]:  # noqa: ARG002
        self.listings += 1
        await self.gate.wait()
        if self.fail_listing:
            raise OSError("repository root unreadable")
        return list(self.files)

    async def read_file(self, root: Path, rel_path: str) -> str:  # noqa: ARG002
        return self.files[rel_path]

    async def read_ignore_file(self, root: Path, name: str = ".gitignore") -> str | None:  # noqa: ARG002
        return None

    async def list_directory(self, root: Path, rel_path: str = "") -> list[DirectoryEntry]:  # noqa: ARG002
        return []


REQUEST = IndexRequest(remote="github", owner="acme", name="calc")


class TestBackgroundIndexer:
    """Tests for BackgroundIndexer."""

    def test_given_new_indexer_when_status_then_idle(self) -> None:
        """A fresh indexer has nothing in flight."""
        # Given
        indexer = BackgroundIndexer(coordinator=IndexCoordinator(source=GatedSource({})))

        # When
        status = indexer.status

        # Then
        assert status.state == IndexerState.IDLE
        assert status.in_flight == []
        assert status.last_error is None

    @pytest.mark.asyncio
    async def test_given_request_when_made_then_returns_pending_immediately(self) -> None:
        """The caller gets a pending record and polls for progress."""
        # Given
        source = GatedSource({"main.ts": "export const add = (a, b) => a + b;\n"})
        coordinator = IndexCoordinator(source=source)
        indexer = BackgroundIndexer(coordinator=coordinator)

        # When
        record = indexer.request(REQUEST)
        await asyncio.sleep(0)

        # Then
        assert record.status == RepositoryStatus.INDEXING
        assert indexer.is_indexing(REQUEST.key)
        assert indexer.status.state == IndexerState.INDEXING
        assert indexer.status.in_flight == [REQUEST.key.id]

        # When the pass is allowed to finish
        source.gate.set()
        final = await indexer.wait(REQUEST.key)

        # Then
        assert final.status == RepositoryStatus.READY
        assert final.files_processed == 1
        assert not indexer.is_indexing(REQUEST.key)
        assert indexer.status.state == IndexerState.IDLE

    @pytest.mark.asyncio
    async def test_given_pass_in_flight_when_requested_again_then_attaches(self) -> None:
        """A second request for the same key never starts a second pass."""
        # Given
        source = GatedSource({"a.ts": "a\n"})
        coordinator = IndexCoordinator(source=source)
        indexer = BackgroundIndexer(coordinator=coordinator)
        first = indexer.request(REQUEST)
        await asyncio.sleep(0)

        # When
        second = indexer.request(REQUEST)
        forced = indexer.request(
            IndexRequest(remote="github", owner="acme", name="calc", force_reload=True)
        )
        source.gate.set()
        await indexer.wait_all()

        # Then
        assert second is first
        assert forced is first
        assert source.listings == 1
        assert coordinator.get_status(REQUEST.key).status == RepositoryStatus.READY

    @pytest.mark.asyncio
    async def test_given_ready_repository_when_requested_then_no_new_pass(self) -> None:
        # Given
        source = GatedSource({"a.ts": "a\n"})
        source.gate.set()
        indexer = BackgroundIndexer(coordinator=IndexCoordinator(source=source))
        indexer.request(REQUEST)
        await indexer.wait_all()

        # When
        record = indexer.request(REQUEST)

        # Then
        assert record.status == RepositoryStatus.READY
        assert not indexer.is_indexing(REQUEST.key)
        assert source.listings == 1

    @pytest.mark.asyncio
    async def test_given_failing_pass_when_run_then_error_recorded(self) -> None:
        """Failures land on the record and in last_error, not as task exceptions."""
        # Given
        source = GatedSource({}, fail_listing=True)
        source.gate.set()
        coordinator = IndexCoordinator(source=source)
        indexer = BackgroundIndexer(coordinator=coordinator)

        # When
        indexer.request(REQUEST)
        record = await indexer.wait(REQUEST.key)

        # Then
        assert record.status == RepositoryStatus.ERROR
        assert record.error is not None
        assert "unreadable" in record.error
        assert indexer.status.last_error is not None

    @pytest.mark.asyncio
    async def test_given_on_complete_when_pass_succeeds_then_called(self) -> None:
        # Given
        source = GatedSource({"a.ts": "a\n"})
        source.gate.set()
        indexer = BackgroundIndexer(coordinator=IndexCoordinator(source=source))
        completed: list[Repository] = []

        async def on_complete(record: Repository) -> None:
            completed.append(record)

        indexer.set_on_complete(on_complete)

        # When
        indexer.request(REQUEST)
        await indexer.wait_all()

        # Then
        assert [r.id for r in completed] == [REQUEST.key.id]
        assert completed[0].status == RepositoryStatus.READY

    @pytest.mark.asyncio
    async def test_given_failing_on_complete_when_pass_succeeds_then_error_contained(self) -> None:
        """A broken callback is logged and recorded, not left on the task."""
        # Given
        source = GatedSource({"a.ts": "a\n"})
        source.gate.set()
        indexer = BackgroundIndexer(coordinator=IndexCoordinator(source=source))

        async def on_complete(record: Repository) -> None:  # noqa: ARG001
            raise RuntimeError("subscriber crashed")

        indexer.set_on_complete(on_complete)

        # When
        indexer.request(REQUEST)
        task = next(t for t in asyncio.all_tasks() if t.get_name() == f"index:{REQUEST.key.id}")
        record = await indexer.wait(REQUEST.key)

        # Then
        assert record.status == RepositoryStatus.READY
        assert task.exception() is None
        assert indexer.status.last_error == "subscriber crashed"

    @pytest.mark.asyncio
    async def test_given_running_pass_when_stop_then_cancelled_and_stopped(self) -> None:
        """Stopping cancels in-flight passes and refuses new requests."""
        # Given
        source = GatedSource({"a.ts": "a\n"})
        coordinator = IndexCoordinator(source=source)
        indexer = BackgroundIndexer(coordinator=coordinator)
        indexer.request(REQUEST)
        await asyncio.sleep(0)

        # When
        await indexer.stop()

        # Then
        record = coordinator.get_status(REQUEST.key)
        assert record.status == RepositoryStatus.ERROR
        assert record.error == "indexing pass cancelled"
        assert indexer.status.state == IndexerState.STOPPED
        assert indexer.status.in_flight == []
        with pytest.raises(InternalError):
            indexer.request(REQUEST)

    @pytest.mark.asyncio
    async def test_given_idle_indexer_when_stop_then_stopped(self) -> None:
        indexer = BackgroundIndexer(coordinator=IndexCoordinator(source=GatedSource({})))

        await indexer.stop()

        assert indexer.status.state == IndexerState.STOPPED

    @pytest.mark.asyncio
    async def test_wait_without_pass_returns_record(self) -> None:
        coordinator = IndexCoordinator(source=GatedSource({}))
        coordinator.register(REQUEST.key)
        indexer = BackgroundIndexer(coordinator=coordinator)

        record = await indexer.wait(REQUEST.key)

        assert record.status == RepositoryStatus.PENDING

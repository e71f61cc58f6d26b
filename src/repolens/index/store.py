"""In-memory stores for repository records and published indexes.

Both stores are plain objects owned by whoever builds the coordinator, so
tests (or several logical workspaces) never share state through globals.
Neither store persists anything.
"""

from __future__ import annotations

from collections.abc import Iterator

from repolens.core.errors import RepositoryNotFound, RepositoryNotIndexed
from repolens.index.models import (
    Repository,
    RepositoryIndex,
    RepositoryKey,
    RepositoryStatus,
)


class RepositoryStore:
    """Owns Repository status records, keyed by repository id."""

    def __init__(self) -> None:
        self._records: dict[str, Repository] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: RepositoryKey) -> bool:
        return key.id in self._records

    def __iter__(self) -> Iterator[Repository]:
        return iter(list(self._records.values()))

    def get(self, key: RepositoryKey) -> Repository | None:
        return self._records.get(key.id)

    def require(self, key: RepositoryKey) -> Repository:
        """Get a record or raise RepositoryNotFound."""
        record = self._records.get(key.id)
        if record is None:
            raise RepositoryNotFound.for_key(key.id)
        return record

    def put(self, record: Repository) -> None:
        """Store a record, replacing any record with the same key."""
        self._records[record.id] = record

    def remove(self, key: RepositoryKey) -> Repository | None:
        return self._records.pop(key.id, None)

    def list(self, status: RepositoryStatus | None = None) -> list[Repository]:
        """Records in registration order, optionally filtered by status."""
        return [r for r in self._records.values() if status is None or r.status == status]


class IndexStore:
    """Owns published RepositoryIndex aggregates, keyed by repository id.

    ``publish`` swaps in a complete aggregate; readers holding the previous
    one keep a consistent view.
    """

    def __init__(self) -> None:
        self._indexes: dict[str, RepositoryIndex] = {}

    def __len__(self) -> int:
        return len(self._indexes)

    def __contains__(self, key: RepositoryKey) -> bool:
        return key.id in self._indexes

    def get(self, key: RepositoryKey) -> RepositoryIndex | None:
        return self._indexes.get(key.id)

    def require(
        self, key: RepositoryKey, status: RepositoryStatus | None = None
    ) -> RepositoryIndex:
        """Get a published index or raise RepositoryNotIndexed."""
        index = self._indexes.get(key.id)
        if index is None:
            raise RepositoryNotIndexed.for_key(key.id, status.value if status else None)
        return index

    def publish(self, index: RepositoryIndex) -> None:
        self._indexes[index.repository.id] = index

    def discard(self, key: RepositoryKey) -> RepositoryIndex | None:
        return self._indexes.pop(key.id, None)


__all__ = ["IndexStore", "RepositoryStore"]

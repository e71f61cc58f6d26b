"""RepoLens daemon - background indexing."""

from repolens.daemon.indexer import BackgroundIndexer, IndexerState, IndexerStatus

__all__ = [
    "BackgroundIndexer",
    "IndexerState",
    "IndexerStatus",
]

"""Index module - lexical indexing engine.

This module provides:
- Ignore resolution: repository ignore-file plus built-in exclusions
- Lexical extraction: regex-based functions, imports and exports
- Literal search and keyword query over published indexes

Public API is in `repolens.index.ops`:
- IndexCoordinator: High-level orchestration
- resolve_local_path: Checkout location for a repository key

Internal implementations are in `repolens.index._internal/`.
"""

from repolens.index.models import (
    FileContent,
    FunctionMatch,
    FunctionRecord,
    IndexedFile,
    IndexRequest,
    MatchType,
    QueryResult,
    RemoteKind,
    Repository,
    RepositoryIndex,
    RepositoryKey,
    RepositoryStatus,
    SearchResult,
)
from repolens.index.ops import IndexCoordinator, resolve_local_path
from repolens.index.query import QueryRouter, extract_keywords
from repolens.index.search import search
from repolens.index.store import IndexStore, RepositoryStore

__all__ = [
    # Public API (ops.py)
    "IndexCoordinator",
    "resolve_local_path",
    # Stores
    "IndexStore",
    "RepositoryStore",
    # Search / query
    "QueryRouter",
    "extract_keywords",
    "search",
    # Models
    "FileContent",
    "FunctionMatch",
    "FunctionRecord",
    "IndexRequest",
    "IndexedFile",
    "MatchType",
    "QueryResult",
    "RemoteKind",
    "Repository",
    "RepositoryIndex",
    "RepositoryKey",
    "RepositoryStatus",
    "SearchResult",
]

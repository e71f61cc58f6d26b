"""Data model for the in-memory repository index.

Everything here is a plain dataclass. The core returns these to the boundary
layer, which renders them; ``to_dict()`` yields the serializable form.

Lifecycle:
- Repository: created ``pending`` on an index request, mutated by the
  indexing pass, never persisted
- IndexedFile / FunctionRecord: immutable, replaced wholesale on re-index
- RepositoryIndex: built by a pass, published atomically when it completes
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from repolens.config.constants import DEFAULT_BRANCH
from repolens.core.errors import InternalError, InvalidArgument

# ============================================================================
# ENUMS
# ============================================================================


class RemoteKind(str, Enum):
    """Where a repository checkout comes from."""

    GITHUB = "github"
    GITLAB = "gitlab"
    LOCAL = "local"


class RepositoryStatus(str, Enum):
    """Indexing lifecycle state of a repository."""

    PENDING = "pending"
    INDEXING = "indexing"
    READY = "ready"
    ERROR = "error"


class MatchType(str, Enum):
    """Search match classification. Only EXACT is produced today."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


_ALLOWED_TRANSITIONS: dict[RepositoryStatus, frozenset[RepositoryStatus]] = {
    RepositoryStatus.PENDING: frozenset({RepositoryStatus.INDEXING}),
    RepositoryStatus.INDEXING: frozenset({RepositoryStatus.READY, RepositoryStatus.ERROR}),
    RepositoryStatus.READY: frozenset(),
    RepositoryStatus.ERROR: frozenset(),
}


# ============================================================================
# REPOSITORY
# ============================================================================


@dataclass(frozen=True, slots=True)
class RepositoryKey:
    """Identity of a repository: (remote, owner, name, branch)."""

    remote: RemoteKind
    owner: str
    name: str
    branch: str = DEFAULT_BRANCH

    def __post_init__(self) -> None:
        if not isinstance(self.remote, RemoteKind):
            try:
                object.__setattr__(self, "remote", RemoteKind(self.remote))
            except ValueError:
                raise InvalidArgument.for_field(
                    "remote", self.remote, f"expected one of {[r.value for r in RemoteKind]}"
                ) from None
        for attr in ("owner", "name", "branch"):
            if not getattr(self, attr):
                raise InvalidArgument.for_field(attr, getattr(self, attr), "must not be empty")

    @property
    def id(self) -> str:
        return f"{self.remote.value}:{self.branch}:{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.id


@dataclass(slots=True)
class Repository:
    """Status record for one registered repository."""

    key: RepositoryKey
    local_path: str
    status: RepositoryStatus = RepositoryStatus.PENDING
    files_processed: int = 0
    total_files: int | None = None
    indexed_at: datetime | None = None
    error: str | None = None

    @property
    def id(self) -> str:
        return self.key.id

    def transition(self, target: RepositoryStatus) -> None:
        """Move to ``target``, enforcing pending -> indexing -> {ready, error}."""
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InternalError.unexpected(
                f"illegal status transition {self.status.value} -> {target.value}",
                repository=self.id,
            )
        self.status = target

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "remote": self.key.remote.value,
            "owner": self.key.owner,
            "name": self.key.name,
            "branch": self.key.branch,
            "status": self.status.value,
            "files_processed": self.files_processed,
            "total_files": self.total_files,
            "indexed_at": self.indexed_at.isoformat() if self.indexed_at else None,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class IndexRequest:
    """External request shape for indexing a repository."""

    remote: RemoteKind | str
    owner: str
    name: str
    branch: str = DEFAULT_BRANCH
    force_reload: bool = False

    @property
    def key(self) -> RepositoryKey:
        return RepositoryKey(
            remote=self.remote,  # type: ignore[arg-type]  # coerced in __post_init__
            owner=self.owner,
            name=self.name,
            branch=self.branch,
        )


# ============================================================================
# INDEX CONTENTS
# ============================================================================


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """A heuristically-delimited function.

    ``calls`` and ``called_by`` are kept for compatibility with consumers of
    the record shape; no call graph is computed, so they are always empty.
    """

    name: str
    file: str
    start_line: int
    end_line: int
    signature: str
    calls: tuple[str, ...] = ()
    called_by: tuple[str, ...] = ()

    @property
    def index_key(self) -> str:
        return f"{self.file}:{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "file": self.file,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "signature": self.signature,
            "calls": list(self.calls),
            "called_by": list(self.called_by),
        }


@dataclass(frozen=True, slots=True)
class IndexedFile:
    """One indexed source file."""

    path: str
    content: str
    language: str
    line_count: int
    functions: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()

    def lines(self) -> list[str]:
        return split_lines(self.content)

    def to_dict(self, *, include_content: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "language": self.language,
            "line_count": self.line_count,
            "functions": list(self.functions),
            "imports": list(self.imports),
            "exports": list(self.exports),
        }
        if include_content:
            data["content"] = self.content
        return data


@dataclass
class RepositoryIndex:
    """Aggregate of everything extracted from one repository.

    ``files`` keeps insertion order, which is the order search iterates in.
    A later function with the same name in the same file overwrites the
    earlier one under its ``path:name`` key.
    """

    repository: Repository
    files: OrderedDict[str, IndexedFile] = field(default_factory=OrderedDict)
    functions: dict[str, FunctionRecord] = field(default_factory=dict)
    imports: dict[str, list[str]] = field(default_factory=dict)
    exports: dict[str, list[str]] = field(default_factory=dict)

    def add_file(self, indexed: IndexedFile, functions: list[FunctionRecord]) -> None:
        """Insert one file and its functions."""
        self.files[indexed.path] = indexed
        for func in functions:
            self.functions[func.index_key] = func
        self.imports[indexed.path] = list(indexed.imports)
        self.exports[indexed.path] = list(indexed.exports)

    def functions_named(self, name: str, file_prefix: str | None = None) -> list[FunctionRecord]:
        return [
            func
            for func in self.functions.values()
            if func.name == name and (file_prefix is None or func.file.startswith(file_prefix))
        ]

    def summary(self) -> dict[str, Any]:
        return {
            "repository": self.repository.id,
            "files": len(self.files),
            "functions": len(self.functions),
            "imports": sum(len(v) for v in self.imports.values()),
            "exports": sum(len(v) for v in self.exports.values()),
        }


# ============================================================================
# OPERATION RESULTS
# ============================================================================


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One matching line."""

    file: str
    line: int
    content: str
    match_type: MatchType = MatchType.EXACT
    score: float = 1.0
    repository: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file": self.file,
            "line": self.line,
            "content": self.content,
            "match_type": self.match_type.value,
            "score": self.score,
        }
        if self.repository is not None:
            data["repository"] = self.repository
        return data


@dataclass
class QueryResult:
    """Deduplicated hits for a keyword query."""

    query: str
    keywords: list[str]
    hits: list[SearchResult] = field(default_factory=list)

    def by_file(self) -> dict[tuple[str | None, str], list[SearchResult]]:
        """Group hits per (repository, file), first appearance order."""
        grouped: dict[tuple[str | None, str], list[SearchResult]] = {}
        for hit in self.hits:
            grouped.setdefault((hit.repository, hit.file), []).append(hit)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "keywords": list(self.keywords),
            "total": len(self.hits),
            "files": [
                {
                    "repository": repo,
                    "file": path,
                    "matches": [h.to_dict() for h in hits],
                }
                for (repo, path), hits in self.by_file().items()
            ],
        }


@dataclass(frozen=True, slots=True)
class FileContent:
    """A (possibly sliced and truncated) view of an indexed file."""

    path: str
    language: str
    content: str
    start_line: int
    end_line: int
    total_lines: int
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "content": self.content,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "total_lines": self.total_lines,
            "truncated": self.truncated,
        }


@dataclass(frozen=True, slots=True)
class FunctionMatch:
    """A function lookup hit with its body."""

    function: FunctionRecord
    language: str
    body: str

    def to_dict(self) -> dict[str, Any]:
        data = self.function.to_dict()
        data["language"] = self.language
        data["body"] = self.body
        return data


def utc_now() -> datetime:
    return datetime.now(UTC)


def split_lines(content: str) -> list[str]:
    """Split on LF only, dropping a trailing CR from each line.

    Form feeds and other Unicode separators stay inside their line, so line
    numbers agree with editors. A final newline does not start an extra
    empty line.
    """
    if not content:
        return []
    lines = [line.removesuffix("\r") for line in content.split("\n")]
    if lines[-1] == "":
        lines.pop()
    return lines


__all__ = [
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
    "split_lines",
    "utc_now",
]

"""High-level orchestration of the indexing engine.

This module implements the IndexCoordinator - the entry point for all index
operations. The pipeline for one indexing pass is:

    FileSource.list_files -> IgnoreChecker -> detect_language -> Extractor
        -> RepositoryIndex -> IndexStore.publish

Invariants:
- A RepositoryIndex is published only when its pass completes, so readers
  always see the last complete index (or none)
- Status moves only pending -> indexing -> {ready, error}
- A single file failing to read or extract is logged and skipped; it never
  fails the pass
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from pathlib import Path

import structlog

from repolens.config.models import RepoLensConfig
from repolens.core.errors import FileNotIndexed, IndexingPassFailed, InvalidArgument
from repolens.core.languages import detect_language
from repolens.core.logging import request_scope
from repolens.files.ops import DirectoryEntry, FileSource, LocalFileSource, validate_path_in_repo
from repolens.index._internal.extraction import get_extractor
from repolens.index._internal.ignore import IgnoreChecker, normalize_rel_path
from repolens.index.models import (
    FileContent,
    FunctionMatch,
    FunctionRecord,
    IndexedFile,
    IndexRequest,
    QueryResult,
    RemoteKind,
    Repository,
    RepositoryIndex,
    RepositoryKey,
    RepositoryStatus,
    SearchResult,
    split_lines,
    utc_now,
)
from repolens.index.query import QueryRouter
from repolens.index.search import compile_file_pattern, effective_limit
from repolens.index.search import search as search_index
from repolens.index.store import IndexStore, RepositoryStore

logger = structlog.get_logger()

_BUILTIN_ONLY = IgnoreChecker()


def resolve_local_path(key: RepositoryKey, repos_directory: str | Path) -> Path:
    """Where the checkout for a key lives on disk.

    Remote clones live under ``<repos_directory>/<owner>/<name>``; for a
    ``local`` key the owner is the parent directory of the checkout.
    """
    if key.remote is RemoteKind.LOCAL:
        return Path(key.owner) / key.name
    return Path(repos_directory) / key.owner / key.name


def extract_file(path: str, content: str) -> tuple[IndexedFile, list[FunctionRecord]]:
    """Classify and extract one file."""
    language = detect_language(path)
    extractor = get_extractor(language)
    functions = extractor.extract_functions(content, path)
    indexed = IndexedFile(
        path=path,
        content=content,
        language=language,
        line_count=len(split_lines(content)),
        functions=tuple(extractor.extract_function_names(content)),
        imports=tuple(extractor.extract_imports(content)),
        exports=tuple(extractor.extract_exports(content)),
    )
    return indexed, functions


class IndexCoordinator:
    """
    Owns the indexing lifecycle and the read operations over its results.

    Stores and the file source are injected so each coordinator (and each
    test) has its own isolated state.

    Usage::

        coordinator = IndexCoordinator(config=load_config())
        repo = await coordinator.index_repository(
            IndexRequest(remote="local", owner="/src", name="project")
        )

        # Reads never wait on a running pass
        hits = coordinator.search(repo.key, "handlePayment")
        answer = coordinator.query("How does payment work?", [repo.key])
    """

    def __init__(
        self,
        repositories: RepositoryStore | None = None,
        indexes: IndexStore | None = None,
        source: FileSource | None = None,
        config: RepoLensConfig | None = None,
    ) -> None:
        self.config = config if config is not None else RepoLensConfig()
        self.repositories = repositories if repositories is not None else RepositoryStore()
        self.indexes = indexes if indexes is not None else IndexStore()
        if source is None:
            max_bytes = self.config.index.max_file_size_mb * 1024 * 1024
            source = LocalFileSource(max_file_bytes=max_bytes)
        self.source = source
        self.router = QueryRouter(
            self.repositories,
            self.indexes,
            per_keyword=self.config.limits.query_per_keyword,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def register(self, key: RepositoryKey, force_reload: bool = False) -> Repository:
        """Register a key for indexing.

        Returns the existing record unchanged if it is ready (and no reload is
        requested) or a pass is already running; otherwise stores a fresh
        pending record, replacing any previous one.
        """
        existing = self.repositories.get(key)
        if existing is not None:
            if existing.status == RepositoryStatus.INDEXING:
                return existing
            if existing.status == RepositoryStatus.READY and not force_reload:
                return existing

        record = Repository(
            key=key,
            local_path=str(resolve_local_path(key, self.config.storage.repos_directory)),
        )
        self.repositories.put(record)
        logger.info(
            "repository_registered",
            repository=key.id,
            path=record.local_path,
            force_reload=force_reload,
        )
        return record

    def begin_indexing(self, repository: Repository) -> None:
        """Move a pending record to indexing and reset its counters."""
        repository.transition(RepositoryStatus.INDEXING)
        repository.files_processed = 0
        repository.total_files = None
        repository.error = None

    async def index_all(self, repository: Repository, files: Iterable[str]) -> RepositoryIndex:
        """Read and extract every file into a new (unpublished) index."""
        root = Path(repository.local_path)
        flush_every = self.config.index.progress_flush_interval
        index = RepositoryIndex(repository=repository)
        processed = 0

        for rel_path in files:
            try:
                content = await self.source.read_file(root, rel_path)
                indexed, functions = extract_file(rel_path, content)
            except Exception as e:
                logger.warning(
                    "file_index_failed",
                    repository=repository.id,
                    path=rel_path,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            index.add_file(indexed, functions)
            processed += 1
            if processed % flush_every == 0:
                repository.files_processed = processed
                logger.debug(
                    "indexing_progress",
                    repository=repository.id,
                    files_processed=processed,
                    total_files=repository.total_files,
                )

        repository.files_processed = processed
        return index

    async def run_pass(self, key: RepositoryKey) -> RepositoryIndex:
        """Run one full indexing pass for a registered, pending key.

        Raises:
            RepositoryNotFound: The key was never registered.
            IndexingPassFailed: The pass failed or timed out; the record is
                left in ``error`` with the message attached.
        """
        repository = self.repositories.require(key)
        with request_scope(repository=repository.id):
            return await self._run_pass(repository)

    async def _run_pass(self, repository: Repository) -> RepositoryIndex:
        self.begin_indexing(repository)
        logger.info("indexing_started", path=repository.local_path)

        timeout = self.config.index.pass_timeout_sec
        start = time.perf_counter()
        try:
            if timeout is None:
                index = await self._collect(repository)
            else:
                index = await asyncio.wait_for(self._collect(repository), timeout)
        except asyncio.CancelledError:
            self._fail(repository, "indexing pass cancelled")
            raise
        except TimeoutError as e:
            failure = IndexingPassFailed.timeout(repository.id, timeout or 0)
            self._fail(repository, failure.message)
            raise failure from e
        except Exception as e:
            failure = IndexingPassFailed.from_exception(repository.id, e)
            self._fail(repository, failure.message)
            raise failure from e

        self.indexes.publish(index)
        repository.transition(RepositoryStatus.READY)
        repository.indexed_at = utc_now()
        logger.info(
            "indexing_completed",
            files_processed=repository.files_processed,
            total_files=repository.total_files,
            functions=len(index.functions),
            duration_seconds=round(time.perf_counter() - start, 3),
        )
        return index

    async def index_repository(self, request: IndexRequest) -> Repository:
        """Register and index in the foreground.

        Honors the same fast path as ``register``: a ready record (without
        ``force_reload``) or one already indexing is returned as-is.
        """
        record = self.register(request.key, force_reload=request.force_reload)
        if record.status != RepositoryStatus.PENDING:
            logger.debug("indexing_skipped", repository=record.id, status=record.status.value)
            return record
        await self.run_pass(record.key)
        return record

    async def _collect(self, repository: Repository) -> RepositoryIndex:
        root = Path(repository.local_path)
        all_files = await self.source.list_files(root)
        ignore_text = await self.source.read_ignore_file(root, self.config.index.ignore_file_name)
        checker = IgnoreChecker(ignore_text, extra_extensions=self.config.index.extra_extensions)
        eligible = checker.filter(all_files)

        repository.total_files = len(eligible)
        logger.debug(
            "files_resolved",
            listed=len(all_files),
            eligible=len(eligible),
            ignore_rules=len(checker.rules),
        )
        return await self.index_all(repository, eligible)

    def _fail(self, repository: Repository, message: str) -> None:
        repository.error = message
        if repository.status == RepositoryStatus.INDEXING:
            repository.transition(RepositoryStatus.ERROR)
        logger.error("indexing_failed", error=message)

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self, key: RepositoryKey) -> Repository:
        """Status record for a key, or RepositoryNotFound."""
        return self.repositories.require(key)

    def list_repositories(self, status: RepositoryStatus | str | None = None) -> list[Repository]:
        if isinstance(status, str):
            try:
                status = RepositoryStatus(status)
            except ValueError:
                raise InvalidArgument.for_field("status", status, "unknown status") from None
        return self.repositories.list(status)

    def get_index(self, key: RepositoryKey) -> RepositoryIndex:
        """Published index for a key.

        Raises:
            RepositoryNotFound: The key was never registered.
            RepositoryNotIndexed: No pass for the key has completed yet.
        """
        record = self.repositories.require(key)
        return self.indexes.require(key, record.status)

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        key: RepositoryKey,
        query: str,
        file_pattern: str | None = None,
        case_sensitive: bool = False,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Literal search in one repository's published index."""
        index = self.get_index(key)
        return search_index(
            index,
            query,
            file_pattern=file_pattern,
            case_sensitive=case_sensitive,
            limit=limit if limit is not None else self.config.limits.search_default,
        )

    def search_repositories(
        self,
        keys: Iterable[RepositoryKey],
        query: str,
        file_pattern: str | None = None,
        case_sensitive: bool = False,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Literal search across repositories, tagging hits with their id.

        Repositories that are unknown or not ready are skipped. The total is
        capped at ``limit`` as well as each repository's share.
        """
        cap = effective_limit(limit if limit is not None else self.config.limits.search_default)
        # Reject a bad pattern even when nothing is searchable
        compile_file_pattern(file_pattern)

        results: list[SearchResult] = []
        with request_scope():
            for key in keys:
                record = self.repositories.get(key)
                index = self.indexes.get(key)
                if record is None or record.status != RepositoryStatus.READY or index is None:
                    continue
                results.extend(
                    search_index(
                        index,
                        query,
                        file_pattern=file_pattern,
                        case_sensitive=case_sensitive,
                        limit=cap - len(results),
                        repository=key.id,
                    )
                )
                if len(results) >= cap:
                    break
        return results

    def query(self, text: str, keys: Iterable[RepositoryKey] | None = None) -> QueryResult:
        """Keyword query across ready repositories."""
        return self.router.query(text, keys)

    # =========================================================================
    # Read operations
    # =========================================================================

    def get_file_content(
        self,
        key: RepositoryKey,
        path: str,
        start_line: int | None = None,
        end_line: int | None = None,
    ) -> FileContent:
        """Indexed content of one file, optionally sliced to a line range.

        Lines are 1-indexed and inclusive. The text is truncated to
        ``limits.file_content_chars`` characters.
        """
        index = self.get_index(key)
        rel_path = normalize_rel_path(path)
        indexed = index.files.get(rel_path)
        if indexed is None:
            raise FileNotIndexed.for_path(key.id, rel_path)

        if start_line is not None and start_line < 1:
            raise InvalidArgument.for_field("start_line", start_line, "must be >= 1")
        if end_line is not None and end_line < (start_line or 1):
            raise InvalidArgument.for_field("end_line", end_line, "must be >= start_line")

        lines = indexed.lines()
        first = start_line or 1
        last = min(end_line, len(lines)) if end_line is not None else len(lines)
        if start_line is None and end_line is None:
            content = indexed.content
        else:
            content = "\n".join(lines[first - 1 : last])

        limit = self.config.limits.file_content_chars
        truncated = len(content) > limit
        if truncated:
            content = content[:limit]

        return FileContent(
            path=rel_path,
            language=indexed.language,
            content=content,
            start_line=first,
            end_line=max(first, last) if lines else first,
            total_lines=len(lines),
            truncated=truncated,
        )

    async def get_file_tree(self, key: RepositoryKey, directory: str = "") -> list[DirectoryEntry]:
        """One directory level of the checkout, built-in exclusions applied.

        Directories come first, then files, each sorted by name.
        """
        record = self.repositories.require(key)
        root = Path(record.local_path)
        rel_dir = normalize_rel_path(directory).rstrip("/")
        if rel_dir:
            validate_path_in_repo(root, rel_dir)

        entries = await self.source.list_directory(root, rel_dir)
        visible = [e for e in entries if not _BUILTIN_ONLY.is_ignored(e.path, is_dir=e.is_dir)]
        visible.sort(key=lambda e: (not e.is_dir, e.name.lower()))
        return visible

    def find_functions(
        self,
        key: RepositoryKey,
        name: str,
        file_path: str | None = None,
    ) -> list[FunctionMatch]:
        """Functions called ``name``, optionally under a path prefix, with bodies."""
        index = self.get_index(key)
        prefix = normalize_rel_path(file_path) if file_path else None

        matches: list[FunctionMatch] = []
        for func in index.functions_named(name, prefix):
            indexed = index.files.get(func.file)
            if indexed is None:
                continue
            body = "\n".join(indexed.lines()[func.start_line - 1 : func.end_line])
            matches.append(FunctionMatch(function=func, language=indexed.language, body=body))
        return matches


__all__ = ["IndexCoordinator", "extract_file", "resolve_local_path"]

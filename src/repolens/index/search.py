"""Literal text search over a published repository index.

The query is literal text (regex metacharacters are escaped). ``file_pattern``
is a real regular expression, applied with ``re.search`` to each file path.
Files are visited in index insertion order and lines in order; the scan stops
as soon as ``limit`` results are collected, so results are a prefix of the
full match list rather than a ranking.
"""

from __future__ import annotations

import re
import time

import structlog

from repolens.config.constants import SEARCH_MAX_LIMIT
from repolens.core.errors import InvalidArgument, InvalidFilterPattern
from repolens.index.models import MatchType, RepositoryIndex, SearchResult, split_lines

logger = structlog.get_logger()


def compile_query(query: str, *, case_sensitive: bool = False) -> re.Pattern[str]:
    """Compile a query as a literal, case-insensitive unless requested."""
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(re.escape(query), flags)


def compile_file_pattern(file_pattern: str | None) -> re.Pattern[str] | None:
    """Compile a caller-supplied path filter, raising InvalidFilterPattern."""
    if file_pattern is None or file_pattern == "":
        return None
    try:
        return re.compile(file_pattern)
    except re.error as e:
        raise InvalidFilterPattern.for_pattern(file_pattern, str(e)) from e


def effective_limit(limit: int) -> int:
    """Clamp a requested limit to the hard maximum."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidArgument.for_field("limit", limit, "must be a positive integer")
    return min(limit, SEARCH_MAX_LIMIT)


def search(
    index: RepositoryIndex,
    query: str,
    file_pattern: str | None = None,
    case_sensitive: bool = False,
    limit: int = 20,
    *,
    repository: str | None = None,
) -> list[SearchResult]:
    """Find lines containing ``query``.

    Args:
        index: Published index to scan.
        query: Literal text to find.
        file_pattern: Optional regex a file path must match.
        case_sensitive: Match case exactly.
        limit: Maximum results; clamped to SEARCH_MAX_LIMIT.
        repository: Repository id to tag results with, for multi-repo callers.

    Raises:
        InvalidFilterPattern: ``file_pattern`` does not compile.
        InvalidArgument: ``query`` is empty or ``limit`` is not positive.
    """
    if not query:
        raise InvalidArgument.for_field("query", query, "must not be empty")
    cap = effective_limit(limit)
    path_filter = compile_file_pattern(file_pattern)
    matcher = compile_query(query, case_sensitive=case_sensitive)

    start = time.perf_counter()
    results: list[SearchResult] = []
    files_scanned = 0

    for path, indexed in index.files.items():
        if path_filter is not None and not path_filter.search(path):
            continue
        files_scanned += 1
        for lineno, line in enumerate(split_lines(indexed.content), start=1):
            if not matcher.search(line):
                continue
            results.append(
                SearchResult(
                    file=path,
                    line=lineno,
                    content=line.strip(),
                    match_type=MatchType.EXACT,
                    score=1.0,
                    repository=repository,
                )
            )
            if len(results) >= cap:
                break
        if len(results) >= cap:
            break

    logger.debug(
        "search_executed",
        repository=index.repository.id,
        query=query,
        results=len(results),
        files_scanned=files_scanned,
        truncated=len(results) >= cap,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return results


__all__ = ["compile_file_pattern", "compile_query", "effective_limit", "search"]

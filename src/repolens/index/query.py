"""Keyword fan-out for natural-language questions.

A question is reduced to keywords, each keyword is searched literally in
every requested repository that is ready, and the hits are deduplicated by
(repository, file, line). There is no ranking: hits keep accumulation order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from repolens.config.constants import QUERY_MAX_KEYWORDS, QUERY_RESULTS_PER_KEYWORD
from repolens.core.logging import request_scope
from repolens.index.models import QueryResult, RepositoryKey, RepositoryStatus, SearchResult
from repolens.index.search import search
from repolens.index.store import IndexStore, RepositoryStore

logger = structlog.get_logger()

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the",
        "is",
        "at",
        "which",
        "on",
        "a",
        "an",
        "and",
        "or",
        "but",
        "in",
        "with",
        "to",
        "for",
        "of",
        "how",
        "does",
        "what",
        "where",
        "why",
        "when",
        "who",
        "this",
        "that",
        "these",
        "those",
        "are",
        "was",
    }
)

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(text: str, max_keywords: int = QUERY_MAX_KEYWORDS) -> list[str]:
    """Reduce a question to search keywords.

    Lower-cases, turns punctuation into spaces, drops tokens of two
    characters or fewer and stop words, and keeps the first ``max_keywords``.
    Repeated tokens are kept; deduplication happens on hits.
    """
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    keywords = [tok for tok in cleaned.split() if len(tok) > 2 and tok not in STOP_WORDS]
    return keywords[:max_keywords]


def dedupe_hits(hits: Iterable[SearchResult]) -> list[SearchResult]:
    """Drop repeated (repository, file, line) hits, first one wins."""
    seen: set[tuple[str | None, str, int]] = set()
    unique: list[SearchResult] = []
    for hit in hits:
        marker = (hit.repository, hit.file, hit.line)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(hit)
    return unique


class QueryRouter:
    """Runs keyword queries against the published indexes."""

    def __init__(
        self,
        repositories: RepositoryStore,
        indexes: IndexStore,
        *,
        per_keyword: int = QUERY_RESULTS_PER_KEYWORD,
    ) -> None:
        self._repositories = repositories
        self._indexes = indexes
        self._per_keyword = per_keyword

    def query(self, text: str, keys: Iterable[RepositoryKey] | None = None) -> QueryResult:
        """Answer a question with deduplicated literal hits.

        Repositories that are unknown, not ready, or have no published index
        are skipped. ``keys=None`` means every registered repository.
        """
        keywords = extract_keywords(text)
        targets = list(keys) if keys is not None else [r.key for r in self._repositories]

        with request_scope():
            searchable = []
            for key in targets:
                record = self._repositories.get(key)
                index = self._indexes.get(key)
                if record is None or record.status != RepositoryStatus.READY or index is None:
                    logger.debug(
                        "query_repository_skipped",
                        repository=key.id,
                        status=record.status.value if record else None,
                    )
                    continue
                searchable.append((key, index))

            hits: list[SearchResult] = []
            for key, index in searchable:
                for keyword in keywords:
                    hits.extend(search(index, keyword, limit=self._per_keyword, repository=key.id))

            result = QueryResult(query=text, keywords=keywords, hits=dedupe_hits(hits))
            logger.info(
                "query_executed",
                keywords=keywords,
                repositories=len(searchable),
                hits=len(result.hits),
            )
        return result


__all__ = ["STOP_WORDS", "QueryRouter", "dedupe_hits", "extract_keywords"]

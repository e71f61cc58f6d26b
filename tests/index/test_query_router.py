"""Tests for keyword queries.

Covers:
- extract_keywords() normalization and filtering
- dedupe_hits()
- QueryRouter fan-out, skipping and deduplication
"""

from __future__ import annotations

from repolens.index.models import (
    IndexedFile,
    RemoteKind,
    Repository,
    RepositoryIndex,
    RepositoryKey,
    RepositoryStatus,
    SearchResult,
)
from repolens.index.query import QueryRouter, dedupe_hits, extract_keywords
from repolens.index.store import IndexStore, RepositoryStore


def _publish(
    repositories: RepositoryStore,
    indexes: IndexStore,
    name: str,
    files: dict[str, str],
    status: RepositoryStatus = RepositoryStatus.READY,
) -> RepositoryKey:
    key = RepositoryKey(remote=RemoteKind.GITHUB, owner="acme", name=name)
    repo = Repository(key=key, local_path=f"/tmp/{name}", status=status)
    index = RepositoryIndex(repository=repo)
    for path, content in files.items():
        index.add_file(
            IndexedFile(
                path=path,
                content=content,
                language="typescript",
                line_count=len(content.splitlines()),
            ),
            [],
        )
    repositories.put(repo)
    indexes.publish(index)
    return key


class TestExtractKeywords:
    """Tests for extract_keywords."""

    def test_question_reduced_to_keywords(self) -> None:
        assert extract_keywords("How does add work?") == ["add", "work"]

    def test_punctuation_becomes_whitespace(self) -> None:
        assert extract_keywords("user.login(token)!") == ["user", "login", "token"]

    def test_lowercases(self) -> None:
        assert extract_keywords("Where is PaymentService?") == ["paymentservice"]

    def test_short_tokens_dropped(self) -> None:
        assert extract_keywords("go to db on io") == []

    def test_repeats_kept_and_capped(self) -> None:
        text = " ".join(f"word{i}" for i in range(15))
        keywords = extract_keywords(text)
        assert len(keywords) == 10
        assert keywords[0] == "word0"
        assert extract_keywords("cache cache") == ["cache", "cache"]

    def test_empty_text(self) -> None:
        assert extract_keywords("") == []
        assert extract_keywords("?!") == []


class TestDedupeHits:
    def test_first_occurrence_wins(self) -> None:
        first = SearchResult(file="a.ts", line=1, content="add work", repository="r")
        dup = SearchResult(file="a.ts", line=1, content="add work", repository="r")
        other_repo = SearchResult(file="a.ts", line=1, content="add work", repository="s")

        result = dedupe_hits([first, dup, other_repo])

        assert result == [first, other_repo]
        assert result[0] is first


class TestQueryRouter:
    """Tests for QueryRouter.query."""

    def test_given_two_keywords_on_one_line_when_queried_then_hit_once(self) -> None:
        # Given
        repositories, indexes = RepositoryStore(), IndexStore()
        key = _publish(
            repositories,
            indexes,
            "calc",
            {"main.ts": "export const add = (a, b) => a + b; // work\n"},
        )

        # When
        result = QueryRouter(repositories, indexes).query("How does add work?", [key])

        # Then
        assert result.keywords == ["add", "work"]
        assert [(h.file, h.line) for h in result.hits] == [("main.ts", 1)]
        assert result.hits[0].repository == key.id

    def test_given_unready_or_unknown_repository_when_queried_then_skipped(self) -> None:
        # Given
        repositories, indexes = RepositoryStore(), IndexStore()
        ready = _publish(repositories, indexes, "ready", {"a.ts": "payment\n"})
        busy = _publish(
            repositories,
            indexes,
            "busy",
            {"b.ts": "payment\n"},
            status=RepositoryStatus.INDEXING,
        )
        unknown = RepositoryKey(remote=RemoteKind.GITHUB, owner="acme", name="ghost")

        # When
        result = QueryRouter(repositories, indexes).query("payment", [unknown, busy, ready])

        # Then
        assert {h.repository for h in result.hits} == {ready.id}

    def test_given_no_keys_when_queried_then_every_registered_repository(self) -> None:
        repositories, indexes = RepositoryStore(), IndexStore()
        one = _publish(repositories, indexes, "one", {"a.ts": "invoice\n"})
        two = _publish(repositories, indexes, "two", {"b.ts": "invoice\n"})

        result = QueryRouter(repositories, indexes).query("invoice")

        assert [h.repository for h in result.hits] == [one.id, two.id]

    def test_hits_ordered_repository_then_keyword(self) -> None:
        repositories, indexes = RepositoryStore(), IndexStore()
        key = _publish(
            repositories,
            indexes,
            "svc",
            {"a.ts": "alpha\nbeta\n", "b.ts": "beta\nalpha\n"},
        )

        result = QueryRouter(repositories, indexes).query("beta alpha", [key])

        assert [(h.file, h.line) for h in result.hits] == [
            ("a.ts", 2),
            ("b.ts", 1),
            ("a.ts", 1),
            ("b.ts", 2),
        ]

    def test_per_keyword_limit(self) -> None:
        repositories, indexes = RepositoryStore(), IndexStore()
        key = _publish(repositories, indexes, "svc", {"a.ts": "token\n" * 30})

        result = QueryRouter(repositories, indexes, per_keyword=5).query("token", [key])

        assert len(result.hits) == 5

    def test_no_keywords_means_no_hits(self) -> None:
        repositories, indexes = RepositoryStore(), IndexStore()
        key = _publish(repositories, indexes, "svc", {"a.ts": "the is at\n"})

        result = QueryRouter(repositories, indexes).query("is the", [key])

        assert result.keywords == []
        assert result.hits == []
        assert result.to_dict()["files"] == []

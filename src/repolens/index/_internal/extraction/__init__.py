"""Structural-fact extraction protocol and registry.

Defines the interface for extracting functions, imports and exports from
file text, and a registry that picks an extractor per language family.
Only the lexical (regex) strategy ships; a parser-backed extractor can be
registered for a family without changing the RepositoryIndex contract.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from repolens.core.languages import LanguageFamily, get_family

if TYPE_CHECKING:
    from repolens.index.models import FunctionRecord


# =============================================================================
# Extractor Protocol
# =============================================================================


@runtime_checkable
class Extractor(Protocol):
    """Extracts structural facts from the text of one file."""

    @property
    def language(self) -> str:
        """Language tag this extractor instance was built for."""
        ...

    def extract_functions(self, content: str, path: str) -> list[FunctionRecord]:
        """Functions with line ranges, in source order."""
        ...

    def extract_function_names(self, content: str) -> list[str]:
        """Declared function names, deduplicated, first-seen order."""
        ...

    def extract_imports(self, content: str) -> list[str]:
        """Import targets, deduplicated, first-seen order."""
        ...

    def extract_exports(self, content: str) -> list[str]:
        """Exported names, deduplicated, first-seen order."""
        ...


ExtractorFactory = Callable[[str], Extractor]


# =============================================================================
# Registry
# =============================================================================


class ExtractorRegistry:
    """Maps language families to extractor factories."""

    def __init__(self, fallback: ExtractorFactory) -> None:
        self._factories: dict[LanguageFamily, ExtractorFactory] = {}
        self._fallback = fallback
        self._cache: dict[str, Extractor] = {}

    def register(self, family: LanguageFamily, factory: ExtractorFactory) -> None:
        """Register a factory for a family, replacing any previous one."""
        self._factories[family] = factory
        self._cache.clear()

    def get(self, language: str) -> Extractor:
        """Extractor for a language tag; unknown languages use the fallback."""
        extractor = self._cache.get(language)
        if extractor is None:
            family = get_family(language)
            factory = self._factories.get(family, self._fallback) if family else self._fallback
            extractor = factory(language)
            self._cache[language] = extractor
        return extractor

    def registered_families(self) -> list[LanguageFamily]:
        return list(self._factories)


# Global registry instance
_registry: ExtractorRegistry | None = None


def get_registry() -> ExtractorRegistry:
    """Get the global extractor registry, initializing if needed."""
    global _registry
    if _registry is None:
        # Import here to avoid circular imports
        from repolens.index._internal.extraction.heuristic import HeuristicExtractor

        _registry = ExtractorRegistry(fallback=HeuristicExtractor)
    return _registry


def get_extractor(language: str) -> Extractor:
    """Extractor for a language tag from the global registry."""
    return get_registry().get(language)


__all__ = [
    "Extractor",
    "ExtractorFactory",
    "ExtractorRegistry",
    "get_extractor",
    "get_registry",
]

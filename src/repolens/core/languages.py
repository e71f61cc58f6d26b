"""Canonical language definitions.

This module defines the authoritative mapping of:
- File extensions → language tags
- Language tags → language families

Design decisions:
1. Extensions are case-insensitive (normalized to lowercase during lookup)
2. Every extension maps to exactly ONE language tag
3. The set of indexable extensions is exactly the set of known extensions;
   configured extras are indexable but classify as UNKNOWN_LANGUAGE
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

UNKNOWN_LANGUAGE = "unknown"


class LanguageFamily(str, Enum):
    """Coarse language families used to group extraction rules."""

    C_LIKE = "c_like"  # C, C++, C#, Java, Kotlin, Scala, Go, Rust, Swift, PHP
    WEB = "web"  # TypeScript, JavaScript, Vue, Svelte, HTML, CSS
    SCRIPTING = "scripting"  # Python, Ruby, shells
    DATA = "data"  # JSON, YAML, XML, Markdown, SQL, GraphQL, Protobuf
    INFRASTRUCTURE = "infrastructure"  # Terraform


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for a language tag.

    Attributes:
        name: Unique tag (lowercase, e.g., "python", "typescript")
        extensions: File extensions including dot (e.g., ".py")
        family: Coarse family used by the lexical extractor
    """

    name: str
    extensions: frozenset[str]
    family: LanguageFamily


# =============================================================================
# Language Definitions
# =============================================================================

ALL_LANGUAGES: tuple[Language, ...] = (
    # Web frontend
    Language("typescript", frozenset({".ts", ".tsx"}), LanguageFamily.WEB),
    Language("javascript", frozenset({".js", ".jsx", ".mjs", ".cjs"}), LanguageFamily.WEB),
    Language("vue", frozenset({".vue"}), LanguageFamily.WEB),
    Language("svelte", frozenset({".svelte"}), LanguageFamily.WEB),
    Language("html", frozenset({".html"}), LanguageFamily.WEB),
    Language("css", frozenset({".css"}), LanguageFamily.WEB),
    Language("scss", frozenset({".scss"}), LanguageFamily.WEB),
    Language("sass", frozenset({".sass"}), LanguageFamily.WEB),
    Language("less", frozenset({".less"}), LanguageFamily.WEB),
    # Scripting
    Language("python", frozenset({".py", ".pyw"}), LanguageFamily.SCRIPTING),
    Language("ruby", frozenset({".rb"}), LanguageFamily.SCRIPTING),
    Language("bash", frozenset({".sh", ".bash"}), LanguageFamily.SCRIPTING),
    Language("zsh", frozenset({".zsh"}), LanguageFamily.SCRIPTING),
    # C-like / systems
    Language("java", frozenset({".java"}), LanguageFamily.C_LIKE),
    Language("kotlin", frozenset({".kt"}), LanguageFamily.C_LIKE),
    Language("scala", frozenset({".scala"}), LanguageFamily.C_LIKE),
    Language("go", frozenset({".go"}), LanguageFamily.C_LIKE),
    Language("rust", frozenset({".rs"}), LanguageFamily.C_LIKE),
    Language("c", frozenset({".c", ".h"}), LanguageFamily.C_LIKE),
    Language("cpp", frozenset({".cpp", ".cc", ".hpp"}), LanguageFamily.C_LIKE),
    Language("csharp", frozenset({".cs"}), LanguageFamily.C_LIKE),
    Language("php", frozenset({".php"}), LanguageFamily.C_LIKE),
    Language("swift", frozenset({".swift"}), LanguageFamily.C_LIKE),
    # Data / markup
    Language("sql", frozenset({".sql"}), LanguageFamily.DATA),
    Language("yaml", frozenset({".yaml", ".yml"}), LanguageFamily.DATA),
    Language("json", frozenset({".json"}), LanguageFamily.DATA),
    Language("xml", frozenset({".xml"}), LanguageFamily.DATA),
    Language("markdown", frozenset({".md"}), LanguageFamily.DATA),
    Language("mdx", frozenset({".mdx"}), LanguageFamily.DATA),
    Language("graphql", frozenset({".graphql", ".gql"}), LanguageFamily.DATA),
    Language("protobuf", frozenset({".proto"}), LanguageFamily.DATA),
    # Infrastructure-as-code
    Language("terraform", frozenset({".tf", ".tfvars"}), LanguageFamily.INFRASTRUCTURE),
)


def _build_extension_map() -> dict[str, str]:
    mapping: dict[str, str] = {}
    for lang in ALL_LANGUAGES:
        for ext in lang.extensions:
            if ext in mapping:
                msg = f"Extension {ext} declared by both {mapping[ext]} and {lang.name}"
                raise ValueError(msg)
            mapping[ext] = lang.name
    return mapping


EXTENSION_TO_NAME: dict[str, str] = _build_extension_map()
LANGUAGES_BY_NAME: dict[str, Language] = {lang.name: lang for lang in ALL_LANGUAGES}


def normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext


def file_extension(path: str | PurePosixPath) -> str:
    """Lowercased final suffix of a repo-relative path ('' if none)."""
    return PurePosixPath(str(path).replace("\\", "/")).suffix.lower()


def language_for_extension(ext: str) -> str:
    """Language tag for an extension, or UNKNOWN_LANGUAGE."""
    return EXTENSION_TO_NAME.get(normalize_extension(ext), UNKNOWN_LANGUAGE)


def detect_language(path: str | PurePosixPath) -> str:
    """Language tag for a file path, or UNKNOWN_LANGUAGE."""
    return EXTENSION_TO_NAME.get(file_extension(path), UNKNOWN_LANGUAGE)


def get_family(name: str) -> LanguageFamily | None:
    lang = LANGUAGES_BY_NAME.get(name)
    return lang.family if lang else None


def indexable_extensions(extra: tuple[str, ...] | list[str] = ()) -> frozenset[str]:
    """All known extensions plus any configured extras."""
    return frozenset(EXTENSION_TO_NAME) | {normalize_extension(e) for e in extra if e.strip()}


__all__ = [
    "ALL_LANGUAGES",
    "EXTENSION_TO_NAME",
    "LANGUAGES_BY_NAME",
    "UNKNOWN_LANGUAGE",
    "Language",
    "LanguageFamily",
    "detect_language",
    "file_extension",
    "get_family",
    "indexable_extensions",
    "language_for_extension",
    "normalize_extension",
]

"""Ignore-rule resolution for the indexing pass.

Combines a repository's own ignore-file (gitignore syntax) with the built-in
exclusions from ``repolens.core.excludes``. Built-in rules are appended after
the repository's rules and the last matching rule decides, so a repository
can never un-ignore a built-in exclusion.

Pattern syntax:
- Standard glob patterns per path segment (fnmatch: ``*``, ``?``, ``[...]``)
- ``!pattern`` negation
- ``dir/`` matches directories only (and therefore everything inside them)
- A leading or inner ``/`` anchors the pattern to the repository root;
  otherwise it matches a single path segment at any depth
- A leading ``**/`` matches at any depth; an inner ``**`` spans zero or more
  directories
- A path inside an ignored directory stays ignored even if a later rule
  negates it
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from repolens.core.excludes import BUILTIN_IGNORE_PATTERNS
from repolens.core.languages import file_extension, indexable_extensions

__all__ = [
    "IgnoreChecker",
    "IgnoreRule",
    "normalize_rel_path",
    "parse_ignore_text",
]


def normalize_rel_path(rel_path: str) -> str:
    """POSIX separators, no leading './' or '/'."""
    rel = rel_path.replace("\\", "/")
    while rel.startswith("./"):
        rel = rel[2:]
    return rel.lstrip("/")


@dataclass(frozen=True, slots=True)
class IgnoreRule:
    """One parsed ignore-file line."""

    pattern: str
    negated: bool = False
    dir_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, line: str) -> IgnoreRule | None:
        """Parse a line; returns None for blanks and comments."""
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        negated = line.startswith("!")
        if negated:
            line = line[1:]
        elif line.startswith("\\"):
            # Escaped leading '#' or '!'
            line = line[1:]

        dir_only = line.endswith("/")
        line = line.rstrip("/")

        any_depth = False
        while line.startswith("**/"):
            line = line[3:]
            any_depth = True

        if any_depth:
            anchored = False
        else:
            anchored = "/" in line
            line = line.lstrip("/")

        if not line:
            return None
        return cls(pattern=line, negated=negated, dir_only=dir_only, anchored=anchored)

    def matches(self, rel_path: str, *, is_dir: bool = False) -> bool:
        """Check the path or any of its ancestor directories against this rule."""
        parts = rel_path.split("/")
        for end in range(1, len(parts) + 1):
            if self.matches_exact(parts[:end], is_dir=end < len(parts) or is_dir):
                return True
        return False

    def matches_exact(self, parts: list[str], *, is_dir: bool = False) -> bool:
        """Check exactly this path, given as segments, against the rule."""
        if not parts or (self.dir_only and not is_dir):
            return False
        segments = self.pattern.split("/")
        if self.anchored:
            return _match_segments(segments, parts)
        if "**" not in segments:
            if len(parts) < len(segments):
                return False
            return _match_segments(segments, parts[len(parts) - len(segments) :])
        return any(_match_segments(segments, parts[start:]) for start in range(len(parts)))


def _match_segments(segments: list[str], parts: list[str]) -> bool:
    # '*' and '?' stay inside one segment; '**' spans zero or more segments
    if not segments:
        return not parts
    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(rest, parts[1:])


def parse_ignore_text(text: str | None) -> list[IgnoreRule]:
    if not text:
        return []
    rules: list[IgnoreRule] = []
    for line in text.splitlines():
        rule = IgnoreRule.parse(line)
        if rule is not None:
            rules.append(rule)
    return rules


_BUILTIN_RULES: tuple[IgnoreRule, ...] = tuple(
    parse_ignore_text("\n".join(BUILTIN_IGNORE_PATTERNS))
)


class IgnoreChecker:
    """Decides which repository files are eligible for indexing.

    A file is eligible only if its extension is indexable AND no ignore
    rule matches its repository-relative path.
    """

    def __init__(
        self,
        ignore_text: str | None = None,
        *,
        extra_extensions: Iterable[str] = (),
        include_builtin: bool = True,
    ) -> None:
        self._rules: list[IgnoreRule] = parse_ignore_text(ignore_text)
        if include_builtin:
            self._rules.extend(_BUILTIN_RULES)
        self._extensions = indexable_extensions(tuple(extra_extensions))

    @classmethod
    def from_file(cls, path: Path, **kwargs: object) -> IgnoreChecker:
        """Build from an ignore-file on disk. Missing or unreadable means no rules."""
        try:
            text: str | None = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            text = None
        return cls(text, **kwargs)  # type: ignore[arg-type]

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return tuple(self._rules)

    def is_ignored(self, rel_path: str, *, is_dir: bool = False) -> bool:
        rel = normalize_rel_path(rel_path)
        if not rel:
            return False
        parts = rel.split("/")
        # Nothing inside an ignored directory can be re-included
        for end in range(1, len(parts)):
            if self._decide(parts[:end], is_dir=True):
                return True
        return self._decide(parts, is_dir=is_dir)

    def _decide(self, parts: list[str], *, is_dir: bool) -> bool:
        # Last matching rule wins
        for rule in reversed(self._rules):
            if rule.matches_exact(parts, is_dir=is_dir):
                return not rule.negated
        return False

    def is_indexable(self, rel_path: str) -> bool:
        return file_extension(rel_path) in self._extensions

    def is_eligible(self, rel_path: str) -> bool:
        return self.is_indexable(rel_path) and not self.is_ignored(rel_path)

    def filter(self, rel_paths: Iterable[str]) -> list[str]:
        """Eligible paths, normalized, in input order."""
        return [normalize_rel_path(p) for p in rel_paths if self.is_eligible(p)]

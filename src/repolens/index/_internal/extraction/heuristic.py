"""Lexical (regex) extraction of functions, imports and exports.

No parser is involved. Each fact is recognised by ordered pattern tables
applied line by line. Rules are either universal or gated to a set of
language tags; a file whose language is unknown gets every rule.

Function boundaries come from brace balance, which means:
- braces inside strings or comments are counted
- nested anonymous functions are not distinguished
- brace-less bodies (Python, one-line arrows) run until the next
  declaration or end of file
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from repolens.core.languages import LANGUAGES_BY_NAME, UNKNOWN_LANGUAGE
from repolens.index.models import FunctionRecord, split_lines

# Names captured by call-like syntax that are never declarations
CONTROL_KEYWORDS: frozenset[str] = frozenset(
    {
        "if",
        "else",
        "elif",
        "for",
        "foreach",
        "while",
        "do",
        "switch",
        "case",
        "catch",
        "try",
        "except",
        "finally",
        "with",
        "return",
        "new",
        "typeof",
        "sizeof",
        "function",
        "throw",
        "await",
        "yield",
        "using",
        "lock",
        "unless",
        "until",
    }
)

_ES = ("typescript", "javascript", "vue", "svelte", "mdx")
_JVM = ("java", "kotlin", "scala")
_C = ("c", "cpp")
_STYLES = ("css", "scss", "sass", "less")


@dataclass(frozen=True, slots=True)
class PatternRule:
    """A compiled pattern plus the languages it applies to (None = all)."""

    pattern: re.Pattern[str]
    languages: frozenset[str] | None = None
    # Capture is a comma-separated list ("a, b as c")
    multi: bool = False

    def applies_to(self, language: str) -> bool:
        return self.languages is None or language in self.languages


def _rule(pattern: str, *languages: str, multi: bool = False) -> PatternRule:
    return PatternRule(
        pattern=re.compile(pattern),
        languages=frozenset(languages) if languages else None,
        multi=multi,
    )


# =============================================================================
# Function declarations (anchored, tested against the stripped line)
# =============================================================================

_C_FUNCTION = (
    r"^(?!(?:return|else|new|delete|throw|case|goto|typedef|using|namespace)\b)"
    r"(?:[\w:<>,~]+[\s*&]+)+?(~?\w+(?:::~?\w+)*)\s*\(([^)]*)\)"
    r"\s*(?:const\s*)?(?:noexcept\s*)?(?:override\s*)?\{?\s*$"
)

FUNCTION_RULES: tuple[PatternRule, ...] = (
    # function name(...), export default async function* name(...)
    _rule(r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function(?:\s*\*\s*|\s+)(\w+)\s*\(([^)]*)\)"),
    # const name = (...) =>
    _rule(
        r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s+)?"
        r"\(([^)]*)\)\s*(?::[^=]+)?=>"
    ),
    # const name = param =>
    _rule(r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(\w+)\s*=>"),
    # const name = function(...)
    _rule(
        r"^(?:export\s+)?(?:const|let|var)\s+(\w+)\s*(?::[^=]+)?=\s*(?:async\s+)?"
        r"function\s*\*?\s*\w*\s*\(([^)]*)\)"
    ),
    # def name(...) (Python, Ruby)
    _rule(r"^(?:async\s+)?def\s+(?:self\.)?(\w+[?!]?)\s*(?:\(([^)]*)\)?)?"),
    # func name(...) (Go, Swift)
    _rule(
        r"^(?:(?:public|private|internal|fileprivate|open|static|class|override|mutating|final)\s+)*"
        r"func\s+(?:\([^)]*\)\s*)?(\w+)\s*(?:[<\[][^>\]]*[>\]])?\s*\(([^)]*)\)"
    ),
    # fn name(...) (Rust)
    _rule(
        r'^(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?(?:extern\s+"[^"]*"\s+)?'
        r"fn\s+(\w+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"
    ),
    # fun name(...) (Kotlin)
    _rule(
        r"^(?:(?:public|private|protected|internal|override|open|suspend|inline|operator|infix|abstract)\s+)*"
        r"fun\s+(?:<[^>]*>\s*)?(?:[\w.]+\.)?(\w+)\s*\(([^)]*)\)",
        "kotlin",
    ),
    # Access-modified methods (Java, C#, PHP, TypeScript class members)
    _rule(
        r"^(?:public|private|protected|internal)\s+"
        r"(?:(?:static|final|abstract|synchronized|override|virtual|async|readonly|sealed|extern|unsafe)\s+)*"
        r"(?:[\w<>\[\],.?]+\s+)?(\w+)\s*(?:<[^>]*>)?\s*\(([^)]*)\)"
    ),
    # Return-type-prefixed definitions (C, C++)
    _rule(_C_FUNCTION, *_C),
    # Bare methods: name(...) {
    _rule(
        r"^(?:(?:public|private|protected|static|async|override|get|set)\s+)*\*?"
        r"(\w+)\s*\(([^)]*)\)\s*(?::\s*[\w<>\[\]|., ]+)?\s*\{"
    ),
)

# =============================================================================
# Function names (unanchored, every rule on every line)
# =============================================================================

NAME_RULES: tuple[PatternRule, ...] = (
    _rule(r"function\s+(\w+)\s*\("),
    _rule(r"(\w+)\s*=\s*(?:async\s+)?function\b"),
    _rule(r"(\w+)\s*=\s*(?:async\s+)?\([^)]*\)\s*(?::[^=]*)?=>"),
    _rule(r"(\w+)\s*\([^)]*\)\s*\{"),
    _rule(r"\bdef\s+(\w+)\s*\("),
    _rule(r"\bfunc\s+(?:\([^)]*\)\s*)?(\w+)\s*\("),
    _rule(r"\bfn\s+(\w+)\s*(?:<[^>]*>)?\s*\("),
    _rule(r"\bpublic\s+(?:static\s+)?(?:\w+\s+)?(\w+)\s*\("),
    _rule(r"\bfun\s+(?:<[^>]*>\s*)?(?:[\w.]+\.)?(\w+)\s*\(", "kotlin"),
    _rule(_C_FUNCTION, *_C),
)

# =============================================================================
# Imports
# =============================================================================

IMPORT_RULES: tuple[PatternRule, ...] = (
    # ES modules / CommonJS
    _rule(r"""import\s+.*?from\s+['"]([^'"]+)['"]""", *_ES),
    _rule(r"""^\s*import\s+['"]([^'"]+)['"]""", *_ES),
    _rule(r"""export\s+.*?from\s+['"]([^'"]+)['"]""", *_ES),
    _rule(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""", *_ES),
    _rule(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""", *_ES),
    # Python
    _rule(r"^\s*from\s+(\S+)\s+import\b", "python"),
    _rule(r"^\s*import\s+([\w.]+)", "python"),
    # Go: single-line and grouped forms
    _rule(r'^\s*import\s+(?:[\w.]+\s+)?"([^"]+)"', "go"),
    _rule(r'^\s*(?:[\w.]+\s+)?"([^"]+)"\s*$', "go"),
    # Rust (anchored so 'use strict' in JS never matches)
    _rule(r"^\s*(?:pub(?:\([^)]*\))?\s+)?use\s+([\w:]+(?:::\{[^}]*\})?)", "rust"),
    _rule(r"^\s*extern\s+crate\s+(\w+)", "rust"),
    # JVM
    _rule(r"^\s*import\s+(?:static\s+)?([\w.]*\w(?:\.\*|\._)?)", *_JVM),
    # C / C++
    _rule(r'^\s*#\s*include\s*[<"]([^>"]+)[>"]', *_C),
    # C#
    _rule(r"^\s*(?:global\s+)?using\s+(?:static\s+)?([\w.]+)\s*;", "csharp"),
    # PHP
    _rule(r"^\s*use\s+([\w\\]+)", "php"),
    _rule(r"""(?:require|include)(?:_once)?\s*\(?\s*['"]([^'"]+)['"]""", "php"),
    # Ruby
    _rule(r"""^\s*require(?:_relative)?\s*\(?\s*['"]([^'"]+)['"]""", "ruby"),
    # Stylesheets
    _rule(r"""@(?:import|use|forward)\s+(?:url\(\s*)?['"]?([^'")\s;]+)""", *_STYLES),
    # Protocol Buffers
    _rule(r'^\s*import\s+(?:public\s+|weak\s+)?"([^"]+)"', "protobuf"),
    # Terraform module sources
    _rule(r'^\s*source\s*=\s*"([^"]+)"', "terraform"),
    # Swift
    _rule(r"^\s*(?:@testable\s+)?import\s+(\w+)", "swift"),
)

# =============================================================================
# Exports
# =============================================================================

EXPORT_RULES: tuple[PatternRule, ...] = (
    _rule(
        r"export\s+(?:default\s+)?(?:const|let|var|function\*?|class|abstract\s+class|"
        r"async\s+function|interface|type|enum)\s+(\w+)",
        *_ES,
    ),
    _rule(r"export\s*(?:type\s*)?\{\s*([^}]+?)\s*\}", *_ES, multi=True),
    _rule(r"module\.exports\s*=\s*(\w+)", *_ES),
    _rule(r"exports\.(\w+)\s*=", *_ES),
    # Rust public items
    _rule(
        r"^\s*pub(?:\([^)]*\))?\s+(?:async\s+)?(?:unsafe\s+)?"
        r"(?:fn|struct|enum|trait|mod|const|static|type)\s+(\w+)",
        "rust",
    ),
    # Go exported (capitalised) top-level identifiers
    _rule(r"^func\s+(?:\([^)]*\)\s*)?([A-Z]\w*)\s*[\[(]", "go"),
    _rule(r"^(?:type|var|const)\s+([A-Z]\w*)\b", "go"),
)

_AS_SPLIT = re.compile(r"\s+as\s+")


def select_rules(rules: Iterable[PatternRule], language: str) -> tuple[PatternRule, ...]:
    """Rules applying to a language; an unknown language gets all of them."""
    if language == UNKNOWN_LANGUAGE or language not in LANGUAGES_BY_NAME:
        return tuple(rules)
    return tuple(rule for rule in rules if rule.applies_to(language))


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _split_list(capture: str) -> Iterator[str]:
    for item in capture.split(","):
        name = _AS_SPLIT.split(item.strip())[0].strip()
        if name:
            yield name


class HeuristicExtractor:
    """Regex-table extractor for one language tag."""

    def __init__(self, language: str = UNKNOWN_LANGUAGE) -> None:
        self._language = language
        self._function_rules = select_rules(FUNCTION_RULES, language)
        self._name_rules = select_rules(NAME_RULES, language)
        self._import_rules = select_rules(IMPORT_RULES, language)
        self._export_rules = select_rules(EXPORT_RULES, language)

    @property
    def language(self) -> str:
        return self._language

    def __repr__(self) -> str:
        return f"HeuristicExtractor(language={self._language!r})"

    def match_declaration(self, stripped_line: str) -> tuple[str, str] | None:
        """(name, raw params) of the first declaration rule matching the line."""
        for rule in self._function_rules:
            match = rule.pattern.match(stripped_line)
            if match is None:
                continue
            name = match.group(1)
            if not name or name in CONTROL_KEYWORDS:
                continue
            return name, match.group(2) or ""
        return None

    def extract_functions(self, content: str, path: str) -> list[FunctionRecord]:
        functions: list[FunctionRecord] = []
        lines = split_lines(content)

        # (name, start line, signature) of the function being tracked
        current: tuple[str, int, str] | None = None
        balance = 0

        for lineno, line in enumerate(lines, start=1):
            declared = self.match_declaration(line.strip())
            if declared is not None:
                if current is not None:
                    functions.append(_close(current, lineno - 1, path))
                name, params = declared
                current = (name, lineno, f"{name}({params})")
                balance = 0

            if current is not None:
                balance += line.count("{") - line.count("}")
                if balance <= 0 and "}" in line:
                    functions.append(_close(current, lineno, path))
                    current = None

        if current is not None:
            functions.append(_close(current, len(lines), path))
        return functions

    def extract_function_names(self, content: str) -> list[str]:
        names: list[str] = []
        for line in split_lines(content):
            for rule in self._name_rules:
                match = rule.pattern.search(line)
                if match and match.group(1) and match.group(1) not in CONTROL_KEYWORDS:
                    names.append(match.group(1))
        return _unique(names)

    def extract_imports(self, content: str) -> list[str]:
        return _unique(self._collect(content, self._import_rules))

    def extract_exports(self, content: str) -> list[str]:
        return _unique(self._collect(content, self._export_rules))

    @staticmethod
    def _collect(content: str, rules: tuple[PatternRule, ...]) -> Iterator[str]:
        for line in split_lines(content):
            for rule in rules:
                match = rule.pattern.search(line)
                if not match or not match.group(1):
                    continue
                if rule.multi:
                    yield from _split_list(match.group(1))
                else:
                    yield match.group(1)


def _close(current: tuple[str, int, str], end_line: int, path: str) -> FunctionRecord:
    name, start_line, signature = current
    return FunctionRecord(
        name=name,
        file=path,
        start_line=start_line,
        end_line=max(start_line, end_line),
        signature=signature,
    )


__all__ = [
    "CONTROL_KEYWORDS",
    "EXPORT_RULES",
    "FUNCTION_RULES",
    "HeuristicExtractor",
    "IMPORT_RULES",
    "NAME_RULES",
    "PatternRule",
    "select_rules",
]

"""Built-in exclusion rules.

These rules are appended AFTER the repository's own ignore-file, so a
repository cannot un-ignore them with a ``!pattern`` line.

- EXCLUDED_DIRS: directory names excluded at any depth
  (VCS internals, dependencies, build outputs, caches, IDE metadata)
- EXCLUDED_FILE_GLOBS: file name globs excluded at any depth
  (lock files, minified assets, source maps, logs)
"""

from __future__ import annotations

EXCLUDED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        # JavaScript/Node.js
        "node_modules",
        "bower_components",
        ".next",
        ".nuxt",
        # Python
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        "venv",
        ".venv",
        "env",
        ".env",
        ".tox",
        # Build outputs
        "dist",
        "build",
        "out",
        "target",
        "bin",
        "obj",
        # IDE/Editor
        ".idea",
        ".vscode",
    )
)

EXCLUDED_FILE_GLOBS: tuple[str, ...] = (
    # Minified assets and source maps
    "*.min.js",
    "*.min.css",
    "*.map",
    # Lock files
    "*.lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    # Logs
    "*.log",
)

BUILTIN_IGNORE_PATTERNS: tuple[str, ...] = (
    *(f"{d}/" for d in sorted(EXCLUDED_DIRS)),
    *EXCLUDED_FILE_GLOBS,
)
"""Gitignore-syntax lines equivalent to the two sets above."""


def is_excluded_dir(dirname: str) -> bool:
    """Check if a directory name is always excluded."""
    return dirname in EXCLUDED_DIRS


__all__ = [
    "BUILTIN_IGNORE_PATTERNS",
    "EXCLUDED_DIRS",
    "EXCLUDED_FILE_GLOBS",
    "is_excluded_dir",
]

"""Filesystem access for the indexing pass.

The indexing core never touches the filesystem directly; it goes through a
``FileSource``. ``LocalFileSource`` is the implementation for checkouts on
local disk. Blocking calls run in a worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import errno
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from repolens.core.errors import PathOutsideRepository
from repolens.core.excludes import is_excluded_dir
from repolens.core.languages import UNKNOWN_LANGUAGE, detect_language


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """A single file or directory entry."""

    name: str
    path: str  # Relative to repo root
    is_dir: bool
    size: int | None = None
    modified_at: datetime | None = None
    language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "type": "directory" if self.is_dir else "file",
            "size": self.size,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
            "language": self.language,
        }


def validate_path_in_repo(repo_root: Path, user_path: str) -> Path:
    """Validate that user_path is within repo_root, preventing traversal.

    Args:
        repo_root: Repository root directory
        user_path: Caller-provided path (relative to the root)

    Returns:
        Resolved absolute path if valid

    Raises:
        PathOutsideRepository: If the path escapes repo_root
    """
    resolved_root = repo_root.resolve()
    full_path = (repo_root / user_path).resolve()

    if not full_path.is_relative_to(resolved_root):
        raise PathOutsideRepository.for_path(user_path, str(resolved_root))

    return full_path


@runtime_checkable
class FileSource(Protocol):
    """What the indexing pass needs from a repository checkout."""

    async def list_files(self, root: Path) -> list[str]:
        """All file paths under root, relative, POSIX separators."""
        ...

    async def read_file(self, root: Path, rel_path: str) -> str:
        """Text content of one file. Raises OSError on failure."""
        ...

    async def read_ignore_file(self, root: Path, name: str = ".gitignore") -> str | None:
        """Content of the repository's ignore-file, None if absent or unreadable."""
        ...

    async def list_directory(self, root: Path, rel_path: str = "") -> list[DirectoryEntry]:
        """One level of a directory, unsorted and unfiltered."""
        ...


class LocalFileSource:
    """FileSource over a local checkout.

    File listing behaves like a non-dot glob: hidden files and directories
    are not returned. Always-excluded directories are pruned during the walk
    since no ignore-file can re-include them.
    """

    def __init__(self, *, max_file_bytes: int | None = None) -> None:
        self._max_file_bytes = max_file_bytes

    async def list_files(self, root: Path) -> list[str]:
        return await asyncio.to_thread(self._walk, root)

    async def read_file(self, root: Path, rel_path: str) -> str:
        return await asyncio.to_thread(self._read, root, rel_path)

    async def read_ignore_file(self, root: Path, name: str = ".gitignore") -> str | None:
        path = root / name
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
        except OSError:
            return None

    async def list_directory(self, root: Path, rel_path: str = "") -> list[DirectoryEntry]:
        return await asyncio.to_thread(self._list_dir, root, rel_path)

    def _walk(self, root: Path) -> list[str]:
        if not root.is_dir():
            raise FileNotFoundError(errno.ENOENT, "repository root is not a directory", str(root))

        def _raise(err: OSError) -> None:
            raise err

        paths: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and not is_excluded_dir(d)
            )
            rel_dir = Path(dirpath).relative_to(root)
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                paths.append((rel_dir / filename).as_posix())
        return paths

    def _read(self, root: Path, rel_path: str) -> str:
        full_path = validate_path_in_repo(root, rel_path)
        if self._max_file_bytes is not None:
            size = full_path.stat().st_size
            if size > self._max_file_bytes:
                raise OSError(
                    errno.EFBIG,
                    f"file is {size} bytes, limit is {self._max_file_bytes}",
                    rel_path,
                )
        return full_path.read_text(encoding="utf-8", errors="replace")

    def _list_dir(self, root: Path, rel_path: str) -> list[DirectoryEntry]:
        target = validate_path_in_repo(root, rel_path) if rel_path else root
        rel_base = rel_path.strip("/")
        if not target.is_dir():
            return []

        entries: list[DirectoryEntry] = []
        for item in target.iterdir():
            item_rel = f"{rel_base}/{item.name}" if rel_base else item.name
            if item.is_dir():
                entries.append(DirectoryEntry(name=item.name, path=item_rel, is_dir=True))
                continue

            size: int | None = None
            modified_at: datetime | None = None
            try:
                stat = item.stat()
                size = stat.st_size
                modified_at = datetime.fromtimestamp(stat.st_mtime, tz=UTC)
            except OSError:
                pass

            language = detect_language(item.name)
            entries.append(
                DirectoryEntry(
                    name=item.name,
                    path=item_rel,
                    is_dir=False,
                    size=size,
                    modified_at=modified_at,
                    language=None if language == UNKNOWN_LANGUAGE else language,
                )
            )
        return entries


__all__ = ["DirectoryEntry", "FileSource", "LocalFileSource", "validate_path_in_repo"]

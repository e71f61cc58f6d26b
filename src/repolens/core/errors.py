"""repolens error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (repositories, search, file lookups)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Index (3xxx)
    REPOSITORY_NOT_FOUND = 3001
    REPOSITORY_NOT_INDEXED = 3002
    INDEXING_PASS_FAILED = 3003
    INVALID_FILTER_PATTERN = 3004
    FILE_NOT_INDEXED = 3005
    PATH_OUTSIDE_REPOSITORY = 3006
    INVALID_ARGUMENT = 3007

    # Internal (9xxx)
    INTERNAL_ERROR = 9001
    INTERNAL_TIMEOUT = 9002


@dataclass(frozen=True, slots=True)
class RepoLensError(Exception):
    """Base error with structured context for boundary-layer responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'REPOSITORY_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(RepoLensError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class RepositoryNotFound(RepoLensError):
    """Operation references a repository key that was never registered."""

    @classmethod
    def for_key(cls, repo_id: str) -> "RepositoryNotFound":
        return cls(
            code=ErrorCode.REPOSITORY_NOT_FOUND,
            message=f"Repository {repo_id} not found. Index it first.",
            details={"repo_id": repo_id},
        )


class RepositoryNotIndexed(RepoLensError):
    """Content operation against a repository without a published index."""

    @classmethod
    def for_key(cls, repo_id: str, status: str | None = None) -> "RepositoryNotIndexed":
        return cls(
            code=ErrorCode.REPOSITORY_NOT_INDEXED,
            message=f"Repository {repo_id} not indexed",
            details={"repo_id": repo_id, "status": status},
        )


class IndexingPassFailed(RepoLensError):
    """Unrecoverable failure of a whole indexing pass."""

    @classmethod
    def from_exception(cls, repo_id: str, exc: BaseException) -> "IndexingPassFailed":
        reason = str(exc) or type(exc).__name__
        return cls(
            code=ErrorCode.INDEXING_PASS_FAILED,
            message=f"Indexing {repo_id} failed: {reason}",
            details={"repo_id": repo_id, "reason": reason},
        )

    @classmethod
    def timeout(cls, repo_id: str, seconds: float) -> "IndexingPassFailed":
        return cls(
            code=ErrorCode.INDEXING_PASS_FAILED,
            message=f"Indexing {repo_id} timed out after {seconds}s",
            details={"repo_id": repo_id, "timeout_sec": seconds},
        )


class InvalidFilterPattern(RepoLensError):
    """A caller-supplied pattern does not compile as a regex."""

    @classmethod
    def for_pattern(cls, pattern: str, reason: str) -> "InvalidFilterPattern":
        return cls(
            code=ErrorCode.INVALID_FILTER_PATTERN,
            message=f"Invalid pattern {pattern!r}: {reason}",
            details={"pattern": pattern, "reason": reason},
        )


class FileNotIndexed(RepoLensError):
    """Requested path is not part of the repository index."""

    @classmethod
    def for_path(cls, repo_id: str, path: str) -> "FileNotIndexed":
        return cls(
            code=ErrorCode.FILE_NOT_INDEXED,
            message=f"File not found: {path}",
            details={"repo_id": repo_id, "path": path},
        )


class PathOutsideRepository(RepoLensError):
    """A caller-supplied directory escapes the repository root."""

    @classmethod
    def for_path(cls, path: str, root: str) -> "PathOutsideRepository":
        return cls(
            code=ErrorCode.PATH_OUTSIDE_REPOSITORY,
            message=f"Path '{path}' escapes repository root",
            details={"path": path, "repo_root": root},
        )


class InvalidArgument(RepoLensError):
    """Caller passed an out-of-range argument."""

    @classmethod
    def for_field(cls, name: str, value: Any, reason: str) -> "InvalidArgument":
        return cls(
            code=ErrorCode.INVALID_ARGUMENT,
            message=f"Invalid {name}: {reason}",
            details={"field": name, "value": str(value), "reason": reason},
        )


class InternalError(RepoLensError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )

"""Core module exports."""

from repolens.core.errors import (
    ConfigError,
    ErrorCode,
    FileNotIndexed,
    IndexingPassFailed,
    InternalError,
    InvalidArgument,
    InvalidFilterPattern,
    PathOutsideRepository,
    RepoLensError,
    RepositoryNotFound,
    RepositoryNotIndexed,
)
from repolens.core.logging import configure_logging, get_request_id, request_scope

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "FileNotIndexed",
    "IndexingPassFailed",
    "InternalError",
    "InvalidArgument",
    "InvalidFilterPattern",
    "PathOutsideRepository",
    "RepoLensError",
    "RepositoryNotFound",
    "RepositoryNotIndexed",
    # Logging
    "configure_logging",
    "get_request_id",
    "request_scope",
]

"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (REPOLENS__SECTION__KEY)
3. Explicit YAML file passed to load_config()
4. Global YAML (~/.config/repolens/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    REPOLENS__<SECTION>__<KEY>=<VALUE>

Examples:
    REPOLENS__LOGGING__LEVEL=DEBUG
    REPOLENS__LIMITS__SEARCH_DEFAULT=50
    REPOLENS__INDEX__PASS_TIMEOUT_SEC=120
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from repolens.config.constants import (
    DEFAULT_REPOS_DIRECTORY,
    FILE_CONTENT_LIMIT,
    PROGRESS_FLUSH_INTERVAL,
    QUERY_RESULTS_PER_KEYWORD,
    SEARCH_MAX_LIMIT,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        REPOLENS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IndexConfig(BaseModel):
    """Indexing pass configuration.

    Env vars:
        REPOLENS__INDEX__IGNORE_FILE_NAME: Repository ignore-file to honour
        REPOLENS__INDEX__PROGRESS_FLUSH_INTERVAL: Files between progress flushes
        REPOLENS__INDEX__PASS_TIMEOUT_SEC: Abort a pass after this many seconds
        REPOLENS__INDEX__MAX_FILE_SIZE_MB: Skip files larger than this
    """

    ignore_file_name: str = Field(
        default=".gitignore",
        description="Ignore-file read from the repository root (gitignore syntax).",
    )
    extra_extensions: list[str] = Field(
        default_factory=list,
        description="Additional extensions to index. Files with these extensions "
        "are stored with language 'unknown'.",
    )
    progress_flush_interval: int = Field(
        default=PROGRESS_FLUSH_INTERVAL,
        description="Files processed between updates of the status counter.",
    )
    pass_timeout_sec: float | None = Field(
        default=None,
        description="Abort an indexing pass after this many seconds. None disables.",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Skip files larger than this (MB).",
    )

    @field_validator("extra_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        normalized: list[str] = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @field_validator("progress_flush_interval")
    @classmethod
    def validate_flush_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"progress_flush_interval must be >= 1, got {v}")
        return v

    @field_validator("pass_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"pass_timeout_sec must be positive, got {v}")
        return v


class LimitsConfig(BaseModel):
    """Query limit defaults.

    These are DEFAULT values - callers may override per request up to the
    hard maximums in constants.py.

    Env vars:
        REPOLENS__LIMITS__SEARCH_DEFAULT: Default search results
        REPOLENS__LIMITS__QUERY_PER_KEYWORD: Search limit per query keyword
        REPOLENS__LIMITS__FILE_CONTENT_CHARS: File content truncation
    """

    search_default: int = Field(
        default=20,
        description="Default search results when the caller gives no limit.",
    )
    query_per_keyword: int = Field(
        default=QUERY_RESULTS_PER_KEYWORD,
        description="Results fetched for each keyword of a natural-language query.",
    )
    file_content_chars: int = Field(
        default=FILE_CONTENT_LIMIT,
        description="Truncate file content responses to this many characters.",
    )

    @field_validator("search_default", "query_per_keyword")
    @classmethod
    def validate_search_limit(cls, v: int) -> int:
        if not (1 <= v <= SEARCH_MAX_LIMIT):
            raise ValueError(f"Must be 1-{SEARCH_MAX_LIMIT}, got {v}")
        return v

    @field_validator("file_content_chars")
    @classmethod
    def validate_content_chars(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"file_content_chars must be >= 1, got {v}")
        return v


class StorageConfig(BaseModel):
    """Local checkout locations.

    Env vars:
        REPOLENS__STORAGE__REPOS_DIRECTORY: Root for github/gitlab clones
    """

    repos_directory: str = Field(
        default=DEFAULT_REPOS_DIRECTORY,
        description="Directory holding <owner>/<name> checkouts for remote repositories.",
    )


class RepoLensConfig(BaseModel):
    """Root configuration for repolens.

    All settings can be configured via:
    1. Environment variables: REPOLENS__SECTION__KEY
    2. YAML config files (explicit or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

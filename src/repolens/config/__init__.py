"""Config module exports."""

from repolens.config.loader import RepoLensSettings, load_config
from repolens.config.models import (
    IndexConfig,
    LimitsConfig,
    LoggingConfig,
    RepoLensConfig,
    StorageConfig,
)

__all__ = [
    "load_config",
    "RepoLensConfig",
    "RepoLensSettings",
    "IndexConfig",
    "LimitsConfig",
    "LoggingConfig",
    "StorageConfig",
]

"""Application configuration helpers."""

from __future__ import annotations

from .env import env_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .jsonplaceholder import JsonPlaceholderConfig, get_jsonplaceholder_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "JsonPlaceholderConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_int",
    "get_database_config",
    "get_jsonplaceholder_config",
    "get_storage_config",
    "get_sync_config",
    "require_env_vars",
]

"""Application configuration helpers."""

from __future__ import annotations

from .env import env_bool, env_int, env_list, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .oracle import OracleConfig, Personalization, get_oracle_config, get_personalization
from .pipeline import PipelineConfig, get_pipeline_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "OracleConfig",
    "Personalization",
    "PipelineConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_bool",
    "env_int",
    "env_list",
    "get_database_config",
    "get_oracle_config",
    "get_personalization",
    "get_pipeline_config",
    "get_storage_config",
    "require_env_vars",
]

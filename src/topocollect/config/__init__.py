"""Application configuration helpers."""

from __future__ import annotations

from .azure import AzureConfig, default_azure_resilience, get_azure_config
from .collector import CollectorConfig, get_collector_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .ingress import IngressConfig, get_ingress_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "AzureConfig",
    "CollectorConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "IngressConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "default_azure_resilience",
    "get_azure_config",
    "get_collector_config",
    "get_database_config",
    "get_ingress_config",
    "get_storage_config",
    "require_env_vars",
]

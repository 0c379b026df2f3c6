"""Config module.

This module provides configuration management functionality.
"""

from respondent_registry.config.manager import (
    get_logging_config,
    get_registry_config,
    get_store_config,
    load_config,
)
from respondent_registry.config.schema import (
    ApiConfig,
    Config,
    LoggingConfig,
    OperationLoggingConfig,
    RegistryConfig,
    StoreConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Helper functions
    "get_store_config",
    "get_registry_config",
    "get_logging_config",
    # Configuration models
    "Config",
    "StoreConfig",
    "RegistryConfig",
    "ApiConfig",
    "LoggingConfig",
    "OperationLoggingConfig",
]

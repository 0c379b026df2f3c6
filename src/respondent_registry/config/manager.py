"""Configuration manager for loading and managing configuration.

Settings come from defaults, an optional JSON file and RESPONDENT_REGISTRY_*
environment variables, and are validated into a Config model.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from respondent_registry.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from respondent_registry.config.schema import (
    Config,
    LoggingConfig,
    RegistryConfig,
    StoreConfig,
)
from respondent_registry.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "RESPONDENT_REGISTRY_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (RESPONDENT_REGISTRY_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> store_url = config.store.url
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        )


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Raises:
        ConfigurationError: If JSON is malformed or the file is unreadable
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            )
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            )
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a JSON object at the top level"
            )
        return config_dict

    logger.info(f"Config file not found: {config_path}. Using default configuration.")
    # Deep copy so callers cannot mutate the defaults
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply RESPONDENT_REGISTRY_* environment variables over the file values.

    Raises:
        ConfigurationError: If a numeric override is not a number
    """
    for suffix, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.getenv(f"{ENV_PREFIX}{suffix}")
        if not raw:
            continue
        config_dict.setdefault(section, {})[key] = convert(raw, suffix)
        logger.debug(f"Override: {section}.{key} from {ENV_PREFIX}{suffix}")
    return config_dict


def _as_is(value: str, name: str) -> str:
    return value


def _parse_variant(value: str, name: str) -> str:
    return value.lower()


def _parse_bool(value: str, name: str = "") -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name}: {value!r}. Expected an integer."
        )


# Variable suffix -> (section, key, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str, str], Any]]] = {
    "STORE_URL": ("store", "url", _as_is),
    "SCHEMA_VARIANT": ("registry", "schema_variant", _parse_variant),
    "EXPORT_DIR": ("registry", "export_dir", _as_is),
    "API_HOST": ("api", "host", _as_is),
    "API_PORT": ("api", "port", _parse_int),
    "LOG_LEVEL": ("logging", "level", _as_is),
    "LOG_FILE": ("logging", "log_file", _as_is),
    "REDACT_PII": ("logging", "redact_pii", _parse_bool),
    "OP_LOG_STORE_LEVEL": ("operation_logging", "store_log_level", _as_is),
    "OP_LOG_API_LEVEL": ("operation_logging", "api_log_level", _as_is),
    "OP_LOG_EXPORT_LEVEL": ("operation_logging", "export_log_level", _as_is),
}


def get_store_config(config: Config) -> StoreConfig:
    """Get document store configuration."""
    return config.store


def get_registry_config(config: Config) -> RegistryConfig:
    """Get schema variant and export configuration.

    Example:
        >>> config = load_config()
        >>> get_registry_config(config).schema_variant
        <SchemaVariant.BASE: 'base'>
    """
    return config.registry


def get_logging_config(config: Config) -> LoggingConfig:
    """Get logging configuration."""
    return config.logging

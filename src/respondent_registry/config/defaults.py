"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Fallback used when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "store": {
        # Local SQLite file next to the working directory
        "url": "sqlite:///data/respondents.db",
        "echo": False,
    },
    "registry": {
        "schema_variant": "base",
        "export_dir": "exports",
    },
    "api": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/respondent-registry.log",
        # Opt-in: respondent names, phones and emails appear in logs otherwise
        "redact_pii": False,
    },
    "operation_logging": {
        "store_log_level": "INFO",
        "api_log_level": "INFO",
        "export_log_level": "INFO",
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"

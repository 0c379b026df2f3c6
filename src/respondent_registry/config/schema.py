"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from respondent_registry.models.respondent import SchemaVariant

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_log_level(v: str) -> str:
    v_upper = v.upper()
    if v_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )
    return v_upper


class StoreConfig(BaseModel):
    """Configuration for the respondent document store.

    Attributes:
        url: SQLAlchemy database URL
        echo: Whether to echo SQL statements (debugging only)
    """

    url: str = Field(
        default="sqlite:///data/respondents.db",
        description="Database URL for the respondent store",
    )
    echo: bool = False

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the store URL names a dialect.

        Raises:
            ValueError: If the URL has no scheme separator
        """
        if "://" not in v:
            raise ValueError(
                f"Invalid store URL: {v}. Expected a database URL such as "
                f"sqlite:///data/respondents.db"
            )
        return v


class RegistryConfig(BaseModel):
    """Configuration for respondent records and exports.

    Attributes:
        schema_variant: Active respondent schema (base or extended)
        export_dir: Directory where exports are written
    """

    schema_variant: SchemaVariant = Field(
        default=SchemaVariant.BASE,
        description="Respondent schema: base or extended",
    )
    export_dir: Path = Field(
        default=Path("exports"),
        description="Directory for CSV/XLSX exports",
    )


class ApiConfig(BaseModel):
    """Configuration for the HTTP API.

    Attributes:
        host: Bind address
        port: Bind port
    """

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535, description="HTTP port")


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = "INFO"
    log_file: Path = Path("logs/respondent-registry.log")
    redact_pii: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize the log level.

        Raises:
            ValueError: If level is not a valid logging level
        """
        return _validate_log_level(v)


class OperationLoggingConfig(BaseModel):
    """Per-operation log levels.

    Attributes:
        store_log_level: Log level for store reads and writes
        api_log_level: Log level for HTTP API requests
        export_log_level: Log level for CSV/XLSX exports
    """

    store_log_level: str = "INFO"
    api_log_level: str = "INFO"
    export_log_level: str = "INFO"

    @field_validator("store_log_level", "api_log_level", "export_log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        return _validate_log_level(v)


class Config(BaseModel):
    """Main configuration model.

    Attributes:
        store: Document store connection settings
        registry: Schema variant and export settings
        api: HTTP API settings
        logging: Logging settings
        operation_logging: Per-operation log levels
    """

    store: StoreConfig = Field(default_factory=StoreConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    operation_logging: OperationLoggingConfig = Field(default_factory=OperationLoggingConfig)

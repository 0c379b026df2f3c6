"""Logging configuration and logger factory for the Respondent Registry.

Console output at a chosen level, a rotating DEBUG log file, optional PII
redaction, and separate levels for the store, api and export loggers.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .formatters import PIIRedactingFormatter

if TYPE_CHECKING:
    from ..config.schema import OperationLoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "respondent-registry.log"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5
LOG_FILE_ENV_VAR = "RESPONDENT_REGISTRY_LOG_FILE"

_logging_configured = False

OPERATION_LOGGERS = {
    "store": "respondent_registry.store",
    "api": "respondent_registry.api",
    "export": "respondent_registry.export",
}

logger = logging.getLogger(__name__)


def _numeric_level(level: str, label: str = "log level") -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid {label}: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return numeric_level


def _handler(
    handler: logging.Handler, level: int, redact_pii: bool
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii))
    return handler


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return Path(log_file)
    from_env = os.environ.get(LOG_FILE_ENV_VAR)
    return Path(from_env) if from_env else DEFAULT_LOG_FILE


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Install the console and rotating file handlers on the root logger.

    The console handler logs at ``level``; the file handler always logs at
    DEBUG. Calling this again replaces the handlers from the previous call.

    Args:
        level: Console log level name.
        log_file: Log file path. Falls back to $RESPONDENT_REGISTRY_LOG_FILE,
            then to logs/respondent-registry.log.
        redact_pii: Mask respondent names, phone numbers and emails.

    Raises:
        ValueError: If ``level`` is not a logging level name.
        RuntimeError: If the log directory cannot be created.
    """
    global _logging_configured

    console_level = _numeric_level(level)
    log_path = _resolve_log_file(log_file)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Cannot create log directory {log_path.parent}: {e}") from e

    root = logging.getLogger()
    if _logging_configured:
        for existing in list(root.handlers):
            root.removeHandler(existing)
            existing.close()

    root.setLevel(logging.DEBUG)
    root.addHandler(_handler(logging.StreamHandler(), console_level, redact_pii))

    try:
        rotating = RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        root.warning("Cannot open log file %s (%s); logging to console only", log_path, e)
    else:
        root.addHandler(_handler(rotating, logging.DEBUG, redact_pii))

    _logging_configured = True


def get_logger(module_name: str) -> logging.Logger:
    """Return the logger for ``module_name`` (pass ``__name__``)."""
    return logging.getLogger(module_name)


def get_operation_logger(operation: str) -> logging.Logger:
    """Return the logger for one of the store, api or export operations.

    Raises:
        ValueError: If operation is not a recognized type
    """
    try:
        return logging.getLogger(OPERATION_LOGGERS[operation])
    except KeyError:
        raise ValueError(
            f"Unknown operation: {operation}. Expected one of: {', '.join(OPERATION_LOGGERS)}"
        ) from None


def configure_operation_logging(
    store_log_level: str = "INFO",
    api_log_level: str = "INFO",
    export_log_level: str = "INFO",
) -> None:
    """Set the level of each operation logger independently."""
    levels = zip(OPERATION_LOGGERS, (store_log_level, api_log_level, export_log_level))
    for operation, level in levels:
        target = get_operation_logger(operation)
        target.setLevel(_numeric_level(level, label=f"{operation} log level"))
        logger.debug("%s logger level: %s", target.name, level.upper())


def configure_operation_logging_from_config(config: "OperationLoggingConfig") -> None:
    """Configure operation logging from an OperationLoggingConfig object."""
    configure_operation_logging(
        store_log_level=config.store_log_level,
        api_log_level=config.api_log_level,
        export_log_level=config.export_log_level,
    )

"""Audit trail functionality for the Respondent Registry.

This module provides structured audit logging for tracking changes to
respondent records and exports.
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)

# Key fields rendered first, in this order
AUDIT_FIELD_ORDER = [
    "status",
    "record_id",
    "record_count",
    "output_file",
    "duration",
    "error_message",
    "correlation_id",
]


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Audit events are
    logged at INFO level for successful operations and ERROR level for
    failures.

    Args:
        event_type: Type of operation (e.g., "RESPONDENT_CREATED",
                    "RESPONDENT_UPDATED", "RESPONDENT_DELETED", "EXPORT_WRITTEN")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - record_id: Affected respondent id
                - record_count: Number of records exported
                - output_file: Path of a written export
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for related events

    Example:
        >>> log_audit_event("RESPONDENT_CREATED", {
        ...     "record_id": "3f2a...",
        ...     "status": "success",
        ...     "duration": 0.02
        ... })
    """
    details = dict(details)
    details.setdefault("timestamp", time.time())
    details.setdefault("correlation_id", str(uuid.uuid4()))

    message_parts = [f"AUDIT [{event_type}]"]

    for field in AUDIT_FIELD_ORDER:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in AUDIT_FIELD_ORDER and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    if details.get("status") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)

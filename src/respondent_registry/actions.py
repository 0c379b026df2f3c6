"""Request/response actions on respondent records.

Each action wraps one store operation and returns an ActionResponse envelope
instead of raising, so the CLI, the HTTP API and the editor can all render the
outcome the same way. Every mutation writes an audit event.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from respondent_registry.logging_audit import get_logger, log_audit_event
from respondent_registry.models.respondent import FieldViolation, RespondentRecord
from respondent_registry.store.respondents import RespondentStore
from respondent_registry.utils.exceptions import (
    DuplicatePhoneError,
    ReadFailure,
    RecordNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

MSG_CREATED = "Respondent added successfully."
MSG_UPDATED = "Respondent updated successfully."
MSG_DELETED = "Respondent deleted successfully."
MSG_VALIDATION_FAILED = "Validation failed. Please check your input."
MSG_DUPLICATE_PHONE = "A respondent with this phone number already exists."
MSG_DUPLICATE_PHONE_OTHER = "Another respondent with this phone number already exists."
MSG_NOT_FOUND = "Respondent not found."
MSG_UNEXPECTED = "An unexpected error occurred."

# Values of ActionResponse.error
ERROR_VALIDATION = "validation"
ERROR_DUPLICATE_PHONE = "duplicate_phone"
ERROR_NOT_FOUND = "not_found"
ERROR_UNEXPECTED = "unexpected"


@dataclass
class ActionResponse:
    """Outcome of one action.

    Attributes:
        success: Whether the write was committed
        message: Human-readable outcome
        violations: Field-level problems when validation failed
        record_id: Affected respondent id
        record: Stored record after a successful create or update
        error: Failure category (validation, duplicate_phone, not_found,
               unexpected), None on success
    """

    success: bool
    message: str
    violations: list[FieldViolation] = field(default_factory=list)
    record_id: Optional[str] = None
    record: Optional[RespondentRecord] = None
    error: Optional[str] = None

    def messages_by_field(self) -> dict[str, str]:
        """Map each offending field to its message, for inline display."""
        return {v.field: v.message for v in self.violations}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.violations:
            data["errors"] = self.messages_by_field()
        if self.record_id is not None:
            data["id"] = self.record_id
        return data


def create_record(store: RespondentStore, data: Any) -> ActionResponse:
    """Validate and insert a respondent.

    Args:
        store: Respondent store
        data: Untyped respondent fields

    Returns:
        ActionResponse; success carries the new record
    """
    start_time = time.time()
    try:
        record = store.create(data)
    except ValidationError as e:
        return _validation_failure(e)
    except DuplicatePhoneError:
        _audit_failure("RESPONDENT_CREATED", None, MSG_DUPLICATE_PHONE)
        return ActionResponse(False, MSG_DUPLICATE_PHONE, error=ERROR_DUPLICATE_PHONE)
    except Exception as e:
        logger.exception("Error adding respondent")
        _audit_failure("RESPONDENT_CREATED", None, str(e))
        return ActionResponse(False, MSG_UNEXPECTED, error=ERROR_UNEXPECTED)

    log_audit_event(
        "RESPONDENT_CREATED",
        {
            "status": "success",
            "record_id": record.id,
            "duration": time.time() - start_time,
        },
    )
    return ActionResponse(True, MSG_CREATED, record_id=record.id, record=record)


def read_all_records(store: RespondentStore) -> list[RespondentRecord]:
    """Return every respondent, newest first.

    A read failure is logged and reported as an empty list. Callers that need
    to tell "store unreachable" from "no respondents" use
    ``RespondentStore.read_all`` directly.
    """
    try:
        return store.read_all()
    except ReadFailure:
        logger.exception("Error fetching respondents")
        return []


def update_record(store: RespondentStore, record_id: str, data: Any) -> ActionResponse:
    """Validate and overwrite an existing respondent."""
    start_time = time.time()
    try:
        record = store.update(record_id, data)
    except ValidationError as e:
        return _validation_failure(e, record_id=record_id)
    except DuplicatePhoneError:
        _audit_failure("RESPONDENT_UPDATED", record_id, MSG_DUPLICATE_PHONE_OTHER)
        return ActionResponse(
            False,
            MSG_DUPLICATE_PHONE_OTHER,
            record_id=record_id,
            error=ERROR_DUPLICATE_PHONE,
        )
    except RecordNotFoundError:
        _audit_failure("RESPONDENT_UPDATED", record_id, MSG_NOT_FOUND)
        return ActionResponse(
            False, MSG_NOT_FOUND, record_id=record_id, error=ERROR_NOT_FOUND
        )
    except Exception as e:
        logger.exception("Error updating respondent")
        _audit_failure("RESPONDENT_UPDATED", record_id, str(e))
        return ActionResponse(
            False, MSG_UNEXPECTED, record_id=record_id, error=ERROR_UNEXPECTED
        )

    log_audit_event(
        "RESPONDENT_UPDATED",
        {
            "status": "success",
            "record_id": record_id,
            "duration": time.time() - start_time,
        },
    )
    return ActionResponse(True, MSG_UPDATED, record_id=record_id, record=record)


def delete_record(store: RespondentStore, record_id: str) -> ActionResponse:
    """Remove a respondent. A missing id still reports success."""
    try:
        store.delete(record_id)
    except Exception as e:
        logger.exception("Error deleting respondent")
        _audit_failure("RESPONDENT_DELETED", record_id, str(e))
        return ActionResponse(
            False, MSG_UNEXPECTED, record_id=record_id, error=ERROR_UNEXPECTED
        )

    log_audit_event("RESPONDENT_DELETED", {"status": "success", "record_id": record_id})
    return ActionResponse(True, MSG_DELETED, record_id=record_id)


def _validation_failure(
    error: ValidationError, record_id: Optional[str] = None
) -> ActionResponse:
    logger.info(f"Rejected respondent input: invalid fields {', '.join(error.fields)}")
    return ActionResponse(
        False,
        MSG_VALIDATION_FAILED,
        violations=error.violations,
        record_id=record_id,
        error=ERROR_VALIDATION,
    )


def _audit_failure(event_type: str, record_id: Optional[str], message: str) -> None:
    details: dict[str, Any] = {"status": "failure", "error_message": message}
    if record_id is not None:
        details["record_id"] = record_id
    log_audit_event(event_type, details)

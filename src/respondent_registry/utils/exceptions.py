"""Custom exception classes for the Respondent Registry.

All exceptions inherit from RegistryError to allow catching all custom exceptions.
"""

from typing import Optional

from respondent_registry.models.respondent import FieldViolation


class RegistryError(Exception):
    """Base exception for all Respondent Registry custom exceptions."""

    pass


class ValidationError(RegistryError):
    """Raised when respondent input fails schema validation.

    Carries every field-level violation so callers can display all problems
    at once.

    Examples:
        - Name shorter than 2 characters
        - Date of birth in the future
        - Non-positive height or weight
    """

    def __init__(
        self,
        message: str = "Validation failed. Please check your input.",
        violations: Optional[list[FieldViolation]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.violations: list[FieldViolation] = list(violations or [])

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields, in report order."""
        return [v.field for v in self.violations]

    def __str__(self) -> str:
        if not self.violations:
            return self.message
        details = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        return f"{self.message} ({details})"


class DuplicatePhoneError(RegistryError):
    """Raised when another respondent already holds the phone number.

    Examples:
        - Creating a respondent with a phone number already on file
        - Updating a respondent to a phone number held by a different record
    """

    def __init__(self, phone: str, record_id: Optional[str] = None) -> None:
        super().__init__(f"A respondent with phone number {phone} already exists")
        self.phone = phone
        self.record_id = record_id


class RecordNotFoundError(RegistryError):
    """Raised when a respondent id does not exist in the store."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Respondent not found: {record_id}")
        self.record_id = record_id


class StoreError(RegistryError):
    """Raised when the backing document store fails unexpectedly.

    Examples:
        - Database file unreadable
        - Connection refused
        - Schema mismatch
    """

    pass


class ReadFailure(StoreError):
    """Raised when listing respondents fails.

    Distinguishes "store unreachable" from "zero records" for callers that
    need to know.
    """

    pass


class ConfigurationError(RegistryError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - Unknown schema variant
        - Configuration value out of range
    """

    pass


class ExportError(RegistryError):
    """Raised when exporting the respondent view fails.

    Examples:
        - Unsupported export format
        - Output directory cannot be created
    """

    pass

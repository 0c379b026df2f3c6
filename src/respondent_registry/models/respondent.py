"""Respondent data model.

This module defines the dataclasses shared by the store, the browser and the
editor for representing a persisted respondent and field-level violations.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class SchemaVariant(str, Enum):
    """Which respondent schema is active.

    BASE carries name, dob, phone, email, height and weight. EXTENDED adds
    place of birth, gender, address, semester and medical history.
    """

    BASE = "base"
    EXTENDED = "extended"


class Gender(str, Enum):
    """Gender values accepted by the extended schema."""

    MALE = "male"
    FEMALE = "female"


@dataclass(frozen=True)
class FieldViolation:
    """A single field that failed validation.

    Attributes:
        field: Name of the offending field (e.g. "dob")
        message: Human-readable description of the problem
    """

    field: str
    message: str


@dataclass
class RespondentRecord:
    """A respondent as read back from the store.

    Temporal fields use the canonical ISO 8601 wire form
    (YYYY-MM-DDTHH:MM:SS.mmmZ) so they can cross any serialization boundary
    unchanged.

    Attributes:
        id: Store-assigned identifier, immutable
        name: Full name
        dob: Date of birth as ISO 8601 timestamp (midnight UTC)
        phone: Phone number, unique across all records
        height: Height in centimeters
        weight: Weight in kilograms
        created_at: Store-assigned creation timestamp, immutable
        email: Contact email (required by the base schema)
        pob: Place of birth (extended schema)
        gender: "male" or "female" (extended schema)
        address: Home address (extended schema)
        semester: Academic semester (extended schema)
        medical_history: Free-text medical history (extended schema, optional)
    """

    id: str
    name: str
    dob: str
    phone: str
    height: float
    weight: float
    created_at: str
    email: Optional[str] = None
    pob: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    semester: Optional[int] = None
    medical_history: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the record as a plain JSON-serializable dictionary."""
        return asdict(self)

"""Schema validation for respondent input.

This module defines the declarative respondent schemas and validates untyped
input against them, collecting every field-level violation before reporting
so callers can display all problems at once.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from respondent_registry.logging_audit import get_logger
from respondent_registry.models.respondent import FieldViolation, Gender, SchemaVariant
from respondent_registry.utils.dates import parse_date, today_utc
from respondent_registry.utils.exceptions import ValidationError


logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# Earliest accepted date of birth
MIN_DOB = date(1900, 1, 1)

# Message shown for a field when pydantic's own message would be too technical
FIELD_MESSAGES: dict[str, str] = {
    "name": "Name must be at least 2 characters.",
    "dob": "Date of birth is required.",
    "phone": "Please enter a valid phone number.",
    "email": "Please enter a valid email address.",
    "height": "Height must be a positive number.",
    "weight": "Weight must be a positive number.",
    "pob": "Place of birth must be at least 2 characters.",
    "gender": "Please select a gender (male or female).",
    "address": "Address must be at least 5 characters.",
    "semester": "Semester must be a whole number of at least 1.",
    "medical_history": "Medical history must be text.",
}


class RespondentInput(BaseModel):
    """Normalized respondent fields for the base schema.

    Attributes:
        name: Full name, at least 2 characters
        dob: Date of birth between 1900-01-01 and today
        phone: Phone number, at least 10 characters
        email: Contact email address
        height: Height in centimeters, at least 1
        weight: Weight in kilograms, at least 1
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, allow_inf_nan=False)

    name: str = Field(..., min_length=2)
    dob: date
    phone: str = Field(..., min_length=10)
    email: str
    height: float = Field(..., ge=1)
    weight: float = Field(..., ge=1)

    @field_validator("phone", mode="before")
    @classmethod
    def coerce_phone(cls, v: Any) -> Any:
        """Accept phone numbers that arrive as JSON numbers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("dob", mode="before")
    @classmethod
    def validate_dob(cls, v: Any, info: ValidationInfo) -> date:
        """Parse the date of birth and check it is within bounds.

        Raises:
            ValueError: If missing, unparseable, in the future or before 1900
        """
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Date of birth is required.")
        try:
            parsed = parse_date(v)
        except (TypeError, ValueError):
            raise ValueError("Date of birth must be a valid date (YYYY-MM-DD).")

        today = (info.context or {}).get("today") or today_utc()
        if parsed > today:
            raise ValueError("Date of birth cannot be in the future.")
        if parsed < MIN_DOB:
            raise ValueError(f"Date of birth cannot be before {MIN_DOB.isoformat()}.")
        return parsed

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError(FIELD_MESSAGES["email"])
        return v


class ExtendedRespondentInput(RespondentInput):
    """Respondent fields for the extended schema.

    Adds place of birth, gender, address, semester and an optional medical
    history. Email becomes optional.
    """

    email: Optional[str] = None
    pob: str = Field(..., min_length=2)
    gender: Gender
    address: str = Field(..., min_length=5)
    semester: int = Field(..., ge=1)
    medical_history: Optional[str] = None

    @field_validator("email", "medical_history", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


SCHEMAS: dict[SchemaVariant, type[RespondentInput]] = {
    SchemaVariant.BASE: RespondentInput,
    SchemaVariant.EXTENDED: ExtendedRespondentInput,
}


@dataclass
class ValidationResult:
    """Outcome of validating one respondent input.

    Exactly one of ``record`` and ``violations`` is populated.

    Attributes:
        record: Normalized, strictly-typed input when validation passed
        violations: One entry per offending field when validation failed
    """

    record: Optional[RespondentInput] = None
    violations: list[FieldViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check that no field violated its constraints."""
        return not self.violations

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields, in schema order."""
        return [v.field for v in self.violations]


def validate_respondent(
    data: Any,
    variant: SchemaVariant = SchemaVariant.BASE,
    today: Optional[date] = None,
) -> ValidationResult:
    """Validate untyped respondent input against the active schema.

    Checks every field (not fail-fast). Unknown keys such as ``id``,
    ``created_at``, ``age`` or ``bmi`` are ignored.

    Args:
        data: Mapping of field names to raw values (strings, numbers, dates)
        variant: Which schema to validate against
        today: Reference date for the date-of-birth upper bound (defaults to
               the current UTC date)

    Returns:
        ValidationResult with either the normalized record or the violations
    """
    if not isinstance(data, Mapping):
        return ValidationResult(
            violations=[
                FieldViolation("__root__", "Input must be a mapping of field names to values.")
            ]
        )

    schema = SCHEMAS[SchemaVariant(variant)]
    try:
        record = schema.model_validate(dict(data), context={"today": today})
    except PydanticValidationError as e:
        result = ValidationResult(violations=_to_violations(e))
        logger.debug(
            f"Respondent validation failed on {len(result.fields)} field(s): "
            f"{', '.join(result.fields)}"
        )
        return result

    return ValidationResult(record=record)


def require_valid(
    data: Any,
    variant: SchemaVariant = SchemaVariant.BASE,
    today: Optional[date] = None,
) -> RespondentInput:
    """Validate input and return the normalized record.

    Raises:
        ValidationError: If any field violates its constraints
    """
    result = validate_respondent(data, variant=variant, today=today)
    if not result.is_valid:
        raise ValidationError(violations=result.violations)
    return result.record


def _to_violations(error: PydanticValidationError) -> list[FieldViolation]:
    """Convert pydantic errors to one violation per offending field."""
    violations: list[FieldViolation] = []
    seen: set[str] = set()

    for err in error.errors():
        loc = err.get("loc") or ("__root__",)
        field_name = str(loc[0])
        if field_name in seen:
            continue
        seen.add(field_name)

        if err["type"] == "value_error":
            message = str(err.get("ctx", {}).get("error", err["msg"]))
        else:
            message = FIELD_MESSAGES.get(field_name, err["msg"])
        violations.append(FieldViolation(field=field_name, message=message))

    return violations

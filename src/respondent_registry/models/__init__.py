"""Models module.

This module provides data models and dataclasses for the application.
"""

from respondent_registry.models.respondent import (
    FieldViolation,
    Gender,
    RespondentRecord,
    SchemaVariant,
)

__all__ = [
    "FieldViolation",
    "Gender",
    "RespondentRecord",
    "SchemaVariant",
]

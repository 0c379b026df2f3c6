"""Derived respondent fields: age and BMI.

These values are computed from stored fields on every read or render and are
never persisted. The editor preview and the browser rows both go through
``derive_fields`` so they always agree for the same inputs.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from respondent_registry.utils.dates import parse_date, today_utc


@dataclass(frozen=True)
class DerivedFields:
    """Age and BMI computed for one respondent.

    Attributes:
        age: Whole years since date of birth, or None when dob is unknown
        bmi: Body Mass Index rounded to 2 decimals, or None when height or
             weight is missing or non-positive
    """

    age: Optional[int]
    bmi: Optional[float]


def calculate_age(dob: Any, today: Optional[date] = None) -> Optional[int]:
    """Calculate whole years between a date of birth and today.

    Args:
        dob: Date of birth (date, datetime, or ISO 8601 string)
        today: Reference date (defaults to the current UTC date)

    Returns:
        Age in whole years, or None if dob is missing or unparseable

    Example:
        >>> calculate_age("2000-01-01", today=date(2024, 6, 15))
        24
    """
    if dob is None or dob == "":
        return None
    try:
        born = parse_date(dob)
    except (TypeError, ValueError):
        return None

    today = today or today_utc()
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


def calculate_bmi(height_cm: Any, weight_kg: Any) -> Optional[float]:
    """Calculate Body Mass Index from height in cm and weight in kg.

    Args:
        height_cm: Height in centimeters (number or numeric string)
        weight_kg: Weight in kilograms (number or numeric string)

    Returns:
        weight / (height/100)^2 rounded to 2 decimals, or None when either
        input is missing, non-numeric, non-positive or too extreme to divide

    Example:
        >>> calculate_bmi(170, 70)
        24.22
    """
    height = _to_positive_float(height_cm)
    weight = _to_positive_float(weight_kg)
    if height is None or weight is None:
        return None

    height_m = height / 100
    divisor = height_m * height_m
    if divisor == 0:
        return None
    bmi = weight / divisor
    if not math.isfinite(bmi):
        return None
    return round(bmi, 2)


def derive_fields(
    dob: Any, height: Any, weight: Any, today: Optional[date] = None
) -> DerivedFields:
    """Compute every derived field for one respondent."""
    return DerivedFields(
        age=calculate_age(dob, today=today),
        bmi=calculate_bmi(height, weight),
    )


def _to_positive_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number

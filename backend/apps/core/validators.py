"""
Validators shared by the record apps.
- Calendar dates: prescription and test dates may not lie in the future,
  appointment dates may not lie in the past.
- Medications: name and dosage are required on every line.
"""

from datetime import date, datetime
from typing import Optional, Tuple

from django.core.exceptions import ValidationError
from django.utils import timezone


def _as_date(value):
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


class CalendarDateValidator:
    """
    Compare a date against today (server local time).
    """

    @classmethod
    def not_in_future(cls, value, field: str = "date") -> Tuple[bool, Optional[str]]:
        if value is None:
            return False, f"{field} is required"
        if _as_date(value) > timezone.localdate():
            return False, f"{field} cannot be in the future"
        return True, None

    @classmethod
    def not_in_past(cls, value, field: str = "date") -> Tuple[bool, Optional[str]]:
        if value is None:
            return False, f"{field} is required"
        if _as_date(value) < timezone.localdate():
            return False, f"{field} cannot be in the past"
        return True, None


def validate_not_in_future(value: date) -> date:
    """Django validator function for dates that already happened."""
    is_valid, error = CalendarDateValidator.not_in_future(value)
    if not is_valid:
        raise ValidationError(error)
    return value


def validate_not_in_past(value) -> object:
    """Django validator function for dates that are still ahead."""
    is_valid, error = CalendarDateValidator.not_in_past(value)
    if not is_valid:
        raise ValidationError(error)
    return value


class MedicationValidator:
    """
    A medication line is {name, dosage, frequency, duration}.
    Name and dosage must be non-blank, the rest is free text.
    """

    REQUIRED_FIELDS = ("name", "dosage")

    @classmethod
    def validate(cls, medications) -> Tuple[bool, list]:
        """
        Validate a list of medication dicts.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        if not medications:
            return False, ["At least one medication is required"]

        errors = []
        for index, medication in enumerate(medications):
            for field in cls.REQUIRED_FIELDS:
                value = medication.get(field) if isinstance(medication, dict) else getattr(medication, field, None)
                if not value or not str(value).strip():
                    errors.append(f"medications[{index}].{field} is required")
        return not errors, errors

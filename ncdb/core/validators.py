#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for catalog operations.

Provides type-safe conversion and validation used by the entity managers
before values reach the ORM. Range checks raise ConstraintViolationError
(the value is well-formed but breaks an invariant); malformed input raises
ValidationError.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from .exceptions import ConstraintViolationError, ValidationError

E = TypeVar("E", bound=Enum)


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Strip and collapse internal whitespace.

        Returns:
            Normalized string, or None for empty input
        """
        if value is None:
            return None
        text = " ".join(str(value).split())
        return text or None

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Raises:
            ValidationError: If conversion fails
        """
        if isinstance(value, bool):
            return value
        elif isinstance(value, (int, float)):
            if value == 0:
                return False
            elif value == 1:
                return True
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        elif isinstance(value, str):
            if value.lower() in ("true", "1", "yes", "on"):
                return True
            elif value.lower() in ("false", "0", "no", "off"):
                return False
            raise ValidationError(f"Cannot convert '{value}' to boolean")
        elif value is not None:
            return bool(value)
        return None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer.

        Raises:
            ValidationError: If value is not integral
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"Expected integer, got boolean: {value}")
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot convert '{value}' to integer")
        if not as_float.is_integer():
            raise ValidationError(f"Expected integer, got: {value}")
        return int(as_float)

    @staticmethod
    def normalize_float(value: Any) -> Optional[float]:
        """
        Convert value to float.

        Raises:
            ValidationError: If conversion fails
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"Expected number, got boolean: {value}")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot convert '{value}' to float")

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """
        Normalize dates, datetimes and ISO strings to an aware UTC datetime.

        Naive datetimes are assumed to be UTC; plain dates map to midnight.

        Raises:
            ValidationError: If the string is not ISO 8601
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, date):
            moment = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            try:
                moment = datetime.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError(f"Invalid ISO datetime: '{value}'")
        else:
            raise ValidationError(f"Cannot convert {type(value).__name__} to datetime")

        if moment.tzinfo is None:
            return moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc)

    @staticmethod
    def normalize_enum(enum_class: Type[E], value: Any) -> Optional[E]:
        """
        Resolve an enum member from a member, its value or its name.

        Matching on value and name is case-insensitive.

        Raises:
            ValidationError: If no member matches
        """
        if value is None:
            return None
        if isinstance(value, enum_class):
            return value
        text = str(value).strip().lower()
        for member in enum_class:
            if str(member.value).lower() == text or member.name.lower() == text:
                return member
        raise ValidationError(
            f"Unknown {enum_class.__name__} value: '{value}'. "
            f"Expected one of: {', '.join(str(m.value) for m in enum_class)}"
        )

    @staticmethod
    def normalize_string_list(values: Any) -> List[str]:
        """
        Normalize a list of labels, dropping blanks and duplicates in order.

        A single string is treated as a one-element list.
        """
        if values is None:
            return []
        if isinstance(values, str):
            values = [values]
        seen = set()
        result = []
        for value in values:
            text = DataValidator.normalize_string(value)
            if text and text.lower() not in seen:
                seen.add(text.lower())
                result.append(text)
        return result

    @staticmethod
    def validate_range(
        field: str,
        value: Optional[float],
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        exclusive_minimum: bool = False,
    ) -> None:
        """
        Check that a numeric value lies within bounds. None is accepted.

        Raises:
            ConstraintViolationError: If value is out of range
        """
        if value is None:
            return
        if minimum is not None:
            if exclusive_minimum and value <= minimum:
                raise ConstraintViolationError(f"{field} must be greater than {minimum}, got {value}")
            if not exclusive_minimum and value < minimum:
                raise ConstraintViolationError(f"{field} must be at least {minimum}, got {value}")
        if maximum is not None and value > maximum:
            raise ConstraintViolationError(f"{field} must be at most {maximum}, got {value}")

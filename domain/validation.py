"""
Domain field validation helpers (pure).

Shared by the entity dataclasses so that length and range rules produce the
same messages everywhere.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import InvalidInputError


def require_text(label: str, value: Any, *, min_length: int, max_length: int) -> str:
    """Trim a required string and enforce its length bounds."""

    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{label} is required")
    text = value.strip()
    if not min_length <= len(text) <= max_length:
        raise InvalidInputError(
            f"{label} must be between {min_length} and {max_length} characters"
        )
    return text


def optional_text(label: str, value: Optional[str], *, max_length: int) -> Optional[str]:
    """Trim an optional string; blank collapses to None."""

    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise InvalidInputError(f"{label} cannot exceed {max_length} characters")
    return text


def to_decimal(label: str, value: Any) -> Decimal:
    """
    Convert a numeric input into a Decimal.

    Floats go through ``str`` first so that 0.15 becomes Decimal("0.15")
    rather than its binary approximation.
    """

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{label} must be a valid number")
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidInputError(f"{label} must be a valid number") from None

    if not result.is_finite():
        raise InvalidInputError(f"{label} must be a valid number")
    return result


def require_precision(label: str, value: Decimal, *, digits: int, places: int) -> Decimal:
    """
    Reject values a ``numeric(digits, places)`` column cannot hold exactly.

    Trailing zeros do not count: 1.50 has one decimal place.
    """

    if value.normalize().as_tuple().exponent < -places:
        raise InvalidInputError(f"{label} cannot have more than {places} decimal places")
    if abs(value) >= Decimal(10) ** (digits - places):
        raise InvalidInputError(f"{label} is too large")
    return value

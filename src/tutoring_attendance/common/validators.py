from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_weekday(value: int) -> int:
    try:
        weekday = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Choose a valid day of week")
    if weekday < 1 or weekday > 7:
        raise ValidationError("Choose a valid day of week")
    return weekday


def optional_non_negative_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def optional_text(
    value: Optional[str], field_name: str = "Value", *, max_len: Optional[int] = None
) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    text = (value or "").strip() or None
    if text is not None and max_len is not None and len(text) > max_len:
        raise ValidationError(f"{field_name} cannot be longer than {max_len} characters")
    return text

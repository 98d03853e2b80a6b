from __future__ import annotations

import math
import re
from typing import Optional

from ..core.enums import ReviewStatus
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Email is not valid")
    return email


def optional_text(value: Optional[str]) -> str:
    return "" if value is None else str(value).strip()


def optional_non_negative_number(value, field_name: str) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def optional_review_status(value) -> Optional[ReviewStatus]:
    """Status filter from a query string; empty means no filter."""

    if isinstance(value, ReviewStatus):
        return value
    if value is None or not str(value).strip():
        return None
    try:
        return ReviewStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown status: {value}")

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_optional_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    if not value.strip():
        return None
    return parse_iso_date(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def new_id() -> str:
    return uuid.uuid4().hex


def hours_between(start: datetime, end: Optional[datetime]) -> Optional[float]:
    if end is None:
        return None
    return round(max(0.0, (end - start).total_seconds() / 3600), 2)

"""Provide utility helpers for calendar dates and ids."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Optional


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _parse_date(value: Any) -> Optional[date]:
    """Coerce *value* to a calendar date, returning None when it cannot."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        if "T" in text or " " in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    except ValueError:
        return None


def _date_iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None

"""Core utility functions."""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

from emlak_office.core.logging_config import get_logger

LOGGER = get_logger(__name__)

Number = Union[int, float]

# Fractional seconds and a compact UTC offset (.NET emits 7 fraction digits)
_FRACTION_RE = re.compile(r"\.(\d+)")
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def utcnow() -> datetime:
    """Get current UTC datetime with timezone info. Always use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware (UTC).

    The API emits ISO timestamps both with and without an offset; naive
    values are assumed to be UTC so they can be compared with utcnow().
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _normalize_iso(text: str) -> str:
    """Rewrite an ISO timestamp into the subset datetime.fromisoformat reads on 3.10."""
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    if "T" in text or " " in text:
        text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        text = _COMPACT_OFFSET_RE.sub(r"\1:\2", text)
    return text


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp (or date) from the API.

    Returns None for empty or unparseable input instead of raising.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    text = _normalize_iso(str(value).strip())
    try:
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        LOGGER.debug(f"Unparseable timestamp: {value!r}")
        return None


def to_number(value: Any) -> Optional[Number]:
    """
    Convert a numeric-looking value to int or float.

    Integral strings become int ("3" -> 3), others float ("2.5" -> 2.5).
    Booleans, blanks, NaN/inf and non-numeric text return None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number

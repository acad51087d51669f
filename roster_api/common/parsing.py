# roster_api/common/parsing.py
from __future__ import annotations

from datetime import datetime, date
import re

from roster_api.common.errors import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MIN_YEAR = 1900
# December grids spill into the following January
MAX_YEAR = 9998


def parse_date(val, field: str = "date") -> date:
    """YYYY-MM-DD string (or a date) -> date; an optional T... time suffix is ignored."""
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if not val:
        raise ValidationError(f"{field} is required")
    s = str(val).strip().split("T", 1)[0]
    if not _ISO_DATE.match(s):
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")


def as_int(val, field: str) -> int:
    if val in (None, "", "null"):
        raise ValidationError(f"{field} is required")
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be integer")


def parse_year_month(year, month) -> tuple[int, int]:
    y = as_int(year, "year")
    m = as_int(month, "month")
    if not (1 <= m <= 12):
        raise ValidationError("month must be between 1 and 12")
    if not (MIN_YEAR <= y <= MAX_YEAR):
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}")
    return y, m


def parse_hhmm(val, field: str) -> str:
    s = str(val or "").strip()
    if not _HHMM.match(s):
        raise ValidationError(f"{field} must be HH:MM")
    return s

# roster_api/services/providers.py
"""
Staff and holiday providers consumed by the schedule generator.

Two staff sources exist: the static legacy table and the persisted `staff`
table. The engine never falls back to the static list on its own; callers
pick the providers and merge them (persisted rows win on the same id).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple

from roster_api.models.staff import Staff, ROLES, ROLE_ASSISTANT
from roster_api.models.schedule import PublicHoliday
from roster_api.services.patterns import LEGACY_STAFF, PUBLIC_HOLIDAYS
from roster_api.common.errors import ValidationError


@dataclass(frozen=True)
class StaffMember:
    id: str
    name: str
    role: str
    weekly_hours: float
    default_off_days: Tuple[int, ...] = field(default_factory=tuple)
    start_date: Optional[date] = None
    al_entitlement: int = 14
    ml_entitlement: int = 14

    def active_on(self, d: date) -> bool:
        return self.start_date is None or self.start_date <= d


def normalize_role(raw) -> str:
    s = (raw or "").strip()
    if s in ROLES:
        return s
    if s.replace(" ", "").lower() == "assistantpharmacist":
        return ROLE_ASSISTANT
    raise ValidationError(f"role must be one of {list(ROLES)}")


def normalize_off_days(raw) -> Tuple[int, ...]:
    """Sorted, de-duplicated weekday ints (0=Sunday .. 6=Saturday)."""
    try:
        days = sorted({int(x) for x in (raw or [])})
    except (TypeError, ValueError):
        raise ValidationError("default_off_days must be a list of weekday numbers 0-6")
    if any(d < 0 or d > 6 for d in days):
        raise ValidationError("default_off_days must be a list of weekday numbers 0-6")
    return tuple(days)


def member_from_row(s: Staff) -> StaffMember:
    return StaffMember(
        id=s.staff_id,
        name=s.name,
        role=s.role,
        weekly_hours=s.weekly_hours,
        default_off_days=normalize_off_days(s.default_off_days),
        start_date=s.start_date,
        al_entitlement=s.al_entitlement,
        ml_entitlement=s.ml_entitlement,
    )


class StaticStaffProvider:
    """The hard-coded legacy roster."""

    def __init__(self, rows: Iterable[dict] = LEGACY_STAFF):
        self._rows = tuple(rows)

    def active_staff(self) -> List[StaffMember]:
        return [
            StaffMember(
                id=r["staff_id"],
                name=r["name"],
                role=r["role"],
                weekly_hours=r["weekly_hours"],
                default_off_days=normalize_off_days(r.get("default_off_days")),
                start_date=r.get("start_date"),
            )
            for r in self._rows
        ]


class DatabaseStaffProvider:
    """Active rows of the `staff` table, ordered by name."""

    def active_staff(self) -> List[StaffMember]:
        rows = Staff.query.filter_by(is_active=True).order_by(Staff.name.asc(), Staff.staff_id.asc()).all()
        return [member_from_row(s) for s in rows]


def merge_staff(*sources: Iterable[StaffMember]) -> List[StaffMember]:
    """
    Merge staff lists; a later source replaces an earlier one on the same id
    while keeping the position of the first occurrence.
    """
    merged = {}
    for src in sources:
        for m in src:
            merged[m.id] = m
    return list(merged.values())


def resolve_staff(include_static: bool = False) -> List[StaffMember]:
    if include_static:
        return merge_staff(StaticStaffProvider().active_staff(), DatabaseStaffProvider().active_staff())
    return DatabaseStaffProvider().active_staff()


# ---------- holidays ----------

def static_holidays(year: Optional[int] = None) -> List[Tuple[date, str]]:
    return [(d, n) for d, n in PUBLIC_HOLIDAYS if year is None or d.year == year]


def holidays_between(start: date, end: date) -> dict:
    """
    {date: name} for public holidays in [start, end]; persisted rows take
    precedence over the static table on the same date.
    """
    out = {d: n for d, n in PUBLIC_HOLIDAYS if start <= d <= end}
    rows = PublicHoliday.query.filter(PublicHoliday.date >= start, PublicHoliday.date <= end).all()
    for h in rows:
        out[h.date] = h.name
    return out


def holidays_for_year(year: int) -> dict:
    return holidays_between(date(year, 1, 1), date(year, 12, 31))

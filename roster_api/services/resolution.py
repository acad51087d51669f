# roster_api/services/resolution.py
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from roster_api.models.schedule import ScheduleOverride, ScheduleDraft, DraftMonth, ReplacementShift
from roster_api.services.patterns import SHIFT_DEFINITIONS
from roster_api.services.providers import StaffMember, holidays_between
from roster_api.services.schedule_generator import GeneratedDay, generate_month_schedule, display_range, month_bounds
from roster_api.common.errors import ValidationError


VIEW_PUBLIC = "public"
VIEW_ADMIN = "admin"
_VIEW_ALIASES = {"public": VIEW_PUBLIC, "published": VIEW_PUBLIC, "admin": VIEW_ADMIN}


def normalize_view(raw: Optional[str]) -> str:
    v = _VIEW_ALIASES.get((raw or VIEW_PUBLIC).strip().lower())
    if v is None:
        raise ValidationError("view must be 'public' or 'admin'")
    return v


# ---------- store reads ----------

def has_draft(year: int, month: int) -> bool:
    return DraftMonth.query.filter_by(year=year, month=month).first() is not None


def override_entry(row) -> dict:
    return {
        "shift_type": row.shift_type,
        "is_leave": bool(row.is_leave),
        "leave_type": row.leave_type,
    }


def read_overrides(model, start: date, end: date) -> Dict[date, Dict[str, dict]]:
    """{date: {staff_id: entry}} for one override table over [start, end]."""
    rows = (model.query
            .filter(model.date >= start, model.date <= end)
            .order_by(model.date.asc(), model.staff_id.asc())
            .all())
    out: Dict[date, Dict[str, dict]] = {}
    for r in rows:
        out.setdefault(r.date, {})[r.staff_id] = override_entry(r)
    return out


def read_replacements(start: date, end: date) -> Dict[date, List[dict]]:
    rows = (ReplacementShift.query
            .filter(ReplacementShift.date >= start, ReplacementShift.date <= end)
            .order_by(ReplacementShift.date.asc(), ReplacementShift.id.asc())
            .all())
    out: Dict[date, List[dict]] = {}
    for r in rows:
        out.setdefault(r.date, []).append(r.to_dict())
    return out


def source_for(year: int, month: int, view: str):
    """Admin reads drafts only while the month carries a draft marker."""
    if view == VIEW_ADMIN and has_draft(year, month):
        return ScheduleDraft
    return ScheduleOverride


def month_overrides(year: int, month: int, view: str) -> Dict[date, Dict[str, dict]]:
    start, end = month_bounds(year, month)
    return read_overrides(source_for(year, month, view), start, end)


def _months_between(start: date, end: date) -> List[Tuple[int, int]]:
    out = []
    y, m = start.year, start.month
    while (y, m) <= (end.year, end.month):
        out.append((y, m))
        y, m = (y + 1, 1) if m == 12 else (y, m + 1)
    return out


def grid_overrides(year: int, month: int, view: str) -> Dict[date, Dict[str, dict]]:
    """
    Overrides for every day of the display grid. Spillover days read their
    own month's store, so an adjacent month's draft shows only when that
    month has its own marker.
    """
    start, end = display_range(year, month)
    out: Dict[date, Dict[str, dict]] = {}
    for y, m in _months_between(start, end):
        for d, entries in month_overrides(y, m, view).items():
            if start <= d <= end:
                out[d] = entries
    return out


# ---------- merge ----------

def _generated_entry(shift) -> dict:
    return {
        "shift_type": shift.key if shift else None,
        "shift": shift.to_dict() if shift else None,
        "is_override": False,
        "is_leave": False,
        "leave_type": None,
    }


def _override_entry(ov: Mapping) -> dict:
    key = None if ov.get("is_leave") else ov.get("shift_type")
    shift = SHIFT_DEFINITIONS.get(key) if key else None
    return {
        "shift_type": key,
        "shift": shift.to_dict() if shift else None,
        "is_override": True,
        "is_leave": bool(ov.get("is_leave")),
        "leave_type": ov.get("leave_type"),
    }


def resolve(
    generated: Sequence[GeneratedDay],
    overrides: Mapping[date, Mapping[str, Mapping]],
    replacements: Optional[Mapping[date, Iterable[dict]]] = None,
) -> List[dict]:
    """
    Lay overrides over the generated base. An override replaces the whole
    entry for its (date, staff); staff absent from a generated day (not yet
    active) stay absent even if an override exists. Replacements are
    attached as-is.
    """
    replacements = replacements or {}
    out = []
    for g in generated:
        day_ov = overrides.get(g.date, {})
        staff_shifts = {}
        for sid, shift in g.staff_shifts.items():
            ov = day_ov.get(sid)
            staff_shifts[sid] = _override_entry(ov) if ov is not None else _generated_entry(shift)
        out.append({
            "date": g.date.isoformat(),
            "day_of_week": g.day_of_week,
            "iso_week": g.iso_week,
            "is_holiday": g.is_holiday,
            "holiday_name": g.holiday_name,
            "is_current_month": g.is_current_month,
            "staff_shifts": staff_shifts,
            "replacements": list(replacements.get(g.date, [])),
        })
    return out


def month_view(year: int, month: int, view: str, staff: Sequence[StaffMember]) -> dict:
    """Generated + resolved grid for (year, month) in the requested view."""
    view = normalize_view(view)
    start, end = display_range(year, month)
    generated = generate_month_schedule(month, year, staff, holidays_between(start, end))
    days = resolve(generated, grid_overrides(year, month, view), read_replacements(start, end))
    return {
        "year": year,
        "month": month,
        "view": view,
        "has_draft": has_draft(year, month),
        "days": days,
    }


def serialize_overrides(overrides: Mapping[date, Mapping[str, dict]], replacements: Mapping[date, List[dict]]) -> dict:
    """Wire shape keyed by ISO date: {date: {staff_id: entry, "replacements": [...]}}."""
    out: Dict[str, dict] = {}
    for d, entries in overrides.items():
        out.setdefault(d.isoformat(), {}).update({sid: dict(e) for sid, e in entries.items()})
    for d, reps in replacements.items():
        out.setdefault(d.isoformat(), {})["replacements"] = list(reps)
    return dict(sorted(out.items()))

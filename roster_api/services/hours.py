# roster_api/services/hours.py
"""Weekly / monthly worked-hour summaries over a resolved month grid."""
from __future__ import annotations

from typing import Dict, List, Sequence

from roster_api.services.providers import StaffMember


def _worked_hours(entry: dict) -> float:
    if entry.get("is_leave") or not entry.get("shift"):
        return 0.0
    return float(entry["shift"]["work_hours"])


def weekly_hours(days: Sequence[dict]) -> Dict[str, Dict[int, float]]:
    """staff_id -> iso_week -> hours, over every day of the grid."""
    out: Dict[str, Dict[int, float]] = {}
    for day in days:
        week = day["iso_week"]
        for sid, entry in day["staff_shifts"].items():
            per_week = out.setdefault(sid, {})
            per_week[week] = per_week.get(week, 0.0) + _worked_hours(entry)
    return out


def _current_month(days: Sequence[dict]):
    cur = [d for d in days if d["is_current_month"]]
    weeks = sorted({d["iso_week"] for d in cur})
    staff_ids = set()
    for d in cur:
        staff_ids.update(d["staff_shifts"].keys())
    return weeks, staff_ids


def weekly_summaries(days: Sequence[dict], staff: Sequence[StaffMember]) -> List[dict]:
    """
    One row per staff member and ISO week touching the current month, plus
    one row per temporary worker and week (target 0). Staff that appear on
    no current-month day (future activation) are left out.
    """
    per_staff = weekly_hours(days)
    weeks, staff_ids = _current_month(days)

    rows = []
    for m in staff:
        if m.id not in staff_ids:
            continue
        for week in weeks:
            actual = per_staff.get(m.id, {}).get(week, 0.0)
            rows.append({
                "staff_id": m.id,
                "staff_name": m.name,
                "week": week,
                "target_hours": float(m.weekly_hours),
                "actual_hours": actual,
                "is_under_target": actual < float(m.weekly_hours),
            })

    temps: Dict[int, Dict[str, float]] = {}
    for day in days:
        for rep in day.get("replacements") or []:
            by_name = temps.setdefault(day["iso_week"], {})
            name = rep["temp_staff_name"]
            by_name[name] = by_name.get(name, 0.0) + float(rep["work_hours"])
    for week in sorted(temps):
        for name, hours in sorted(temps[week].items()):
            rows.append({
                "staff_id": f"temp-{name}",
                "staff_name": f"{name} (Temp)",
                "week": week,
                "target_hours": 0.0,
                "actual_hours": hours,
                "is_under_target": False,
            })
    return rows


def monthly_totals(days: Sequence[dict], staff: Sequence[StaffMember]) -> Dict[str, dict]:
    """Actual hours over the month's weeks vs weekly target x number of weeks."""
    per_staff = weekly_hours(days)
    weeks, staff_ids = _current_month(days)

    out = {}
    for m in staff:
        if m.id not in staff_ids:
            continue
        actual = sum(per_staff.get(m.id, {}).get(w, 0.0) for w in weeks)
        target = float(m.weekly_hours) * len(weeks)
        out[m.id] = {
            "total_actual": actual,
            "total_target": target,
            "is_under_target": actual < target,
        }
    return out

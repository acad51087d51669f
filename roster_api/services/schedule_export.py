# roster_api/services/schedule_export.py
from __future__ import annotations

import csv
import io
from datetime import date
from typing import Sequence

from roster_api.models.staff import ROLE_PHARMACIST
from roster_api.services.providers import StaffMember


def _fmt_hours(h) -> str:
    h = float(h)
    return str(int(h)) if h.is_integer() else str(h)


def _header(staff: Sequence[StaffMember]) -> list:
    cols = [("Ph " if m.role == ROLE_PHARMACIST else "Staff ") + m.name for m in staff]
    return ["Day", "Month", "Date", ""] + cols + ["Note"]


def _cell(day: dict, member: StaffMember) -> str:
    entry = day["staff_shifts"].get(member.id)
    if entry is None:
        return "-"
    if day["is_holiday"]:
        return "PH"
    if entry["is_leave"]:
        return entry["leave_type"] or "AL"
    shift = entry["shift"]
    if not shift:
        return "Off"
    prefix = "Ph " if member.role == ROLE_PHARMACIST else ""
    return f"{prefix}{shift['start_time']} - {shift['end_time']} ({_fmt_hours(shift['work_hours'])} hours)"


def month_csv(days: Sequence[dict], staff: Sequence[StaffMember]) -> str:
    """
    Current-month rows of a resolved grid as CSV. A staff member covered by
    a replacement shows Off; the cover goes into the Note column next to the
    holiday name.
    """
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(_header(staff))

    col = {m.id: i for i, m in enumerate(staff)}
    for day in days:
        if not day["is_current_month"]:
            continue
        d = date.fromisoformat(day["date"])
        cells = [_cell(day, m) for m in staff]
        notes = []
        if day["is_holiday"] and day["holiday_name"]:
            notes.append(day["holiday_name"])
        for rep in day.get("replacements") or []:
            idx = col.get(rep["original_staff_id"])
            if idx is None:
                continue
            cells[idx] = "Off"
            notes.append(f"Covered by {rep['temp_staff_name']} "
                         f"({rep['start_time']}-{rep['end_time']}, {_fmt_hours(rep['work_hours'])}h)")
        w.writerow([d.strftime("%a"), d.strftime("%b"), str(d.day), ""] + cells + ["; ".join(notes)])
    return buf.getvalue()

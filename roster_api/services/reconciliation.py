# roster_api/services/reconciliation.py
"""
Draft -> publish protocol for schedule overrides.

* save_draft replaces a month's non-MAT drafts and replacement shifts with
  the supplied state and marks the month as having a draft.
* merge_draft upserts a partial change set into a month's drafts (used for
  spillover days of an adjacent month and by the maternity batch).
* publish moves a month's drafts onto the published table, posts leave to
  the ledger and clears the drafts and the marker, in one transaction.
* discard drops a month's drafts and the marker.

Change sets use the wire shape
    {"YYYY-MM-DD": {"<staff_id>": {...entry...}, "replacements": [...]}}
where an entry is either {"shift_type": "<key>"} or
{"shift": {"start_time", "end_time", "work_hours"}}, plus optional
"is_leave"/"leave_type". A null entry clears the slot (merge only).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy import or_

from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.leave import LEAVE_TYPES
from roster_api.models.schedule import ScheduleOverride, ScheduleDraft, DraftMonth, ReplacementShift
from roster_api.services.patterns import SHIFT_DEFINITIONS, find_shift_key
from roster_api.services.schedule_generator import month_bounds, generate_month_schedule
from roster_api.services.providers import StaffMember, holidays_between, resolve_staff
from roster_api.services.resolution import (
    VIEW_ADMIN, month_overrides, read_replacements, has_draft,
)
from roster_api.services import leave_ledger
from roster_api.common.db import atomic
from roster_api.common.errors import NotFoundError, ValidationError
from roster_api.common.parsing import parse_date, parse_hhmm

log = logging.getLogger(__name__)

MAT = "MAT"
REPLACEMENTS_KEY = "replacements"

Overrides = Dict[date, Dict[str, Optional[dict]]]
Replacements = Dict[date, List[dict]]


# ---------- parsing ----------

def _bool(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes")
    return bool(v)


def parse_entry(staff_id: str, raw) -> Optional[dict]:
    """One override entry -> {"shift_type", "is_leave", "leave_type"}; None clears."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError(f"entry for {staff_id} must be an object")

    is_leave = _bool(raw.get("is_leave", False))
    leave_type = raw.get("leave_type") or None
    if is_leave:
        if leave_type not in LEAVE_TYPES:
            raise ValidationError(f"leave_type for {staff_id} must be one of {list(LEAVE_TYPES)}")
        return {"shift_type": None, "is_leave": True, "leave_type": leave_type}

    shift_type = raw.get("shift_type")
    shift = raw.get("shift")
    if shift_type is None and isinstance(shift, dict):
        shift_type = find_shift_key(shift.get("start_time"), shift.get("end_time"), shift.get("work_hours") or 0)
        if shift_type is None:
            raise ValidationError(f"shift for {staff_id} matches no known shift definition")
    if shift_type is not None and shift_type not in SHIFT_DEFINITIONS:
        raise ValidationError(f"unknown shift_type '{shift_type}' for {staff_id}")
    # null shift without leave => explicit Off
    return {"shift_type": shift_type, "is_leave": False, "leave_type": None}


def parse_replacement(raw) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError("replacement must be an object")
    original = (raw.get("original_staff_id") or "").strip()
    name = (raw.get("temp_staff_name") or "").strip()
    if not original or not name:
        raise ValidationError("original_staff_id and temp_staff_name are required")
    try:
        hours = float(raw.get("work_hours"))
    except (TypeError, ValueError):
        raise ValidationError("work_hours must be a number")
    if hours < 0:
        raise ValidationError("work_hours must be >= 0")
    return {
        "original_staff_id": original,
        "temp_staff_name": name,
        "start_time": parse_hhmm(raw.get("start_time"), "start_time"),
        "end_time": parse_hhmm(raw.get("end_time"), "end_time"),
        "work_hours": hours,
    }


def parse_changes(changes) -> Tuple[Overrides, Replacements]:
    """Wire change map -> ({date: {staff: entry|None}}, {date: [replacement]})."""
    if changes is None:
        return {}, {}
    if not isinstance(changes, dict):
        raise ValidationError("overrides must be an object keyed by date")
    overrides: Overrides = {}
    replacements: Replacements = {}
    for key, per_day in changes.items():
        d = parse_date(key, "override date")
        if per_day is None:
            continue
        if not isinstance(per_day, dict):
            raise ValidationError(f"overrides for {key} must be an object")
        for sid, raw in per_day.items():
            if sid == REPLACEMENTS_KEY:
                replacements[d] = [parse_replacement(r) for r in (raw or [])]
                continue
            overrides.setdefault(d, {})[sid] = parse_entry(sid, raw)
    return overrides, replacements


def _check_staff(overrides: Overrides):
    ids = {sid for entries in overrides.values() for sid in entries}
    if not ids:
        return
    known = {s for (s,) in db.session.query(Staff.staff_id).filter(Staff.staff_id.in_(ids)).all()}
    missing = sorted(ids - known)
    if missing:
        raise NotFoundError(f"Unknown staff: {', '.join(missing)}")


# ---------- low-level writes (run inside the caller's transaction) ----------

def touch_marker(year: int, month: int) -> DraftMonth:
    m = DraftMonth.query.filter_by(year=year, month=month).first()
    now = datetime.utcnow()
    if m is None:
        m = DraftMonth(year=year, month=month, created_at=now, updated_at=now)
        db.session.add(m)
    else:
        m.updated_at = now
    return m


def seed_draft_from_published(year: int, month: int) -> int:
    """
    Copy the month's published overrides into empty draft slots when the
    month has no marker yet, so a later publish of a partial draft keeps
    what was already published.
    """
    if has_draft(year, month):
        return 0
    start, end = month_bounds(year, month)
    existing = {(r.date, r.staff_id) for r in
                ScheduleDraft.query.filter(ScheduleDraft.date >= start, ScheduleDraft.date <= end).all()}
    copied = 0
    for p in ScheduleOverride.query.filter(ScheduleOverride.date >= start, ScheduleOverride.date <= end).all():
        if (p.date, p.staff_id) in existing:
            continue
        db.session.add(ScheduleDraft(
            date=p.date, staff_id=p.staff_id, shift_type=p.shift_type,
            is_leave=p.is_leave, leave_type=p.leave_type,
        ))
        copied += 1
    return copied


def upsert_draft(day: date, staff_id: str, entry: Optional[dict]) -> bool:
    """
    Write one draft slot. Returns False when the slot holds a MAT draft and
    the incoming entry is not MAT (the slot is left untouched).
    """
    row = ScheduleDraft.query.filter_by(date=day, staff_id=staff_id).first()
    incoming_mat = entry is not None and entry.get("leave_type") == MAT
    if row is not None and row.leave_type == MAT and not incoming_mat:
        return False
    if entry is None:
        if row is not None:
            db.session.delete(row)
        return True
    if row is None:
        row = ScheduleDraft(date=day, staff_id=staff_id)
        db.session.add(row)
    row.shift_type = entry["shift_type"]
    row.is_leave = entry["is_leave"]
    row.leave_type = entry["leave_type"]
    row.updated_at = datetime.utcnow()
    return True


def replace_replacements(day: date, reps: List[dict]) -> int:
    """The given list becomes the full set of replacement shifts for `day`."""
    ReplacementShift.query.filter_by(date=day).delete(synchronize_session="fetch")
    for r in reps:
        db.session.add(ReplacementShift(date=day, **r))
    return len(reps)


def _write_entries(overrides: Overrides) -> Tuple[int, int]:
    written = skipped = 0
    for d in sorted(overrides):
        for sid, entry in overrides[d].items():
            if upsert_draft(d, sid, entry):
                written += 1
            else:
                skipped += 1
    return written, skipped


def _check_month(year: int, month: int, overrides: Overrides, replacements: Replacements):
    start, end = month_bounds(year, month)
    outside = sorted(d for d in set(overrides) | set(replacements) if not (start <= d <= end))
    if outside:
        raise ValidationError(
            f"dates outside {year}-{month:02d}: {', '.join(d.isoformat() for d in outside)}")


# ---------- operations ----------

def save_draft(year: int, month: int, changes) -> dict:
    """
    Replace the month's draft state with `changes`. Existing MAT drafts are
    never removed or overwritten by a non-MAT entry.
    """
    overrides, replacements = parse_changes(changes)
    _check_month(year, month, overrides, replacements)
    _check_staff(overrides)
    start, end = month_bounds(year, month)

    with atomic("save_draft"):
        (ScheduleDraft.query
         .filter(ScheduleDraft.date >= start, ScheduleDraft.date <= end,
                 or_(ScheduleDraft.leave_type.is_(None), ScheduleDraft.leave_type != MAT))
         .delete(synchronize_session="fetch"))
        written, skipped = _write_entries(overrides)
        for d in sorted(replacements):
            replace_replacements(d, replacements[d])
        touch_marker(year, month)

    log.info("[draft] saved %s-%02d entries=%s mat_protected=%s replacement_days=%s",
             year, month, written, skipped, len(replacements))
    return {"year": year, "month": month, "written": written,
            "mat_protected": skipped, "replacement_days": len(replacements)}


def merge_draft(year: int, month: int, overrides: Overrides, replacements: Optional[Replacements] = None) -> dict:
    """Upsert already-parsed entries into (year, month) without touching other slots."""
    replacements = replacements or {}
    _check_month(year, month, overrides, replacements)
    _check_staff(overrides)

    with atomic("merge_draft"):
        seeded = seed_draft_from_published(year, month)
        written, skipped = _write_entries(overrides)
        for d in sorted(replacements):
            replace_replacements(d, replacements[d])
        touch_marker(year, month)

    log.info("[draft] merged %s-%02d entries=%s mat_protected=%s seeded=%s",
             year, month, written, skipped, seeded)
    return {"year": year, "month": month, "written": written, "mat_protected": skipped, "seeded": seeded}


def _rep_signature(reps) -> list:
    keys = ("original_staff_id", "temp_staff_name", "start_time", "end_time", "work_hours")
    return sorted(tuple((k, r.get(k) if k != "work_hours" else float(r.get(k) or 0)) for k in keys)
                  for r in (reps or []))


def save_view_edits(year: int, month: int, changes, staff: Optional[Sequence[StaffMember]] = None) -> dict:
    """
    Save edits made on a month's display grid. In-month dates replace the
    month's draft; spillover dates are merged into their own month only
    where they differ from that month's resolved admin view (stored
    override, else the generated shift).
    """
    overrides, replacements = parse_changes(changes)
    if staff is None:
        staff = resolve_staff()

    def bucket(d):
        return d.year, d.month

    own_ov = {d: e for d, e in overrides.items() if bucket(d) == (year, month)}
    own_rep = {d: r for d, r in replacements.items() if bucket(d) == (year, month)}
    own_ov = {d: {s: e for s, e in ents.items() if e is not None} for d, ents in own_ov.items()}

    result = {"saved": save_draft(year, month, _to_wire(own_ov, own_rep)), "adjacent": []}

    adjacent = sorted({bucket(d) for d in list(overrides) + list(replacements)} - {(year, month)})
    for y, m in adjacent:
        current = month_overrides(y, m, VIEW_ADMIN)
        base = _generated_entries(y, m, staff)
        changed: Overrides = {}
        for d, ents in overrides.items():
            if bucket(d) != (y, m):
                continue
            for sid, entry in ents.items():
                stored = current.get(d, {}).get(sid)
                if entry is None:
                    # clearing only matters where an override is stored
                    differs = stored is not None
                else:
                    differs = (stored if stored is not None else base.get(d, {}).get(sid)) != entry
                if differs:
                    changed.setdefault(d, {})[sid] = entry

        start, end = month_bounds(y, m)
        stored_reps = read_replacements(start, end)
        rep_changed = {d: r for d, r in replacements.items()
                       if bucket(d) == (y, m) and _rep_signature(stored_reps.get(d)) != _rep_signature(r)}

        if changed:
            result["adjacent"].append(merge_draft(y, m, changed, rep_changed))
        elif rep_changed:
            with atomic("save_replacements"):
                for d in sorted(rep_changed):
                    replace_replacements(d, rep_changed[d])
            log.info("[draft] replacements updated %s-%02d days=%s", y, m, len(rep_changed))
    return result


def _generated_entries(year: int, month: int, staff: Sequence[StaffMember]) -> Overrides:
    """Generated base of (year, month) in override-entry shape."""
    start, end = month_bounds(year, month)
    out: Overrides = {}
    for g in generate_month_schedule(month, year, staff, holidays_between(start, end)):
        if start <= g.date <= end:
            out[g.date] = {
                sid: {"shift_type": s.key if s else None, "is_leave": False, "leave_type": None}
                for sid, s in g.staff_shifts.items()
            }
    return out


def _to_wire(overrides: Overrides, replacements: Replacements) -> dict:
    out: Dict[str, dict] = {}
    for d, ents in overrides.items():
        out.setdefault(d.isoformat(), {}).update(ents)
    for d, reps in replacements.items():
        out.setdefault(d.isoformat(), {})[REPLACEMENTS_KEY] = reps
    return out


def publish(year: int, month: int) -> dict:
    """
    Make the month's drafts the published state and post leave to the
    ledger. All-or-nothing: any failure leaves drafts, published overrides
    and the ledger as they were.
    """
    start, end = month_bounds(year, month)
    with atomic("publish"):
        marker = DraftMonth.query.filter_by(year=year, month=month).first()
        if marker is None:
            raise NotFoundError("No draft found for this month")

        drafts = (ScheduleDraft.query
                  .filter(ScheduleDraft.date >= start, ScheduleDraft.date <= end)
                  .order_by(ScheduleDraft.date.asc(), ScheduleDraft.staff_id.asc())
                  .all())
        snapshot = [(d.date, d.staff_id, d.shift_type, bool(d.is_leave), d.leave_type) for d in drafts]

        (ScheduleOverride.query
         .filter(ScheduleOverride.date >= start, ScheduleOverride.date <= end)
         .delete(synchronize_session="fetch"))
        for day, sid, shift_type, is_leave, leave_type in snapshot:
            db.session.add(ScheduleOverride(date=day, staff_id=sid, shift_type=shift_type,
                                            is_leave=is_leave, leave_type=leave_type))

        posted = 0
        for day, sid, _, is_leave, leave_type in snapshot:
            if is_leave and leave_type:
                if leave_ledger.post_leave(sid, day, leave_type):
                    posted += 1

        (ScheduleDraft.query
         .filter(ScheduleDraft.date >= start, ScheduleDraft.date <= end)
         .delete(synchronize_session="fetch"))
        db.session.delete(marker)

    log.info("[publish] %s-%02d overrides=%s leave_posted=%s", year, month, len(snapshot), posted)
    return {"year": year, "month": month, "published": len(snapshot), "leave_posted": posted}


def discard(year: int, month: int) -> dict:
    start, end = month_bounds(year, month)
    with atomic("discard"):
        marker = DraftMonth.query.filter_by(year=year, month=month).first()
        if marker is None:
            raise NotFoundError("No draft found for this month")
        removed = (ScheduleDraft.query
                   .filter(ScheduleDraft.date >= start, ScheduleDraft.date <= end)
                   .delete(synchronize_session="fetch"))
        db.session.delete(marker)
    log.info("[draft] discarded %s-%02d drafts=%s", year, month, removed)
    return {"year": year, "month": month, "discarded": removed}


# ---------- replacement shifts (direct, outside the draft cycle) ----------

def add_replacement(day, payload: dict) -> dict:
    d = parse_date(day)
    rep = parse_replacement(payload)
    with atomic("add_replacement"):
        row = ReplacementShift(date=d, **rep)
        db.session.add(row)
        db.session.flush()
        out = {"date": d.isoformat(), **row.to_dict()}
    log.info("[replacement] added id=%s date=%s for=%s", out["id"], out["date"], rep["original_staff_id"])
    return out


def delete_replacement(rep_id: int) -> dict:
    with atomic("delete_replacement"):
        row = db.session.get(ReplacementShift, rep_id)
        if row is None:
            raise NotFoundError("Replacement shift not found")
        out = {"date": row.date.isoformat(), **row.to_dict()}
        db.session.delete(row)
    log.info("[replacement] deleted id=%s", rep_id)
    return out


def list_replacements(start: date, end: date) -> List[dict]:
    return [{"date": d.isoformat(), **r} for d, reps in sorted(read_replacements(start, end).items()) for r in reps]

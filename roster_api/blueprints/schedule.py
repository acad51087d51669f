# roster_api/blueprints/schedule.py
from __future__ import annotations

from flask import Blueprint, request, current_app, Response

from roster_api.services import reconciliation
from roster_api.services.providers import resolve_staff
from roster_api.services.resolution import (
    VIEW_ADMIN, normalize_view, month_view, month_overrides, read_replacements, serialize_overrides, has_draft,
)
from roster_api.services.hours import weekly_summaries, monthly_totals
from roster_api.services.schedule_export import month_csv
from roster_api.services.schedule_generator import month_bounds
from roster_api.common.auth import requires_admin, is_admin_request
from roster_api.common.errors import ValidationError
from roster_api.common.http import ok, fail
from roster_api.common.parsing import parse_year_month, parse_date, as_int

bp = Blueprint("schedule", __name__, url_prefix="/api/v1")


def _json() -> dict:
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}


def _month_args(src):
    return parse_year_month(src.get("year"), src.get("month"))


def _view_arg():
    """The admin view is only served to admin tokens; None => forbidden."""
    view = normalize_view(request.args.get("view"))
    if view == VIEW_ADMIN and not is_admin_request():
        return None
    return view


def _staff():
    return resolve_staff(include_static=current_app.config.get("ROSTER_INCLUDE_STATIC_STAFF", False))


# ---------- reads ----------

@bp.get("/schedule")
def get_schedule():
    year, month = _month_args(request.args)
    view = _view_arg()
    if view is None:
        return fail("Forbidden", status=403)
    staff = _staff()
    data = month_view(year, month, view, staff)
    data["staff"] = [{"id": m.id, "name": m.name, "role": m.role, "weekly_hours": m.weekly_hours}
                     for m in staff]
    data["weekly_hours"] = weekly_summaries(data["days"], staff)
    data["monthly_hours"] = monthly_totals(data["days"], staff)
    return ok(data)


@bp.get("/schedule/export.csv")
def export_schedule():
    year, month = _month_args(request.args)
    view = _view_arg()
    if view is None:
        return fail("Forbidden", status=403)
    staff = _staff()
    body = month_csv(month_view(year, month, view, staff)["days"], staff)
    return Response(body, mimetype="text/csv", headers={
        "Content-Disposition": f'attachment; filename="schedule-{year}-{month:02d}.csv"',
    })


@bp.get("/overrides")
def get_overrides():
    year, month = _month_args(request.args)
    view = _view_arg()
    if view is None:
        return fail("Forbidden", status=403)
    start, end = month_bounds(year, month)
    data = serialize_overrides(month_overrides(year, month, view), read_replacements(start, end))
    return ok(data, year=year, month=month, view=view, has_draft=has_draft(year, month))


# ---------- draft cycle ----------

@bp.post("/overrides")
@requires_admin
def save_overrides():
    data = _json()
    year, month = _month_args(data)
    result = reconciliation.save_view_edits(year, month, data.get("overrides") or {}, staff=_staff())
    return ok(result)


@bp.post("/overrides/publish")
@requires_admin
def publish_overrides():
    data = _json()
    year, month = _month_args(data)
    return ok(reconciliation.publish(year, month))


@bp.post("/overrides/discard")
@requires_admin
def discard_overrides():
    data = _json()
    year, month = _month_args(data)
    return ok(reconciliation.discard(year, month))


# ---------- replacement shifts ----------

@bp.get("/replacements")
def list_replacements():
    year, month = _month_args(request.args)
    start, end = month_bounds(year, month)
    items = reconciliation.list_replacements(start, end)
    return ok(items, total=len(items))


@bp.post("/replacements")
@requires_admin
def add_replacement():
    data = _json()
    if not data.get("date"):
        raise ValidationError("date is required")
    return ok(reconciliation.add_replacement(parse_date(data["date"]), data), status=201)


@bp.delete("/replacements/<rep_id>")
@requires_admin
def delete_replacement(rep_id):
    return ok(reconciliation.delete_replacement(as_int(rep_id, "id")))

# roster_api/blueprints/leave.py
from __future__ import annotations

from datetime import date

from flask import Blueprint, request

from roster_api.services import leave_ledger, maternity
from roster_api.common.auth import requires_admin
from roster_api.common.errors import ValidationError
from roster_api.common.http import ok
from roster_api.common.parsing import as_int

bp = Blueprint("leave", __name__, url_prefix="/api/v1/leave")


def _json() -> dict:
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}


def _year(src) -> int:
    raw = src.get("year")
    return date.today().year if raw in (None, "") else as_int(raw, "year")


# ---------- balances ----------

@bp.get("/balances")
def balances():
    year = _year(request.args)
    items = leave_ledger.balance_report(year)
    return ok(items, year=year, total=len(items))


@bp.post("/balances")
@requires_admin
def init_balances():
    year = _year(_json())
    items = leave_ledger.init_balances(year)
    return ok(items, year=year, total=len(items))


@bp.post("/calculate-rl")
@requires_admin
def calculate_rl():
    year = _year(_json())
    details = leave_ledger.calculate_rl(year)
    return ok(details, year=year, total=len(details))


# ---------- history ----------

@bp.get("/history")
def history():
    year = request.args.get("year")
    items = leave_ledger.list_history(
        staff_id=request.args.get("staff_id") or None,
        year=as_int(year, "year") if year else None,
        status=request.args.get("status", leave_ledger.STATUS_APPROVED) or None,
    )
    return ok(items, total=len(items))


@bp.post("/history/<history_id>/cancel")
@requires_admin
def cancel_history(history_id):
    return ok(leave_ledger.cancel_leave(as_int(history_id, "id")))


# ---------- maternity ----------

@bp.get("/maternity")
def list_maternity():
    items = maternity.list_periods(
        staff_id=request.args.get("staff_id") or None,
        status=request.args.get("status", maternity.STATUS_ACTIVE) or None,
    )
    return ok(items, total=len(items))


@bp.post("/maternity")
@requires_admin
def create_maternity():
    data = _json()
    staff_id = (data.get("staff_id") or "").strip()
    if not staff_id or not data.get("start_date"):
        raise ValidationError("staff_id and start_date are required")
    return ok(maternity.create_maternity_leave(staff_id, data["start_date"], data.get("notes")), status=201)


@bp.post("/maternity/<period_id>/cancel")
@requires_admin
def cancel_maternity(period_id):
    return ok(maternity.cancel_maternity_leave(as_int(period_id, "id")))

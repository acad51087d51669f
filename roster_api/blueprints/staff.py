# roster_api/blueprints/staff.py
from __future__ import annotations

from datetime import date, datetime
import logging

from flask import Blueprint, request

from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.leave import LeaveBalance
from roster_api.services.providers import normalize_role, normalize_off_days
from roster_api.services.leave_ledger import ensure_balance
from roster_api.common.auth import requires_admin
from roster_api.common.db import atomic
from roster_api.common.errors import NotFoundError, ConflictError, ValidationError
from roster_api.common.http import ok
from roster_api.common.parsing import parse_date

log = logging.getLogger(__name__)

bp = Blueprint("staff", __name__, url_prefix="/api/v1/staff")

# legacy staff hold colour indices 0..3
FIRST_NEW_COLOR = 4


# ---------- helpers ----------

def _json() -> dict:
    data = request.get_json(silent=True, force=True)
    return data if isinstance(data, dict) else {}


def _normalize_staff_id(raw) -> str:
    sid = "".join(str(raw or "").split()).lower()
    if not sid:
        raise ValidationError("staff_id is required")
    return sid


def _positive_int(val, field: str) -> int:
    try:
        n = int(val)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be integer")
    if n < 0:
        raise ValidationError(f"{field} must be >= 0")
    return n


def _get_or_404(staff_id: str) -> Staff:
    s = Staff.query.filter_by(staff_id=staff_id).first()
    if s is None:
        raise NotFoundError("Staff not found")
    return s


def _next_color_index() -> int:
    used = Staff.query.filter(Staff.color_index.isnot(None)).count()
    return max(FIRST_NEW_COLOR, used)


# ---------- routes ----------

@bp.get("")
def list_staff():
    q = Staff.query
    if request.args.get("include_inactive") not in ("1", "true", "yes"):
        q = q.filter(Staff.is_active.is_(True))
    items = [s.to_dict() for s in q.order_by(Staff.name.asc(), Staff.staff_id.asc()).all()]
    return ok(items, total=len(items))


@bp.get("/<staff_id>")
def get_staff(staff_id):
    return ok(_get_or_404(staff_id).to_dict())


@bp.post("")
@requires_admin
def create_staff():
    data = _json()
    missing = [k for k in ("staff_id", "name", "role", "weekly_hours") if data.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    sid = _normalize_staff_id(data.get("staff_id"))
    off = data.get("default_off_days")
    with atomic("create_staff"):
        if Staff.query.filter_by(staff_id=sid).first() is not None:
            raise ConflictError("Staff ID already exists")
        s = Staff(
            staff_id=sid,
            name=str(data["name"]).strip(),
            role=normalize_role(data.get("role")),
            weekly_hours=_positive_int(data.get("weekly_hours"), "weekly_hours"),
            default_off_days=list(normalize_off_days(off if off is not None else [0, 6])),
            al_entitlement=_positive_int(data.get("al_entitlement") or 14, "al_entitlement"),
            ml_entitlement=_positive_int(data.get("ml_entitlement") or 14, "ml_entitlement"),
            start_date=parse_date(data["start_date"], "start_date") if data.get("start_date") else None,
            color_index=_next_color_index(),
            is_active=True,
        )
        db.session.add(s)
        db.session.flush()
        ensure_balance(sid, date.today().year)
        out = s.to_dict()

    log.info("[staff] created %s (%s)", sid, out["role"])
    return ok(out, status=201)


@bp.put("/<staff_id>")
@requires_admin
def update_staff(staff_id):
    data = _json()
    with atomic("update_staff"):
        s = _get_or_404(staff_id)
        if "name" in data:
            name = str(data.get("name") or "").strip()
            if not name:
                raise ValidationError("name must not be empty")
            s.name = name
        if "role" in data:
            s.role = normalize_role(data.get("role"))
        if "weekly_hours" in data:
            s.weekly_hours = _positive_int(data.get("weekly_hours"), "weekly_hours")
        if "default_off_days" in data:
            s.default_off_days = list(normalize_off_days(data.get("default_off_days")))
        if "ml_entitlement" in data:
            s.ml_entitlement = _positive_int(data.get("ml_entitlement"), "ml_entitlement")
        if "start_date" in data:
            s.start_date = parse_date(data["start_date"], "start_date") if data.get("start_date") else None
        if "is_active" in data:
            s.is_active = bool(data.get("is_active"))
        if "al_entitlement" in data:
            s.al_entitlement = _positive_int(data.get("al_entitlement"), "al_entitlement")
            bal = LeaveBalance.query.filter_by(staff_id=s.staff_id, year=date.today().year).first()
            if bal is not None:
                bal.al_entitlement = s.al_entitlement
                bal.updated_at = datetime.utcnow()
        s.updated_at = datetime.utcnow()
        out = s.to_dict()
    return ok(out)


@bp.delete("/<staff_id>")
@requires_admin
def deactivate_staff(staff_id):
    with atomic("deactivate_staff"):
        s = _get_or_404(staff_id)
        s.is_active = False
        s.updated_at = datetime.utcnow()
    log.info("[staff] deactivated %s", staff_id)
    return ok({"id": staff_id, "is_active": False})

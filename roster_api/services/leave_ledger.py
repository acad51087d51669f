# roster_api/services/leave_ledger.py
"""
Per-staff, per-year leave counters and the approved-leave history.

Posting happens at publish time only (see reconciliation.publish): one
approved history row per (staff, date), and the counter for the leave
type in the year of the leave date. EL is recorded in history without a
counter. Cancelling refunds AL/RL and removes the published leave
override for that day.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
import logging

from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.leave import (
    LeaveBalance, LeaveHistory, LEAVE_TYPES, COUNTED_LEAVE, REFUNDABLE_LEAVE,
)
from roster_api.models.schedule import ScheduleOverride
from roster_api.services.providers import holidays_for_year, normalize_off_days
from roster_api.services.schedule_generator import day_index
from roster_api.common.db import atomic
from roster_api.common.errors import NotFoundError, ConflictError, ValidationError

log = logging.getLogger(__name__)

STATUS_APPROVED = "approved"
STATUS_CANCELLED = "cancelled"


# ---------- replacement leave ----------

def rl_days_for(staff: Optional[Staff], year: int, holidays: Optional[dict] = None) -> int:
    """Public holidays of `year` that fall on the staff member's default off-days."""
    if staff is None:
        return 0
    holidays = holidays if holidays is not None else holidays_for_year(year)
    off = set(normalize_off_days(staff.default_off_days))
    count = 0
    for d in holidays:
        if d.year != year:
            continue
        if staff.start_date and d < staff.start_date:
            continue
        if day_index(d) in off:
            count += 1
    return count


# ---------- balances ----------

def _new_balance(staff_id: str, year: int, staff: Optional[Staff] = None) -> LeaveBalance:
    bal = LeaveBalance(staff_id=staff_id, year=year, al_used=0, rl_used=0, ml_used=0, mat_used=0)
    if staff is not None:
        bal.al_entitlement = staff.al_entitlement
        bal.ml_entitlement = staff.ml_entitlement
        bal.mat_entitlement = staff.mat_entitlement
    else:
        bal.al_entitlement, bal.ml_entitlement, bal.mat_entitlement = 14, 14, 98
    bal.rl_earned = rl_days_for(staff, year)
    db.session.add(bal)
    return bal


def ensure_balance(staff_id: str, year: int) -> LeaveBalance:
    """Balance row for (staff, year); created from the staff entitlements when missing."""
    bal = LeaveBalance.query.filter_by(staff_id=staff_id, year=year).first()
    if bal is None:
        staff = Staff.query.filter_by(staff_id=staff_id).first()
        bal = _new_balance(staff_id, year, staff)
        log.info("[ledger] created balance staff=%s year=%s", staff_id, year)
    return bal


def post_leave(staff_id: str, day: date, leave_type: str) -> bool:
    """
    Record one approved leave day. Returns False (and changes nothing) when
    an approved entry already exists for (staff, day). Runs inside the
    caller's transaction.
    """
    if leave_type not in LEAVE_TYPES:
        raise ValidationError(f"leave_type must be one of {list(LEAVE_TYPES)}")
    existing = LeaveHistory.query.filter_by(staff_id=staff_id, date=day, status=STATUS_APPROVED).first()
    if existing is not None:
        return False
    db.session.add(LeaveHistory(staff_id=staff_id, date=day, leave_type=leave_type, status=STATUS_APPROVED))
    if leave_type in COUNTED_LEAVE:
        ensure_balance(staff_id, day.year).bump(leave_type, 1)
    return True


def cancel_leave(history_id: int) -> dict:
    with atomic("cancel_leave"):
        h = db.session.get(LeaveHistory, history_id)
        if h is None:
            raise NotFoundError("Leave history entry not found")
        if h.status == STATUS_CANCELLED:
            raise ConflictError("Leave entry is already cancelled")

        h.status = STATUS_CANCELLED
        h.updated_at = datetime.utcnow()

        refunded = False
        if h.leave_type in REFUNDABLE_LEAVE:
            bal = LeaveBalance.query.filter_by(staff_id=h.staff_id, year=h.date.year).first()
            if bal is not None:
                bal.bump(h.leave_type, -1)
                refunded = True

        removed = (ScheduleOverride.query
                   .filter_by(staff_id=h.staff_id, date=h.date, is_leave=True)
                   .delete(synchronize_session="fetch"))
        result = {**h.to_dict(), "refunded": refunded, "override_removed": bool(removed)}

    log.info("[ledger] cancelled leave id=%s staff=%s date=%s type=%s refunded=%s",
             history_id, result["staff_id"], result["date"], result["leave_type"], refunded)
    return result


def init_balances(year: int) -> List[dict]:
    """Create (or refresh entitlements on) a balance row per active staff member."""
    created = 0
    with atomic("init_balances"):
        staff_rows = Staff.query.filter_by(is_active=True).order_by(Staff.name.asc()).all()
        holidays = holidays_for_year(year)
        for s in staff_rows:
            bal = LeaveBalance.query.filter_by(staff_id=s.staff_id, year=year).first()
            if bal is None:
                _new_balance(s.staff_id, year, s)
                created += 1
                continue
            bal.al_entitlement = s.al_entitlement
            bal.ml_entitlement = s.ml_entitlement
            bal.mat_entitlement = s.mat_entitlement
            bal.rl_earned = rl_days_for(s, year, holidays)
            bal.updated_at = datetime.utcnow()
    log.info("[ledger] init balances year=%s staff=%s created=%s", year, len(staff_rows), created)
    return balance_report(year)


def calculate_rl(year: int) -> List[dict]:
    """Recompute rl_earned for every active staff member; returns per-staff detail."""
    details = []
    with atomic("calculate_rl"):
        holidays = holidays_for_year(year)
        for s in Staff.query.filter_by(is_active=True).order_by(Staff.name.asc()).all():
            earned = rl_days_for(s, year, holidays)
            bal = ensure_balance(s.staff_id, year)
            bal.rl_earned = earned
            bal.updated_at = datetime.utcnow()
            details.append({"staff_id": s.staff_id, "staff_name": s.name, "rl_earned": earned})
    log.info("[ledger] RL recalculated year=%s staff=%s", year, len(details))
    return details


def balance_report(year: int) -> List[dict]:
    rows = (LeaveBalance.query
            .join(Staff, Staff.staff_id == LeaveBalance.staff_id)
            .filter(LeaveBalance.year == year, Staff.is_active.is_(True))
            .order_by(Staff.name.asc())
            .all())
    out = []
    for b in rows:
        item = {
            "staff_id": b.staff_id,
            "staff_name": b.staff.name if b.staff else None,
            "staff_role": b.staff.role if b.staff else None,
            "year": b.year,
        }
        for lt in LeaveBalance.COUNTERS:
            item[lt] = b.summary(lt)
        out.append(item)
    return out


def list_history(staff_id: Optional[str] = None, year: Optional[int] = None,
                 status: Optional[str] = STATUS_APPROVED) -> List[dict]:
    q = LeaveHistory.query
    if staff_id:
        q = q.filter(LeaveHistory.staff_id == staff_id)
    if year:
        q = q.filter(LeaveHistory.date >= date(year, 1, 1), LeaveHistory.date <= date(year, 12, 31))
    if status:
        q = q.filter(LeaveHistory.status == status)
    return [h.to_dict() for h in q.order_by(LeaveHistory.date.desc(), LeaveHistory.id.desc()).all()]

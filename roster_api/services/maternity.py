# roster_api/services/maternity.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import and_, or_

from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.leave import MaternityLeavePeriod
from roster_api.models.schedule import ScheduleDraft
from roster_api.services import reconciliation
from roster_api.common.db import atomic
from roster_api.common.errors import NotFoundError, ConflictError
from roster_api.common.parsing import parse_date

log = logging.getLogger(__name__)

MATERNITY_DAYS = 98
MAT_ENTRY = {"shift_type": None, "is_leave": True, "leave_type": "MAT"}

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"


def maternity_end(start: date) -> date:
    return start + timedelta(days=MATERNITY_DAYS - 1)


def _overlapping(staff_id: str, start: date, end: date):
    P = MaternityLeavePeriod
    return (P.query
            .filter(P.staff_id == staff_id, P.status == STATUS_ACTIVE)
            .filter(or_(
                and_(P.start_date <= start, P.end_date >= start),
                and_(P.start_date <= end, P.end_date >= end),
                and_(P.start_date >= start, P.end_date <= end),
            ))
            .first())


def create_maternity_leave(staff_id: str, start_date, notes: Optional[str] = None) -> dict:
    """
    Record a 98-day maternity period and write a MAT draft for every day of
    it, marking each touched month as having a draft. The days reach the
    published schedule and the ledger when their months are published.
    """
    start = parse_date(start_date, "start_date")
    end = maternity_end(start)
    days = [start + timedelta(days=i) for i in range(MATERNITY_DAYS)]
    months = sorted({(d.year, d.month) for d in days})

    with atomic("create_maternity_leave"):
        if Staff.query.filter_by(staff_id=staff_id).first() is None:
            raise NotFoundError("Staff not found")
        clash = _overlapping(staff_id, start, end)
        if clash is not None:
            raise ConflictError("Maternity leave overlaps an existing period", payload=clash.to_dict())

        period = MaternityLeavePeriod(staff_id=staff_id, start_date=start, end_date=end,
                                      status=STATUS_ACTIVE, notes=notes)
        db.session.add(period)

        # seed before the markers exist so published data survives the month's publish
        for y, m in months:
            reconciliation.seed_draft_from_published(y, m)
        for d in days:
            reconciliation.upsert_draft(d, staff_id, MAT_ENTRY)
        for y, m in months:
            reconciliation.touch_marker(y, m)
        db.session.flush()
        period_id = period.id

    log.info("[maternity] staff=%s %s..%s days=%s months=%s", staff_id, start, end, len(days), months)
    return {
        "id": period_id,
        "staff_id": staff_id,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "days_created": len(days),
        "affected_months": [{"year": y, "month": m} for y, m in months],
    }


def list_periods(staff_id: Optional[str] = None, status: Optional[str] = None) -> List[dict]:
    q = MaternityLeavePeriod.query
    if staff_id:
        q = q.filter(MaternityLeavePeriod.staff_id == staff_id)
    if status:
        q = q.filter(MaternityLeavePeriod.status == status)
    return [p.to_dict() for p in q.order_by(MaternityLeavePeriod.start_date.desc()).all()]


def cancel_maternity_leave(period_id: int) -> dict:
    """Mark the period cancelled and drop its still-unpublished MAT drafts."""
    with atomic("cancel_maternity_leave"):
        p = db.session.get(MaternityLeavePeriod, period_id)
        if p is None:
            raise NotFoundError("Maternity leave period not found")
        if p.status == STATUS_CANCELLED:
            raise ConflictError("Maternity leave period is already cancelled")
        p.status = STATUS_CANCELLED
        p.updated_at = datetime.utcnow()
        removed = (ScheduleDraft.query
                   .filter(ScheduleDraft.staff_id == p.staff_id,
                           ScheduleDraft.date >= p.start_date,
                           ScheduleDraft.date <= p.end_date,
                           ScheduleDraft.leave_type == "MAT")
                   .delete(synchronize_session="fetch"))
        out = {**p.to_dict(), "drafts_removed": removed}
    log.info("[maternity] cancelled id=%s drafts_removed=%s", period_id, removed)
    return out

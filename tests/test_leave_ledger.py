from datetime import date
import os

import pytest

from roster_api import create_app
from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.leave import LeaveBalance, LeaveHistory
from roster_api.models.schedule import ScheduleOverride
from roster_api.services import reconciliation, leave_ledger
from roster_api.services.patterns import LEGACY_STAFF
from roster_api.common.errors import NotFoundError, ConflictError


def _mk_app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app()
    return app


def _seed_staff():
    for row in LEGACY_STAFF:
        db.session.add(Staff(staff_id=row["staff_id"], name=row["name"], role=row["role"],
                             weekly_hours=row["weekly_hours"], default_off_days=list(row["default_off_days"]),
                             color_index=row["color_index"], is_active=True))
    db.session.commit()


def _publish_leave(sid, d, leave_type):
    reconciliation.save_draft(d.year, d.month, {d.isoformat(): {sid: {"is_leave": True, "leave_type": leave_type}}})
    return reconciliation.publish(d.year, d.month)


def test_siti_annual_leave_on_a_wednesday():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        wed = date(2025, 3, 5)

        _publish_leave("siti", wed, "AL")

        bal = LeaveBalance.query.filter_by(staff_id="siti", year=2025).one()
        assert bal.al_used == 1
        assert bal.al_entitlement == 14

        hist = LeaveHistory.query.all()
        assert [(h.staff_id, h.date, h.leave_type, h.status) for h in hist] == [("siti", wed, "AL", "approved")]

        ov = ScheduleOverride.query.filter_by(date=wed, staff_id="siti").one()
        assert ov.is_leave is True and ov.leave_type == "AL"


def test_cancel_refunds_and_republish_restores():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        d = date(2025, 3, 5)

        _publish_leave("siti", d, "AL")
        h = LeaveHistory.query.one()

        res = leave_ledger.cancel_leave(h.id)
        assert res["refunded"] is True
        assert res["override_removed"] is True
        assert LeaveBalance.query.filter_by(staff_id="siti", year=2025).one().al_used == 0
        assert ScheduleOverride.query.count() == 0

        _publish_leave("siti", d, "AL")
        assert LeaveBalance.query.filter_by(staff_id="siti", year=2025).one().al_used == 1
        assert LeaveHistory.query.filter_by(status="approved").count() == 1
        assert LeaveHistory.query.filter_by(status="cancelled").count() == 1


def test_double_cancel_is_a_conflict():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        _publish_leave("pah", date(2025, 3, 6), "RL")
        h = LeaveHistory.query.one()

        leave_ledger.cancel_leave(h.id)
        with pytest.raises(ConflictError):
            leave_ledger.cancel_leave(h.id)
        assert LeaveBalance.query.filter_by(staff_id="pah", year=2025).one().rl_used == 0

        with pytest.raises(NotFoundError):
            leave_ledger.cancel_leave(9999)


def test_medical_leave_is_not_refunded():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        _publish_leave("amal", date(2025, 3, 3), "ML")
        h = LeaveHistory.query.one()

        res = leave_ledger.cancel_leave(h.id)
        assert res["refunded"] is False
        assert LeaveBalance.query.filter_by(staff_id="amal", year=2025).one().ml_used == 1


def test_replacement_leave_counts_holidays_on_off_days():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()

        details = {d["staff_id"]: d["rl_earned"] for d in leave_ledger.calculate_rl(2025)}
        # fatimah (Sat/Sun): 7 Jun, 8 Jun, 31 Aug, 6 Sep
        assert details["fatimah"] == 4
        # siti (Mon/Tue): 31 Mar, 1 Apr, 2 Jun, 16 Sep
        assert details["siti"] == 4
        # amal (Wed-Fri): 2 Apr, 1 May, 27 Jun, 11 Dec
        assert details["amal"] == 4
        assert LeaveBalance.query.filter_by(staff_id="fatimah", year=2025).one().rl_earned == 4


def test_init_balances_is_repeatable():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        leave_ledger.init_balances(2025)
        report = leave_ledger.init_balances(2025)

        assert LeaveBalance.query.filter_by(year=2025).count() == 4
        assert [r["staff_id"] for r in report] == ["amal", "fatimah", "pah", "siti"]
        assert report[0]["AL"] == {"entitlement": 14.0, "used": 0.0, "remaining": 14.0, "overdrawn": False}


def test_report_flags_overdrawn_balance():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        bal = leave_ledger.ensure_balance("fatimah", 2025)
        bal.al_used = 15
        db.session.commit()

        row = next(r for r in leave_ledger.balance_report(2025) if r["staff_id"] == "fatimah")
        assert row["AL"]["remaining"] == -1
        assert row["AL"]["overdrawn"] is True
        assert row["staff_name"] == "Fatimah"


def test_history_filters():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        _publish_leave("siti", date(2025, 3, 5), "AL")
        _publish_leave("pah", date(2025, 4, 9), "EL")

        assert len(leave_ledger.list_history()) == 2
        assert [h["staff_id"] for h in leave_ledger.list_history(staff_id="pah")] == ["pah"]
        assert leave_ledger.list_history(year=2024) == []

        h = LeaveHistory.query.filter_by(staff_id="siti").one()
        leave_ledger.cancel_leave(h.id)
        assert len(leave_ledger.list_history()) == 1
        assert len(leave_ledger.list_history(status="cancelled")) == 1

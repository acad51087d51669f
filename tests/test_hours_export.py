from datetime import date
import os

from roster_api import create_app
from roster_api.extensions import db
from roster_api.models.staff import Staff
from roster_api.models.schedule import ScheduleOverride
from roster_api.services import reconciliation
from roster_api.services.hours import weekly_summaries, monthly_totals
from roster_api.services.patterns import LEGACY_STAFF
from roster_api.services.providers import StaticStaffProvider
from roster_api.services.resolution import month_view, VIEW_PUBLIC
from roster_api.services.schedule_export import month_csv

STAFF = StaticStaffProvider().active_staff()
AINA = {"original_staff_id": "fatimah", "temp_staff_name": "Aina",
        "start_time": "09:15", "end_time": "21:45", "work_hours": 11}


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


def _row(rows, sid, week):
    return next(r for r in rows if r["staff_id"] == sid and r["week"] == week)


def test_base_patterns_meet_weekly_targets():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        days = month_view(2025, 1, VIEW_PUBLIC, STAFF)["days"]
        rows = weekly_summaries(days, STAFF)

        assert _row(rows, "fatimah", 2)["actual_hours"] == 45
        assert _row(rows, "amal", 2)["actual_hours"] == 32
        assert _row(rows, "amal", 2)["is_under_target"] is False
        assert {r["week"] for r in rows} == {1, 2, 3, 4, 5}


def test_leave_and_replacements_in_summaries():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        db.session.add(ScheduleOverride(date=date(2025, 1, 6), staff_id="fatimah", shift_type=None,
                                        is_leave=True, leave_type="AL"))
        db.session.commit()
        reconciliation.add_replacement("2025-01-07", AINA)

        days = month_view(2025, 1, VIEW_PUBLIC, STAFF)["days"]
        rows = weekly_summaries(days, STAFF)
        fat = _row(rows, "fatimah", 2)
        assert fat["actual_hours"] == 34
        assert fat["is_under_target"] is True

        temp = _row(rows, "temp-Aina", 2)
        assert temp["staff_name"] == "Aina (Temp)"
        assert temp["actual_hours"] == 11 and temp["target_hours"] == 0

        totals = monthly_totals(days, STAFF)
        assert totals["fatimah"]["total_target"] == 45 * 5
        assert totals["fatimah"]["is_under_target"] is True


def test_csv_export_rows():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        reconciliation.add_replacement("2025-01-07", AINA)

        lines = month_csv(month_view(2025, 1, VIEW_PUBLIC, STAFF)["days"], STAFF).splitlines()
        assert lines[0] == "Day,Month,Date,,Ph Fatimah,Staff Siti,Staff Pah,Ph Amal,Note"
        assert len(lines) == 32
        assert lines[6] == "Mon,Jan,6,,Ph 09:15 - 21:45 (11 hours),Off,Off,Ph 09:15 - 18:15 (8 hours),"
        assert lines[7].startswith("Tue,Jan,7,,Off,")
        assert lines[7].endswith(',"Covered by Aina (09:15-21:45, 11h)"')


def test_csv_marks_holidays_and_leave():
    app = _mk_app()
    with app.app_context():
        db.create_all()
        _seed_staff()
        db.session.add(ScheduleOverride(date=date(2025, 5, 2), staff_id="siti", shift_type=None,
                                        is_leave=True, leave_type="EL"))
        db.session.commit()

        lines = month_csv(month_view(2025, 5, VIEW_PUBLIC, STAFF)["days"], STAFF).splitlines()
        assert lines[1] == "Thu,May,1,,PH,PH,PH,PH,Labour Day"
        assert lines[2].split(",")[5] == "EL"

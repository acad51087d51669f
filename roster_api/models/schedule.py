from datetime import datetime
from roster_api.extensions import db


class ScheduleOverride(db.Model):
    """Published override: visible in every view."""
    __tablename__ = "schedule_overrides"
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    staff_id = db.Column(db.String(64), db.ForeignKey("staff.staff_id", ondelete="RESTRICT"), nullable=False, index=True)
    shift_type = db.Column(db.String(40), nullable=True)   # SHIFT_DEFINITIONS key, null => Off / leave
    is_leave = db.Column(db.Boolean, nullable=False, default=False)
    leave_type = db.Column(db.String(8), nullable=True)    # AL|RL|EL|ML|MAT
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("date", "staff_id", name="uq_schedule_override_date_staff"),
    )


class ScheduleDraft(db.Model):
    """Draft override: admin view only, until published."""
    __tablename__ = "schedule_drafts"
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    staff_id = db.Column(db.String(64), db.ForeignKey("staff.staff_id", ondelete="RESTRICT"), nullable=False, index=True)
    shift_type = db.Column(db.String(40), nullable=True)
    is_leave = db.Column(db.Boolean, nullable=False, default=False)
    leave_type = db.Column(db.String(8), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("date", "staff_id", name="uq_schedule_draft_date_staff"),
    )


class DraftMonth(db.Model):
    """Marker: the month has unpublished drafts."""
    __tablename__ = "draft_months"
    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False)
    month = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("year", "month", name="uq_draft_month_year_month"),
    )


class ReplacementShift(db.Model):
    """Temporary worker covering for a staff member; outside the draft cycle."""
    __tablename__ = "replacement_shifts"
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    original_staff_id = db.Column(db.String(64), nullable=False, index=True)
    temp_staff_name = db.Column(db.String(120), nullable=False)
    start_time = db.Column(db.String(5), nullable=False)   # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    work_hours = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "original_staff_id": self.original_staff_id,
            "temp_staff_name": self.temp_staff_name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "work_hours": float(self.work_hours),
        }


class PublicHoliday(db.Model):
    __tablename__ = "public_holidays"
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, unique=True)
    name = db.Column(db.String(120), nullable=False)
    year = db.Column(db.Integer, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

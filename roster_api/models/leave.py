from datetime import datetime
from roster_api.extensions import db

LEAVE_TYPES = ("AL", "RL", "EL", "ML", "MAT")
# leave types with a balance counter; EL is history-only
COUNTED_LEAVE = ("AL", "RL", "ML", "MAT")
# leave types whose cancellation refunds the counter
REFUNDABLE_LEAVE = ("AL", "RL")


class LeaveBalance(db.Model):
    __tablename__ = "leave_balances"
    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.String(64), db.ForeignKey("staff.staff_id", ondelete="RESTRICT"), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False, index=True)

    al_entitlement = db.Column(db.Integer, nullable=False, default=14)
    al_used = db.Column(db.Float, nullable=False, default=0)
    rl_earned = db.Column(db.Float, nullable=False, default=0)
    rl_used = db.Column(db.Float, nullable=False, default=0)
    ml_entitlement = db.Column(db.Integer, nullable=False, default=14)
    ml_used = db.Column(db.Float, nullable=False, default=0)
    mat_entitlement = db.Column(db.Integer, nullable=False, default=98)
    mat_used = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("staff_id", "year", name="uq_leave_balance_staff_year"),
    )

    staff = db.relationship("Staff", primaryjoin="LeaveBalance.staff_id == Staff.staff_id", lazy="joined")

    # leave type -> (entitlement column, used column)
    COUNTERS = {
        "AL": ("al_entitlement", "al_used"),
        "RL": ("rl_earned", "rl_used"),
        "ML": ("ml_entitlement", "ml_used"),
        "MAT": ("mat_entitlement", "mat_used"),
    }

    def bump(self, leave_type: str, delta: float):
        used_col = self.COUNTERS[leave_type][1]
        setattr(self, used_col, float(getattr(self, used_col) or 0) + delta)
        self.updated_at = datetime.utcnow()

    def summary(self, leave_type: str) -> dict:
        ent_col, used_col = self.COUNTERS[leave_type]
        entitlement = float(getattr(self, ent_col) or 0)
        used = float(getattr(self, used_col) or 0)
        remaining = entitlement - used
        return {
            "entitlement": entitlement,
            "used": used,
            "remaining": remaining,
            "overdrawn": remaining < 0,
        }


class LeaveHistory(db.Model):
    __tablename__ = "leave_history"
    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.String(64), db.ForeignKey("staff.staff_id", ondelete="RESTRICT"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    leave_type = db.Column(db.String(8), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="approved")  # approved|cancelled
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index("ix_leave_history_staff_date", "staff_id", "date"),
    )

    staff = db.relationship("Staff", primaryjoin="LeaveHistory.staff_id == Staff.staff_id", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "staff_name": self.staff.name if self.staff else None,
            "date": self.date.isoformat(),
            "leave_type": self.leave_type,
            "status": self.status,
            "notes": self.notes,
        }


class MaternityLeavePeriod(db.Model):
    __tablename__ = "maternity_leave_periods"
    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.String(64), db.ForeignKey("staff.staff_id", ondelete="RESTRICT"), nullable=False, index=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="active")  # active|cancelled
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # cancelled periods keep their row
        db.Index("ix_maternity_staff_start", "staff_id", "start_date"),
    )

    staff = db.relationship("Staff", primaryjoin="MaternityLeavePeriod.staff_id == Staff.staff_id", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "staff_name": self.staff.name if self.staff else None,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "notes": self.notes,
        }

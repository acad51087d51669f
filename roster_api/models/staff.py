from datetime import datetime
from roster_api.extensions import db

ROLE_PHARMACIST = "Pharmacist"
ROLE_ASSISTANT = "Assistant Pharmacist"
ROLES = (ROLE_PHARMACIST, ROLE_ASSISTANT)


class Staff(db.Model):
    __tablename__ = "staff"

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(40), nullable=False)  # Pharmacist | Assistant Pharmacist
    weekly_hours = db.Column(db.Integer, nullable=False)
    # weekday ints, 0=Sunday .. 6=Saturday; stored as a JSON list, never a string
    default_off_days = db.Column(db.JSON, nullable=False, default=list)
    al_entitlement = db.Column(db.Integer, nullable=False, default=14)
    ml_entitlement = db.Column(db.Integer, nullable=False, default=14)
    mat_entitlement = db.Column(db.Integer, nullable=False, default=98)
    start_date = db.Column(db.Date, nullable=True)  # null => always active
    color_index = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.staff_id,
            "name": self.name,
            "role": self.role,
            "weekly_hours": self.weekly_hours,
            "default_off_days": list(self.default_off_days or []),
            "al_entitlement": self.al_entitlement,
            "ml_entitlement": self.ml_entitlement,
            "mat_entitlement": self.mat_entitlement,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "color_index": self.color_index,
            "is_active": self.is_active,
        }

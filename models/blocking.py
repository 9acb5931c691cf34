from datetime import datetime
from sqlalchemy.ext.hybrid import hybrid_method

from models.db import db

class Blocking(db.Model):
    __tablename__ = "blockings"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)

    # inclusive date range; a single-day blocking has date_from == date_to
    date_from = db.Column(db.Date, nullable=False, index=True)
    date_to = db.Column(db.Date, nullable=False, index=True)
    start_hour = db.Column(db.Integer, nullable=False)
    end_hour = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(160), nullable=True)  # e.g. maintenance, private hold
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    released_at = db.Column(db.DateTime, nullable=True)

    court = db.relationship("Court")
    claims = db.relationship("SlotClaim", back_populates="blocking", cascade="all, delete-orphan")

    __table_args__ = (
        db.CheckConstraint("start_hour < end_hour", name="ck_blockings_hours"),
        db.CheckConstraint("date_from <= date_to", name="ck_blockings_dates"),
    )

    @hybrid_method
    def covers_date(self, day):
        # works on instances and in query filters
        return (self.date_from <= day) & (self.date_to >= day)

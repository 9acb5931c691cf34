from models.db import db

class CourtOperatingHours(db.Model):
    """One opening window of a court on a weekday. Several rows per weekday give split hours.

    A row with is_closed set shuts the court for that weekday. Weekdays without rows
    fall back to the court's open_hour/close_hour.
    """
    __tablename__ = "court_operating_hours"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    day_of_week = db.Column(db.String(10), nullable=False)  # MONDAY .. SUNDAY

    is_closed = db.Column(db.Boolean, default=False, nullable=False)
    open_hour = db.Column(db.Integer, nullable=True)
    close_hour = db.Column(db.Integer, nullable=True)  # exclusive, may be 24

    court = db.relationship("Court", back_populates="operating_hours")

    __table_args__ = (
        db.CheckConstraint(
            "is_closed OR (open_hour >= 0 AND close_hour <= 24 AND open_hour < close_hour)",
            name="ck_court_operating_hours_window",
        ),
    )

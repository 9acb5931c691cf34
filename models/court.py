from datetime import datetime
from models.db import db

class Court(db.Model):
    __tablename__ = "courts"

    id = db.Column(db.Integer, primary_key=True)
    venue_id = db.Column(db.Integer, db.ForeignKey("venues.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    price = db.Column(db.Integer, nullable=False, default=0)  # per hour, smallest currency unit
    open_hour = db.Column(db.Integer, nullable=False, default=8)
    close_hour = db.Column(db.Integer, nullable=False, default=22)  # exclusive, may be 24

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    venue = db.relationship("Venue", back_populates="courts")
    operating_hours = db.relationship(
        "CourtOperatingHours", back_populates="court", cascade="all, delete-orphan",
        order_by="CourtOperatingHours.open_hour",
    )

    __table_args__ = (
        db.UniqueConstraint("venue_id", "name", name="uq_courts_venue_name"),
        db.CheckConstraint("open_hour >= 0 AND close_hour <= 24 AND open_hour < close_hour", name="ck_courts_hours"),
    )

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_active and (self.venue is None or self.venue.is_active))

from datetime import datetime
from models.db import db

BOOKING_STATUSES = ("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", "EXPIRED")

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    booking_code = db.Column(db.String(12), unique=True, nullable=False, index=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # guest checkout contact (used when user_id is empty)
    guest_name = db.Column(db.String(120), nullable=True)
    guest_email = db.Column(db.String(255), nullable=True)
    guest_phone = db.Column(db.String(30), nullable=True)

    booking_date = db.Column(db.Date, nullable=False, index=True)  # venue-local calendar date
    start_hour = db.Column(db.Integer, nullable=False)
    duration = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default="PENDING")
    source = db.Column(db.String(40), nullable=False, default="SYSTEM")  # SYSTEM, ADMIN_MANUAL, channel name
    payment_status = db.Column(db.String(20), nullable=False, default="UNPAID")

    expires_at = db.Column(db.DateTime, nullable=True)  # only meaningful while PENDING
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)

    court = db.relationship("Court")
    order = db.relationship("Order", back_populates="bookings")
    claims = db.relationship("SlotClaim", back_populates="booking", cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("ix_bookings_court_date", "court_id", "booking_date"),
        db.CheckConstraint("duration > 0", name="ck_bookings_duration"),
    )

    @property
    def end_hour(self) -> int:
        return self.start_hour + self.duration

    def is_active(self, now: datetime) -> bool:
        """True while the booking occupies its hours (pending bookings until they expire)."""
        if self.status in ("CONFIRMED", "COMPLETED"):
            return True
        if self.status == "PENDING":
            return self.expires_at is None or self.expires_at > now
        return False

from datetime import datetime
from models.db import db

class Payment(db.Model):
    """One payment attempt for a booking. MANUAL rows record cash or transfer taken at the venue."""
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    provider = db.Column(db.String(20), nullable=False, default="STRIPE")
    amount = db.Column(db.Integer, nullable=False)  # booking total, currency units
    currency = db.Column(db.String(10), nullable=False, default="IDR")
    status = db.Column(db.String(20), nullable=False, default="INIT")  # INIT, PAID, FAILED

    stripe_session_id = db.Column(db.String(255), nullable=True, unique=True, index=True)
    checkout_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)

    booking = db.relationship("Booking")

    @classmethod
    def manual(cls, booking, currency: str, paid_at: datetime) -> "Payment":
        return cls(
            booking=booking,
            provider="MANUAL",
            amount=booking.total_price,
            currency=currency,
            status="PAID",
            paid_at=paid_at,
        )

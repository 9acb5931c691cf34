from models.db import db

class SlotClaim(db.Model):
    """One occupied court-hour. Every active booking and blocking owns one row per hour."""
    __tablename__ = "slot_claims"

    id = db.Column(db.Integer, primary_key=True)

    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False)
    claim_date = db.Column(db.Date, nullable=False)
    hour = db.Column(db.Integer, nullable=False)

    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True, index=True)
    blocking_id = db.Column(db.Integer, db.ForeignKey("blockings.id"), nullable=True, index=True)

    booking = db.relationship("Booking", back_populates="claims")
    blocking = db.relationship("Blocking", back_populates="claims")

    __table_args__ = (
        # Hard business-rule: a court-hour can be held by one booking or blocking at a time
        db.UniqueConstraint("court_id", "claim_date", "hour", name="uq_slot_claim_court_hour"),
    )

from datetime import datetime
from models.db import db

class Order(db.Model):
    """Several court bookings reserved, paid and cancelled together."""
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_code = db.Column(db.String(12), unique=True, nullable=False, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    guest_name = db.Column(db.String(120), nullable=True)
    guest_email = db.Column(db.String(255), nullable=True)
    guest_phone = db.Column(db.String(30), nullable=True)

    total_price = db.Column(db.Integer, nullable=False, default=0)
    source = db.Column(db.String(40), nullable=False, default="SYSTEM")

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    bookings = db.relationship("Booking", back_populates="order", order_by="Booking.id")

    @property
    def status(self) -> str:
        statuses = {b.status for b in self.bookings}
        if statuses & {"CONFIRMED", "COMPLETED"}:
            return "CONFIRMED"
        if "PENDING" in statuses:
            return "PENDING"
        if "EXPIRED" in statuses:
            return "EXPIRED"
        return "CANCELLED"

    @property
    def payment_status(self) -> str:
        return "PAID" if self.bookings and all(b.payment_status == "PAID" for b in self.bookings) else "UNPAID"

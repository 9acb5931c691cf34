from datetime import datetime
from models.db import db

class DynamicPrice(db.Model):
    __tablename__ = "court_dynamic_prices"

    id = db.Column(db.Integer, primary_key=True)
    court_id = db.Column(db.Integer, db.ForeignKey("courts.id"), nullable=False, index=True)

    # exactly one of date / day_of_week is set
    date = db.Column(db.Date, nullable=True)
    day_of_week = db.Column(db.String(10), nullable=True)

    start_hour = db.Column(db.Integer, nullable=False)
    end_hour = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("start_hour < end_hour", name="ck_dynamic_prices_hours"),
        db.CheckConstraint(
            "(date IS NULL) <> (day_of_week IS NULL)",
            name="ck_dynamic_prices_date_or_weekday",
        ),
    )

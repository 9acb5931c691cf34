from datetime import datetime
from models.db import db

class RateLimitCounter(db.Model):
    """Fixed-window request counter shared by every app process through the database."""
    __tablename__ = "rate_limit_counters"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(160), unique=True, nullable=False, index=True)  # e.g. "booking:203.0.113.7"

    window_start = db.Column(db.DateTime, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

from datetime import datetime, timedelta
from functools import wraps
from flask import request, current_app, jsonify
from sqlalchemy.exc import IntegrityError

from models import db
from models.rate_limit import RateLimitCounter

def client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr) or "unknown"

def _bump(key: str, now: datetime, window_seconds: int) -> int:
    """Counts one request in SQL; returns the number of rows touched (0 when the key is new)."""
    # an expired window restarts at 1; the window_start condition stops two resets racing
    restarted = (
        RateLimitCounter.query
        .filter(
            RateLimitCounter.key == key,
            RateLimitCounter.window_start <= now - timedelta(seconds=window_seconds),
        )
        .update({"window_start": now, "count": 1, "updated_at": now}, synchronize_session=False)
    )
    if restarted:
        return restarted
    return (
        RateLimitCounter.query
        .filter(RateLimitCounter.key == key)
        .update({"count": RateLimitCounter.count + 1, "updated_at": now}, synchronize_session=False)
    )

def check_and_increment(key: str, window_seconds: int, max_requests: int) -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    Fixed window per key. The counter lives in the database so every app
    process sees the same count; increments happen in SQL, not in Python.
    """
    now = datetime.utcnow()

    if not _bump(key, now, window_seconds):
        db.session.add(RateLimitCounter(key=key, window_start=now, count=1, updated_at=now))
        try:
            db.session.commit()
        except IntegrityError:
            # another process inserted the key first
            db.session.rollback()
            _bump(key, now, window_seconds)
            db.session.commit()
    else:
        db.session.commit()

    count, window_start = (
        db.session.query(RateLimitCounter.count, RateLimitCounter.window_start)
        .filter(RateLimitCounter.key == key)
        .one()
    )
    if count > max_requests:
        window_end = window_start + timedelta(seconds=window_seconds)
        retry_after = int((window_end - now).total_seconds())
        return False, max(retry_after, 1)

    return True, 0

def rate_limited(scope: str, window_key: str, max_key: str):
    """
    Usage: @rate_limited("booking", "BOOKING_RATE_WINDOW_SECONDS", "BOOKING_RATE_MAX_REQUESTS")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            window_seconds = current_app.config.get(window_key, 60)
            max_requests = current_app.config.get(max_key, 20)
            allowed, retry_after = check_and_increment(f"{scope}:{client_ip()}", window_seconds, max_requests)
            if not allowed:
                resp = jsonify(error="Too many requests, slow down", retry_after=retry_after)
                resp.headers["Retry-After"] = str(retry_after)
                return resp, 429
            return fn(*args, **kwargs)
        return wrapper
    return decorator

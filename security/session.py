"""Server-side sessions behind the login service's cookie.

Only the SHA-256 of the cookie token is stored. This service never issues
cookies to browsers itself; create_session exists for the login service and
for tests.
"""
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app, request

from models import db
from models.session import Session


def token_digest(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_session(user_id: int, now: Optional[datetime] = None) -> str:
    """Stores a new session and returns the raw cookie token."""
    now = now or datetime.utcnow()
    raw_token = secrets.token_urlsafe(32)
    db.session.add(Session(
        user_id=user_id,
        token_hash=token_digest(raw_token),
        created_at=now,
        last_seen_at=now,
        expires_at=now + timedelta(seconds=current_app.config.get("SESSION_LIFETIME_SECONDS", 28800)),
    ))
    db.session.commit()
    return raw_token


def session_for_token(raw_token: Optional[str], now: Optional[datetime] = None) -> Optional[Session]:
    """Usable session for a raw token, touched as seen; None when missing, revoked, expired or idle."""
    if not raw_token:
        return None
    now = now or datetime.utcnow()
    sess = Session.query.filter_by(token_hash=token_digest(raw_token)).first()
    if sess is None or not sess.is_usable(now, current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)):
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def get_session_from_request() -> Optional[Session]:
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "padelslot_session")
    return session_for_token(request.cookies.get(cookie_name))

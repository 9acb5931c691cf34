"""Admin blockings (maintenance, private holds). Same claim rules as bookings."""
from datetime import datetime
from typing import Optional

from flask import current_app

from models import db
from models.blocking import Blocking
from models.slot_claim import SlotClaim
from scheduling.availability import (
    CourtWindow,
    get_court_or_unavailable,
    load_blocking_intervals,
    load_booking_intervals,
)
from scheduling.calendar import iter_days, parse_date, parse_hour, utc_naive
from scheduling.errors import NotFound, SlotConflict, ValidationError
from scheduling.interval import Interval
from scheduling.reservation import commit_claims, release_stale_claims, require_venue_scope
from security.rbac import ActorContext


def create_blocking(
    court_id,
    date_from,
    date_to,
    start_hour,
    end_hour,
    reason: Optional[str],
    actor: ActorContext,
    now: Optional[datetime] = None,
) -> Blocking:
    date_from = parse_date(date_from, "date_from")
    date_to = parse_date(date_to, "date_to") if date_to else date_from
    if date_to < date_from:
        raise ValidationError("date_to must not be before date_from")
    max_days = current_app.config.get("MAX_BLOCKING_DAYS", 366)
    if (date_to - date_from).days + 1 > max_days:
        raise ValidationError(f"A blocking may span at most {max_days} days")

    start_hour = parse_hour(start_hour, "start_hour")
    end_hour = parse_hour(end_hour, "end_hour", allow_midnight_end=True)
    Interval(date_from, start_hour, end_hour)
    if reason is not None and not isinstance(reason, str):
        raise ValidationError("reason must be a string")

    court = get_court_or_unavailable(court_id)
    require_venue_scope(actor, court.venue_id, "blocking courts")

    now = utc_naive(now)
    claims = []
    for day in iter_days(date_from, date_to):
        requested = Interval(day, start_hour, end_hour)
        window = CourtWindow.from_model(court, day)
        if window.is_closed:
            continue
        if not window.contains(requested):
            raise ValidationError(
                f"Blocking {requested.label()} is outside operating hours {window.describe()} on {day.isoformat()}"
            )
        release_stale_claims(court.id, day, now)
        taken = load_booking_intervals(court.id, day, now) + load_blocking_intervals(court.id, day)
        clashes = sorted({h for other in taken for h in requested.hours() if other.covers(h)})
        if clashes:
            raise SlotConflict(
                f"Court already has bookings or blockings on {day.isoformat()}",
                hours=clashes,
                date=day.isoformat(),
            )
        claims.extend(SlotClaim(court_id=court.id, claim_date=day, hour=h) for h in requested.hours())

    if not claims:
        raise ValidationError("Court is closed on every day of the blocking")

    blocking = Blocking(
        court_id=court.id,
        date_from=date_from,
        date_to=date_to,
        start_hour=start_hour,
        end_hour=end_hour,
        reason=(reason or "").strip()[:160] or None,
        created_by=actor.user_id,
        claims=claims,
    )
    db.session.add(blocking)
    commit_claims(range(start_hour, end_hour), date_from=date_from.isoformat(), date_to=date_to.isoformat())
    return blocking


def release_blocking(blocking_id, actor: ActorContext, now: Optional[datetime] = None) -> Blocking:
    blocking = Blocking.query.get(blocking_id) if blocking_id is not None else None
    if not blocking:
        raise NotFound("Blocking not found")
    require_venue_scope(actor, blocking.court.venue_id, "releasing blockings")
    if not blocking.is_active:
        raise ValidationError("Blocking already released")

    blocking.is_active = False
    blocking.released_at = utc_naive(now)
    blocking.claims = []
    commit_claims([])
    return blocking

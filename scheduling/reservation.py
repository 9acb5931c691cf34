"""Conflict-safe booking writes.

Every active booking and blocking owns one SlotClaim row per occupied
court-hour, and slot_claims is unique on (court_id, claim_date, hour). The
availability re-check below rejects most conflicts without writing; the unique
constraint settles the race between writers that both passed the re-check.
An order reserves several ranges and commits all of their claims at once.
"""
import secrets
import string
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from itertools import combinations
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.booking import Booking
from models.court import Court
from models.order import Order
from models.payment import Payment
from models.slot_claim import SlotClaim
from scheduling.availability import (
    CourtWindow,
    blocked_hours,
    get_court_or_unavailable,
    range_is_open,
    snapshot_slots,
)
from scheduling.calendar import is_past, local_now, parse_date, parse_hour, slot_start, utc_naive
from scheduling.errors import (
    CourtUnavailable,
    NotFound,
    PermissionDenied,
    SlotConflict,
    StoreFailure,
    ValidationError,
)
from scheduling.interval import Interval, overlaps
from security.rbac import ActorContext, Role

SOURCE_SYSTEM = "SYSTEM"
SOURCE_ADMIN_MANUAL = "ADMIN_MANUAL"

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def text_field(data: dict, key: str) -> Optional[str]:
    """Stripped string value of data[key], None when missing or blank."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None


@dataclass
class Payer:
    user_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict, user=None) -> "Payer":
        if user is not None:
            return cls(user_id=user.id, name=user.full_name, email=user.email, phone=user.phone_number)
        email = text_field(data, "email")
        return cls(
            name=text_field(data, "name"),
            email=email.lower() if email else None,
            phone=text_field(data, "phone"),
        )

    def validate(self) -> None:
        if self.user_id is not None:
            return
        if not self.name:
            raise ValidationError("Guest name is required")
        if not self.email or "@" not in self.email or len(self.email) > 255:
            raise ValidationError("A valid guest email is required")


@dataclass
class Reservation:
    """A validated range that passed the availability check, not yet written."""

    court: Court
    interval: Interval
    total: int


def court_timezone(court: Court) -> str:
    tz = court.venue.timezone if court.venue is not None else None
    return tz or current_app.config.get("VENUE_DEFAULT_TIMEZONE", "UTC")


def _parse_duration(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("duration must be a whole number of hours")
    if value < 1:
        raise ValidationError("duration must be at least one hour")
    return value


def _new_booking_code() -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))


def require_venue_scope(actor: Optional[ActorContext], venue_id: int, what: str = "this action") -> None:
    if actor is None or not actor.at_least(Role.STAFF):
        raise PermissionDenied(f"Staff access is required for {what}")
    if not actor.can_manage_venue(venue_id):
        raise PermissionDenied("Venue is outside your assignment")


def _expire(booking: Booking) -> None:
    booking.status = "EXPIRED"
    booking.claims = []


def release_stale_claims(court_id: int, day: date, now: datetime) -> int:
    """Expires unpaid pending bookings past their window so their hours can be claimed again."""
    stale = (
        Booking.query
        .filter(
            Booking.court_id == court_id,
            Booking.booking_date == day,
            Booking.status == "PENDING",
            Booking.expires_at.isnot(None),
            Booking.expires_at <= now,
        )
        .all()
    )
    for booking in stale:
        _expire(booking)
    if stale:
        db.session.commit()
        current_app.logger.info(
            "Expired %d stale pending booking(s) on court %s for %s", len(stale), court_id, day.isoformat()
        )
    return len(stale)


def commit_claims(conflict_hours: Iterable[int], **details) -> None:
    """Commits the current unit of work, mapping claim collisions to SlotConflict."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if "booking_code" in str(exc.orig) or "order_code" in str(exc.orig):
            raise StoreFailure("Could not allocate a booking code, please retry") from exc
        raise SlotConflict(hours=list(conflict_hours), **details) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Store failure while committing slot claims")
        raise StoreFailure() from exc


def check_range(
    court_id,
    day,
    start_hour,
    duration,
    price: Optional[int],
    now: datetime,
    actor: Optional[ActorContext] = None,
    manual: bool = False,
) -> Reservation:
    """Validates one requested range and re-checks it against the store. Writes nothing
    except the expiry of stale pending bookings on that court and date."""
    day = parse_date(day)
    start_hour = parse_hour(start_hour, "start_hour")
    interval = Interval.from_duration(day, start_hour, _parse_duration(duration))
    if price is not None and (isinstance(price, bool) or not isinstance(price, int)):
        raise ValidationError("price must be an integer")

    court = get_court_or_unavailable(court_id)
    if not court.is_bookable:
        raise CourtUnavailable("Court is not available for booking", court_id=court.id)
    if manual:
        # manual bookings get the same conflict check, only the actor is checked here
        require_venue_scope(actor, court.venue_id, "manual bookings")

    window = CourtWindow.from_model(court, day)
    if window.is_closed:
        raise ValidationError("Court is closed on this day", court_id=court.id, date=day.isoformat())
    if not window.contains(interval):
        raise ValidationError(
            f"Requested time {interval.label()} is outside operating hours {window.describe()}"
        )
    if is_past(day, start_hour, court_timezone(court), now):
        raise ValidationError("Cannot book past or started slots")

    try:
        release_stale_claims(court.id, day, now)
        slots = snapshot_slots(court, day, now)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreFailure() from exc

    if not range_is_open(slots, interval.start, interval.duration):
        raise SlotConflict(
            hours=blocked_hours(slots, interval.start, interval.duration),
            court_id=court.id,
            date=day.isoformat(),
        )

    total = sum(s.price for s in slots if interval.covers(s.hour))
    if price is not None and price != total:
        raise ValidationError("Price has changed, please review the new total", expected=total, submitted=price)
    return Reservation(court=court, interval=interval, total=total)


def _new_booking(
    reservation: Reservation,
    payer: Payer,
    actor: Optional[ActorContext],
    source: str,
    now: datetime,
    paid: bool = False,
    order: Optional[Order] = None,
) -> Booking:
    court, interval = reservation.court, reservation.interval
    expiry_minutes = current_app.config.get("PENDING_BOOKING_EXPIRY_MINUTES", 15)
    booking = Booking(
        booking_code=_new_booking_code(),
        court_id=court.id,
        order=order,
        user_id=payer.user_id,
        guest_name=None if payer.user_id else payer.name,
        guest_email=None if payer.user_id else payer.email,
        guest_phone=None if payer.user_id else payer.phone,
        booking_date=interval.day,
        start_hour=interval.start,
        duration=interval.duration,
        total_price=reservation.total,
        status="CONFIRMED" if paid else "PENDING",
        source=source,
        payment_status="PAID" if paid else "UNPAID",
        expires_at=None if paid else now + timedelta(minutes=expiry_minutes),
        created_by=actor.user_id if actor else payer.user_id,
        claims=[SlotClaim(court_id=court.id, claim_date=interval.day, hour=h) for h in interval.hours()],
    )
    db.session.add(booking)
    if paid:
        db.session.add(Payment.manual(booking, current_app.config.get("BOOKING_CURRENCY", "IDR"), now))
    return booking


def reserve(
    court_id,
    day,
    start_hour,
    duration,
    payer: Payer,
    price: Optional[int] = None,
    actor: Optional[ActorContext] = None,
    source: str = SOURCE_SYSTEM,
    now: Optional[datetime] = None,
    manual: bool = False,
    paid: bool = False,
) -> Booking:
    """Creates a PENDING booking for [start_hour, start_hour + duration) or raises.

    `price`, when given, is the total the caller showed to the payer; it must
    match the current pricing. `manual` marks a staff booking and requires an
    actor who manages the court's venue; any source other than SYSTEM implies it.
    `paid` records an offline payment in the same commit, so the booking is
    created CONFIRMED. `now` is a naive UTC timestamp.
    """
    manual = manual or source != SOURCE_SYSTEM
    if paid and not manual:
        raise ValidationError("Only manual bookings can be recorded as paid")
    payer.validate()

    now = utc_naive(now)
    reservation = check_range(court_id, day, start_hour, duration, price, now, actor=actor, manual=manual)
    booking = _new_booking(reservation, payer, actor, source, now, paid=paid)
    commit_claims(reservation.interval.hours(), court_id=reservation.court.id)
    return booking


def reserve_many(
    items: list,
    payer: Payer,
    actor: Optional[ActorContext] = None,
    source: str = SOURCE_SYSTEM,
    now: Optional[datetime] = None,
) -> Order:
    """Reserves every requested range as one order, or none of them.

    Each item is a mapping with court_id, date, start_hour, duration and an
    optional price. A conflict on any range raises SlotConflict for the order.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("An order needs at least one booking")
    max_items = current_app.config.get("MAX_ORDER_BOOKINGS", 10)
    if len(items) > max_items:
        raise ValidationError(f"An order may hold at most {max_items} bookings")
    if not all(isinstance(item, dict) for item in items):
        raise ValidationError("Each order item must be an object")
    manual = source != SOURCE_SYSTEM
    payer.validate()

    now = utc_naive(now)
    reservations: List[Reservation] = [
        check_range(
            item.get("court_id"),
            item.get("date"),
            item.get("start_hour"),
            item.get("duration", 1),
            item.get("price"),
            now,
            actor=actor,
            manual=manual,
        )
        for item in items
    ]
    for a, b in combinations(reservations, 2):
        if a.court.id == b.court.id and overlaps(a.interval, b.interval):
            raise ValidationError(
                f"Order repeats court {a.court.id} at {b.interval.label()} on {b.interval.day.isoformat()}"
            )

    order = Order(
        order_code=_new_booking_code(),
        user_id=payer.user_id,
        guest_name=None if payer.user_id else payer.name,
        guest_email=None if payer.user_id else payer.email,
        guest_phone=None if payer.user_id else payer.phone,
        total_price=sum(r.total for r in reservations),
        source=source,
        created_by=actor.user_id if actor else payer.user_id,
    )
    db.session.add(order)
    for reservation in reservations:
        _new_booking(reservation, payer, actor, source, now, order=order)

    conflict_hours = sorted({h for r in reservations for h in r.interval.hours()})
    commit_claims(conflict_hours, courts=sorted({r.court.id for r in reservations}))
    return order


def _get_booking(booking_id) -> Booking:
    booking = Booking.query.get(booking_id) if booking_id is not None else None
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _check_cancel_cutoff(booking: Booking, now: datetime) -> None:
    cutoff_hours = current_app.config.get("CANCEL_CUTOFF_HOURS", 12)
    tz_name = court_timezone(booking.court)
    starts = slot_start(booking.booking_date, booking.start_hour, tz_name)
    if (starts - local_now(tz_name, now)).total_seconds() < cutoff_hours * 3600:
        raise PermissionDenied(f"Cancellation not allowed within {cutoff_hours} hours of start")


def _cancel(booking: Booking, reason: Optional[str], now: datetime) -> None:
    booking.status = "CANCELLED"
    booking.cancelled_at = now
    booking.cancel_reason = reason
    booking.claims = []


def cancel_booking(booking_id, actor: ActorContext, reason: Optional[str] = None, now: Optional[datetime] = None) -> Booking:
    booking = _get_booking(booking_id)
    is_owner = actor.user_id is not None and booking.user_id == actor.user_id
    is_manager = actor.can_manage_venue(booking.court.venue_id)
    if not (is_owner or is_manager):
        raise NotFound("Booking not found")

    if booking.status not in ("PENDING", "CONFIRMED"):
        raise ValidationError("Booking not cancellable")

    now = utc_naive(now)
    if not is_manager:
        _check_cancel_cutoff(booking, now)

    _cancel(booking, reason, now)
    commit_claims([])
    return booking


def cancel_order(order_id, actor: ActorContext, reason: Optional[str] = None, now: Optional[datetime] = None) -> Order:
    """Cancels every still-active booking of an order together."""
    order = Order.query.get(order_id) if order_id is not None else None
    if not order:
        raise NotFound("Order not found")
    is_owner = actor.user_id is not None and order.user_id == actor.user_id
    is_manager = bool(order.bookings) and all(actor.can_manage_venue(b.court.venue_id) for b in order.bookings)
    if not (is_owner or is_manager):
        raise NotFound("Order not found")

    active = [b for b in order.bookings if b.status in ("PENDING", "CONFIRMED")]
    if not active:
        raise ValidationError("Order not cancellable")

    now = utc_naive(now)
    if not is_manager:
        for booking in active:
            _check_cancel_cutoff(booking, now)

    for booking in active:
        _cancel(booking, reason, now)
    commit_claims([])
    return order


def mark_booking_paid(booking_id, actor: ActorContext, now: Optional[datetime] = None) -> Booking:
    """Records an offline payment taken at the venue; the booking becomes CONFIRMED."""
    booking = _get_booking(booking_id)
    require_venue_scope(actor, booking.court.venue_id, "recording payments")

    now = utc_naive(now)
    if booking.payment_status == "PAID":
        raise ValidationError("Booking already paid")
    if booking.status not in ("PENDING", "CONFIRMED") or not booking.is_active(now):
        raise ValidationError("Booking is no longer active")

    booking.status = "CONFIRMED"
    booking.payment_status = "PAID"
    booking.expires_at = None
    db.session.add(Payment.manual(booking, current_app.config.get("BOOKING_CURRENCY", "IDR"), now))
    commit_claims([])
    return booking


def expire_pending_bookings(now: Optional[datetime] = None) -> int:
    """Sweeps every unpaid pending booking past its window. Run periodically (cron)."""
    now = utc_naive(now)
    stale = (
        Booking.query
        .filter(
            Booking.status == "PENDING",
            Booking.expires_at.isnot(None),
            Booking.expires_at <= now,
        )
        .all()
    )
    for booking in stale:
        _expire(booking)
    commit_claims([])
    return len(stale)

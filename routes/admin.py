from flask import Blueprint, jsonify, g, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.court import Court
from models.operating_hours import CourtOperatingHours
from models.user import User
from models.venue import Venue
from routes.booking import booking_json
from routes.courts import court_json
from scheduling.availability import parse_operating_hours
from scheduling.calendar import parse_date, parse_hour
from scheduling.dashboard import DashboardFilter, compute_dashboard_metrics
from scheduling.errors import NotFound, PermissionDenied, ValidationError
from scheduling.reservation import (
    SOURCE_ADMIN_MANUAL,
    SOURCE_SYSTEM,
    Payer,
    cancel_booking,
    mark_booking_paid,
    require_venue_scope,
    reserve,
    text_field,
)
from security.rbac import Role, require_role
from utils.audit import log_event
from utils.auth_context import current_actor, managed_venue_ids
from utils.notify import notify_booking_reserved

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _positive_int(data: dict, key: str, default=None) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{key} must be a non-negative integer")
    return value


def _get_court(court_id: int) -> Court:
    court = Court.query.get(court_id)
    if not court:
        raise NotFound("Court not found")
    return court


# ---------- STAFF/ADMIN: manage courts ----------
@admin_bp.post("/courts")
@require_role(Role.STAFF)
def create_court():
    data = request.get_json(silent=True) or {}
    name = text_field(data, "name")
    venue_id = data.get("venue_id")
    if not name:
        return jsonify(error="Court name required"), 400
    venue = Venue.query.get(venue_id) if isinstance(venue_id, int) else None
    if not venue:
        return jsonify(error="Venue not found"), 404
    require_venue_scope(current_actor(), venue.id, "managing courts")

    open_hour = parse_hour(data.get("open_hour", 8), "open_hour")
    close_hour = parse_hour(data.get("close_hour", 22), "close_hour", allow_midnight_end=True)
    if open_hour >= close_hour:
        return jsonify(error="close_hour must be after open_hour"), 400

    court = Court(
        venue_id=venue.id,
        name=name,
        price=_positive_int(data, "price", 0),
        open_hour=open_hour,
        close_hour=close_hour,
    )
    db.session.add(court)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Court name already exists at this venue"), 409

    log_event("COURT_CREATE", user_id=g.user.id, entity="court", entity_id=court.id)
    return jsonify(court_json(court)), 201


@admin_bp.patch("/courts/<int:court_id>")
@require_role(Role.STAFF)
def update_court(court_id: int):
    data = request.get_json(silent=True) or {}
    court = _get_court(court_id)
    require_venue_scope(current_actor(), court.venue_id, "managing courts")

    changes = {}
    if "price" in data:
        changes["price"] = _positive_int(data, "price")
    if "open_hour" in data:
        changes["open_hour"] = parse_hour(data["open_hour"], "open_hour")
    if "close_hour" in data:
        changes["close_hour"] = parse_hour(data["close_hour"], "close_hour", allow_midnight_end=True)
    if "is_active" in data:
        changes["is_active"] = bool(data["is_active"])
    if not changes:
        return jsonify(error="Nothing to update"), 400

    if changes.get("open_hour", court.open_hour) >= changes.get("close_hour", court.close_hour):
        return jsonify(error="close_hour must be after open_hour"), 400

    for key, value in changes.items():
        setattr(court, key, value)
    db.session.commit()

    log_event("COURT_UPDATE", user_id=g.user.id, entity="court", entity_id=court.id, metadata=changes)
    return jsonify(court_json(court)), 200


def operating_hours_json(court: Court) -> list:
    return [
        {
            "day_of_week": r.day_of_week,
            "closed": r.is_closed,
            "open_hour": r.open_hour,
            "close_hour": r.close_hour,
        }
        for r in court.operating_hours
    ]


@admin_bp.get("/courts/<int:court_id>/operating-hours")
@require_role(Role.STAFF)
def get_operating_hours(court_id: int):
    court = _get_court(court_id)
    require_venue_scope(current_actor(), court.venue_id, "managing courts")
    return jsonify(court_id=court.id, default_open_hour=court.open_hour, default_close_hour=court.close_hour,
                   days=operating_hours_json(court)), 200


@admin_bp.put("/courts/<int:court_id>/operating-hours")
@require_role(Role.STAFF)
def replace_operating_hours(court_id: int):
    """Replaces the court's weekly schedule. Existing bookings are left in place."""
    data = request.get_json(silent=True) or {}
    court = _get_court(court_id)
    require_venue_scope(current_actor(), court.venue_id, "managing courts")

    rows = parse_operating_hours(data.get("days"))
    court.operating_hours = [CourtOperatingHours(**row) for row in rows]
    db.session.commit()

    log_event("COURT_HOURS_UPDATE", user_id=g.user.id, entity="court", entity_id=court.id,
              metadata={"days": sorted({r["day_of_week"] for r in rows})})
    return jsonify(court_id=court.id, days=operating_hours_json(court)), 200


# ---------- STAFF/ADMIN: bookings ----------
@admin_bp.post("/bookings/manual")
@require_role(Role.STAFF)
def manual_booking():
    data = request.get_json(silent=True) or {}

    customer = None
    email = text_field(data, "user_email")
    if email:
        customer = User.query.filter_by(email=email.lower()).first()
        if not customer:
            return jsonify(error="Customer not found"), 404
    payer = Payer.from_payload(data, customer)

    source = (text_field(data, "source") or SOURCE_ADMIN_MANUAL).upper()[:40]
    if source == SOURCE_SYSTEM:
        raise ValidationError("source SYSTEM is reserved for player bookings")
    paid = data.get("paid", False)
    if not isinstance(paid, bool):
        raise ValidationError("paid must be true or false")

    booking = reserve(
        data.get("court_id"),
        data.get("date"),
        data.get("start_hour"),
        data.get("duration", 1),
        payer,
        price=data.get("price"),
        actor=current_actor(),
        source=source,
        manual=True,
        paid=paid,
    )

    log_event("ADMIN_BOOKING_MANUAL", user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"court_id": booking.court_id, "date": booking.booking_date.isoformat(),
                        "start_hour": booking.start_hour, "duration": booking.duration,
                        "source": source, "paid": paid})

    notified = notify_booking_reserved(booking)
    return jsonify(booking=booking_json(booking), checkout_url=notified["checkout_url"]), 201


@admin_bp.get("/bookings")
@require_role(Role.STAFF)
def list_bookings():
    actor = current_actor()
    q = Booking.query.join(Court, Booking.court_id == Court.id)

    venue_ids = managed_venue_ids(actor)
    if venue_ids is not None:
        q = q.filter(Court.venue_id.in_(venue_ids))

    court_id = request.args.get("court_id", type=int)
    if court_id:
        q = q.filter(Booking.court_id == court_id)
    status = (request.args.get("status") or "").strip().upper()
    if status:
        q = q.filter(Booking.status == status)
    if request.args.get("date"):
        q = q.filter(Booking.booking_date == parse_date(request.args.get("date")))

    rows = q.order_by(Booking.booking_date.desc(), Booking.start_hour.asc()).limit(200).all()
    return jsonify([booking_json(b) for b in rows]), 200


@admin_bp.post("/bookings/<int:booking_id>/cancel")
@require_role(Role.STAFF)
def admin_cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (text_field(data, "reason") or "Admin cancellation")[:120]

    booking = Booking.query.get(booking_id)
    if booking and not current_actor().can_manage_venue(booking.court.venue_id):
        raise PermissionDenied("Venue is outside your assignment")
    booking = cancel_booking(booking_id, current_actor(), reason)

    log_event("ADMIN_BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"reason": reason})
    return jsonify(message="Cancelled by admin", booking=booking_json(booking)), 200


@admin_bp.post("/bookings/<int:booking_id>/mark-paid")
@require_role(Role.STAFF)
def admin_mark_paid(booking_id: int):
    booking = mark_booking_paid(booking_id, current_actor())
    log_event("ADMIN_BOOKING_MARK_PAID", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking=booking_json(booking)), 200


# ---------- STAFF/ADMIN: dashboard ----------
@admin_bp.get("/dashboard/metrics")
@require_role(Role.STAFF)
def dashboard_metrics():
    actor = current_actor()
    venue_ids = managed_venue_ids(actor)

    requested = request.args.get("venue_id", type=int)
    if requested:
        if venue_ids is not None and requested not in venue_ids:
            raise PermissionDenied("Venue is outside your assignment")
        venue_ids = [requested]
    elif venue_ids is not None and not venue_ids:
        return jsonify(error="Assigned venue is required for the admin dashboard"), 403

    date_from = request.args.get("date_from")
    date_to = request.args.get("date_to")
    filt = DashboardFilter(
        venue_ids=venue_ids,
        date_from=parse_date(date_from, "date_from") if date_from else None,
        date_to=parse_date(date_to, "date_to") if date_to else None,
    )
    metrics = compute_dashboard_metrics(filt)
    return jsonify(metrics.to_dict()), 200

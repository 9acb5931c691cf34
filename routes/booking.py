from flask import Blueprint, request, jsonify, g

from models.booking import Booking
from scheduling.errors import SlotConflict
from scheduling.reservation import Payer, reserve, cancel_booking, text_field
from security.rate_limit import rate_limited
from utils.auth_context import login_required, current_actor
from utils.audit import log_event
from utils.notify import notify_booking_reserved

booking_bp = Blueprint("booking", __name__)


def booking_json(b: Booking) -> dict:
    return {
        "id": b.id,
        "booking_code": b.booking_code,
        "court_id": b.court_id,
        "user_id": b.user_id,
        "guest_name": b.guest_name,
        "date": b.booking_date.isoformat(),
        "start_hour": b.start_hour,
        "end_hour": b.end_hour,
        "duration": b.duration,
        "total_price": b.total_price,
        "status": b.status,
        "source": b.source,
        "payment_status": b.payment_status,
        "expires_at": b.expires_at.isoformat() if b.expires_at else None,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }


# ---------- PLAYERS/GUESTS: reserve a slot range (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
@rate_limited("booking", "BOOKING_RATE_WINDOW_SECONDS", "BOOKING_RATE_MAX_REQUESTS")
def create_booking():
    data = request.get_json(silent=True) or {}
    user = getattr(g, "user", None)
    payer = Payer.from_payload(data, user)
    user_id = user.id if user else None

    try:
        booking = reserve(
            data.get("court_id"),
            data.get("date"),
            data.get("start_hour"),
            data.get("duration", 1),
            payer,
            price=data.get("price"),
            actor=current_actor(),
        )
    except SlotConflict as exc:
        log_event("BOOKING_FAIL_CONFLICT", user_id=user_id, entity="court", entity_id=data.get("court_id"),
                  metadata={"date": data.get("date"), "hours": exc.hours})
        raise

    log_event("BOOKING_RESERVE", user_id=user_id, entity="booking", entity_id=booking.id,
              metadata={"court_id": booking.court_id, "date": booking.booking_date.isoformat(),
                        "start_hour": booking.start_hour, "duration": booking.duration})
    notified = notify_booking_reserved(booking)
    return jsonify(booking=booking_json(booking), checkout_url=notified["checkout_url"]), 201


# ---------- PLAYERS: cancel booking (policy window) ----------
@booking_bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_my_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = text_field(data, "reason")
    reason = reason[:120] if reason else None

    booking = cancel_booking(booking_id, current_actor(), reason)

    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"reason": reason})
    return jsonify(message="Cancelled", booking=booking_json(booking)), 200


# ---------- PLAYERS: view my bookings ----------
@booking_bp.get("/bookings/me")
@login_required
def my_bookings():
    status = (request.args.get("status") or "").strip().upper()
    q = Booking.query.filter_by(user_id=g.user.id)
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.booking_date.desc(), Booking.start_hour.desc()).limit(200).all()
    return jsonify([booking_json(b) for b in rows]), 200

from flask import Blueprint, request, jsonify, g

from models.order import Order
from routes.booking import booking_json
from scheduling.errors import SlotConflict
from scheduling.reservation import Payer, cancel_order, reserve_many, text_field
from security.rate_limit import rate_limited
from utils.audit import log_event
from utils.auth_context import login_required, current_actor
from utils.notify import notify_order_reserved

order_bp = Blueprint("orders", __name__)


def order_json(o: Order) -> dict:
    return {
        "id": o.id,
        "order_code": o.order_code,
        "user_id": o.user_id,
        "guest_name": o.guest_name,
        "total_price": o.total_price,
        "status": o.status,
        "payment_status": o.payment_status,
        "source": o.source,
        "created_at": o.created_at.isoformat() if o.created_at else None,
        "bookings": [booking_json(b) for b in o.bookings],
    }


# ---------- PLAYERS/GUESTS: reserve several courts at once (ALL OR NOTHING) ----------
@order_bp.post("/orders")
@rate_limited("booking", "BOOKING_RATE_WINDOW_SECONDS", "BOOKING_RATE_MAX_REQUESTS")
def create_order():
    data = request.get_json(silent=True) or {}
    user = getattr(g, "user", None)
    payer = Payer.from_payload(data, user)
    user_id = user.id if user else None

    try:
        order = reserve_many(data.get("bookings"), payer, actor=current_actor())
    except SlotConflict as exc:
        log_event("ORDER_FAIL_CONFLICT", user_id=user_id, entity="order", metadata=exc.details)
        raise

    log_event("ORDER_RESERVE", user_id=user_id, entity="order", entity_id=order.id,
              metadata={"bookings": [b.id for b in order.bookings], "total_price": order.total_price})
    notified = notify_order_reserved(order)
    return jsonify(order=order_json(order), checkout_urls=notified["checkout_urls"]), 201


# ---------- PLAYERS/STAFF: cancel every booking of an order ----------
@order_bp.post("/orders/<int:order_id>/cancel")
@login_required
def cancel(order_id: int):
    data = request.get_json(silent=True) or {}
    reason = text_field(data, "reason")
    reason = reason[:120] if reason else None

    order = cancel_order(order_id, current_actor(), reason)

    log_event("ORDER_CANCEL", user_id=g.user.id, entity="order", entity_id=order.id, metadata={"reason": reason})
    return jsonify(message="Cancelled", order=order_json(order)), 200

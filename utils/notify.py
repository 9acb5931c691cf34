"""Post-reservation side effects. A failure here never touches the reservation."""
import stripe
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.court import Court
from models.user import User
from utils.audit import log_event
from utils.emailer import send_email
from utils.payments import start_checkout


def booking_contact(booking):
    if booking.user_id:
        user = User.query.get(booking.user_id)
        if user:
            return user.full_name or user.email, user.email
    return booking.guest_name, booking.guest_email


def _confirmation_body(booking, name, checkout_url) -> str:
    court = Court.query.get(booking.court_id)
    venue = court.venue.name if court and court.venue else ""
    lines = [
        f"Hi {name or 'there'},",
        "",
        f"Your booking {booking.booking_code} is reserved.",
        f"Court: {venue + ' - ' if venue else ''}{court.name if court else booking.court_id}",
        f"Date: {booking.booking_date.isoformat()}",
        f"Time: {booking.start_hour:02d}:00-{booking.end_hour:02d}:00",
        f"Total: {booking.total_price} {current_app.config.get('BOOKING_CURRENCY', 'IDR')}",
    ]
    if booking.status == "PENDING" and booking.expires_at:
        lines.append(f"Please complete payment before {booking.expires_at.strftime('%Y-%m-%d %H:%M')} UTC "
                     "or the slot will be released.")
    if checkout_url:
        lines += ["", f"Pay here: {checkout_url}"]
    lines += ["", "Thank you,", "PadelSlot"]
    return "\n".join(lines)


def notify_booking_reserved(booking) -> dict:
    out = {"checkout_url": None, "email_sent": False}

    try:
        payment = start_checkout(booking) if booking.payment_status != "PAID" else None
        if payment:
            out["checkout_url"] = payment.checkout_url
    except stripe.StripeError as exc:
        current_app.logger.warning("Checkout for booking %s failed: %s", booking.booking_code, exc)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Could not record payment for booking %s", booking.booking_code)

    name, email = booking_contact(booking)
    sent, error = send_email(
        email,
        f"Booking {booking.booking_code} reserved",
        _confirmation_body(booking, name, out["checkout_url"]),
    )
    out["email_sent"] = sent
    if not sent:
        current_app.logger.info("Confirmation email for booking %s not sent: %s", booking.booking_code, error)

    try:
        log_event(
            "BOOKING_NOTIFY",
            user_id=booking.user_id,
            entity="booking",
            entity_id=booking.id,
            metadata={"sent": sent, "error": error, "checkout": bool(out["checkout_url"])},
        )
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Audit write failed for booking %s", booking.booking_code)
    return out


def _order_body(order, name, checkout_urls) -> str:
    currency = current_app.config.get("BOOKING_CURRENCY", "IDR")
    lines = [f"Hi {name or 'there'},", "", f"Your order {order.order_code} is reserved:"]
    for b in order.bookings:
        court = Court.query.get(b.court_id)
        lines.append(f"- {b.booking_code}: {court.name if court else b.court_id}, {b.booking_date.isoformat()} "
                     f"{b.start_hour:02d}:00-{b.end_hour:02d}:00, {b.total_price} {currency}")
        if checkout_urls.get(b.booking_code):
            lines.append(f"  Pay here: {checkout_urls[b.booking_code]}")
    lines += ["", f"Total: {order.total_price} {currency}", "", "Thank you,", "PadelSlot"]
    return "\n".join(lines)


def notify_order_reserved(order) -> dict:
    """One checkout per booking of the order and a single confirmation e-mail."""
    out = {"checkout_urls": {}, "email_sent": False}

    for booking in order.bookings:
        try:
            payment = start_checkout(booking)
            if payment:
                out["checkout_urls"][booking.booking_code] = payment.checkout_url
        except stripe.StripeError as exc:
            current_app.logger.warning("Checkout for booking %s failed: %s", booking.booking_code, exc)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Could not record payment for booking %s", booking.booking_code)

    if order.user_id:
        user = User.query.get(order.user_id)
        name, email = (user.full_name or user.email, user.email) if user else (None, None)
    else:
        name, email = order.guest_name, order.guest_email
    sent, error = send_email(email, f"Order {order.order_code} reserved",
                             _order_body(order, name, out["checkout_urls"]))
    out["email_sent"] = sent
    if not sent:
        current_app.logger.info("Confirmation email for order %s not sent: %s", order.order_code, error)
    return out

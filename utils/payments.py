from urllib.parse import urlencode, urlparse, parse_qsl, urlunparse

import stripe
from flask import current_app

from models import db
from models.payment import Payment


def _append_query(url: str, params: dict) -> str:
    if not url:
        return url
    parts = urlparse(url)
    query = dict(parse_qsl(parts.query))
    query.update({k: v for k, v in params.items() if v is not None})
    return urlunparse(parts._replace(query=urlencode(query)))


def payments_configured() -> bool:
    cfg = current_app.config
    return bool(cfg.get("STRIPE_SECRET_KEY") and cfg.get("STRIPE_SUCCESS_URL") and cfg.get("STRIPE_CANCEL_URL"))


def start_checkout(booking):
    """
    Opens a Stripe Checkout session for a reserved booking and returns the Payment row,
    or None when Stripe is not configured. Raises stripe.StripeError on gateway errors
    (the Payment row is then marked FAILED).
    """
    if not payments_configured():
        return None

    cfg = current_app.config
    stripe.api_key = cfg["STRIPE_SECRET_KEY"]
    currency = cfg.get("BOOKING_CURRENCY", "IDR")

    payment = Payment(
        booking_id=booking.id,
        provider="STRIPE",
        amount=int(booking.total_price),
        currency=currency,
        status="INIT",
    )
    db.session.add(payment)
    db.session.commit()

    # Stripe expects the smallest unit of the currency
    unit_amount = int(booking.total_price) * int(cfg.get("STRIPE_AMOUNT_MULTIPLIER", 100))
    meta = {"booking_id": str(booking.id), "booking_code": booking.booking_code, "payment_id": str(payment.id)}

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {
                        "name": f"Court booking {booking.booking_code} "
                                f"({booking.booking_date.isoformat()} {booking.start_hour:02d}:00, {booking.duration}h)",
                    },
                    "unit_amount": unit_amount,
                },
                "quantity": 1,
            }],
            success_url=_append_query(cfg["STRIPE_SUCCESS_URL"], {"booking": booking.booking_code}),
            cancel_url=_append_query(cfg["STRIPE_CANCEL_URL"], {"booking": booking.booking_code, "payment_id": str(payment.id)}),
            metadata=meta,
        )
    except stripe.StripeError:
        payment.status = "FAILED"
        db.session.commit()
        raise

    payment.stripe_session_id = session["id"]
    payment.checkout_url = session["url"]
    db.session.commit()
    return payment

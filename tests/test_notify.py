"""Tests for checkout and confirmation mail after a reservation."""

import smtplib

import pytest
import stripe

from models.payment import Payment
from scheduling.reservation import reserve
from utils.emailer import build_message, send_email
from utils.notify import notify_booking_reserved
from tests.conftest import NOW, SATURDAY


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


@pytest.fixture
def smtp(app, monkeypatch):
    FakeSMTP.sent = []
    app.config.update(SMTP_HOST="smtp.example.com", SMTP_FROM_EMAIL="bookings@padelslot.test")
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def stripe_keys(app):
    app.config.update(
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_SUCCESS_URL="https://padelslot.test/paid?src=mail",
        STRIPE_CANCEL_URL="https://padelslot.test/cancelled",
    )


class TestEmailer:

    def test_not_configured(self, app):
        assert send_email("rani@example.com", "Hi", "Body") == (False, "Email not configured")

    def test_no_recipient(self, smtp):
        assert send_email(None, "Hi", "Body").error == "No recipient"

    def test_sends(self, smtp):
        result = send_email("rani@example.com", "Booking", "See you on court")
        assert result.sent
        assert smtp.sent[0]["To"] == "rani@example.com"
        assert "PadelSlot" in smtp.sent[0]["From"]

    def test_smtp_failure_is_reported(self, app, monkeypatch):
        app.config.update(SMTP_HOST="smtp.example.com", SMTP_FROM_EMAIL="bookings@padelslot.test")

        def refuse(*args, **kwargs):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(smtplib, "SMTP", refuse)
        result = send_email("rani@example.com", "Booking", "Body")
        assert not result.sent
        assert "refused" in result.error

    def test_build_message(self):
        msg = build_message("bookings@padelslot.test", "rani@example.com", "Subject", "Body")
        assert msg["Message-ID"]
        assert msg.get_content().strip() == "Body"


class TestNotifyBookingReserved:

    def test_without_stripe_or_smtp(self, court, guest):
        booking = reserve(court.id, SATURDAY, 18, 1, guest, now=NOW)
        assert notify_booking_reserved(booking) == {"checkout_url": None, "email_sent": False}
        assert Payment.query.count() == 0

    def test_checkout_and_mail(self, court, guest, smtp, stripe_keys, monkeypatch):
        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            return {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"}

        monkeypatch.setattr(stripe.checkout.Session, "create", create)
        booking = reserve(court.id, SATURDAY, 18, 2, guest, now=NOW)
        out = notify_booking_reserved(booking)

        assert out == {"checkout_url": "https://checkout.stripe.com/c/cs_test_1", "email_sent": True}
        payment = Payment.query.one()
        assert payment.stripe_session_id == "cs_test_1"
        assert payment.amount == booking.total_price
        assert calls[0]["line_items"][0]["price_data"]["unit_amount"] == booking.total_price * 100
        assert "booking=" + booking.booking_code in calls[0]["success_url"]
        assert "src=mail" in calls[0]["success_url"]
        assert booking.booking_code in smtp.sent[0].get_content()
        assert "checkout.stripe.com" in smtp.sent[0].get_content()

    def test_gateway_error_keeps_booking(self, court, guest, stripe_keys, monkeypatch):
        def create(**kwargs):
            raise stripe.StripeError("card network down")

        monkeypatch.setattr(stripe.checkout.Session, "create", create)
        booking = reserve(court.id, SATURDAY, 18, 1, guest, now=NOW)
        out = notify_booking_reserved(booking)

        assert out["checkout_url"] is None
        assert Payment.query.one().status == "FAILED"
        assert booking.status == "PENDING"

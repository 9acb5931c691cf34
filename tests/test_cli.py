"""Tests for the flask CLI commands."""

from datetime import datetime, timedelta

from models.audit_log import AuditLog
from models.booking import Booking
from security.rbac import ActorContext, Role
from tests.conftest import SATURDAY, make_booking, make_user


def test_expire_bookings(app, court):
    stale = make_booking(court, SATURDAY, 10, 1, status="PENDING",
                         expires_at=datetime.utcnow() - timedelta(minutes=1))
    make_booking(court, SATURDAY, 12, 1, status="PENDING", expires_at=datetime.utcnow() + timedelta(minutes=10))

    result = app.test_cli_runner().invoke(args=["expire-bookings"])

    assert result.exit_code == 0
    assert "Expired 1 booking(s)" in result.output
    assert Booking.query.get(stale.id).status == "EXPIRED"
    assert AuditLog.query.filter_by(action="BOOKING_EXPIRE_SWEEP").count() == 1


def test_make_admin(app):
    user = make_user("boss@example.com")
    result = app.test_cli_runner().invoke(args=["make-admin", "Boss@Example.com"])

    assert result.exit_code == 0
    assert ActorContext.from_user(user).role == Role.ADMIN


def test_make_admin_unknown_user(app):
    result = app.test_cli_runner().invoke(args=["make-admin", "ghost@example.com"])
    assert "User not found" in result.output


def test_seed_roles_is_idempotent(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["seed-roles"])
    result = runner.invoke(args=["seed-roles"])
    assert result.exit_code == 0
    assert "Roles seeded" in result.output

"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest

from app import create_app
from config import Config
from models import db
from models.booking import Booking
from models.court import Court
from models.dynamic_price import DynamicPrice
from models.operating_hours import CourtOperatingHours
from models.user import Role as RoleRow, User
from models.venue import Venue
from scheduling.reservation import Payer
from security.rbac import ActorContext, Role
from security.session import create_session
from utils.seed import seed_roles

# 2030-06-01 is a Saturday
SATURDAY = date(2030, 6, 1)
SUNDAY = date(2030, 6, 2)
NOW = datetime(2030, 5, 30, 9, 0)


class IsolatedConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SEED_ROLES_ON_STARTUP = False
    VENUE_DEFAULT_TIMEZONE = "UTC"
    BOOKING_RATE_MAX_REQUESTS = 1000
    SMTP_HOST = None
    STRIPE_SECRET_KEY = None


@pytest.fixture
def app():
    app = create_app(IsolatedConfig)
    with app.app_context():
        db.create_all()
        seed_roles()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def venue(app):
    return make_venue("Senayan Padel")


@pytest.fixture
def court(venue):
    return make_court(venue, "Court 1")


@pytest.fixture
def saturday_evening_rule(court):
    return make_rule(court, price=150000, start_hour=18, end_hour=21, day_of_week="SATURDAY")


@pytest.fixture
def guest():
    return Payer(name="Rani", email="rani@example.com", phone="0812000111")


@pytest.fixture
def admin_actor():
    return ActorContext(user_id=None, role=Role.ADMIN)


def make_venue(name: str, timezone: Optional[str] = "UTC", is_active: bool = True) -> Venue:
    venue = Venue(name=name, timezone=timezone, is_active=is_active)
    db.session.add(venue)
    db.session.commit()
    return venue


def make_court(
    venue: Venue,
    name: str,
    price: int = 100000,
    open_hour: int = 8,
    close_hour: int = 22,
    is_active: bool = True,
) -> Court:
    court = Court(
        venue_id=venue.id,
        name=name,
        price=price,
        open_hour=open_hour,
        close_hour=close_hour,
        is_active=is_active,
    )
    db.session.add(court)
    db.session.commit()
    return court


def make_rule(
    court: Court,
    price: int,
    start_hour: int,
    end_hour: int,
    day_of_week: Optional[str] = None,
    on_date: Optional[date] = None,
    created_at: Optional[datetime] = None,
) -> DynamicPrice:
    rule = DynamicPrice(
        court_id=court.id,
        price=price,
        start_hour=start_hour,
        end_hour=end_hour,
        day_of_week=day_of_week,
        date=on_date,
    )
    if created_at is not None:
        rule.created_at = created_at
    db.session.add(rule)
    db.session.commit()
    return rule


def make_user(
    email: str,
    role: Role = Role.USER,
    venues: Optional[list] = None,
    full_name: Optional[str] = None,
) -> User:
    user = User(email=email, full_name=full_name or email.split("@")[0].title())
    user.roles.append(RoleRow.query.filter_by(name=role.name).first())
    for venue in venues or []:
        user.venues.append(venue)
    db.session.add(user)
    db.session.commit()
    return user


def make_booking(
    court: Court,
    day: date,
    start_hour: int,
    duration: int,
    status: str = "CONFIRMED",
    user_id: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    total_price: int = 100000,
    payment_status: str = "UNPAID",
    code: Optional[str] = None,
) -> Booking:
    """Inserts a booking row directly, without slot claims."""
    booking = Booking(
        booking_code=code or f"T{court.id}{day.day:02d}{start_hour:02d}{duration}",
        court_id=court.id,
        user_id=user_id,
        guest_name=None if user_id else "Walk-in",
        booking_date=day,
        start_hour=start_hour,
        duration=duration,
        total_price=total_price,
        status=status,
        payment_status=payment_status,
        expires_at=expires_at,
    )
    db.session.add(booking)
    db.session.commit()
    return booking


def login(client, user: User) -> None:
    token = create_session(user.id)
    client.set_cookie(IsolatedConfig.AUTH_COOKIE_NAME, token)


def make_hours(
    court: Court,
    day_of_week: str,
    open_hour: Optional[int] = None,
    close_hour: Optional[int] = None,
    closed: bool = False,
) -> CourtOperatingHours:
    row = CourtOperatingHours(
        court_id=court.id,
        day_of_week=day_of_week,
        is_closed=closed,
        open_hour=open_hour,
        close_hour=close_hour,
    )
    db.session.add(row)
    db.session.commit()
    db.session.refresh(court)
    return row

"""Read-side booking rollups for the admin dashboard."""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from flask import current_app

from models.booking import BOOKING_STATUSES, Booking
from models.court import Court
from scheduling.availability import CourtWindow
from scheduling.calendar import iter_days, local_now, utc_naive
from scheduling.errors import ValidationError

DEFAULT_WINDOW_DAYS = 7


@dataclass
class DashboardFilter:
    venue_ids: Optional[List[int]] = None  # None means every venue
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    def window(self, today: date):
        """Utilization window; defaults to the past week ending today."""
        date_to = self.date_to or today
        date_from = self.date_from or (date_to - timedelta(days=DEFAULT_WINDOW_DAYS - 1))
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        return date_from, date_to


@dataclass
class BookingDashboardMetrics:
    total_bookings: int = 0
    by_status: dict = field(default_factory=dict)
    revenue_amount: int = 0
    revenue_transactions: int = 0
    paid_rate: float = 0.0
    cancellation_total: int = 0
    utilized_court_hours: int = 0
    available_court_hours: int = 0
    utilization: float = 0.0
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return min(100.0, round(part * 100.0 / whole, 2))


def summarize(
    bookings: Iterable[Booking],
    courts: Iterable[Court],
    date_from: date,
    date_to: date,
    now: datetime,
) -> BookingDashboardMetrics:
    bookings = list(bookings)
    courts = [c for c in courts if c.is_active]

    by_status = {s: 0 for s in BOOKING_STATUSES}
    for b in bookings:
        by_status[b.status] = by_status.get(b.status, 0) + 1

    paid = [b for b in bookings if b.payment_status == "PAID"]

    booked_hours = set()
    active_court_ids = {c.id for c in courts}
    for b in bookings:
        if b.court_id in active_court_ids and b.is_active(now):
            for hour in range(b.start_hour, b.end_hour):
                booked_hours.add((b.court_id, b.booking_date, hour))

    available = sum(
        len(CourtWindow.from_model(c, day).operating_hours())
        for day in iter_days(date_from, date_to)
        for c in courts
    )

    return BookingDashboardMetrics(
        total_bookings=len(bookings),
        by_status=by_status,
        revenue_amount=sum(b.total_price for b in paid),
        revenue_transactions=len(paid),
        paid_rate=_percent(len(paid), len(bookings)),
        cancellation_total=by_status["CANCELLED"] + by_status["EXPIRED"],
        utilized_court_hours=len(booked_hours),
        available_court_hours=available,
        utilization=_percent(len(booked_hours), available),
        date_from=date_from.isoformat(),
        date_to=date_to.isoformat(),
    )


def compute_dashboard_metrics(filt: DashboardFilter, now: Optional[datetime] = None) -> BookingDashboardMetrics:
    now = utc_naive(now)
    # the default window ends on the venue-local date
    today = local_now(current_app.config.get("VENUE_DEFAULT_TIMEZONE", "UTC"), now).date()
    date_from, date_to = filt.window(today)

    courts_q = Court.query
    if filt.venue_ids is not None:
        courts_q = courts_q.filter(Court.venue_id.in_(filt.venue_ids))
    courts = courts_q.all()

    court_ids = [c.id for c in courts]
    bookings = []
    if court_ids:
        bookings = (
            Booking.query
            .filter(
                Booking.court_id.in_(court_ids),
                Booking.booking_date >= date_from,
                Booking.booking_date <= date_to,
            )
            .all()
        )
    return summarize(bookings, courts, date_from, date_to, now)

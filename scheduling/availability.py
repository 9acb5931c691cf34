"""Hour-by-hour availability of a court on one date."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_

from models.blocking import Blocking
from models.booking import Booking
from models.court import Court
from models.dynamic_price import DynamicPrice
from scheduling.calendar import WEEKDAYS, parse_date, parse_hour, utc_naive, weekday_name
from scheduling.errors import CourtUnavailable, ValidationError
from scheduling.interval import Interval, hour_label
from scheduling.pricing import PriceRule, price_for_hour

SLOT_OPEN = "open"
SLOT_BOOKED = "booked"
SLOT_BLOCKED = "blocked"

ACTIVE_BOOKING_STATUSES = ("PENDING", "CONFIRMED", "COMPLETED")

# any fixed date; schedule windows are compared within one day
SCHEDULE_DAY = date(2000, 1, 3)


@dataclass(frozen=True)
class Slot:
    hour: int
    state: str
    price: int

    @property
    def label(self) -> str:
        return f"{hour_label(self.hour)}-{hour_label(self.hour + 1)}"

    @property
    def is_open(self) -> bool:
        return self.state == SLOT_OPEN

    def to_dict(self) -> dict:
        return {"hour": self.hour, "label": self.label, "state": self.state, "price": self.price}


@dataclass(frozen=True)
class CourtWindow:
    """The parts of a court the calculator needs, detached from the ORM session."""

    court_id: int
    open_hour: int
    close_hour: int
    base_price: int
    is_active: bool = True
    # the day's scheduled operating hours; None means open_hour..close_hour
    hours: Optional[Tuple[int, ...]] = None

    @classmethod
    def from_model(cls, court: Court, day: Optional[date] = None) -> "CourtWindow":
        return cls(
            court_id=court.id,
            open_hour=court.open_hour,
            close_hour=court.close_hour,
            base_price=court.price,
            is_active=court.is_bookable,
            hours=scheduled_hours(court, day) if day is not None else None,
        )

    def operating_hours(self) -> List[int]:
        if self.hours is None:
            return list(range(self.open_hour, self.close_hour))
        return list(self.hours)

    @property
    def is_closed(self) -> bool:
        return not self.operating_hours()

    def contains(self, interval: Interval) -> bool:
        return set(interval.hours()) <= set(self.operating_hours())

    def describe(self) -> str:
        """Operating hours as text, e.g. "08:00-12:00, 16:00-22:00"."""
        spans = []
        for hour in self.operating_hours():
            if spans and spans[-1][1] == hour:
                spans[-1][1] = hour + 1
            else:
                spans.append([hour, hour + 1])
        return ", ".join(f"{hour_label(a)}-{hour_label(b)}" for a, b in spans) or "closed"


def scheduled_hours(court: Court, day: date) -> Optional[Tuple[int, ...]]:
    """Operating hours from the court's weekly schedule, or None when the weekday has no rows."""
    rows = [r for r in court.operating_hours if r.day_of_week == weekday_name(day)]
    if not rows:
        return None
    if any(r.is_closed for r in rows):
        return ()
    hours = set()
    for r in rows:
        hours.update(range(r.open_hour, r.close_hour))
    return tuple(sorted(hours))


@dataclass
class Availability:
    court_id: int
    day: date
    slots: List[Slot] = field(default_factory=list)

    def end_hour_options(self) -> Dict[int, List[int]]:
        return {s.hour: end_hour_options(self.slots, s.hour) for s in self.slots if s.is_open}

    def to_dict(self) -> dict:
        return {
            "court_id": self.court_id,
            "date": self.day.isoformat(),
            "closed": not self.slots,
            "slots": [s.to_dict() for s in self.slots],
            "end_hour_options": {str(k): v for k, v in self.end_hour_options().items()},
        }


def booking_interval(booking: Booking) -> Interval:
    return Interval.from_duration(booking.booking_date, booking.start_hour, booking.duration)


def blocking_interval(blocking: Blocking, day: date) -> Interval:
    return Interval(day, blocking.start_hour, blocking.end_hour)


def compute_slots(
    window: CourtWindow,
    day: date,
    bookings: Iterable[Interval],
    blockings: Iterable[Interval],
    rules: Iterable[PriceRule],
) -> List[Slot]:
    """One slot per operating hour; a day the court is closed has no slots."""
    if not window.is_active:
        raise CourtUnavailable("Court is not available for booking", court_id=window.court_id)

    bookings = [b for b in bookings if b.day == day]
    blockings = [b for b in blockings if b.day == day]
    rules = list(rules)

    slots = []
    for hour in window.operating_hours():
        if any(b.covers(hour) for b in blockings):
            state = SLOT_BLOCKED
        elif any(b.covers(hour) for b in bookings):
            state = SLOT_BOOKED
        else:
            state = SLOT_OPEN
        # priced regardless of state so booked/blocked hours still show a price
        slots.append(Slot(hour, state, price_for_hour(window.base_price, rules, day, hour)))
    return slots


def range_is_open(slots: Iterable[Slot], start_hour: int, duration: int) -> bool:
    by_hour = {s.hour: s for s in slots}
    for hour in range(start_hour, start_hour + duration):
        slot = by_hour.get(hour)
        if slot is None or not slot.is_open:
            return False
    return True


def blocked_hours(slots: Iterable[Slot], start_hour: int, duration: int) -> List[int]:
    """Hours of the requested range that are not open (outside the window counts too)."""
    by_hour = {s.hour: s for s in slots}
    return [h for h in range(start_hour, start_hour + duration) if h not in by_hour or not by_hour[h].is_open]


def end_hour_options(slots: List[Slot], start_hour: int) -> List[int]:
    """Exclusive end hours selectable for a booking starting at start_hour."""
    ends = []
    by_hour = {s.hour: s for s in slots}
    hour = start_hour
    while hour in by_hour and by_hour[hour].is_open:
        hour += 1
        ends.append(hour)
    return ends


# ---------- store access ----------

def get_court_or_unavailable(court_id) -> Court:
    court = Court.query.get(court_id) if court_id is not None else None
    if not court:
        raise CourtUnavailable("Court not found", court_id=court_id)
    return court


def load_booking_intervals(court_id: int, day: date, now: datetime) -> List[Interval]:
    rows = (
        Booking.query
        .filter(
            Booking.court_id == court_id,
            Booking.booking_date == day,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        .all()
    )
    # expired-but-not-yet-swept pending bookings no longer hold their hours
    return [booking_interval(b) for b in rows if b.is_active(now)]


def load_blocking_intervals(court_id: int, day: date) -> List[Interval]:
    rows = (
        Blocking.query
        .filter(
            Blocking.court_id == court_id,
            Blocking.is_active.is_(True),
            Blocking.covers_date(day),
        )
        .all()
    )
    return [blocking_interval(b, day) for b in rows]


def load_price_rules(court_id: int, day: Optional[date] = None) -> List[PriceRule]:
    q = DynamicPrice.query.filter(DynamicPrice.court_id == court_id, DynamicPrice.is_active.is_(True))
    if day is not None:
        q = q.filter(or_(DynamicPrice.date == day, DynamicPrice.day_of_week == weekday_name(day)))
    return [PriceRule.from_model(r) for r in q.all()]


def snapshot_slots(court: Court, day: date, now: datetime) -> List[Slot]:
    return compute_slots(
        CourtWindow.from_model(court, day),
        day,
        load_booking_intervals(court.id, day, now),
        load_blocking_intervals(court.id, day),
        load_price_rules(court.id, day),
    )


def get_available_slots(court_id, day, now: Optional[datetime] = None) -> Availability:
    """Slots for every operating hour of the court on `day`.

    Raises CourtUnavailable for a missing or inactive court instead of returning
    a day of blocked slots.
    """
    day = parse_date(day)
    court = get_court_or_unavailable(court_id)
    now = utc_naive(now)
    return Availability(court_id=court.id, day=day, slots=snapshot_slots(court, day, now))


def parse_operating_hours(days) -> List[dict]:
    """Validates a weekly schedule payload into CourtOperatingHours column values.

    `days` is a list of {"day_of_week": "MONDAY", "closed": true} or
    {"day_of_week": "SATURDAY", "windows": [{"open_hour": 6, "close_hour": 12}, ...]}.
    Weekdays left out keep the court's default hours.
    """
    if not isinstance(days, list):
        raise ValidationError("days must be a list")
    rows, seen = [], set()
    for entry in days:
        if not isinstance(entry, dict):
            raise ValidationError("Each day must be an object")
        dow = entry.get("day_of_week")
        dow = dow.strip().upper() if isinstance(dow, str) else None
        if dow not in WEEKDAYS:
            raise ValidationError("day_of_week must be one of " + ", ".join(WEEKDAYS))
        if dow in seen:
            raise ValidationError(f"{dow} is listed twice")
        seen.add(dow)

        if entry.get("closed"):
            rows.append({"day_of_week": dow, "is_closed": True, "open_hour": None, "close_hour": None})
            continue

        windows = entry.get("windows")
        if not isinstance(windows, list) or not windows:
            raise ValidationError(f"{dow} needs at least one window or closed: true")
        spans = []
        for w in windows:
            if not isinstance(w, dict):
                raise ValidationError("Each window must be an object")
            open_hour = parse_hour(w.get("open_hour"), "open_hour")
            close_hour = parse_hour(w.get("close_hour"), "close_hour", allow_midnight_end=True)
            spans.append(Interval(SCHEDULE_DAY, open_hour, close_hour))
        spans.sort(key=lambda s: s.start)
        for a, b in zip(spans, spans[1:]):
            if a.overlaps(b):
                raise ValidationError(f"{dow} windows {a.label()} and {b.label()} overlap")
        rows.extend(
            {"day_of_week": dow, "is_closed": False, "open_hour": s.start, "close_hour": s.end} for s in spans
        )
    return rows

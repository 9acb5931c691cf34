"""Tests for the availability calculator."""

from datetime import datetime, timedelta

import pytest

from models import db
from scheduling.availability import (
    SLOT_BLOCKED,
    SLOT_BOOKED,
    SLOT_OPEN,
    CourtWindow,
    compute_slots,
    end_hour_options,
    get_available_slots,
    parse_operating_hours,
    range_is_open,
    scheduled_hours,
)
from scheduling.blocking import create_blocking
from scheduling.errors import CourtUnavailable, ValidationError
from scheduling.interval import Interval
from scheduling.reservation import reserve
from tests.conftest import NOW, SATURDAY, SUNDAY, make_booking, make_court, make_hours, make_venue


def states(availability):
    return {s.hour: s.state for s in availability.slots}


def prices(availability):
    return {s.hour: s.price for s in availability.slots}


class TestComputeSlots:
    """Pure calculation over detached intervals."""

    window = CourtWindow(court_id=1, open_hour=8, close_hour=22, base_price=100000)

    def test_one_slot_per_operating_hour(self):
        slots = compute_slots(self.window, SATURDAY, [], [], [])
        assert [s.hour for s in slots] == list(range(8, 22))
        assert all(s.state == SLOT_OPEN for s in slots)

    def test_blocked_takes_precedence_over_booked(self):
        slots = compute_slots(
            self.window,
            SATURDAY,
            bookings=[Interval(SATURDAY, 10, 12)],
            blockings=[Interval(SATURDAY, 11, 13)],
            rules=[],
        )
        by_hour = {s.hour: s.state for s in slots}
        assert by_hour[10] == SLOT_BOOKED
        assert by_hour[11] == SLOT_BLOCKED
        assert by_hour[12] == SLOT_BLOCKED
        assert by_hour[13] == SLOT_OPEN

    def test_ignores_intervals_on_other_days(self):
        slots = compute_slots(self.window, SATURDAY, [Interval(SUNDAY, 10, 12)], [], [])
        assert all(s.is_open for s in slots)

    def test_inactive_court_is_signalled(self):
        window = CourtWindow(court_id=1, open_hour=8, close_hour=22, base_price=1, is_active=False)
        with pytest.raises(CourtUnavailable):
            compute_slots(window, SATURDAY, [], [], [])

    def test_range_helpers(self):
        slots = compute_slots(self.window, SATURDAY, [Interval(SATURDAY, 12, 13)], [], [])
        assert range_is_open(slots, 10, 2)
        assert not range_is_open(slots, 11, 2)
        assert not range_is_open(slots, 21, 2)  # runs past closing
        assert end_hour_options(slots, 10) == [11, 12]
        assert end_hour_options(slots, 12) == []
        assert end_hour_options(slots, 20) == [21, 22]


class TestGetAvailableSlots:

    def test_saturday_evening_pricing(self, court, saturday_evening_rule):
        availability = get_available_slots(court.id, SATURDAY, now=NOW)
        by_price = prices(availability)
        for hour in (18, 19, 20):
            assert by_price[hour] == 150000
        for hour in set(by_price) - {18, 19, 20}:
            assert by_price[hour] == 100000

    def test_sunday_uses_base_price(self, court, saturday_evening_rule):
        assert set(prices(get_available_slots(court.id, SUNDAY, now=NOW)).values()) == {100000}

    def test_booking_marks_hours_booked(self, court, saturday_evening_rule, guest):
        reserve(court.id, SATURDAY, 18, 2, guest, now=NOW)
        by_state = states(get_available_slots(court.id, SATURDAY, now=NOW))
        assert by_state[18] == SLOT_BOOKED
        assert by_state[19] == SLOT_BOOKED
        assert by_state[20] == SLOT_OPEN
        assert by_state[17] == SLOT_OPEN

    def test_idempotent_without_writes(self, court, saturday_evening_rule):
        make_booking(court, SATURDAY, 10, 2)
        first = get_available_slots(court.id, SATURDAY, now=NOW)
        second = get_available_slots(court.id, SATURDAY, now=NOW)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_cancelled_and_expired_bookings_do_not_hold_hours(self, court):
        make_booking(court, SATURDAY, 10, 1, status="CANCELLED", code="CANC01")
        make_booking(court, SATURDAY, 11, 1, status="EXPIRED", code="EXPD01")
        by_state = states(get_available_slots(court.id, SATURDAY, now=NOW))
        assert by_state[10] == SLOT_OPEN
        assert by_state[11] == SLOT_OPEN

    def test_pending_booking_holds_until_expiry(self, court):
        make_booking(court, SATURDAY, 10, 1, status="PENDING", expires_at=NOW + timedelta(minutes=15))
        assert states(get_available_slots(court.id, SATURDAY, now=NOW))[10] == SLOT_BOOKED
        later = NOW + timedelta(minutes=16)
        assert states(get_available_slots(court.id, SATURDAY, now=later))[10] == SLOT_OPEN

    def test_blocking_shows_blocked(self, court, admin_actor):
        create_blocking(court.id, SATURDAY, None, 8, 10, "Resurfacing", admin_actor, now=NOW)
        by_state = states(get_available_slots(court.id, SATURDAY, now=NOW))
        assert by_state[8] == SLOT_BLOCKED
        assert by_state[9] == SLOT_BLOCKED
        assert by_state[10] == SLOT_OPEN

    def test_end_hour_options_in_payload(self, court):
        make_booking(court, SATURDAY, 12, 1)
        payload = get_available_slots(court.id, SATURDAY, now=NOW).to_dict()
        assert payload["end_hour_options"]["10"] == [11, 12]
        assert "12" not in payload["end_hour_options"]

    def test_inactive_court(self, court):
        court.is_active = False
        db.session.commit()
        with pytest.raises(CourtUnavailable):
            get_available_slots(court.id, SATURDAY, now=NOW)

    def test_inactive_venue(self, app):
        venue = make_venue("Closed Club", is_active=False)
        court = make_court(venue, "Court A")
        with pytest.raises(CourtUnavailable):
            get_available_slots(court.id, SATURDAY, now=NOW)

    def test_unknown_court(self, app):
        with pytest.raises(CourtUnavailable):
            get_available_slots(9999, SATURDAY, now=NOW)

    def test_bad_date(self, court):
        with pytest.raises(ValidationError):
            get_available_slots(court.id, "2030-02-30", now=NOW)

    def test_court_open_until_midnight(self, venue):
        late = make_court(venue, "Late Court", open_hour=20, close_hour=24)
        slots = get_available_slots(late.id, SATURDAY, now=datetime(2030, 5, 1)).slots
        assert [s.hour for s in slots] == [20, 21, 22, 23]
        assert slots[-1].label == "23:00-24:00"


class TestOperatingHours:

    def test_window_without_schedule_uses_court_hours(self):
        window = CourtWindow(court_id=1, open_hour=8, close_hour=12, base_price=1)
        assert window.operating_hours() == [8, 9, 10, 11]
        assert window.describe() == "08:00-12:00"
        assert not window.is_closed

    def test_split_window(self):
        window = CourtWindow(court_id=1, open_hour=8, close_hour=22, base_price=1, hours=(6, 7, 8, 18, 19))
        slots = compute_slots(window, SATURDAY, [], [], [])
        assert [s.hour for s in slots] == [6, 7, 8, 18, 19]
        assert window.describe() == "06:00-09:00, 18:00-20:00"
        assert window.contains(Interval(SATURDAY, 18, 20))
        assert not window.contains(Interval(SATURDAY, 8, 10))
        assert not range_is_open(slots, 8, 2)

    def test_closed_window_has_no_slots(self):
        window = CourtWindow(court_id=1, open_hour=8, close_hour=22, base_price=1, hours=())
        assert window.is_closed
        assert window.describe() == "closed"
        assert compute_slots(window, SATURDAY, [], [], []) == []

    def test_closed_weekday(self, court):
        make_hours(court, "SATURDAY", closed=True)
        availability = get_available_slots(court.id, SATURDAY, now=NOW)
        assert availability.slots == []
        assert availability.to_dict()["closed"] is True
        # other weekdays keep the court's default hours
        assert len(get_available_slots(court.id, SUNDAY, now=NOW).slots) == 14

    def test_scheduled_windows_replace_default_hours(self, court, saturday_evening_rule):
        make_hours(court, "SATURDAY", 18, 24)
        make_hours(court, "SATURDAY", 6, 9)
        slots = get_available_slots(court.id, SATURDAY, now=NOW).slots
        assert [s.hour for s in slots] == [6, 7, 8, 18, 19, 20, 21, 22, 23]
        assert {s.hour: s.price for s in slots}[18] == 150000

    def test_scheduled_hours(self, court):
        make_hours(court, "SATURDAY", 6, 9)
        make_hours(court, "SATURDAY", 8, 10)
        assert scheduled_hours(court, SATURDAY) == (6, 7, 8, 9)
        assert scheduled_hours(court, SUNDAY) is None


class TestParseOperatingHours:

    def test_closed_and_windows(self):
        rows = parse_operating_hours([
            {"day_of_week": "monday", "closed": True},
            {"day_of_week": "FRIDAY", "windows": [{"open_hour": "16:00", "close_hour": 24},
                                                  {"open_hour": 7, "close_hour": 11}]},
        ])
        assert rows == [
            {"day_of_week": "MONDAY", "is_closed": True, "open_hour": None, "close_hour": None},
            {"day_of_week": "FRIDAY", "is_closed": False, "open_hour": 7, "close_hour": 11},
            {"day_of_week": "FRIDAY", "is_closed": False, "open_hour": 16, "close_hour": 24},
        ]

    def test_back_to_back_windows(self):
        rows = parse_operating_hours([{"day_of_week": "SUNDAY", "windows": [{"open_hour": 8, "close_hour": 12},
                                                                            {"open_hour": 12, "close_hour": 14}]}])
        assert len(rows) == 2

    @pytest.mark.parametrize("days", [
        None,
        [{"day_of_week": "FUNDAY", "closed": True}],
        [{"day_of_week": "MONDAY", "closed": True}, {"day_of_week": "MONDAY", "closed": True}],
        [{"day_of_week": "MONDAY"}],
        [{"day_of_week": "MONDAY", "windows": [{"open_hour": 12, "close_hour": 10}]}],
        [{"day_of_week": "MONDAY", "windows": [{"open_hour": 8, "close_hour": 12}, {"open_hour": 11, "close_hour": 13}]}],
        ["MONDAY"],
    ])
    def test_rejects(self, days):
        with pytest.raises(ValidationError):
            parse_operating_hours(days)

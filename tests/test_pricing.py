"""Tests for per-hour pricing and dynamic price rule validation."""

from datetime import date, datetime

import pytest

from scheduling.errors import ValidationError
from scheduling.pricing import (
    PriceRule,
    price_for_hour,
    price_for_range,
    resolve_rule,
    validate_rule_fields,
    validate_rule_payload,
)

SATURDAY = date(2030, 6, 1)
SUNDAY = date(2030, 6, 2)
BASE = 100000


def weekday_rule(price, start, end, day="SATURDAY", created=datetime(2030, 1, 1), rule_id=1):
    return PriceRule(price=price, start_hour=start, end_hour=end, day_of_week=day, created_at=created, rule_id=rule_id)


def date_rule(price, start, end, on=SATURDAY, created=datetime(2030, 1, 1), rule_id=2):
    return PriceRule(price=price, start_hour=start, end_hour=end, date=on, created_at=created, rule_id=rule_id)


class TestPriceForHour:

    def test_base_price_without_rules(self):
        assert price_for_hour(BASE, [], SATURDAY, 10) == BASE

    def test_weekday_rule_applies_inside_its_hours(self):
        rules = [weekday_rule(150000, 18, 21)]
        assert price_for_hour(BASE, rules, SATURDAY, 18) == 150000
        assert price_for_hour(BASE, rules, SATURDAY, 20) == 150000
        assert price_for_hour(BASE, rules, SATURDAY, 21) == BASE
        assert price_for_hour(BASE, rules, SATURDAY, 17) == BASE

    def test_weekday_rule_ignores_other_days(self):
        assert price_for_hour(BASE, [weekday_rule(150000, 18, 21)], SUNDAY, 18) == BASE

    def test_date_rule_beats_weekday_rule(self):
        rules = [
            date_rule(200000, 18, 20, created=datetime(2029, 1, 1)),
            weekday_rule(150000, 18, 21, created=datetime(2030, 1, 1)),
        ]
        assert price_for_hour(BASE, rules, SATURDAY, 18) == 200000
        assert price_for_hour(BASE, rules, SATURDAY, 20) == 150000

    def test_date_rule_only_on_its_date(self):
        rules = [date_rule(200000, 8, 22)]
        assert price_for_hour(BASE, rules, date(2030, 6, 8), 10) == BASE

    def test_newest_rule_wins_within_same_kind(self):
        older = weekday_rule(120000, 18, 21, created=datetime(2030, 1, 1), rule_id=1)
        newer = weekday_rule(130000, 19, 22, created=datetime(2030, 2, 1), rule_id=2)
        assert price_for_hour(BASE, [newer, older], SATURDAY, 18) == 120000
        assert price_for_hour(BASE, [older, newer], SATURDAY, 19) == 130000

    def test_same_timestamp_falls_back_to_id(self):
        same = datetime(2030, 1, 1)
        a = weekday_rule(120000, 18, 21, created=same, rule_id=5)
        b = weekday_rule(130000, 18, 21, created=same, rule_id=9)
        assert resolve_rule([b, a], SATURDAY, 18) is b
        assert resolve_rule([a, b], SATURDAY, 18) is b

    def test_price_for_range(self):
        per_hour, total = price_for_range(BASE, [weekday_rule(150000, 18, 21)], SATURDAY, 17, 3)
        assert per_hour == [BASE, 150000, 150000]
        assert total == BASE + 300000


class TestRulePayload:

    def test_weekday_payload(self):
        out = validate_rule_payload({"day_of_week": "saturday", "start_hour": "18:00", "end_hour": 21, "price": 150000})
        assert out["day_of_week"] == "SATURDAY"
        assert out["date"] is None
        assert (out["start_hour"], out["end_hour"]) == (18, 21)

    def test_date_payload_until_midnight(self):
        out = validate_rule_payload({"date": "2030-06-01", "start_hour": 20, "end_hour": 24, "price": 90000})
        assert out["date"] == SATURDAY
        assert out["end_hour"] == 24

    @pytest.mark.parametrize("payload", [
        {"day_of_week": "SATURDAY", "start_hour": 21, "end_hour": 18, "price": 1},
        {"day_of_week": "SATURDAY", "date": "2030-06-01", "start_hour": 18, "end_hour": 21, "price": 1},
        {"start_hour": 18, "end_hour": 21, "price": 1},
        {"day_of_week": "FUNDAY", "start_hour": 18, "end_hour": 21, "price": 1},
        {"day_of_week": "SATURDAY", "start_hour": 18, "end_hour": 21, "price": 0},
        {"day_of_week": "SATURDAY", "start_hour": 18, "end_hour": 21, "price": "150000"},
    ])
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            validate_rule_payload(payload)

    def test_partial_requires_some_field(self):
        with pytest.raises(ValidationError):
            validate_rule_payload({}, partial=True)

    def test_partial_returns_only_given_fields(self):
        assert validate_rule_payload({"price": 175000}, partial=True) == {"price": 175000}

    def test_merged_fields_check(self):
        with pytest.raises(ValidationError):
            validate_rule_fields({"start_hour": 20, "end_hour": 19, "date": None, "day_of_week": "SUNDAY"})

"""Per-hour court pricing with date- and weekday-specific overrides."""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from scheduling.calendar import WEEKDAYS, parse_date, parse_hour, weekday_name
from scheduling.errors import ValidationError


@dataclass(frozen=True)
class PriceRule:
    price: int
    start_hour: int
    end_hour: int
    date: Optional[date] = None
    day_of_week: Optional[str] = None
    created_at: Optional[datetime] = None
    rule_id: int = 0

    @classmethod
    def from_model(cls, row) -> "PriceRule":
        return cls(
            price=row.price,
            start_hour=row.start_hour,
            end_hour=row.end_hour,
            date=row.date,
            day_of_week=row.day_of_week,
            created_at=row.created_at,
            rule_id=row.id or 0,
        )

    @property
    def is_date_specific(self) -> bool:
        return self.date is not None

    def applies_to(self, day: date, hour: int) -> bool:
        if not (self.start_hour <= hour < self.end_hour):
            return False
        if self.date is not None:
            return self.date == day
        return self.day_of_week == weekday_name(day)


def _precedence(rule: PriceRule):
    # date rules beat weekday rules; then newest rule wins
    return (rule.is_date_specific, rule.created_at or datetime.min, rule.rule_id)


def resolve_rule(rules: Iterable[PriceRule], day: date, hour: int) -> Optional[PriceRule]:
    matches = [r for r in rules if r.applies_to(day, hour)]
    if not matches:
        return None
    return max(matches, key=_precedence)


def price_for_hour(base_price: int, rules: Iterable[PriceRule], day: date, hour: int) -> int:
    rule = resolve_rule(rules, day, hour)
    return rule.price if rule else base_price


def price_for_range(
    base_price: int, rules: Iterable[PriceRule], day: date, start_hour: int, duration: int
) -> Tuple[List[int], int]:
    """Returns (price per constituent hour, total)."""
    rules = list(rules)
    per_hour = [price_for_hour(base_price, rules, day, h) for h in range(start_hour, start_hour + duration)]
    return per_hour, sum(per_hour)


def validate_rule_payload(data: dict, partial: bool = False) -> dict:
    """Normalizes a dynamic-price create/update payload into model field values.

    With partial=True only the provided fields are returned; cross-field checks
    that need both hours or both selectors are left to validate_rule_fields.
    """
    out = {}

    if "start_hour" in data or not partial:
        out["start_hour"] = parse_hour(data.get("start_hour"), "start_hour")
    if "end_hour" in data or not partial:
        out["end_hour"] = parse_hour(data.get("end_hour"), "end_hour", allow_midnight_end=True)

    if "price" in data or not partial:
        price = data.get("price")
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise ValidationError("price must be a positive integer")
        out["price"] = price

    if "date" in data:
        out["date"] = parse_date(data["date"]) if data["date"] else None
    if "day_of_week" in data:
        dow = data["day_of_week"]
        if dow:
            dow = str(dow).strip().upper()
            if dow not in WEEKDAYS:
                raise ValidationError("day_of_week must be one of " + ", ".join(WEEKDAYS))
        out["day_of_week"] = dow or None

    if "is_active" in data:
        out["is_active"] = bool(data["is_active"])

    if partial and not out:
        raise ValidationError("At least one field must be provided for update")

    if not partial:
        out.setdefault("date", None)
        out.setdefault("day_of_week", None)
        validate_rule_fields(out)
    return out


def validate_rule_fields(fields: dict) -> None:
    if fields["start_hour"] >= fields["end_hour"]:
        raise ValidationError("end_hour must be later than start_hour")
    if fields.get("date") and fields.get("day_of_week"):
        raise ValidationError("Use either day_of_week or date, not both")
    if not fields.get("date") and not fields.get("day_of_week"):
        raise ValidationError("One of day_of_week or date is required")

from dataclasses import dataclass
from datetime import date
from typing import List

from scheduling.errors import ValidationError


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


@dataclass(frozen=True)
class Interval:
    """Half-open hour range [start, end) on one calendar date.

    end == 24 is the exclusive midnight bound and is distinct from hour 0.
    """

    day: date
    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start < 24):
            raise ValidationError("start hour must be between 0 and 23")
        if not (0 < self.end <= 24):
            raise ValidationError("end hour must be between 1 and 24")
        if self.start >= self.end:
            raise ValidationError("end hour must be after start hour")

    @classmethod
    def from_duration(cls, day: date, start: int, duration: int) -> "Interval":
        if duration < 1:
            raise ValidationError("duration must be at least one hour")
        return cls(day, start, start + duration)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def hours(self) -> List[int]:
        return list(range(self.start, self.end))

    def covers(self, hour: int) -> bool:
        return self.start <= hour < self.end

    def overlaps(self, other: "Interval") -> bool:
        # back-to-back ranges (self.end == other.start) never overlap
        return self.day == other.day and self.start < other.end and other.start < self.end

    def label(self) -> str:
        return f"{hour_label(self.start)}-{hour_label(self.end)}"


def overlaps(a: Interval, b: Interval) -> bool:
    return a.overlaps(b)


def covers(interval: Interval, hour: int) -> bool:
    return interval.covers(hour)

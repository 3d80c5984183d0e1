from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Optional

from ..common.datetime_utils import today_local
from ..core.constants import MAX_RANGE_DAYS
from ..core.exceptions import InvalidRangeError


@dataclass(frozen=True)
class DateRange:
    """Inclusive start/end pair of calendar dates.

    Construct through ``DateRange.create`` so the ordering and maximum span
    rules are enforced; every "mutation" returns a new value.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidRangeError("End date must be on or after start date")
        if self.duration_in_days() > MAX_RANGE_DAYS:
            raise InvalidRangeError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    @classmethod
    def create(cls, start: date, end: date) -> "DateRange":
        return cls(start=start, end=end)

    def overlaps(self, other: "DateRange") -> bool:
        # Covers contains, contained, left and right overlap in one test.
        return self.start <= other.end and self.end >= other.start

    def duration_in_days(self) -> int:
        return (self.end - self.start).days + 1

    def working_days(self) -> int:
        count = 0
        current = self.start
        while current <= self.end:
            if current.weekday() < 5:
                count += 1
            current += timedelta(days=1)
        return count

    def is_in_past(self, today: Optional[date] = None) -> bool:
        """True when the whole range lies before ``today``."""
        today = today or today_local()
        return self.end < today

    def includes_today(self, today: Optional[date] = None) -> bool:
        today = today or today_local()
        return self.start <= today <= self.end

    def with_end(self, end: date) -> "DateRange":
        return replace(self, end=end)

    def with_start(self, start: date) -> "DateRange":
        return replace(self, start=start)

    def __str__(self) -> str:
        return f"{self.start.isoformat()} to {self.end.isoformat()}"

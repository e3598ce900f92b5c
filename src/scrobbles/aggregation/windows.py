"""Aggregation windows and the range → bucket granularity policy."""

import enum
import time
from dataclasses import dataclass
from typing import Self


class TimeRange(enum.StrEnum):
    """Dashboard time ranges."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL_TIME = "all_time"


class Grouping(enum.StrEnum):
    """Calendar granularity of an activity series."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


RANGE_DAYS: dict[TimeRange, int] = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.YEAR: 365,
}

GROUPING_BY_RANGE: dict[TimeRange, Grouping] = {
    TimeRange.WEEK: Grouping.DAILY,
    TimeRange.MONTH: Grouping.DAILY,
    TimeRange.YEAR: Grouping.MONTHLY,
    TimeRange.ALL_TIME: Grouping.YEARLY,
}

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True, slots=True)
class AggregationWindow:
    """Half-open interval ``[start, end)`` in epoch seconds; ``start`` is None for all_time."""

    time_range: TimeRange
    start: int | None
    end: int

    @classmethod
    def for_range(cls, time_range: TimeRange, now: int | None = None) -> Self:
        end = now if now is not None else int(time.time())
        days = RANGE_DAYS.get(time_range)
        start = end - days * SECONDS_PER_DAY if days is not None else None
        return cls(time_range=time_range, start=start, end=end)

    @property
    def grouping(self) -> Grouping:
        return GROUPING_BY_RANGE[self.time_range]

    def contains(self, timestamp: int) -> bool:
        if self.start is not None and timestamp < self.start:
            return False
        return timestamp < self.end

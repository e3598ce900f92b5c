"""Listening statistics over canonical listens."""

from scrobbles.aggregation.engine import WEEKDAY_NAMES, AggregationEngine
from scrobbles.aggregation.schemas import ActivityBucket, EntityCount, ListeningActivity, PeriodStats
from scrobbles.aggregation.windows import GROUPING_BY_RANGE, AggregationWindow, Grouping, TimeRange

__all__ = [
    "GROUPING_BY_RANGE",
    "WEEKDAY_NAMES",
    "ActivityBucket",
    "AggregationEngine",
    "AggregationWindow",
    "EntityCount",
    "Grouping",
    "ListeningActivity",
    "PeriodStats",
    "TimeRange",
]

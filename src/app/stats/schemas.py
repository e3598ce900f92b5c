"""Response models for statistics endpoints."""

from pydantic import BaseModel

from scrobbles.aggregation.schemas import EntityCount, PeriodStats
from scrobbles.aggregation.windows import TimeRange


class TopEntities(BaseModel):
    """Top artists, recordings or releases for one window."""

    user_name: str
    range: TimeRange
    count: int
    entities: list[EntityCount]


class StatsUpdate(BaseModel):
    """Totals pushed over the live stats stream."""

    range: TimeRange
    totals: PeriodStats

"""Value objects produced by the aggregation engine."""

from pydantic import BaseModel

from scrobbles.aggregation.windows import Grouping, TimeRange


class PeriodStats(BaseModel):
    """Rollup statistics for one window."""

    total_listens: int
    unique_artists: int
    unique_tracks: int
    unique_albums: int
    most_active_day: str | None  # weekday name, e.g. "Monday"
    tracks_on_most_active_day: int
    avg_per_day: int
    peak_day: str | None  # ISO date
    peak_count: int
    current_streak: int


class ActivityBucket(BaseModel):
    """Listen count for one calendar bucket."""

    time_range: str
    listen_count: int


class ListeningActivity(BaseModel):
    """Ascending, zero-free activity series for one window."""

    listening_activity: list[ActivityBucket]
    range: TimeRange
    grouping: Grouping


class EntityCount(BaseModel):
    """An artist, track or release with its listen count."""

    name: str
    artist_name: str | None = None
    listen_count: int

"""Aggregation engine: rollup stats, activity series, streaks and top entities.

All calendar logic (weekday, peak day, buckets, streak) uses one reference
time zone, UTC unless configured otherwise. Listens are processed in
ascending ``listened_at`` order, so every "first encountered wins" tie-break
also means "earliest wins".
"""

import math
from collections import Counter
from collections.abc import Callable, Hashable, Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

from scrobbles.aggregation.schemas import ActivityBucket, EntityCount, ListeningActivity, PeriodStats
from scrobbles.aggregation.windows import AggregationWindow, Grouping
from scrobbles.importing.models import Listen

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class AggregationEngine:
    """Stateless computations over an in-memory listen collection."""

    def __init__(self, tz: tzinfo = UTC) -> None:
        self._tz = tz

    def local_date(self, timestamp: int) -> date:
        return datetime.fromtimestamp(timestamp, self._tz).date()

    def today(self) -> date:
        return datetime.now(self._tz).date()

    @staticmethod
    def filter_window(listens: Iterable[Listen], window: AggregationWindow) -> list[Listen]:
        """Listens inside the window, oldest first (stable for equal timestamps)."""
        return sorted(
            (listen for listen in listens if window.contains(listen.listened_at)),
            key=lambda listen: listen.listened_at,
        )

    def bucket_key(self, timestamp: int, grouping: Grouping) -> str:
        """Calendar key of the bucket containing ``timestamp``."""
        day = self.local_date(timestamp)
        match grouping:
            case Grouping.DAILY:
                return day.isoformat()
            case Grouping.WEEKLY:
                iso_year, iso_week, _ = day.isocalendar()
                return f"{iso_year:04d}-W{iso_week:02d}"
            case Grouping.MONTHLY:
                return f"{day.year:04d}-{day.month:02d}"
            case Grouping.YEARLY:
                return f"{day.year:04d}"
        raise ValueError(f"Unknown grouping: {grouping!r}")

    def period_stats(
        self,
        listens: Iterable[Listen],
        window: AggregationWindow,
        *,
        today: date | None = None,
    ) -> PeriodStats:
        """Rollup over the window; the streak is computed over every listen given.

        ``today`` defaults to the calendar date of the window end.
        """
        all_listens = list(listens)
        in_window = self.filter_window(all_listens, window)

        weekday_counts: dict[str, int] = {}
        date_counts: dict[date, int] = {}
        artists: set[str] = set()
        tracks: set[tuple[str, str]] = set()
        albums: set[tuple[str, str]] = set()

        for listen in in_window:
            day = self.local_date(listen.listened_at)
            weekday = WEEKDAY_NAMES[day.weekday()]
            weekday_counts[weekday] = weekday_counts.get(weekday, 0) + 1
            date_counts[day] = date_counts.get(day, 0) + 1
            artists.add(listen.artist_name)
            tracks.add((listen.artist_name, listen.track_name))
            if listen.release_name:
                albums.add((listen.artist_name, listen.release_name))

        # max() keeps the first maximal key in insertion order
        most_active_day = max(weekday_counts, key=weekday_counts.__getitem__) if weekday_counts else None
        peak_day = max(date_counts, key=date_counts.__getitem__) if date_counts else None
        avg_per_day = _round_half_up(len(in_window) / len(date_counts)) if date_counts else 0

        return PeriodStats(
            total_listens=len(in_window),
            unique_artists=len(artists),
            unique_tracks=len(tracks),
            unique_albums=len(albums),
            most_active_day=most_active_day,
            tracks_on_most_active_day=weekday_counts[most_active_day] if most_active_day else 0,
            avg_per_day=avg_per_day,
            peak_day=peak_day.isoformat() if peak_day else None,
            peak_count=date_counts[peak_day] if peak_day else 0,
            current_streak=self.current_streak(all_listens, today=today or self.local_date(window.end)),
        )

    def current_streak(self, listens: Iterable[Listen], today: date | None = None) -> int:
        """Consecutive days ending today with at least one listen; 0 if today has none."""
        active_days = {self.local_date(listen.listened_at) for listen in listens}
        day = today or self.today()
        streak = 0
        while day in active_days:
            streak += 1
            day -= timedelta(days=1)
        return streak

    def listening_activity(
        self,
        listens: Iterable[Listen],
        window: AggregationWindow,
        grouping: Grouping | None = None,
    ) -> ListeningActivity:
        """Listen counts per calendar bucket, ascending, empty buckets omitted."""
        grouping = grouping or window.grouping
        counts = Counter(
            self.bucket_key(listen.listened_at, grouping) for listen in self.filter_window(listens, window)
        )
        return ListeningActivity(
            listening_activity=[ActivityBucket(time_range=key, listen_count=counts[key]) for key in sorted(counts)],
            range=window.time_range,
            grouping=grouping,
        )

    def _top(
        self,
        listens: Iterable[Listen],
        window: AggregationWindow,
        key: Callable[[Listen], Hashable | None],
        limit: int,
    ) -> list[tuple[Hashable, int]]:
        counts: Counter[Hashable] = Counter()
        for listen in self.filter_window(listens, window):
            k = key(listen)
            if k is not None:
                counts[k] += 1
        # most_common is stable, so ties keep first-encountered order
        return counts.most_common(limit)

    def top_artists(self, listens: Iterable[Listen], window: AggregationWindow, limit: int = 10) -> list[EntityCount]:
        return [
            EntityCount(name=str(name), listen_count=count)
            for name, count in self._top(listens, window, lambda listen: listen.artist_name, limit)
        ]

    def top_tracks(self, listens: Iterable[Listen], window: AggregationWindow, limit: int = 10) -> list[EntityCount]:
        rows = self._top(listens, window, lambda listen: (listen.track_name, listen.artist_name), limit)
        return [
            EntityCount(name=track, artist_name=artist, listen_count=count)
            for (track, artist), count in rows  # type: ignore[misc]
        ]

    def top_releases(self, listens: Iterable[Listen], window: AggregationWindow, limit: int = 10) -> list[EntityCount]:
        rows = self._top(
            listens,
            window,
            lambda listen: (listen.release_name, listen.artist_name) if listen.release_name else None,
            limit,
        )
        return [
            EntityCount(name=release, artist_name=artist, listen_count=count)
            for (release, artist), count in rows  # type: ignore[misc]
        ]

"""Statistics service: loads stored listens and runs the aggregation engine."""

import enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.stats.schemas import TopEntities
from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.aggregation.schemas import ListeningActivity, PeriodStats
from scrobbles.aggregation.windows import AggregationWindow, TimeRange
from scrobbles.db.operations import ListenRepository
from scrobbles.importing.exceptions import TransportFailureError
from scrobbles.importing.models import Listen


class EntityKind(enum.StrEnum):
    ARTISTS = "artists"
    RECORDINGS = "recordings"
    RELEASES = "releases"


class StatsService:
    """Stateless service that builds statistics models from stored listens."""

    def __init__(self, repository: ListenRepository | None = None) -> None:
        self._repo = repository or ListenRepository()

    async def _load(
        self,
        user_name: str,
        session: AsyncSession,
        window: AggregationWindow | None = None,
    ) -> list[Listen]:
        start, end = (window.start, window.end) if window is not None else (None, None)
        try:
            records = await self._repo.list_listens(user_name, session, start, end)
        except SQLAlchemyError as exc:
            await session.rollback()
            raise TransportFailureError(f"Storage failed while reading listens: {exc}") from exc
        return [record.to_listen() for record in records]

    async def get_totals(
        self,
        user_name: str,
        session: AsyncSession,
        time_range: TimeRange,
        engine: AggregationEngine,
        now: int | None = None,
    ) -> PeriodStats:
        window = AggregationWindow.for_range(time_range, now)
        # streak looks past the window, so load everything
        listens = await self._load(user_name, session)
        return engine.period_stats(listens, window)

    async def get_listening_activity(
        self,
        user_name: str,
        session: AsyncSession,
        time_range: TimeRange,
        engine: AggregationEngine,
        now: int | None = None,
    ) -> ListeningActivity:
        window = AggregationWindow.for_range(time_range, now)
        listens = await self._load(user_name, session, window)
        return engine.listening_activity(listens, window)

    async def get_top(
        self,
        user_name: str,
        session: AsyncSession,
        kind: EntityKind,
        time_range: TimeRange,
        engine: AggregationEngine,
        limit: int = 10,
        now: int | None = None,
    ) -> TopEntities:
        window = AggregationWindow.for_range(time_range, now)
        listens = await self._load(user_name, session, window)
        match kind:
            case EntityKind.ARTISTS:
                entities = engine.top_artists(listens, window, limit)
            case EntityKind.RECORDINGS:
                entities = engine.top_tracks(listens, window, limit)
            case EntityKind.RELEASES:
                entities = engine.top_releases(listens, window, limit)
        return TopEntities(user_name=user_name, range=time_range, count=len(entities), entities=entities)

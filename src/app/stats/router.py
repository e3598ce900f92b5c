"""Listening statistics REST endpoints: class-based router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import DEFAULT_TOP_ENTITIES_COUNT
from app.dependencies import db_manager, get_engine
from app.listens.schemas import ErrorResponse
from app.stats.schemas import TopEntities
from app.stats.service import EntityKind, StatsService
from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.aggregation.schemas import ListeningActivity, PeriodStats
from scrobbles.aggregation.windows import TimeRange
from scrobbles.importing.exceptions import TransportFailureError


def _unavailable(exc: TransportFailureError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse(message=str(exc)).model_dump(),
    )


class StatsRouter:
    """Class-based router for listening statistics endpoints."""

    def __init__(self) -> None:
        self._service = StatsService()
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        unavailable = {503: {"model": ErrorResponse}}
        r.add_api_route(
            "/user/{user_name}/totals",
            self.totals,
            methods=["GET"],
            response_model=PeriodStats,
            responses=unavailable,
        )
        r.add_api_route(
            "/user/{user_name}/listening-activity",
            self.listening_activity,
            methods=["GET"],
            response_model=ListeningActivity,
            responses=unavailable,
        )
        r.add_api_route(
            "/user/{user_name}/{kind}",
            self.top_entities,
            methods=["GET"],
            response_model=TopEntities,
            responses=unavailable,
        )

    async def totals(
        self,
        user_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        engine: Annotated[AggregationEngine, Depends(get_engine)],
        time_range: Annotated[TimeRange, Query(alias="range")] = TimeRange.WEEK,
    ) -> PeriodStats | JSONResponse:
        """Rollup totals, busiest weekday, peak day and current streak."""
        try:
            return await self._service.get_totals(user_name, session, time_range, engine)
        except TransportFailureError as exc:
            return _unavailable(exc)

    async def listening_activity(
        self,
        user_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        engine: Annotated[AggregationEngine, Depends(get_engine)],
        time_range: Annotated[TimeRange, Query(alias="range")] = TimeRange.WEEK,
    ) -> ListeningActivity | JSONResponse:
        """Listen counts per calendar bucket; granularity follows the range."""
        try:
            return await self._service.get_listening_activity(user_name, session, time_range, engine)
        except TransportFailureError as exc:
            return _unavailable(exc)

    async def top_entities(
        self,
        user_name: str,
        kind: EntityKind,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        engine: Annotated[AggregationEngine, Depends(get_engine)],
        time_range: Annotated[TimeRange, Query(alias="range")] = TimeRange.WEEK,
        count: int = Query(default=DEFAULT_TOP_ENTITIES_COUNT, ge=1, le=100),
    ) -> TopEntities | JSONResponse:
        """Top artists, recordings or releases by listen count."""
        try:
            return await self._service.get_top(user_name, session, kind, time_range, engine, count)
        except TransportFailureError as exc:
            return _unavailable(exc)


_instance = StatsRouter()
router = _instance.router

"""Push channel ingress and the live statistics WebSocket stream."""

import asyncio
import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import db_manager, get_engine, get_push_hub
from app.push.schemas import PushAccepted, PushEvent
from app.settings import AppSettings, get_settings
from app.stats.schemas import StatsUpdate
from app.stats.service import StatsService
from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.aggregation.windows import TimeRange
from scrobbles.push import PushHub, StatsRefresher

logger = logging.getLogger(__name__)


def _requested_range(message: str) -> TimeRange | None:
    """The ``range`` a client asked for, or None if the message is not a valid range change."""
    try:
        data = json.loads(message)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return TimeRange(data.get("range"))
    except ValueError:
        return None


class PushRouter:
    """Class-based router for push events and the stats stream."""

    def __init__(self) -> None:
        self._stats = StatsService()
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.add_api_route(
            "/events/{user_name}",
            self.publish_event,
            methods=["POST"],
            response_model=PushAccepted,
            status_code=status.HTTP_202_ACCEPTED,
        )
        r.add_api_websocket_route("/stats/stream/{user_name}", self.stats_stream)

    async def publish_event(
        self,
        user_name: str,
        event: PushEvent,
        hub: Annotated[PushHub, Depends(get_push_hub)],
    ) -> PushAccepted:
        """Hand a push message to the user's live streams. Only ``new_scrobble`` triggers a refresh."""
        notified = hub.publish(user_name, event.model_dump())
        logger.debug("Push event %s for user %s reached %d streams", event.event, user_name, notified)
        return PushAccepted(notified=notified)

    async def stats_stream(
        self,
        websocket: WebSocket,
        user_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        settings: Annotated[AppSettings, Depends(get_settings)],
        engine: Annotated[AggregationEngine, Depends(get_engine)],
        hub: Annotated[PushHub, Depends(get_push_hub)],
        time_range: Annotated[TimeRange, Query(alias="range")] = TimeRange.WEEK,
    ) -> None:
        """Send totals on connect and after every coalesced invalidation.

        A client message ``{"range": "month"}`` switches the window. Recomputes
        share one session, so they run one at a time.
        """
        await websocket.accept()
        lock = asyncio.Lock()

        async def compute(requested: TimeRange) -> StatsUpdate:
            async with lock:
                try:
                    totals = await self._stats.get_totals(user_name, session, requested, engine)
                finally:
                    # end the read transaction so the next recompute sees new rows
                    await session.rollback()
            return StatsUpdate(range=requested, totals=totals)

        async def send(update: StatsUpdate) -> None:
            await websocket.send_json(update.model_dump(mode="json"))

        refresher = StatsRefresher(
            compute,
            send,
            time_range=time_range,
            debounce_seconds=settings.PUSH_DEBOUNCE_SECONDS,
        )
        hub.subscribe(user_name, refresher)
        logger.info("Stats stream opened for user %s (%s)", user_name, time_range)
        refresher.request()
        try:
            while True:
                requested = _requested_range(await websocket.receive_text())
                if requested is not None:
                    refresher.request(requested)
        except WebSocketDisconnect:
            logger.info("Stats stream closed for user %s", user_name)
        finally:
            hub.unsubscribe(user_name, refresher)
            await refresher.aclose()


_instance = PushRouter()
router = _instance.router

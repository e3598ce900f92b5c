"""Push-driven statistics refresh.

A ``new_scrobble`` notification is only an invalidation signal: the payload is
ignored and statistics are fetched again. Bursts of notifications are
coalesced into one recompute, and when a newer request supersedes a running
one, the older result is dropped on arrival rather than cancelled.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from scrobbles.aggregation.windows import TimeRange

logger = logging.getLogger(__name__)

NEW_SCROBBLE_EVENT = "new_scrobble"
DEFAULT_DEBOUNCE_SECONDS = 0.25

ResultT = TypeVar("ResultT")


class StatsRefresher(Generic[ResultT]):
    """Debounced, last-request-wins recompute for one subscriber.

    ``compute`` fetches fresh statistics for a time range; ``on_result`` is
    called with each result that is still current when it arrives.
    """

    def __init__(
        self,
        compute: Callable[[TimeRange], Awaitable[ResultT]],
        on_result: Callable[[ResultT], Awaitable[None]] | None = None,
        *,
        time_range: TimeRange = TimeRange.WEEK,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._compute = compute
        self._on_result = on_result
        self._time_range = time_range
        self._debounce = debounce_seconds
        self._generation = 0
        self._scheduled: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self.latest: ResultT | None = None
        self.discarded = 0

    @property
    def time_range(self) -> TimeRange:
        return self._time_range

    def request(self, time_range: TimeRange | None = None) -> None:
        """Ask for a recompute, optionally switching the window. Coalesced with pending requests."""
        if time_range is not None:
            self._time_range = time_range
        self._generation += 1
        if self._scheduled is None:
            task = asyncio.get_running_loop().create_task(self._run())
            self._scheduled = task
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def handle_event(self, event: Mapping[str, Any]) -> bool:
        """React to a push message. Returns True if it triggered a recompute."""
        if event.get("event") != NEW_SCROBBLE_EVENT:
            return False
        self.request()
        return True

    async def _run(self) -> None:
        await asyncio.sleep(self._debounce)
        self._scheduled = None
        generation = self._generation
        time_range = self._time_range

        try:
            result = await self._compute(time_range)
        except Exception:
            logger.exception("Statistics recompute for %s failed", time_range)
            return

        if generation != self._generation:
            self.discarded += 1
            logger.debug("Discarding superseded statistics result (generation %d)", generation)
            return

        self.latest = result
        if self._on_result is not None:
            await self._on_result(result)

    async def wait_idle(self) -> None:
        """Wait until every scheduled and in-flight recompute has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._scheduled = None


class PushHub:
    """Fans push events out to the refreshers subscribed for each user."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[StatsRefresher[Any]]] = defaultdict(set)

    def subscribe(self, user_name: str, refresher: StatsRefresher[Any]) -> None:
        self._subscribers[user_name].add(refresher)

    def unsubscribe(self, user_name: str, refresher: StatsRefresher[Any]) -> None:
        subscribers = self._subscribers.get(user_name)
        if subscribers is None:
            return
        subscribers.discard(refresher)
        if not subscribers:
            del self._subscribers[user_name]

    def subscriber_count(self, user_name: str) -> int:
        return len(self._subscribers.get(user_name, ()))

    def publish(self, user_name: str, event: Mapping[str, Any]) -> int:
        """Deliver ``event`` to every subscriber of ``user_name``. Returns how many reacted."""
        notified = 0
        for refresher in list(self._subscribers.get(user_name, ())):
            if refresher.handle_event(event):
                notified += 1
        return notified

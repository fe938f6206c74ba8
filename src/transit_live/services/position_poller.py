"""Periodic vehicle position refresh for the selected route."""

import asyncio
import logging
from collections.abc import Callable

from transit_live.core.fanout import fanout_join, usable_positions
from transit_live.core.fence import Fence, Scope
from transit_live.models.transit import Trip, VehiclePosition
from transit_live.services.transit_data import CachedTransitData

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0
POLL_FRESHNESS_SECONDS = 60

ApplyPositions = Callable[[list[VehiclePosition]], None]


class LivePositionPoller:
    """Refreshes the whole vehicle list of one route on a fixed interval.

    The poller is bound to the route generation current at `start()`. It is
    stopped explicitly by its owner on every route change; the fence check
    additionally keeps a late tick from applying results for an old route.
    """

    def __init__(
        self,
        data: CachedTransitData,
        fence: Fence,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
        freshness_seconds: int = POLL_FRESHNESS_SECONDS,
    ):
        self._data = data
        self._fence = fence
        self._interval = interval_seconds
        self._freshness = freshness_seconds
        self._task: asyncio.Task[None] | None = None
        self._trips: list[Trip] = []
        self._apply: ApplyPositions | None = None
        self._route_token: int | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, trips: list[Trip], apply: ApplyPositions) -> bool:
        """Start polling the given trips for the current route generation.

        Refreshes immediately, then every interval. Replaces any running loop.

        Args:
            trips: Trip list of the selected route.
            apply: Called with the full usable vehicle list of each tick.

        Returns:
            False if there is nothing to poll (empty trip list).
        """
        self.stop()
        if not trips:
            return False

        self._trips = list(trips)
        self._apply = apply
        self._route_token = self._fence.current(Scope.ROUTE)
        self._task = asyncio.create_task(self._run(), name="live-position-poller")
        return True

    def stop(self) -> None:
        """Cancel the scheduled loop and release the handle."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._trips = []
        self._apply = None
        self._route_token = None

    async def tick(self) -> bool:
        """Run one refresh now, outside the schedule.

        Returns:
            True if the refreshed list was applied.
        """
        if self._route_token is None or self._apply is None:
            return False
        return await self._refresh(self._trips, self._route_token, self._apply)

    async def _refresh(self, trips: list[Trip], token: int, apply: ApplyPositions) -> bool:
        positions = await fanout_join(
            self._data.vehicle_position(trip.trip_id, self._freshness) for trip in trips
        )
        if not self._fence.is_current(Scope.ROUTE, token):
            logger.debug("Discarding positions for a deselected route")
            return False

        vehicles = usable_positions(positions)
        apply(vehicles)
        logger.debug(f"Refreshed {len(vehicles)}/{len(trips)} vehicle positions")
        return True

    async def _run(self) -> None:
        trips, token, apply = self._trips, self._route_token, self._apply
        if token is None or apply is None:
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += self._interval
            try:
                applied = await self._refresh(trips, token, apply)
            except Exception as e:
                logger.warning(f"Vehicle position refresh failed: {e}")
            else:
                if not applied:
                    # route changed under us; the owner normally stops us first
                    return
            now = loop.time()
            if deadline < now:
                # overran the interval; drop the missed ticks
                deadline = now
            await asyncio.sleep(deadline - now)

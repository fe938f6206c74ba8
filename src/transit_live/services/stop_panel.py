"""The popup of an opened stop: its routes and which of them are live."""

import logging

from transit_live.core.fence import Fence, Scope
from transit_live.exceptions import InvalidSelectionError
from transit_live.models.state import StopPanel
from transit_live.models.transit import RouteScheduleAtStop
from transit_live.services.active_routes import ActiveRouteProbe
from transit_live.services.transit_data import CachedTransitData

logger = logging.getLogger(__name__)


class StopRoutesPanel:
    """Loads routes for the opened stop. Opening another stop supersedes it."""

    def __init__(self, data: CachedTransitData, fence: Fence, probe: ActiveRouteProbe):
        self._data = data
        self._fence = fence
        self._probe = probe
        self.panel = StopPanel()

    async def open_stop(self, stop_id: str) -> StopPanel:
        """Open a stop and load the routes serving it (memoized per stop)."""
        token = self._fence.bump(Scope.STOP)
        self.panel = StopPanel(
            stop_id=stop_id,
            loading=True,
            active_route_ids=self._probe.cached(stop_id),
        )

        try:
            routes = await self._data.routes_through_stop(stop_id)
        except Exception as e:
            if not self._fence.is_current(Scope.STOP, token):
                return self.panel
            logger.warning(f"Failed to load routes for stop {stop_id}: {e}")
            self.panel = self.panel.model_copy(
                update={"loading": False, "error": f"Failed to load routes: {e}"}
            )
            return self.panel

        if not self._fence.is_current(Scope.STOP, token):
            logger.debug(f"Discarding routes for superseded stop {stop_id}")
            return self.panel

        self.panel = self.panel.model_copy(update={"routes": routes, "loading": False})
        return self.panel

    async def probe_active_routes(self, stop_id: str | None = None) -> StopPanel:
        """Find routes of the stop that currently have a vehicle.

        Args:
            stop_id: Stop to probe; defaults to the opened stop. A different
                stop is opened first.

        Raises:
            InvalidSelectionError: If no stop is given and none is open.
        """
        if stop_id is None:
            stop_id = self.panel.stop_id
        if stop_id is None:
            raise InvalidSelectionError("Open a stop before probing its routes")
        if stop_id != self.panel.stop_id or self.panel.error is not None:
            await self.open_stop(stop_id)

        token = self._fence.current(Scope.STOP)
        routes = self.panel.routes
        if not routes:
            return self.panel

        self.panel = self.panel.model_copy(update={"probing": True})
        # every explicit probe re-evaluates; the memo only feeds reopened stops
        active = await self._probe.probe(stop_id, routes, refresh=True)

        if not self._fence.is_current(Scope.STOP, token):
            logger.debug(f"Discarding probe result for superseded stop {stop_id}")
            return self.panel

        self.panel = self.panel.model_copy(
            update={"probing": False, "active_route_ids": active}
        )
        return self.panel

    async def route_schedule(self, stop_id: str, route_id: str, date: str) -> RouteScheduleAtStop:
        """Scheduled times of a route at a stop on a service date (YYYY-MM-DD)."""
        return await self._data.route_schedule_at_stop(stop_id, route_id, date)

"""One live map: wires the cache, fence and orchestrators together.

All state changes go through `dispatch()` (or the equivalent methods), and
`snapshot()` returns what the rendering surface should currently show.
"""

import logging

from transit_live.core.fence import Fence
from transit_live.data.cache import DataCache
from transit_live.data.config import TransitConfig, get_transit_config
from transit_live.data.transit_client import TransitDataClient
from transit_live.data.transit_service import TransitDataService
from transit_live.models.actions import ActionType, MapAction
from transit_live.models.state import MapSnapshot, SelectionSnapshot, StopPanel, StopsView
from transit_live.models.transit import RouteScheduleAtStop, Viewport
from transit_live.services.active_routes import ActiveRouteProbe
from transit_live.services.position_poller import LivePositionPoller
from transit_live.services.selection import SelectionStateMachine
from transit_live.services.stop_panel import StopRoutesPanel
from transit_live.services.transit_data import CachedTransitData
from transit_live.services.viewport_watcher import ViewportWatcher

logger = logging.getLogger(__name__)


class MapSession:
    """Selection and live-data engine for one map.

    Usage:
        async with MapSession(config) as session:
            await session.select_route("1A")
            snapshot = session.snapshot()

    When no service is passed, an HTTP TransitDataClient is created and
    opened/closed with the session.
    """

    def __init__(
        self,
        config: TransitConfig | None = None,
        service: TransitDataService | None = None,
    ):
        self.config = config or get_transit_config()
        self._client: TransitDataClient | None = None
        if service is None:
            self._client = TransitDataClient(self.config)
            service = self._client
        self.service: TransitDataService = service

        self.cache = DataCache(
            max_entries=self.config.cache_max_entries,
            ttl=self.config.cache_ttl_seconds,
        )
        self.fence = Fence()
        self.data = CachedTransitData(self.service, self.cache, self.config.bbox_precision)

        self.viewport_watcher = ViewportWatcher(
            self.data, self.fence, min_zoom=self.config.min_zoom_for_stops
        )
        self.poller = LivePositionPoller(
            self.data,
            self.fence,
            interval_seconds=self.config.poll_interval_seconds,
            freshness_seconds=self.config.poll_freshness_seconds,
        )
        self.selection = SelectionStateMachine(
            self.data,
            self.fence,
            self.poller,
            route_freshness_seconds=self.config.route_freshness_seconds,
        )
        self.probe = ActiveRouteProbe(
            self.data, freshness_seconds=self.config.route_freshness_seconds
        )
        self.stop_panel = StopRoutesPanel(self.data, self.fence, self.probe)

    async def open(self) -> "MapSession":
        if self._client is not None:
            await self._client.__aenter__()
        return self

    async def close(self) -> None:
        """Stop background polling and release the HTTP client."""
        self.poller.stop()
        if self._client is not None:
            await self._client.__aexit__(None, None, None)

    async def __aenter__(self) -> "MapSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def dispatch(self, action: MapAction) -> MapSnapshot:
        """Process one action and return the resulting snapshot."""
        logger.debug(f"Dispatching {action.type.value}")

        if action.type is ActionType.VIEWPORT_CHANGED:
            await self.viewport_changed(action.viewport)
        elif action.type is ActionType.OPEN_STOP:
            await self.open_stop(action.stop_id)
        elif action.type is ActionType.PROBE_ACTIVE_ROUTES:
            await self.probe_active_routes(action.stop_id)
        elif action.type is ActionType.SELECT_ROUTE:
            await self.select_route(action.route_id)
        elif action.type is ActionType.SELECT_TRIP:
            await self.select_trip(action.trip_id)
        elif action.type is ActionType.CLEAR_TRIP:
            self.clear_trip()
        elif action.type is ActionType.CLEAR_ROUTE:
            self.clear_route()
        elif action.type is ActionType.POLLER_TICK:
            await self.selection.poll_now()

        return self.snapshot()

    async def viewport_changed(self, viewport: Viewport) -> StopsView:
        return await self.viewport_watcher.on_viewport_changed(viewport)

    async def open_stop(self, stop_id: str) -> StopPanel:
        self.selection.select_stop(stop_id)
        return await self.stop_panel.open_stop(stop_id)

    async def probe_active_routes(self, stop_id: str | None = None) -> StopPanel:
        if stop_id is not None and stop_id != self.stop_panel.panel.stop_id:
            self.selection.select_stop(stop_id)
        return await self.stop_panel.probe_active_routes(stop_id)

    async def route_schedule_at_stop(
        self, stop_id: str, route_id: str, date: str
    ) -> RouteScheduleAtStop:
        return await self.stop_panel.route_schedule(stop_id, route_id, date)

    async def select_route(self, route_id: str) -> SelectionSnapshot:
        return await self.selection.select_route(route_id)

    async def select_trip(self, trip_id: str) -> SelectionSnapshot:
        return await self.selection.select_trip(trip_id)

    def clear_trip(self) -> SelectionSnapshot:
        return self.selection.clear_trip()

    def clear_route(self) -> SelectionSnapshot:
        return self.selection.clear_route()

    def snapshot(self) -> MapSnapshot:
        return MapSnapshot(
            stops=self.viewport_watcher.view,
            stop_panel=self.stop_panel.panel,
            selection=self.selection.snapshot(),
        )


# Process-wide session (lazy-initialized)
_session: MapSession | None = None


async def get_session() -> MapSession:
    """Get or create the process-wide map session."""
    global _session
    if _session is None:
        _session = await MapSession().open()
    return _session


async def reset_session() -> None:
    """Close the process-wide session and forget it. Useful for testing."""
    global _session
    if _session is not None:
        await _session.close()
    _session = None
    # hasattr check handles case where function is mocked in tests
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()

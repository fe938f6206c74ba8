"""Hierarchical route/trip selection and the cascading fetches it drives.

Phases:
    idle -> route_selected -> trip_selected

Every action bumps the generation of the scopes it invalidates before any
await, and every fetched result is checked against the generation captured
at issue time before it touches state. clear_route() is valid at any moment,
including while fetches are in flight, and always ends in idle.
"""

import asyncio
import logging

from transit_live.core.fanout import fanout_join, usable_positions
from transit_live.core.fence import Fence, Scope
from transit_live.core.geometry import (
    ordered_trip_shape,
    ordered_trip_stops,
    route_bounds,
    trip_bounds,
)
from transit_live.exceptions import InvalidSelectionError
from transit_live.models.state import Selection, SelectionPhase, SelectionSnapshot
from transit_live.models.transit import (
    RouteGeometry,
    Trip,
    TripShape,
    TripStops,
    VehiclePosition,
)
from transit_live.services.position_poller import LivePositionPoller
from transit_live.services.transit_data import CachedTransitData

logger = logging.getLogger(__name__)

# Wide freshness window used when a route is first opened
ROUTE_FRESHNESS_SECONDS = 84600


class SelectionStateMachine:
    """Owns the selection and everything displayed for it."""

    def __init__(
        self,
        data: CachedTransitData,
        fence: Fence,
        poller: LivePositionPoller,
        route_freshness_seconds: int = ROUTE_FRESHNESS_SECONDS,
    ):
        self._data = data
        self._fence = fence
        self._poller = poller
        self._route_freshness = route_freshness_seconds

        self.selection = Selection()

        # route scope
        self.route_geometry: RouteGeometry | None = None
        self.trips: list[Trip] = []
        self.vehicles: list[VehiclePosition] = []
        self.route_error: str | None = None
        self.route_loading = False

        # trip scope
        self.trip_shape: TripShape | None = None
        self.trip_stops: TripStops | None = None
        self.trip_error: str | None = None
        self.trip_loading = False

    @property
    def phase(self) -> SelectionPhase:
        return self.selection.phase

    @property
    def displayed_vehicles(self) -> list[VehiclePosition]:
        """Route vehicles, restricted to the selected trip if there is one."""
        trip_id = self.selection.trip_id
        if trip_id is None:
            return list(self.vehicles)
        return [v for v in self.vehicles if v.trip_id == trip_id]

    @property
    def polling(self) -> bool:
        return self._poller.is_running

    def select_stop(self, stop_id: str | None) -> None:
        """Remember the opened stop. Does not touch route or trip state."""
        self.selection = self.selection.model_copy(update={"stop_id": stop_id})

    async def select_route(self, route_id: str) -> SelectionSnapshot:
        """Select a route and load its geometry, trips and vehicles.

        Valid from any phase. A failure of the geometry or trip fetch leaves
        the route selected with empty content and a route error.
        """
        self._poller.stop()
        token = self._fence.bump(Scope.ROUTE)
        self._fence.bump(Scope.TRIP)

        self.selection = Selection(stop_id=self.selection.stop_id, route_id=route_id)
        self._reset_trip_scope()
        self._reset_route_scope()
        self.route_loading = True

        try:
            geometry, trips = await asyncio.gather(
                self._data.route_geometry(route_id),
                self._data.trips_by_route(route_id),
            )
        except Exception as e:
            if not self._fence.is_current(Scope.ROUTE, token):
                logger.debug(f"Discarding stale failure for route {route_id}: {e}")
                return self.snapshot()
            logger.warning(f"Failed to load route {route_id}: {e}")
            self._reset_route_scope()
            self.route_error = f"Failed to load route data: {e}"
            return self.snapshot()

        if not self._fence.is_current(Scope.ROUTE, token):
            logger.debug(f"Discarding stale data for route {route_id}")
            return self.snapshot()

        self.route_geometry = geometry
        self.trips = list(trips)

        positions = await fanout_join(
            self._data.vehicle_position(trip.trip_id, self._route_freshness)
            for trip in self.trips
        )
        if not self._fence.is_current(Scope.ROUTE, token):
            logger.debug(f"Discarding stale vehicles for route {route_id}")
            return self.snapshot()

        self.vehicles = usable_positions(positions)
        self.route_loading = False
        logger.debug(
            f"Route {route_id}: {len(self.trips)} trips, {len(self.vehicles)} vehicles"
        )

        self._poller.start(self.trips, self._apply_polled_vehicles)
        return self.snapshot()

    async def select_trip(self, trip_id: str) -> SelectionSnapshot:
        """Select a trip of the current route and load its shape and stops.

        Raises:
            InvalidSelectionError: If no route is selected, or the selected
                route is still loading or failed to load.
        """
        route_id = self.selection.route_id
        if route_id is None:
            raise InvalidSelectionError("Select a route before selecting a trip")
        if self.route_loading:
            raise InvalidSelectionError(f"Route {route_id} is still loading")
        if self.route_error is not None:
            raise InvalidSelectionError(f"Route {route_id} failed to load")

        route_token = self._fence.current(Scope.ROUTE)
        trip_token = self._fence.bump(Scope.TRIP)

        self.selection = self.selection.model_copy(update={"trip_id": trip_id})
        self._reset_trip_scope()
        self.trip_loading = True

        try:
            shape, stops = await asyncio.gather(
                self._data.trip_shape(trip_id),
                self._data.trip_stops(trip_id),
            )
        except Exception as e:
            if not self._trip_is_current(route_token, trip_token):
                logger.debug(f"Discarding stale failure for trip {trip_id}: {e}")
                return self.snapshot()
            logger.warning(f"Failed to load trip {trip_id}: {e}")
            self._reset_trip_scope()
            self.trip_error = f"Failed to load trip data: {e}"
            return self.snapshot()

        if not self._trip_is_current(route_token, trip_token):
            logger.debug(f"Discarding stale data for trip {trip_id}")
            return self.snapshot()

        self.trip_shape = ordered_trip_shape(shape)
        self.trip_stops = ordered_trip_stops(stops)
        self.trip_loading = False
        return self.snapshot()

    def clear_trip(self) -> SelectionSnapshot:
        """Drop the trip selection and go back to the route view."""
        self._fence.bump(Scope.TRIP)
        self.selection = self.selection.model_copy(update={"trip_id": None})
        self._reset_trip_scope()
        return self.snapshot()

    def clear_route(self) -> SelectionSnapshot:
        """Drop everything and return to idle."""
        self._poller.stop()
        self._fence.bump(Scope.ROUTE)
        self._fence.bump(Scope.TRIP)

        self.selection = Selection()
        self._reset_trip_scope()
        self._reset_route_scope()
        return self.snapshot()

    async def poll_now(self) -> bool:
        """Run one poller refresh immediately (no-op when not polling)."""
        return await self._poller.tick()

    def snapshot(self) -> SelectionSnapshot:
        """Current displayable state, including camera hints for the surface."""
        vehicles = self.displayed_vehicles
        focus = None
        if self.selection.trip_id is not None:
            focus = next((v for v in vehicles if v.is_usable), None)

        return SelectionSnapshot(
            phase=self.phase,
            selection=self.selection,
            route_geometry=self.route_geometry,
            trips=list(self.trips),
            vehicles=vehicles,
            trip_shape=self.trip_shape,
            trip_stops=self.trip_stops,
            route_error=self.route_error,
            trip_error=self.trip_error,
            route_loading=self.route_loading,
            trip_loading=self.trip_loading,
            polling=self.polling,
            route_bounds=route_bounds(self.route_geometry) if self.route_geometry else None,
            trip_bounds=trip_bounds(self.trip_shape) if self.trip_shape else None,
            focus_vehicle=focus,
        )

    def _apply_polled_vehicles(self, vehicles: list[VehiclePosition]) -> None:
        # whole-list replace: a trip missing from this tick must disappear
        self.vehicles = vehicles

    def _trip_is_current(self, route_token: int, trip_token: int) -> bool:
        return self._fence.is_current(Scope.ROUTE, route_token) and self._fence.is_current(
            Scope.TRIP, trip_token
        )

    def _reset_route_scope(self) -> None:
        self.route_geometry = None
        self.trips = []
        self.vehicles = []
        self.route_error = None
        self.route_loading = False

    def _reset_trip_scope(self) -> None:
        self.trip_shape = None
        self.trip_stops = None
        self.trip_error = None
        self.trip_loading = False

"""Transit data access routed through the shared request cache.

Static data (stops, geometry, trips, shapes) is memoized for the session.
Vehicle positions are live, so they only coalesce concurrent identical
requests and are refetched on every call.
"""

from transit_live.data.cache import DataCache
from transit_live.data.transit_service import DEFAULT_FRESHNESS_SECONDS, TransitDataService
from transit_live.models.transit import (
    BoundingBox,
    Route,
    RouteGeometry,
    RouteScheduleAtStop,
    Stop,
    Trip,
    TripShape,
    TripStops,
    VehiclePosition,
)


class CachedTransitData:
    """TransitDataService facade keyed by normalized request parameters."""

    def __init__(self, service: TransitDataService, cache: DataCache, bbox_precision: int = 5):
        self.service = service
        self.cache = cache
        self._bbox_precision = bbox_precision

    async def stops_in_rect(self, bbox: BoundingBox) -> list[Stop]:
        rounded = bbox.rounded(self._bbox_precision)
        key = (
            "stops_in_rect",
            rounded.top_left_lat,
            rounded.top_left_lon,
            rounded.bottom_right_lat,
            rounded.bottom_right_lon,
        )
        return await self.cache.fetch(key, lambda: self.service.stops_in_rect(rounded))

    async def routes_through_stop(self, stop_id: str) -> list[Route]:
        return await self.cache.fetch(
            ("routes_through_stop", stop_id), lambda: self.service.routes_through_stop(stop_id)
        )

    async def route_schedule_at_stop(
        self, stop_id: str, route_id: str, date: str
    ) -> RouteScheduleAtStop:
        return await self.cache.fetch(
            ("route_schedule_at_stop", stop_id, route_id, date),
            lambda: self.service.route_schedule_at_stop(stop_id, route_id, date),
        )

    async def route_geometry(self, route_id: str) -> RouteGeometry:
        return await self.cache.fetch(
            ("route_geometry", route_id), lambda: self.service.route_geometry(route_id)
        )

    async def trips_by_route(self, route_id: str) -> list[Trip]:
        return await self.cache.fetch(
            ("trips_by_route", route_id), lambda: self.service.trips_by_route(route_id)
        )

    async def vehicle_position(
        self, trip_id: str, freshness_seconds: int = DEFAULT_FRESHNESS_SECONDS
    ) -> VehiclePosition:
        return await self.cache.fetch(
            ("vehicle_position", trip_id, freshness_seconds),
            lambda: self.service.vehicle_position(trip_id, freshness_seconds),
            refresh=True,
        )

    async def trip_shape(self, trip_id: str) -> TripShape:
        return await self.cache.fetch(
            ("trip_shape", trip_id), lambda: self.service.trip_shape(trip_id)
        )

    async def trip_stops(self, trip_id: str) -> TripStops:
        return await self.cache.fetch(
            ("trip_stops", trip_id), lambda: self.service.trip_stops(trip_id)
        )

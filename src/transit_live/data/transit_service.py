from abc import ABC, abstractmethod

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

# Freshness window the service applies when the caller does not pass one
DEFAULT_FRESHNESS_SECONDS = 600


class TransitDataService(ABC):
    """Port for the read-only transit data backend."""

    @abstractmethod
    async def stops_in_rect(self, bbox: BoundingBox) -> list[Stop]:
        raise NotImplementedError

    @abstractmethod
    async def routes_through_stop(self, stop_id: str) -> list[Route]:
        raise NotImplementedError

    @abstractmethod
    async def route_schedule_at_stop(
        self, stop_id: str, route_id: str, date: str
    ) -> RouteScheduleAtStop:
        raise NotImplementedError

    @abstractmethod
    async def route_geometry(self, route_id: str) -> RouteGeometry:
        raise NotImplementedError

    @abstractmethod
    async def trips_by_route(self, route_id: str) -> list[Trip]:
        raise NotImplementedError

    @abstractmethod
    async def vehicle_position(
        self, trip_id: str, freshness_seconds: int = DEFAULT_FRESHNESS_SECONDS
    ) -> VehiclePosition:
        raise NotImplementedError

    @abstractmethod
    async def trip_shape(self, trip_id: str) -> TripShape:
        raise NotImplementedError

    @abstractmethod
    async def trip_stops(self, trip_id: str) -> TripStops:
        raise NotImplementedError

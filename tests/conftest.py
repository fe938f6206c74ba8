"""Shared fixtures: an in-memory transit data service with controllable timing."""

import asyncio
from typing import Any

import pytest

from transit_live.core.fence import Fence
from transit_live.data.cache import DataCache
from transit_live.data.transit_service import DEFAULT_FRESHNESS_SECONDS, TransitDataService
from transit_live.models.transit import (
    BoundingBox,
    LatLon,
    Route,
    RouteGeometry,
    RouteScheduleAtStop,
    Shape,
    ShapePoint,
    Stop,
    Trip,
    TripShape,
    TripStop,
    TripStops,
    VehiclePosition,
)
from transit_live.services.transit_data import CachedTransitData


class FakeTransitService(TransitDataService):
    """Backend stand-in.

    Each table maps a request argument to a value or an exception to raise.
    `gates` maps a method name, or (method name, argument), to an
    asyncio.Event the call waits on before answering.
    `latency` delays every answer by that many seconds.
    """

    def __init__(self) -> None:
        self.stops: list[Stop] | Exception = []
        self.routes_by_stop: dict[str, list[Route] | Exception] = {}
        self.schedules: dict[tuple[str, str, str], RouteScheduleAtStop] = {}
        self.geometries: dict[str, RouteGeometry | Exception] = {}
        self.trips: dict[str, list[Trip] | Exception] = {}
        self.positions: dict[str, VehiclePosition | Exception] = {}
        self.shapes: dict[str, TripShape | Exception] = {}
        self.trip_stop_times: dict[str, TripStops | Exception] = {}
        self.gates: dict[Any, asyncio.Event] = {}
        self.calls: list[tuple[str, Any]] = []
        self.latency = 0.0

    async def _answer(self, method: str, arg: Any, value: Any) -> Any:
        self.calls.append((method, arg))
        gate = self.gates.get((method, arg)) or self.gates.get(method)
        if gate is not None:
            await gate.wait()
        if self.latency:
            await asyncio.sleep(self.latency)
        if isinstance(value, Exception):
            raise value
        return value

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def stops_in_rect(self, bbox: BoundingBox) -> list[Stop]:
        return await self._answer("stops_in_rect", bbox, self.stops)

    async def routes_through_stop(self, stop_id: str) -> list[Route]:
        value = self.routes_by_stop.get(stop_id, LookupError(f"unknown stop {stop_id}"))
        return await self._answer("routes_through_stop", stop_id, value)

    async def route_schedule_at_stop(
        self, stop_id: str, route_id: str, date: str
    ) -> RouteScheduleAtStop:
        key = (stop_id, route_id, date)
        value = self.schedules.get(key, LookupError(f"no schedule for {key}"))
        return await self._answer("route_schedule_at_stop", key, value)

    async def route_geometry(self, route_id: str) -> RouteGeometry:
        value = self.geometries.get(route_id, LookupError(f"unknown route {route_id}"))
        return await self._answer("route_geometry", route_id, value)

    async def trips_by_route(self, route_id: str) -> list[Trip]:
        value = self.trips.get(route_id, LookupError(f"unknown route {route_id}"))
        return await self._answer("trips_by_route", route_id, value)

    async def vehicle_position(
        self, trip_id: str, freshness_seconds: int = DEFAULT_FRESHNESS_SECONDS
    ) -> VehiclePosition:
        value = self.positions.get(trip_id, VehiclePosition(trip_id=trip_id))
        return await self._answer("vehicle_position", trip_id, value)

    async def trip_shape(self, trip_id: str) -> TripShape:
        value = self.shapes.get(trip_id, LookupError(f"unknown trip {trip_id}"))
        return await self._answer("trip_shape", trip_id, value)

    async def trip_stops(self, trip_id: str) -> TripStops:
        value = self.trip_stop_times.get(trip_id, LookupError(f"unknown trip {trip_id}"))
        return await self._answer("trip_stops", trip_id, value)


def make_trip(trip_id: str) -> Trip:
    return Trip(trip_id=trip_id, service_id="WEEKDAY", direction_id=0, shape_id=f"SH-{trip_id}")


def make_position(trip_id: str, lat: float | None = 59.3, lon: float | None = 18.0) -> VehiclePosition:
    return VehiclePosition(trip_id=trip_id, vehicle_id=f"bus-{trip_id}", lat=lat, lon=lon)


def make_geometry(route_id: str) -> RouteGeometry:
    return RouteGeometry(
        route_id=route_id,
        stops=[Stop(id="S1", name="Central", lat=59.33, lon=18.06)],
        shapes=[
            Shape(
                shape_id="SH1",
                points=[LatLon(lat=59.30, lon=18.00), LatLon(lat=59.40, lon=18.20)],
            )
        ],
    )


def make_route(route_id: str) -> Route:
    return Route(route_id=route_id, short_name=route_id, route_type=3)


def make_trip_shape(trip_id: str) -> TripShape:
    return TripShape(
        trip_id=trip_id,
        route_id="1A",
        shape_id=f"SH-{trip_id}",
        points=[
            ShapePoint(lat=59.32, lon=18.02, sequence=30),
            ShapePoint(lat=59.30, lon=18.00, sequence=1),
            ShapePoint(lat=59.31, lon=18.01, sequence=7),
        ],
    )


def make_trip_stops(trip_id: str) -> TripStops:
    return TripStops(
        trip_id=trip_id,
        route_id="1A",
        stops=[
            TripStop(
                stop_id="B", stop_name="Second", lat=59.31, lon=18.01, sequence=2,
                arrival_time="08:05:00", departure_time="08:05:30",
            ),
            TripStop(
                stop_id="A", stop_name="First", lat=59.30, lon=18.00, sequence=1,
                arrival_time="08:00:00", departure_time="08:00:00",
            ),
        ],
    )


async def settle(rounds: int = 20) -> None:
    """Let queued tasks run until the fake service has nothing left to answer."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def service() -> FakeTransitService:
    return FakeTransitService()


@pytest.fixture
def fence() -> Fence:
    return Fence()


@pytest.fixture
def data(service: FakeTransitService) -> CachedTransitData:
    return CachedTransitData(service, DataCache())

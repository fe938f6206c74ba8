from typing import Any

import httpx
from pydantic import TypeAdapter

from transit_live.data.config import TransitConfig
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

_STOPS = TypeAdapter(list[Stop])
_ROUTES = TypeAdapter(list[Route])
_TRIPS = TypeAdapter(list[Trip])


class TransitDataClient(TransitDataService):
    """Async HTTP client for the transit data backend.

    Usage:
        async with TransitDataClient(config) as client:
            geometry = await client.route_geometry("1A")
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Transit configuration with backend URL and optional API key.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TransitDataClient":
        """Enter async context - create HTTP client."""
        headers = {}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
        self._client = httpx.AsyncClient(
            base_url=self._config.backend_url.rstrip("/"),
            headers=headers,
            timeout=self._config.request_timeout_seconds,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a backend path and decode the JSON body.

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def stops_in_rect(self, bbox: BoundingBox) -> list[Stop]:
        data = await self._get_json("/stops/in-rect", params=bbox.as_params())
        return _STOPS.validate_python(data)

    async def routes_through_stop(self, stop_id: str) -> list[Route]:
        data = await self._get_json(f"/stops/{stop_id}/routes")
        return _ROUTES.validate_python(data)

    async def route_schedule_at_stop(
        self, stop_id: str, route_id: str, date: str
    ) -> RouteScheduleAtStop:
        """Fetch scheduled times of a route at a stop.

        Args:
            stop_id: Stop ID.
            route_id: Route ID.
            date: Service date in YYYY-MM-DD format.
        """
        data = await self._get_json(
            f"/stops/{stop_id}/routes/{route_id}/times", params={"date": date}
        )
        return RouteScheduleAtStop.model_validate(data)

    async def route_geometry(self, route_id: str) -> RouteGeometry:
        data = await self._get_json(f"/routes/{route_id}/geometry")
        return RouteGeometry.model_validate(data)

    async def trips_by_route(self, route_id: str) -> list[Trip]:
        data = await self._get_json(f"/routes/{route_id}/trips")
        return _TRIPS.validate_python(data)

    async def vehicle_position(
        self, trip_id: str, freshness_seconds: int = DEFAULT_FRESHNESS_SECONDS
    ) -> VehiclePosition:
        """Fetch the latest known position for a trip.

        Args:
            trip_id: Trip ID.
            freshness_seconds: Oldest position age the backend may return.

        Returns:
            VehiclePosition; lat/lon are None when no fresh position is known.
        """
        data = await self._get_json(
            f"/position_redis/{trip_id}", params={"freshSeconds": freshness_seconds}
        )
        return VehiclePosition.model_validate(data)

    async def trip_shape(self, trip_id: str) -> TripShape:
        data = await self._get_json(f"/trips/{trip_id}/shape")
        return TripShape.model_validate(data)

    async def trip_stops(self, trip_id: str) -> TripStops:
        data = await self._get_json(f"/trips/{trip_id}/stops")
        return TripStops.model_validate(data)

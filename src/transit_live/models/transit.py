"""Pydantic models for the transit data service.

The backend speaks camelCase JSON. Models keep snake_case attributes and
accept/emit camelCase through aliases.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TransitModel(BaseModel):
    """Base model for wire types (camelCase aliases, extra fields ignored)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Stop(TransitModel):
    """Stop returned by the in-rect query and inside route geometry."""

    id: str
    name: str
    lat: float
    lon: float


class Route(TransitModel):
    """Route passing through a stop."""

    route_id: str
    short_name: str | None = None
    long_name: str | None = None
    route_type: int = Field(description="GTFS route_type (3=bus)")


class Trip(TransitModel):
    """Trip summary as listed for a route."""

    trip_id: str
    service_id: str
    headsign: str | None = None
    direction_id: int | None = None
    shape_id: str | None = None
    short_name: str | None = None
    block_id: str | None = None


class LatLon(TransitModel):
    lat: float
    lon: float


class Shape(TransitModel):
    shape_id: str
    points: list[LatLon] = []


class RouteGeometry(TransitModel):
    """All stops and shape polylines of a route."""

    route_id: str
    stops: list[Stop] = []
    shapes: list[Shape] = []


class ShapePoint(TransitModel):
    lat: float
    lon: float
    sequence: int


class TripShape(TransitModel):
    """Shape of a single trip. Points may arrive unordered."""

    trip_id: str
    route_id: str | None = None
    shape_id: str | None = None
    points: list[ShapePoint] = []


class TripStop(TransitModel):
    stop_id: str
    stop_name: str
    lat: float
    lon: float
    sequence: int
    arrival_time: str | None = None  # HH:MM:SS, may exceed 24:00:00
    departure_time: str | None = None


class TripStops(TransitModel):
    """Ordered stop times of a single trip."""

    trip_id: str
    route_id: str | None = None
    stops: list[TripStop] = []


class VehiclePosition(TransitModel):
    """Last known position of the vehicle serving a trip.

    The service never omits a trip: "no known position" comes back with
    null lat/lon.
    """

    trip_id: str
    vehicle_id: str | None = None
    lat: float | None = None
    lon: float | None = None
    speed: float | None = None
    bearing: float | None = None
    route_id: str | None = None
    status: str | None = None
    last_updated: str | None = None
    in_transit: bool | None = None

    @property
    def is_usable(self) -> bool:
        """True if both coordinates are known."""
        return self.lat is not None and self.lon is not None


class RouteScheduleAtStop(TransitModel):
    """Scheduled departure times of one route at one stop for a service date."""

    stop_id: str
    route_id: str
    date: str  # YYYY-MM-DD
    short_name: str | None = None
    long_name: str | None = None
    route_type: int
    times: list[str] = []


class BoundingBox(TransitModel):
    """Query rectangle for the in-rect stop search."""

    top_left_lat: float
    top_left_lon: float
    bottom_right_lat: float
    bottom_right_lon: float

    def rounded(self, precision: int) -> "BoundingBox":
        """Snap every corner to `precision` decimals (cache key normalization)."""
        return BoundingBox(
            top_left_lat=round(self.top_left_lat, precision),
            top_left_lon=round(self.top_left_lon, precision),
            bottom_right_lat=round(self.bottom_right_lat, precision),
            bottom_right_lon=round(self.bottom_right_lon, precision),
        )

    def as_params(self) -> dict[str, float]:
        """Query-string parameters in the service's camelCase form."""
        return self.model_dump(by_alias=True)


class Viewport(BoundingBox):
    """Visible map rectangle plus the current zoom level."""

    zoom: float

    def bbox(self) -> BoundingBox:
        return BoundingBox(
            top_left_lat=self.top_left_lat,
            top_left_lon=self.top_left_lon,
            bottom_right_lat=self.bottom_right_lat,
            bottom_right_lon=self.bottom_right_lon,
        )

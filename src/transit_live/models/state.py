"""Pydantic models for the displayable map state."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from transit_live.models.transit import (
    Route,
    RouteGeometry,
    Stop,
    Trip,
    TripShape,
    TripStops,
    VehiclePosition,
)


class SelectionPhase(str, Enum):
    """Where the selection hierarchy currently stands."""

    IDLE = "idle"
    ROUTE_SELECTED = "route_selected"
    TRIP_SELECTED = "trip_selected"


class Selection(BaseModel):
    """What the user has picked. A trip can only be selected under a route."""

    stop_id: str | None = None
    route_id: str | None = None
    trip_id: str | None = None

    @model_validator(mode="after")
    def _trip_requires_route(self) -> "Selection":
        if self.trip_id is not None and self.route_id is None:
            raise ValueError("trip_id requires route_id")
        return self

    @property
    def phase(self) -> SelectionPhase:
        if self.route_id is None:
            return SelectionPhase.IDLE
        if self.trip_id is None:
            return SelectionPhase.ROUTE_SELECTED
        return SelectionPhase.TRIP_SELECTED


class Bounds(BaseModel):
    """Lat/lon rectangle the surface should fit its camera to."""

    south: float
    west: float
    north: float
    east: float


class StopsView(BaseModel):
    """Stops to draw for the latest viewport."""

    stops: list[Stop] = []
    zoom_in_required: bool = Field(
        default=False, description="Map is zoomed out too far to show stops"
    )
    loading: bool = False
    error: str | None = None


class SelectionSnapshot(BaseModel):
    """Route/trip content that should currently be on screen."""

    phase: SelectionPhase
    selection: Selection
    route_geometry: RouteGeometry | None = None
    trips: list[Trip] = []
    vehicles: list[VehiclePosition] = Field(
        default=[], description="Vehicles to draw (restricted to the trip when one is selected)"
    )
    trip_shape: TripShape | None = None
    trip_stops: TripStops | None = None
    route_error: str | None = None
    trip_error: str | None = None
    route_loading: bool = False
    trip_loading: bool = False
    polling: bool = False
    route_bounds: Bounds | None = None
    trip_bounds: Bounds | None = None
    focus_vehicle: VehiclePosition | None = Field(
        default=None, description="Selected trip's vehicle the camera should fly to"
    )


class StopPanel(BaseModel):
    """Routes through the stop the user opened, plus the active-route probe."""

    stop_id: str | None = None
    routes: list[Route] = []
    loading: bool = False
    error: str | None = None
    probing: bool = False
    active_route_ids: list[str] | None = Field(
        default=None, description="Routes with a live vehicle (None until probed)"
    )


class MapSnapshot(BaseModel):
    """Everything the rendering surface needs for one frame."""

    stops: StopsView
    stop_panel: StopPanel
    selection: SelectionSnapshot

"""Discrete user/surface actions processed by the map session."""

from enum import Enum

from pydantic import BaseModel, model_validator

from transit_live.models.transit import Viewport


class ActionType(str, Enum):
    VIEWPORT_CHANGED = "viewport_changed"
    OPEN_STOP = "open_stop"
    PROBE_ACTIVE_ROUTES = "probe_active_routes"
    SELECT_ROUTE = "select_route"
    SELECT_TRIP = "select_trip"
    CLEAR_TRIP = "clear_trip"
    CLEAR_ROUTE = "clear_route"
    POLLER_TICK = "poller_tick"


# Field each action type cannot do without
_REQUIRED_FIELD = {
    ActionType.VIEWPORT_CHANGED: "viewport",
    ActionType.OPEN_STOP: "stop_id",
    ActionType.SELECT_ROUTE: "route_id",
    ActionType.SELECT_TRIP: "trip_id",
}


class MapAction(BaseModel):
    """One action, e.g. MapAction(type=ActionType.SELECT_ROUTE, route_id="1A")."""

    type: ActionType
    viewport: Viewport | None = None
    stop_id: str | None = None
    route_id: str | None = None
    trip_id: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "MapAction":
        field = _REQUIRED_FIELD.get(self.type)
        if field is not None and getattr(self, field) is None:
            raise ValueError(f"{self.type.value} requires {field}")
        return self

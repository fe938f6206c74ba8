"""MCP tools for the viewport and the route/trip selection."""

from transit_live.app import mcp
from transit_live.models.state import MapSnapshot, SelectionSnapshot, StopsView
from transit_live.models.transit import Viewport
from transit_live.services.map_session import get_session


@mcp.tool()
async def viewport_changed(
    top_left_lat: float,
    top_left_lon: float,
    bottom_right_lat: float,
    bottom_right_lon: float,
    zoom: float,
) -> StopsView:
    """Report that the map moved and get the stops to draw.

    Below zoom 16 no stops are queried; the response asks the user to zoom in.

    Args:
        top_left_lat: Latitude of the north-west corner.
        top_left_lon: Longitude of the north-west corner.
        bottom_right_lat: Latitude of the south-east corner.
        bottom_right_lon: Longitude of the south-east corner.
        zoom: Current map zoom level.

    Returns:
        StopsView with stops in the rectangle, the zoom-in flag, or an error.
    """
    session = await get_session()
    viewport = Viewport(
        top_left_lat=top_left_lat,
        top_left_lon=top_left_lon,
        bottom_right_lat=bottom_right_lat,
        bottom_right_lon=bottom_right_lon,
        zoom=zoom,
    )
    return await session.viewport_changed(viewport)


@mcp.tool()
async def select_route(route_id: str) -> SelectionSnapshot:
    """Show a route: its geometry, trips and live vehicles.

    Starts refreshing vehicle positions every few seconds until the route is
    cleared or another route is selected.

    Args:
        route_id: Route ID (e.g., from open_stop).
    """
    session = await get_session()
    return await session.select_route(route_id)


@mcp.tool()
async def select_trip(trip_id: str) -> SelectionSnapshot:
    """Narrow the selected route to one trip: its shape, stops and vehicle.

    Args:
        trip_id: Trip ID from the selected route's trip list.
    """
    session = await get_session()
    return await session.select_trip(trip_id)


@mcp.tool()
async def clear_trip() -> SelectionSnapshot:
    """Go back from a single trip to the whole route."""
    session = await get_session()
    return session.clear_trip()


@mcp.tool()
async def clear_route() -> SelectionSnapshot:
    """Clear the route and trip selection and stop live updates."""
    session = await get_session()
    return session.clear_route()


@mcp.tool()
async def get_map_state() -> MapSnapshot:
    """Get everything currently displayed: stops, stop panel, route/trip and vehicles."""
    session = await get_session()
    return session.snapshot()

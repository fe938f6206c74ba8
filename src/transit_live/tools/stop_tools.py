"""MCP tools for an opened stop."""

from datetime import date as date_cls

from transit_live.app import mcp
from transit_live.models.state import StopPanel
from transit_live.models.transit import RouteScheduleAtStop
from transit_live.services.map_session import get_session


@mcp.tool()
async def open_stop(stop_id: str) -> StopPanel:
    """Open a stop and list the routes serving it.

    Args:
        stop_id: Stop ID (from viewport_changed results).
    """
    session = await get_session()
    return await session.open_stop(stop_id)


@mcp.tool()
async def probe_active_routes(stop_id: str | None = None) -> StopPanel:
    """Find which routes through a stop have a vehicle on the road right now.

    Every call checks again; a reopened stop shows the last result until then.

    Args:
        stop_id: Stop ID (default: the opened stop).
    """
    session = await get_session()
    return await session.probe_active_routes(stop_id)


@mcp.tool()
async def get_route_schedule_at_stop(
    stop_id: str,
    route_id: str,
    date: str | None = None,
) -> RouteScheduleAtStop:
    """Get the scheduled times of a route at a stop.

    Args:
        stop_id: Stop ID.
        route_id: Route ID.
        date: Service date in YYYY-MM-DD format (default: today).
    """
    if date is None:
        date = date_cls.today().isoformat()

    session = await get_session()
    return await session.route_schedule_at_stop(stop_id, route_id, date)

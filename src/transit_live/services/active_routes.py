"""Which routes through a stop have a vehicle on the road right now."""

import logging

from transit_live.core.fanout import fanout_join
from transit_live.data.cache import EntryState
from transit_live.models.transit import Route
from transit_live.services.selection import ROUTE_FRESHNESS_SECONDS
from transit_live.services.transit_data import CachedTransitData

logger = logging.getLogger(__name__)


class ActiveRouteProbe:
    """Checks every route of a stop for at least one usable vehicle position.

    Results are memoized per stop in the shared cache; a repeated probe for
    the same stop reuses them unless called with refresh=True.
    """

    def __init__(
        self,
        data: CachedTransitData,
        freshness_seconds: int = ROUTE_FRESHNESS_SECONDS,
    ):
        self._data = data
        self._freshness = freshness_seconds

    @staticmethod
    def _key(stop_id: str) -> tuple[str, str]:
        return ("active_routes", stop_id)

    def cached(self, stop_id: str) -> list[str] | None:
        """Last probe result for a stop, or None if never probed."""
        entry = self._data.cache.get(self._key(stop_id))
        if entry is None or entry.state is not EntryState.READY:
            return None
        return list(entry.value)

    async def probe(self, stop_id: str, routes: list[Route], refresh: bool = False) -> list[str]:
        """Return the ids of the active routes among `routes`.

        Args:
            stop_id: Stop the routes belong to (memo key).
            routes: Candidate routes, already fetched for the stop.
            refresh: Re-evaluate even if a result is memoized.

        Returns:
            Active route ids, in the order of `routes`.
        """
        if not routes:
            return []
        return await self._data.cache.fetch(
            self._key(stop_id),
            lambda: self._evaluate(routes),
            refresh=refresh,
        )

    async def _evaluate(self, routes: list[Route]) -> list[str]:
        flags = await fanout_join(self.is_route_active(route.route_id) for route in routes)
        active = [route.route_id for route, flag in zip(routes, flags) if flag]
        logger.debug(f"{len(active)}/{len(routes)} routes active")
        return active

    async def is_route_active(self, route_id: str) -> bool:
        """True if any trip of the route has a usable position.

        Raises:
            Whatever the trip list fetch raised; the caller's fan-out treats
            that as inactive.
        """
        trips = await self._data.trips_by_route(route_id)
        if not trips:
            return False

        positions = await fanout_join(
            self._data.vehicle_position(trip.trip_id, self._freshness) for trip in trips
        )
        return any(p is not None and p.is_usable for p in positions)

"""Turns viewport changes into in-rect stop queries."""

import logging

from transit_live.core.fence import Fence, Scope
from transit_live.models.state import StopsView
from transit_live.models.transit import Viewport
from transit_live.services.transit_data import CachedTransitData

logger = logging.getLogger(__name__)

# Below this zoom the stop layer is hidden and nothing is queried
MIN_ZOOM_TO_SHOW_STOPS = 16


class ViewportWatcher:
    """Keeps the stop layer in sync with the latest viewport.

    Only the most recent viewport's stops are ever applied; a slow response
    for a viewport the user already panned away from is dropped.
    """

    def __init__(
        self,
        data: CachedTransitData,
        fence: Fence,
        min_zoom: float = MIN_ZOOM_TO_SHOW_STOPS,
    ):
        self._data = data
        self._fence = fence
        self._min_zoom = min_zoom
        self.view = StopsView()

    async def on_viewport_changed(self, viewport: Viewport) -> StopsView:
        """Handle one viewport change event.

        Args:
            viewport: Visible rectangle and zoom after the move.

        Returns:
            The stop layer state after this event was handled.
        """
        token = self._fence.bump(Scope.VIEWPORT)

        if viewport.zoom < self._min_zoom:
            self.view = StopsView(zoom_in_required=True)
            return self.view

        self.view = self.view.model_copy(update={"zoom_in_required": False, "loading": True})

        try:
            stops = await self._data.stops_in_rect(viewport.bbox())
        except Exception as e:
            if not self._fence.is_current(Scope.VIEWPORT, token):
                logger.debug(f"Discarding stale stop query failure: {e}")
                return self.view
            logger.warning(f"Failed to fetch stops: {e}")
            # previous stops stay on screen, only the banner changes
            self.view = self.view.model_copy(
                update={"loading": False, "error": f"Failed to fetch stops: {e}"}
            )
            return self.view

        if not self._fence.is_current(Scope.VIEWPORT, token):
            logger.debug("Discarding stops for a superseded viewport")
            return self.view

        self.view = StopsView(stops=stops)
        return self.view

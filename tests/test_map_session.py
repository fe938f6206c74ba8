"""Tests for the map session (action dispatch and the stop panel)."""

import asyncio

import pytest
from pydantic import ValidationError

from transit_live.data.config import TransitConfig
from transit_live.exceptions import InvalidSelectionError
from transit_live.models.actions import ActionType, MapAction
from transit_live.models.state import SelectionPhase
from transit_live.models.transit import RouteScheduleAtStop, Stop, Viewport
from transit_live.services.map_session import MapSession

from conftest import (
    FakeTransitService,
    make_geometry,
    make_position,
    make_route,
    make_trip,
    make_trip_shape,
    make_trip_stops,
    settle,
)


@pytest.fixture
def config() -> TransitConfig:
    """Create a test config (long poll interval keeps tests deterministic)."""
    return TransitConfig(poll_interval_seconds=3600)


@pytest.fixture
def session(config: TransitConfig, service: FakeTransitService) -> MapSession:
    service.stops = [Stop(id="S1", name="Central", lat=59.331, lon=18.06)]
    service.routes_by_stop["S1"] = [make_route("R1"), make_route("R2")]
    service.trips["R1"] = []
    service.trips["R2"] = [make_trip("T1"), make_trip("T2")]
    service.geometries["R2"] = make_geometry("R2")
    service.positions["T1"] = make_position("T1")
    service.positions["T2"] = RuntimeError("no signal")
    service.shapes["T1"] = make_trip_shape("T1")
    service.trip_stop_times["T1"] = make_trip_stops("T1")
    return MapSession(config, service=service)


VIEWPORT = Viewport(
    top_left_lat=59.34,
    top_left_lon=18.05,
    bottom_right_lat=59.33,
    bottom_right_lon=18.07,
    zoom=17,
)


@pytest.mark.asyncio
async def test_full_drill_down(session: MapSession):
    """viewport -> stop -> probe -> route -> trip -> clear."""
    async with session:
        snapshot = await session.dispatch(
            MapAction(type=ActionType.VIEWPORT_CHANGED, viewport=VIEWPORT)
        )
        assert [s.id for s in snapshot.stops.stops] == ["S1"]

        snapshot = await session.dispatch(MapAction(type=ActionType.OPEN_STOP, stop_id="S1"))
        assert [r.route_id for r in snapshot.stop_panel.routes] == ["R1", "R2"]
        assert snapshot.selection.selection.stop_id == "S1"

        snapshot = await session.dispatch(MapAction(type=ActionType.PROBE_ACTIVE_ROUTES))
        assert snapshot.stop_panel.active_route_ids == ["R2"]

        snapshot = await session.dispatch(MapAction(type=ActionType.SELECT_ROUTE, route_id="R2"))
        assert snapshot.selection.phase == SelectionPhase.ROUTE_SELECTED
        assert [v.trip_id for v in snapshot.selection.vehicles] == ["T1"]
        assert snapshot.selection.polling is True

        snapshot = await session.dispatch(MapAction(type=ActionType.SELECT_TRIP, trip_id="T1"))
        assert snapshot.selection.phase == SelectionPhase.TRIP_SELECTED
        assert snapshot.selection.focus_vehicle.trip_id == "T1"

        snapshot = await session.dispatch(MapAction(type=ActionType.CLEAR_TRIP))
        assert snapshot.selection.phase == SelectionPhase.ROUTE_SELECTED

        snapshot = await session.dispatch(MapAction(type=ActionType.CLEAR_ROUTE))
        assert snapshot.selection.phase == SelectionPhase.IDLE
        assert snapshot.selection.polling is False


@pytest.mark.asyncio
async def test_poller_tick_action_refreshes_vehicles(
    session: MapSession, service: FakeTransitService
):
    async with session:
        await session.select_route("R2")
        await settle()

        service.positions["T1"] = make_position("T1", lat=None, lon=None)
        snapshot = await session.dispatch(MapAction(type=ActionType.POLLER_TICK))

        assert snapshot.selection.vehicles == []


@pytest.mark.asyncio
async def test_close_stops_polling(session: MapSession):
    await session.open()
    await session.select_route("R2")
    assert session.poller.is_running is True

    await session.close()

    assert session.poller.is_running is False


@pytest.mark.asyncio
async def test_select_trip_in_idle_raises(session: MapSession):
    with pytest.raises(InvalidSelectionError):
        await session.dispatch(MapAction(type=ActionType.SELECT_TRIP, trip_id="T1"))


def test_action_requires_payload():
    with pytest.raises(ValidationError):
        MapAction(type=ActionType.SELECT_ROUTE)


class TestStopPanel:
    """Tests for opening stops and probing their routes."""

    @pytest.mark.asyncio
    async def test_open_stop_failure_sets_error(
        self, session: MapSession, service: FakeTransitService
    ) -> None:
        service.routes_by_stop["S9"] = RuntimeError("routes down")

        panel = await session.open_stop("S9")

        assert panel.stop_id == "S9"
        assert panel.routes == []
        assert panel.loading is False
        assert "routes down" in panel.error

    @pytest.mark.asyncio
    async def test_routes_through_stop_are_memoized(
        self, session: MapSession, service: FakeTransitService
    ) -> None:
        await session.open_stop("S1")
        await session.open_stop("S1")

        assert service.count("routes_through_stop") == 1

    @pytest.mark.asyncio
    async def test_opening_another_stop_supersedes_slow_one(
        self, session: MapSession, service: FakeTransitService
    ) -> None:
        service.routes_by_stop["SLOW"] = [make_route("R9")]
        service.gates[("routes_through_stop", "SLOW")] = asyncio.Event()

        slow = asyncio.create_task(session.open_stop("SLOW"))
        await settle()
        await session.open_stop("S1")
        service.gates[("routes_through_stop", "SLOW")].set()
        await slow

        panel = session.stop_panel.panel
        assert panel.stop_id == "S1"
        assert [r.route_id for r in panel.routes] == ["R1", "R2"]

    @pytest.mark.asyncio
    async def test_probe_opens_stop_when_needed(self, session: MapSession) -> None:
        panel = await session.probe_active_routes("S1")

        assert panel.stop_id == "S1"
        assert panel.active_route_ids == ["R2"]
        assert panel.probing is False

    @pytest.mark.asyncio
    async def test_probing_again_sees_newly_live_route(
        self, session: MapSession, service: FakeTransitService
    ) -> None:
        service.positions["T1"] = make_position("T1", lat=None, lon=None)
        service.positions["T2"] = make_position("T2", lat=None, lon=None)

        first = await session.probe_active_routes("S1")
        assert first.active_route_ids == []

        service.positions["T2"] = make_position("T2")
        second = await session.dispatch(MapAction(type=ActionType.PROBE_ACTIVE_ROUTES))

        assert second.stop_panel.active_route_ids == ["R2"]
        assert service.count("vehicle_position") == 4

    @pytest.mark.asyncio
    async def test_reopened_stop_shows_memoized_probe(self, session: MapSession) -> None:
        await session.probe_active_routes("S1")
        await session.open_stop("S2_UNKNOWN")

        panel = await session.open_stop("S1")

        assert panel.active_route_ids == ["R2"]

    @pytest.mark.asyncio
    async def test_probe_without_open_stop_raises(self, session: MapSession) -> None:
        with pytest.raises(InvalidSelectionError):
            await session.probe_active_routes()

    @pytest.mark.asyncio
    async def test_route_schedule_at_stop(
        self, session: MapSession, service: FakeTransitService
    ) -> None:
        service.schedules[("S1", "R2", "2026-10-19")] = RouteScheduleAtStop(
            stop_id="S1",
            route_id="R2",
            date="2026-10-19",
            short_name="R2",
            route_type=3,
            times=["08:00:00", "08:15:00"],
        )

        schedule = await session.route_schedule_at_stop("S1", "R2", "2026-10-19")

        assert schedule.times == ["08:00:00", "08:15:00"]

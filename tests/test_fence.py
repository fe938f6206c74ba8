"""Tests for per-scope generation fencing."""

from transit_live.core.fence import Fence, Scope


def test_bump_is_monotonic():
    fence = Fence()
    tokens = [fence.bump(Scope.ROUTE) for _ in range(3)]
    assert tokens == [1, 2, 3]


def test_old_token_is_stale_after_bump():
    fence = Fence()
    token = fence.bump(Scope.TRIP)
    assert fence.is_current(Scope.TRIP, token)

    fence.bump(Scope.TRIP)
    assert not fence.is_current(Scope.TRIP, token)


def test_scopes_are_independent():
    fence = Fence()
    route_token = fence.bump(Scope.ROUTE)
    fence.bump(Scope.TRIP)
    fence.bump(Scope.VIEWPORT)

    assert fence.is_current(Scope.ROUTE, route_token)


def test_current_does_not_invalidate():
    fence = Fence()
    fence.bump(Scope.STOP)
    token = fence.current(Scope.STOP)

    assert fence.current(Scope.STOP) == token
    assert fence.is_current(Scope.STOP, token)

"""Per-scope generation counters for discarding stale async results."""

from enum import Enum


class Scope(str, Enum):
    """Cancellable scopes of the map."""

    ROUTE = "route"
    TRIP = "trip"
    VIEWPORT = "viewport"
    STOP = "stop"


class Fence:
    """Monotonic generation counter per scope.

    Usage:
        token = fence.bump(Scope.ROUTE)
        result = await fetch()
        if fence.is_current(Scope.ROUTE, token):
            apply(result)

    Network calls cannot be aborted mid-flight, so this is the only way work
    is cancelled: results carrying an old token are dropped.
    """

    def __init__(self) -> None:
        self._generations: dict[Scope, int] = {scope: 0 for scope in Scope}

    def bump(self, scope: Scope) -> int:
        """Invalidate everything issued so far for a scope and return the new token."""
        self._generations[scope] += 1
        return self._generations[scope]

    def current(self, scope: Scope) -> int:
        """Token for work issued now without invalidating anything."""
        return self._generations[scope]

    def is_current(self, scope: Scope, token: int) -> bool:
        return self._generations[scope] == token

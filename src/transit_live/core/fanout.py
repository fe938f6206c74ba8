"""Partial-failure-tolerant fan-out/join."""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from transit_live.models.transit import VehiclePosition

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def fanout_join(operations: Iterable[Awaitable[T]]) -> list[T | None]:
    """Run independent awaitables concurrently and collect their outcomes.

    Args:
        operations: Awaitables to run. Each is independent of the others.

    Returns:
        One element per operation, in input order: its value, or None if it
        raised. A failing item never aborts the rest of the batch.
    """
    operations = list(operations)
    if not operations:
        return []

    outcomes = await asyncio.gather(*operations, return_exceptions=True)

    results: list[T | None] = []
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, BaseException):
            logger.debug(f"Fan-out item {index} dropped: {outcome!r}")
            results.append(None)
        else:
            results.append(outcome)
    return results


def usable_positions(positions: Iterable[VehiclePosition | None]) -> list[VehiclePosition]:
    """Keep positions that exist and have both coordinates."""
    return [p for p in positions if p is not None and p.is_usable]

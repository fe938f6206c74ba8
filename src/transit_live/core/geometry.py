"""Geometry helpers for what the surface draws and fits its camera to."""

from collections.abc import Iterable

from transit_live.models.state import Bounds
from transit_live.models.transit import RouteGeometry, ShapePoint, TripShape, TripStop, TripStops

# Fraction of the box height/width added on every side before fitting
BOUNDS_PADDING = 0.1


def bounds_of(points: Iterable[tuple[float, float]], pad: float = BOUNDS_PADDING) -> Bounds | None:
    """Padded bounding box of (lat, lon) points, or None for no points."""
    points = list(points)
    if not points:
        return None

    lats = [lat for lat, _ in points]
    lons = [lon for _, lon in points]
    south, north = min(lats), max(lats)
    west, east = min(lons), max(lons)
    lat_pad = (north - south) * pad
    lon_pad = (east - west) * pad

    return Bounds(
        south=south - lat_pad,
        west=west - lon_pad,
        north=north + lat_pad,
        east=east + lon_pad,
    )


def sorted_shape_points(shape: TripShape) -> list[ShapePoint]:
    """Shape points in travel order. Sequences need not be contiguous."""
    return sorted(shape.points, key=lambda p: p.sequence)


def sorted_trip_stops(stops: TripStops) -> list[TripStop]:
    return sorted(stops.stops, key=lambda s: s.sequence)


def ordered_trip_shape(shape: TripShape) -> TripShape:
    """Copy of the shape with points sorted by sequence."""
    return shape.model_copy(update={"points": sorted_shape_points(shape)})


def ordered_trip_stops(stops: TripStops) -> TripStops:
    """Copy of the trip stops sorted by sequence."""
    return stops.model_copy(update={"stops": sorted_trip_stops(stops)})


def route_bounds(geometry: RouteGeometry) -> Bounds | None:
    """Bounds over every shape point of a route.

    A single point gives no meaningful box to fit, so it yields None.
    """
    points = [(p.lat, p.lon) for shape in geometry.shapes for p in shape.points]
    if len(points) < 2:
        return None
    return bounds_of(points)


def trip_bounds(shape: TripShape) -> Bounds | None:
    return bounds_of((p.lat, p.lon) for p in shape.points)

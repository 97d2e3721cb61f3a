"""
Track Geometry & Simplification
Planar distance primitives, adaptive tolerance and Ramer-Douglas-Peucker
reduction of uploaded tracks.

Units: every distance in this module except the haversine helpers is a
SQUARED planar distance in degrees (longitude as x, latitude as y). No
square root is ever taken, so an ``epsilon`` handed to
:func:`simplify_track` must be in squared-degree units as well. Use
:func:`compute_adaptive_tolerance` to obtain one instead of hand-rolling it.

The planar approximation is only sound at the scale of a single track; it
breaks down near the poles and for routes crossing the antimeridian.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

# === Data Models ===

@dataclass(frozen=True)
class TrackPoint:
    """Track point with additional metadata"""
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    sequence: int = 0
    timestamp: Optional[datetime] = None

# Tracks shorter than this are never simplified
MIN_POINTS_FOR_TOLERANCE = 10

# Base tolerance as a share of the mean squared spacing
TOLERANCE_SPACING_RATIO = 0.1

# (exclusive lower bound on point count, multiplier), checked in order
TOLERANCE_LENGTH_FACTORS: Tuple[Tuple[int, float], ...] = (
    (1000, 2.0),
    (500, 1.5),
)

# === Core Geometry Functions ===

def planar_distance_sq(a: TrackPoint, b: TrackPoint) -> float:
    """Squared planar distance between two points."""
    dx = b.longitude - a.longitude
    dy = b.latitude - a.latitude
    return dx * dx + dy * dy

def perpendicular_distance_sq(point: TrackPoint, line_start: TrackPoint, line_end: TrackPoint) -> float:
    """
    Squared distance from ``point`` to the segment ``line_start``-``line_end``.

    The projection is clamped to the segment, so points beyond either end
    measure against that endpoint. A degenerate segment measures against
    its single point.
    """
    px, py = point.longitude, point.latitude
    x1, y1 = line_start.longitude, line_start.latitude
    x2, y2 = line_end.longitude, line_end.latitude

    cx = x2 - x1
    cy = y2 - y1
    length_sq = cx * cx + cy * cy

    if length_sq == 0:
        dx = px - x1
        dy = py - y1
        return dx * dx + dy * dy

    t = ((px - x1) * cx + (py - y1) * cy) / length_sq
    t = max(0.0, min(1.0, t))

    dx = px - (x1 + t * cx)
    dy = py - (y1 + t * cy)
    return dx * dx + dy * dy

def haversine_distance(a: TrackPoint, b: TrackPoint) -> float:
    """
    Haversine distance between two GPS points in meters
    """
    R = 6371000  # Earth radius in meters

    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lon = math.radians(b.longitude - a.longitude)

    h = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return R * c

# === Simplification ===

def compute_adaptive_tolerance(points: Sequence[TrackPoint]) -> float:
    """
    Suggest a simplification epsilon from the track's own point spacing.

    Returns 0.0 (do not simplify) for tracks with fewer than
    ``MIN_POINTS_FOR_TOLERANCE`` points. Otherwise the base tolerance is
    10% of the mean squared step between consecutive points, scaled by
    2.0 above 1000 points and by 1.5 above 500 points. The result is in
    the same squared-degree unit :func:`simplify_track` expects.
    """
    if len(points) < MIN_POINTS_FOR_TOLERANCE:
        return 0.0

    total = 0.0
    for i in range(1, len(points)):
        total += planar_distance_sq(points[i - 1], points[i])

    base_tolerance = (total / (len(points) - 1)) * TOLERANCE_SPACING_RATIO

    for min_count, factor in TOLERANCE_LENGTH_FACTORS:
        if len(points) > min_count:
            return base_tolerance * factor

    return base_tolerance

def _farthest_point(points: Sequence[TrackPoint], first: int, last: int) -> Tuple[int, float]:
    # strict ">" keeps the lowest index on ties
    max_index = first
    max_distance = 0.0
    for i in range(first + 1, last):
        distance = perpendicular_distance_sq(points[i], points[first], points[last])
        if distance > max_distance:
            max_distance = distance
            max_index = i
    return max_index, max_distance

def simplify_track(points: Sequence[TrackPoint], epsilon: float) -> List[TrackPoint]:
    """
    Ramer-Douglas-Peucker simplification of an ordered track.

    ``epsilon`` is a squared planar distance (see module docstring). A point
    is kept when its squared distance to the current chord is strictly
    greater than ``epsilon``. The first and last point always survive and
    the result is a subsequence of ``points`` in the original order.

    Sequences of two or fewer points are returned unchanged. The segments
    still to be examined live on an explicit work stack, so recursion depth
    is not a concern for pathological tracks.
    """
    if len(points) <= 2:
        return list(points)

    keep = [False] * len(points)
    keep[0] = keep[-1] = True

    stack = [(0, len(points) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue

        index, max_distance = _farthest_point(points, first, last)
        if max_distance > epsilon:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))

    return [point for point, kept in zip(points, keep) if kept]

# === Helper Functions ===

def track_statistics(points: Sequence[TrackPoint]) -> Dict:
    """Length and bounding box of a track"""
    if not points:
        return {"point_count": 0, "total_distance_km": 0.0, "bounding_box": None}

    total_distance = 0.0
    for i in range(len(points) - 1):
        total_distance += haversine_distance(points[i], points[i + 1])

    return {
        "point_count": len(points),
        "total_distance_km": total_distance / 1000.0,
        "bounding_box": {
            "min_lat": min(p.latitude for p in points),
            "max_lat": max(p.latitude for p in points),
            "min_lon": min(p.longitude for p in points),
            "max_lon": max(p.longitude for p in points),
        },
    }

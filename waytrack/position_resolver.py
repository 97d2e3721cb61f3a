"""
Fallback positioning for photos without usable GPS EXIF data.

Tiers are tried in a fixed order and the first one that yields a point wins:

1. ``time_matched``: tracked location of the session closest in time to the
   photo, within +/- the time window (needs a capture timestamp)
2. ``tracked``: most recent tracked location of the session
3. ``gpx_track``: last point of the session's uploaded GPX track
4. ``last_known``: most recent tracked location of the user, any session

When every tier comes back empty the result is :class:`PositionNotFound`
(label ``manual``): the caller has to ask for manual placement. Errors
raised by the :class:`LocationQuery` are not caught here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple, Union

from .location_query import LocationQuery, as_naive_utc
from .models import PositionConfidence
from .track_geometry import TrackPoint

DEFAULT_TIME_WINDOW = timedelta(minutes=30)


@dataclass(frozen=True)
class PositionCandidate:
    latitude: float
    longitude: float
    altitude: Optional[float]
    confidence: PositionConfidence

    found = True


@dataclass(frozen=True)
class PositionNotFound:
    confidence: PositionConfidence = PositionConfidence.manual

    found = False


PositionResult = Union[PositionCandidate, PositionNotFound]


def closest_in_time(points: List[TrackPoint], moment: datetime) -> Optional[TrackPoint]:
    """Point with the smallest absolute time difference; the earliest one wins ties.

    ``points`` must be in ascending time order.
    """
    moment = as_naive_utc(moment)
    best = None
    best_diff = None
    for point in points:
        if point.timestamp is None:
            continue
        diff = abs(as_naive_utc(point.timestamp) - moment)
        if best_diff is None or diff < best_diff:
            best = point
            best_diff = diff
    return best


def resolve_position(
    session_id: str,
    photo_timestamp: Optional[datetime],
    user_id: str,
    location_query: LocationQuery,
    time_window: timedelta = DEFAULT_TIME_WINDOW,
) -> PositionResult:
    """Best-effort coordinate for a photo waypoint, labelled with the tier that produced it."""

    def time_matched() -> Optional[TrackPoint]:
        if photo_timestamp is None:
            return None
        nearby = location_query.locations_in_window(
            session_id, photo_timestamp - time_window, photo_timestamp + time_window
        )
        return closest_in_time(nearby, photo_timestamp)

    tiers: List[Tuple[PositionConfidence, Callable[[], Optional[TrackPoint]]]] = [
        (PositionConfidence.time_matched, time_matched),
        (PositionConfidence.tracked, lambda: location_query.last_location_for_session(session_id)),
        (PositionConfidence.gpx_track, lambda: location_query.last_gpx_point_for_session(session_id)),
        (PositionConfidence.last_known, lambda: location_query.last_location_for_user(user_id)),
    ]

    for confidence, lookup in tiers:
        point = lookup()
        if point is not None:
            return PositionCandidate(
                latitude=point.latitude,
                longitude=point.longitude,
                altitude=point.altitude,
                confidence=confidence,
            )

    return PositionNotFound()

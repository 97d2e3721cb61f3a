"""GPX track import for a session: parse, simplify, replace stored points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from .config import settings
from .gpx import ParsedWaypoint, parse_gpx
from .models import GPXTrackPoint, TrackingSession, Waypoint
from .storage import StorageService
from .track_geometry import TrackPoint, compute_adaptive_tolerance, simplify_track

logger = logging.getLogger("waytrack.sessions")


@dataclass
class GPXImportResult:
    session_id: str
    track_name: str
    track_description: str
    original_points: int
    stored_points: int
    waypoints: int


def simplify_for_storage(points: Sequence[TrackPoint], min_points: Optional[int] = None) -> List[TrackPoint]:
    """Simplify tracks longer than ``min_points`` with their adaptive tolerance."""
    if min_points is None:
        min_points = settings.SIMPLIFY_MIN_POINTS
    if len(points) <= min_points:
        return list(points)

    epsilon = compute_adaptive_tolerance(points)
    if epsilon <= 0:
        return list(points)
    return simplify_track(points, epsilon)


def store_track_points(
    db: Session,
    session_id: str,
    points: Sequence[TrackPoint],
    min_points: Optional[int] = None,
) -> int:
    """
    Replace the session's stored GPX track. Does not commit.

    An upload without track points keeps the previously stored track.
    """
    if not points:
        return 0

    to_store = simplify_for_storage(points, min_points)

    db.query(GPXTrackPoint).filter(GPXTrackPoint.session_id == session_id).delete(synchronize_session=False)
    db.add_all([
        GPXTrackPoint(
            session_id=session_id,
            latitude=point.latitude,
            longitude=point.longitude,
            altitude=point.altitude,
            sequence=point.sequence,
        )
        for point in to_store
    ])
    return len(to_store)


def store_gpx_waypoints(db: Session, session_id: str, waypoints: Sequence[ParsedWaypoint]) -> int:
    """Add GPX waypoints to the session. Does not commit."""
    db.add_all([
        Waypoint(
            session_id=session_id,
            name=wp.name,
            type=wp.type,
            description=wp.description,
            latitude=wp.latitude,
            longitude=wp.longitude,
            altitude=wp.altitude,
            source=wp.source,
            position_confidence=wp.position_confidence,
        )
        for wp in waypoints
    ])
    return len(waypoints)


async def import_gpx(
    db: Session,
    session: TrackingSession,
    data: bytes,
    filename: str,
    storage: Optional[StorageService] = None,
) -> GPXImportResult:
    """
    Import an uploaded GPX file into ``session``.

    The original file is kept on disk, the session's track metadata is
    updated, previously stored track points are replaced and the file's
    waypoints are added.

    Raises:
        GPXParseError: the upload is not a usable GPX document.
    """
    parsed = parse_gpx(data)

    storage = storage or StorageService()
    session.gpx_track = await storage.save(data, filename, session.id, "gpx")
    session.track_name = parsed.track_name
    session.track_description = parsed.track_description

    stored = store_track_points(db, session.id, parsed.track_points)
    waypoint_count = store_gpx_waypoints(db, session.id, parsed.waypoints)
    db.commit()

    logger.info(
        "Imported GPX for session %s: %d/%d track points stored, %d waypoints",
        session.id, stored, len(parsed.track_points), waypoint_count,
    )

    return GPXImportResult(
        session_id=session.id,
        track_name=parsed.track_name,
        track_description=parsed.track_description,
        original_points=len(parsed.track_points),
        stored_points=stored,
        waypoints=waypoint_count,
    )


def load_track_points(db: Session, session_id: str) -> List[TrackPoint]:
    rows = (
        db.query(GPXTrackPoint)
        .filter(GPXTrackPoint.session_id == session_id)
        .order_by(GPXTrackPoint.sequence.asc())
        .all()
    )
    return [
        TrackPoint(latitude=row.latitude, longitude=row.longitude, altitude=row.altitude, sequence=row.sequence)
        for row in rows
    ]

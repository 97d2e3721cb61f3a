"""Photo waypoints: EXIF position when present, fallback positioning otherwise."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .config import settings
from .exif import PhotoExif, extract_exif
from .location_query import LocationQuery, SqlLocationQuery
from .models import PositionConfidence, TrackingSession, User, Waypoint, WaypointSource
from .position_resolver import PositionCandidate, resolve_position
from .storage import StorageService

logger = logging.getLogger("waytrack.waypoints")


class ManualPlacementRequired(Exception):
    """No automatic position exists for the photo and none was supplied."""

    confidence = PositionConfidence.manual


@dataclass
class PhotoWaypointResult:
    waypoint: Waypoint
    exif: PhotoExif
    position_source: PositionConfidence


def default_photo_name(exif: PhotoExif) -> str:
    taken = exif.timestamp or datetime.now()
    return f"Photo {taken.strftime('%H:%M')}"


def locate_photo(
    exif: PhotoExif,
    session_id: str,
    user_id: str,
    location_query: LocationQuery,
    manual_latitude: Optional[float] = None,
    manual_longitude: Optional[float] = None,
) -> PositionCandidate:
    """
    Pick the photo's coordinate: EXIF GPS, then the fallback chain, then a
    caller-supplied manual position.

    Raises:
        ManualPlacementRequired: every automatic tier is empty and no manual
            position was given.
        LocationQueryError: a fallback lookup failed.
    """
    if exif.has_gps:
        return PositionCandidate(
            latitude=exif.latitude,
            longitude=exif.longitude,
            altitude=exif.altitude,
            confidence=PositionConfidence.gps,
        )

    result = resolve_position(
        session_id,
        exif.timestamp,
        user_id,
        location_query,
        time_window=timedelta(minutes=settings.TIME_MATCH_WINDOW_MINUTES),
    )
    if result.found:
        logger.info("Photo in session %s positioned via %s", session_id, result.confidence.value)
        return result

    if manual_latitude is None or manual_longitude is None:
        raise ManualPlacementRequired(
            f"no GPS data in photo and no fallback position for session {session_id}"
        )
    return PositionCandidate(
        latitude=manual_latitude,
        longitude=manual_longitude,
        altitude=None,
        confidence=PositionConfidence.manual,
    )


async def create_photo_waypoint(
    db: Session,
    session: TrackingSession,
    user: User,
    data: bytes,
    filename: str,
    name: Optional[str] = None,
    waypoint_type: Optional[str] = None,
    description: Optional[str] = None,
    manual_latitude: Optional[float] = None,
    manual_longitude: Optional[float] = None,
    storage: Optional[StorageService] = None,
    location_query: Optional[LocationQuery] = None,
) -> PhotoWaypointResult:
    exif = extract_exif(data)
    position = locate_photo(
        exif,
        session.id,
        user.id,
        location_query or SqlLocationQuery(db),
        manual_latitude=manual_latitude,
        manual_longitude=manual_longitude,
    )

    storage = storage or StorageService()
    photo_path = await storage.save(data, filename, session.id, "photos")

    waypoint = Waypoint(
        session_id=session.id,
        name=name or default_photo_name(exif),
        type=waypoint_type or "generic",
        description=description or "",
        latitude=position.latitude,
        longitude=position.longitude,
        altitude=position.altitude,
        source=WaypointSource.photo.value,
        position_confidence=position.confidence.value,
        photo=photo_path,
    )
    db.add(waypoint)
    db.commit()
    db.refresh(waypoint)

    return PhotoWaypointResult(waypoint=waypoint, exif=exif, position_source=position.confidence)

"""
Read-only location lookups used by the photo positioning fallback chain.

Implementations return ``None`` / an empty list when there is no data and
raise :class:`LocationQueryError` when the lookup itself fails. Callers rely
on that distinction, so storage errors must never be reported as "no data".
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import GPXTrackPoint, Location
from .track_geometry import TrackPoint


class LocationQueryError(Exception):
    """A location lookup failed (as opposed to finding nothing)."""


def as_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware datetimes to match."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class LocationQuery(ABC):
    @abstractmethod
    def locations_in_window(self, session_id: str, start: datetime, end: datetime) -> List[TrackPoint]:
        """Tracked locations of a session with start <= timestamp <= end, oldest first."""

    @abstractmethod
    def last_location_for_session(self, session_id: str) -> Optional[TrackPoint]:
        """Most recent tracked location of a session."""

    @abstractmethod
    def last_gpx_point_for_session(self, session_id: str) -> Optional[TrackPoint]:
        """GPX track point of a session with the highest sequence."""

    @abstractmethod
    def last_location_for_user(self, user_id: str) -> Optional[TrackPoint]:
        """Most recent tracked location of a user across all sessions."""


def _altitude(value: Optional[float]) -> Optional[float]:
    # A stored altitude of exactly 0 means the device did not report one
    return value if value else None


def _location_point(row: Location) -> TrackPoint:
    return TrackPoint(
        latitude=row.latitude,
        longitude=row.longitude,
        altitude=_altitude(row.altitude),
        timestamp=row.timestamp,
    )


def _gpx_point(row: GPXTrackPoint) -> TrackPoint:
    return TrackPoint(
        latitude=row.latitude,
        longitude=row.longitude,
        altitude=_altitude(row.altitude),
        sequence=row.sequence,
    )


class SqlLocationQuery(LocationQuery):
    """LocationQuery over the ``locations`` and ``gpx_tracks`` tables."""

    def __init__(self, db: Session):
        self.db = db

    def locations_in_window(self, session_id: str, start: datetime, end: datetime) -> List[TrackPoint]:
        try:
            rows = (
                self.db.query(Location)
                .filter(
                    Location.session_id == session_id,
                    Location.timestamp >= as_naive_utc(start),
                    Location.timestamp <= as_naive_utc(end),
                )
                .order_by(Location.timestamp.asc(), Location.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise LocationQueryError(f"time window lookup failed for session {session_id}") from exc
        return [_location_point(row) for row in rows]

    def last_location_for_session(self, session_id: str) -> Optional[TrackPoint]:
        try:
            row = (
                self.db.query(Location)
                .filter(Location.session_id == session_id)
                .order_by(Location.timestamp.desc(), Location.id.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            raise LocationQueryError(f"last location lookup failed for session {session_id}") from exc
        return _location_point(row) if row else None

    def last_gpx_point_for_session(self, session_id: str) -> Optional[TrackPoint]:
        try:
            row = (
                self.db.query(GPXTrackPoint)
                .filter(GPXTrackPoint.session_id == session_id)
                .order_by(GPXTrackPoint.sequence.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            raise LocationQueryError(f"GPX track lookup failed for session {session_id}") from exc
        return _gpx_point(row) if row else None

    def last_location_for_user(self, user_id: str) -> Optional[TrackPoint]:
        try:
            row = (
                self.db.query(Location)
                .filter(Location.user_id == user_id)
                .order_by(Location.timestamp.desc(), Location.id.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            raise LocationQueryError(f"last known location lookup failed for user {user_id}") from exc
        return _location_point(row) if row else None

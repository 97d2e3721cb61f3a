"""Location pings: the recorded positions the photo fallback chain reads."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from .models import Location, TrackingSession, User

logger = logging.getLogger("waytrack.tracking")


def session_title(name: str) -> str:
    """``"alps-2024_day_1"`` -> ``"Alps 2024 Day 1"``"""
    words = name.replace("-", " ").replace("_", " ").split()
    return " ".join(word.capitalize() for word in words) or name


def find_or_create_session(db: Session, name: str, user: User) -> TrackingSession:
    """The user's session called ``name``, created private if missing. Does not commit."""
    session = (
        db.query(TrackingSession)
        .filter(TrackingSession.user_id == user.id, TrackingSession.name == name)
        .first()
    )
    if session:
        return session

    session = TrackingSession(user_id=user.id, name=name, public=False, track_name=session_title(name))
    db.add(session)
    db.flush()
    logger.info("Created session %s (%s) for user %s", session.id, name, user.id)
    return session


def ping_time(unix_timestamp: Optional[int]) -> datetime:
    """Naive UTC time of a ping; a missing or zero timestamp means now."""
    if not unix_timestamp:
        return datetime.utcnow()
    return datetime.fromtimestamp(unix_timestamp, tz=timezone.utc).replace(tzinfo=None)


def record_location(
    db: Session,
    user: User,
    latitude: float,
    longitude: float,
    altitude: Optional[float] = None,
    unix_timestamp: Optional[int] = None,
    session_name: Optional[str] = None,
) -> Location:
    """Store one location ping, attached to the named session when given."""
    session = find_or_create_session(db, session_name, user) if session_name else None

    location = Location(
        session_id=session.id if session else None,
        user_id=user.id,
        latitude=latitude,
        longitude=longitude,
        altitude=altitude,
        timestamp=ping_time(unix_timestamp),
    )
    db.add(location)
    db.commit()
    db.refresh(location)
    return location

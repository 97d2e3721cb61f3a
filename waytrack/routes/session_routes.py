from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
import logging
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models import (
    TrackingSession, User, GPXUploadResponse, TrackDataResponse,
    TrackPointResponse, TrackStatistics
)
from ..auth import get_current_user, get_current_user_optional
from ..config import settings
from ..gpx import GPXParseError, is_valid_gpx_upload
from ..session_tracks import import_gpx, load_track_points
from ..track_geometry import track_statistics

router = APIRouter()
logger = logging.getLogger("waytrack.sessions")

def get_owned_session(db: Session, session_id: str, user: User) -> TrackingSession:
    session = db.query(TrackingSession).filter(TrackingSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot modify another user's session")
    return session

@router.post("/{session_id}/gpx", response_model=GPXUploadResponse)
async def upload_gpx_track(
    session_id: str,
    gpx_file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Upload a GPX file as the session's planned track (replaces any previous one)"""
    session = get_owned_session(db, session_id, current_user)

    if not is_valid_gpx_upload(gpx_file.filename, gpx_file.content_type):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a GPX file")

    data = await gpx_file.read()
    if len(data) > settings.MAX_GPX_SIZE:
        raise HTTPException(status_code=413, detail=f"GPX file exceeds {settings.MAX_GPX_SIZE} bytes")

    try:
        result = await import_gpx(db, session, data, gpx_file.filename)
    except GPXParseError as e:
        raise HTTPException(status_code=400, detail=f"Failed to parse GPX file: {e}")

    return GPXUploadResponse(
        session_id=result.session_id,
        track_name=result.track_name,
        track_description=result.track_description,
        track_points=result.stored_points,
        original_points=result.original_points,
        waypoints=result.waypoints,
    )

@router.get("/{session_id}/track", response_model=TrackDataResponse)
def get_track_data(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional)
):
    """Stored track points of a session, ordered by sequence"""
    session = db.query(TrackingSession).filter(TrackingSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    if not session.public and (current_user is None or current_user.id != session.user_id):
        raise HTTPException(status_code=403, detail="Access denied")

    points = load_track_points(db, session.id)

    return TrackDataResponse(
        session_id=session.id,
        track_name=session.track_name,
        track_description=session.track_description,
        track_points=[
            TrackPointResponse(
                latitude=p.latitude,
                longitude=p.longitude,
                altitude=p.altitude,
                sequence=p.sequence,
            )
            for p in points
        ],
        point_count=len(points),
        statistics=TrackStatistics(**track_statistics(points)),
    )

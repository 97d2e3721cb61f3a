from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
import logging
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models import User, PhotoWaypointResponse, WaypointResponse, ExifInfo
from ..auth import get_current_user
from ..config import settings
from ..exif import is_valid_image_upload
from ..location_query import LocationQueryError
from ..photo_waypoints import ManualPlacementRequired, create_photo_waypoint
from .session_routes import get_owned_session

router = APIRouter()
logger = logging.getLogger("waytrack.waypoints")

@router.post("/photo", response_model=PhotoWaypointResponse, status_code=status.HTTP_201_CREATED)
async def upload_photo_waypoint(
    session_id: str = Form(...),
    photo: UploadFile = File(...),
    name: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a waypoint from a photo, positioned from EXIF GPS or the fallback chain.

    ``latitude``/``longitude`` are only used when no automatic position exists.
    """
    session = get_owned_session(db, session_id, current_user)

    if not is_valid_image_upload(photo.filename, photo.content_type):
        raise HTTPException(status_code=400, detail="Invalid image format. Supported formats: JPEG, TIFF")

    data = await photo.read()
    if len(data) > settings.MAX_PHOTO_SIZE:
        raise HTTPException(status_code=413, detail=f"Photo exceeds {settings.MAX_PHOTO_SIZE} bytes")

    try:
        result = await create_photo_waypoint(
            db,
            session,
            current_user,
            data,
            photo.filename,
            name=name,
            waypoint_type=type,
            description=description,
            manual_latitude=latitude,
            manual_longitude=longitude,
        )
    except ManualPlacementRequired as e:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "No GPS data in photo and no fallback position available; place the waypoint manually",
                "reason": str(e),
                "position_confidence": e.confidence.value,
            },
        )
    except LocationQueryError:
        logger.exception("upload_photo_waypoint: fallback positioning failed for session_id=%s", session_id)
        raise HTTPException(status_code=503, detail="Fallback positioning is temporarily unavailable")

    return PhotoWaypointResponse(
        waypoint=WaypointResponse.model_validate(result.waypoint),
        exif_info=ExifInfo(
            has_gps=result.exif.has_gps,
            has_timestamp=result.exif.timestamp is not None,
            camera_make=result.exif.make,
            camera_model=result.exif.model,
            position_source=result.position_source.value,
        ),
    )

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models import User, LocationResponse
from ..auth import get_current_user
from ..gpx import is_valid_coordinate
from ..tracking import record_location

router = APIRouter()

# === Request Models ===

class PingGeometry(BaseModel):
    type: str = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=3)  # [lon, lat, alt?]

class PingProperties(BaseModel):
    timestamp: int = 0  # unix seconds, 0 means now
    session: Optional[str] = None

class LocationPing(BaseModel):
    type: str = "Feature"
    geometry: PingGeometry
    properties: PingProperties = Field(default_factory=PingProperties)

@router.post("", response_model=LocationResponse)
def track_location(
    ping: LocationPing,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Record a GeoJSON location ping, creating the named session on first use"""
    longitude, latitude = ping.geometry.coordinates[:2]
    altitude = ping.geometry.coordinates[2] if len(ping.geometry.coordinates) > 2 else None

    if not is_valid_coordinate(latitude, longitude):
        raise HTTPException(status_code=400, detail="Invalid coordinates")

    session_name = (ping.properties.session or "").strip() or None
    return record_location(
        db,
        current_user,
        latitude=latitude,
        longitude=longitude,
        altitude=altitude,
        unix_timestamp=ping.properties.timestamp,
        session_name=session_name,
    )

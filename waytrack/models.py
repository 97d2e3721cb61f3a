from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
from enum import Enum
from pydantic import BaseModel
from typing import Optional, List, Dict
import uuid

Base = declarative_base()

def _new_id() -> str:
    return uuid.uuid4().hex

# Database Models
class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True)
    display_name = Column(String)
    api_key = Column(String, unique=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_active_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    sessions = relationship("TrackingSession", back_populates="user")

class TrackingSession(Base):
    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id"), index=True)
    user = relationship("User", back_populates="sessions")
    name = Column(String)
    public = Column(Boolean, default=False)

    # Uploaded GPX file (stored relative to the upload dir) and its metadata
    gpx_track = Column(String, nullable=True)
    track_name = Column(String, nullable=True)
    track_description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Location(Base):
    """A tracked position ping. Carries the user so last-known lookups can span sessions."""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("sessions.id"), index=True)
    user_id = Column(String, ForeignKey("users.id"), index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=True)
    timestamp = Column(DateTime, nullable=False, index=True)  # naive UTC

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_locations_session_timestamp", "session_id", "timestamp"),
        Index("idx_locations_user_timestamp", "user_id", "timestamp"),
    )

class GPXTrackPoint(Base):
    """One stored point of a session's uploaded (and possibly simplified) GPX track."""
    __tablename__ = "gpx_tracks"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("sessions.id"), index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=True)
    sequence = Column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_gpx_tracks_session_sequence", "session_id", "sequence"),
    )

class Waypoint(Base):
    __tablename__ = "waypoints"

    id = Column(String, primary_key=True, default=_new_id)
    session_id = Column(String, ForeignKey("sessions.id"), index=True)

    name = Column(String)
    type = Column(String, default="generic")
    description = Column(Text, default="")

    # Location data
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=True)

    # Provenance
    source = Column(String)  # gpx, photo, manual
    position_confidence = Column(String)  # gps, time_matched, tracked, gpx_track, last_known, manual
    photo = Column(String, nullable=True)  # path relative to the upload dir

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

# Enums shared by the database layer and the positioning core
class PositionConfidence(str, Enum):
    gps = "gps"
    time_matched = "time_matched"
    tracked = "tracked"
    gpx_track = "gpx_track"
    last_known = "last_known"
    manual = "manual"

class WaypointSource(str, Enum):
    gpx = "gpx"
    photo = "photo"
    manual = "manual"

# Response Models
class WaypointResponse(BaseModel):
    id: str
    session_id: str
    name: str
    type: str
    description: Optional[str] = None
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    source: str
    position_confidence: str
    photo: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class LocationResponse(BaseModel):
    id: int
    session_id: Optional[str] = None
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    timestamp: datetime

    class Config:
        from_attributes = True

class ExifInfo(BaseModel):
    has_gps: bool
    has_timestamp: bool
    camera_make: str = ""
    camera_model: str = ""
    position_source: str

class PhotoWaypointResponse(BaseModel):
    waypoint: WaypointResponse
    exif_info: ExifInfo

class GPXUploadResponse(BaseModel):
    session_id: str
    track_name: str
    track_description: str
    track_points: int
    original_points: int
    waypoints: int

class TrackPointResponse(BaseModel):
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    sequence: int

class TrackStatistics(BaseModel):
    point_count: int
    total_distance_km: float
    bounding_box: Optional[Dict[str, float]] = None

class TrackDataResponse(BaseModel):
    session_id: str
    track_name: Optional[str] = None
    track_description: Optional[str] = None
    track_points: List[TrackPointResponse]
    point_count: int
    statistics: TrackStatistics

import io
import os
from datetime import datetime

# Must be set before the app modules read their settings
os.environ.setdefault("WAYTRACK_DATABASE_URL", "sqlite://")
os.environ.setdefault("WAYTRACK_API_KEY", "test-master-key")

import piexif
import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from waytrack.config import settings
from waytrack.database import get_db
from waytrack.models import Base, GPXTrackPoint, Location, TrackingSession, User


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def user(db):
    user = User(email="rider@example.com", display_name="Rider", api_key="rider-key")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db):
    user = User(email="other@example.com", display_name="Other", api_key="other-key")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def tracking_session(db, user):
    session = TrackingSession(user_id=user.id, name="alps-2024")
    db.add(session)
    db.commit()
    return session


@pytest.fixture
def add_location(db):
    def _add(session, timestamp: datetime, lat: float, lon: float, altitude=None):
        location = Location(
            session_id=session.id,
            user_id=session.user_id,
            latitude=lat,
            longitude=lon,
            altitude=altitude,
            timestamp=timestamp,
        )
        db.add(location)
        db.commit()
        return location
    return _add


@pytest.fixture
def add_gpx_point(db):
    def _add(session, sequence: int, lat: float, lon: float, altitude=None):
        point = GPXTrackPoint(
            session_id=session.id,
            latitude=lat,
            longitude=lon,
            altitude=altitude,
            sequence=sequence,
        )
        db.add(point)
        db.commit()
        return point
    return _add


@pytest.fixture
def make_jpeg():
    """JPEG bytes, optionally carrying the given piexif dict."""
    def _make(exif_dict=None) -> bytes:
        buf = io.BytesIO()
        image = Image.new("RGB", (8, 8), "white")
        if exif_dict is None:
            image.save(buf, "JPEG")
        else:
            image.save(buf, "JPEG", exif=piexif.dump(exif_dict))
        return buf.getvalue()
    return _make


@pytest.fixture
def client(db):
    from main import app

    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

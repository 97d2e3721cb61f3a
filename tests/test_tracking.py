from datetime import datetime, timedelta

from waytrack.models import Location, TrackingSession
from waytrack.tracking import find_or_create_session, ping_time, record_location, session_title


def test_session_title():
    assert session_title("alps-2024_day_1") == "Alps 2024 Day 1"


def test_find_or_create_session_reuses_existing(db, user, tracking_session):
    assert find_or_create_session(db, "alps-2024", user).id == tracking_session.id


def test_find_or_create_session_is_per_user(db, user, other_user, tracking_session):
    session = find_or_create_session(db, "alps-2024", other_user)
    db.commit()

    assert session.id != tracking_session.id
    assert session.user_id == other_user.id
    assert session.public is False


def test_ping_time():
    assert ping_time(1717236900) == datetime(2024, 6, 1, 10, 15)
    assert datetime.utcnow() - ping_time(0) < timedelta(minutes=1)
    assert datetime.utcnow() - ping_time(None) < timedelta(minutes=1)


def test_record_location_creates_named_session(db, user):
    location = record_location(db, user, 47.1, 11.1, altitude=900.0, unix_timestamp=1717236900, session_name="new-ride")

    session = db.query(TrackingSession).filter(TrackingSession.name == "new-ride").one()
    assert location.session_id == session.id
    assert session.track_name == "New Ride"
    assert (location.latitude, location.longitude, location.altitude) == (47.1, 11.1, 900.0)
    assert location.timestamp == datetime(2024, 6, 1, 10, 15)

    record_location(db, user, 47.2, 11.2, session_name="new-ride")
    assert db.query(TrackingSession).filter(TrackingSession.name == "new-ride").count() == 1
    assert db.query(Location).filter(Location.session_id == session.id).count() == 2


def test_record_location_without_session(db, user):
    location = record_location(db, user, 47.1, 11.1)
    assert location.session_id is None
    assert location.user_id == user.id

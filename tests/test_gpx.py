import pytest

from waytrack.gpx import (
    DEFAULT_TRACK_NAME,
    GPXParseError,
    is_valid_coordinate,
    is_valid_gpx_upload,
    map_waypoint_type,
    parse_gpx,
)

SAMPLE_GPX = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="waytrack-tests" xmlns="http://www.topografix.com/GPX/1/1">
  <metadata>
    <name>  Lake Loop  </name>
    <desc>Morning ride around the lake</desc>
  </metadata>
  <wpt lat="47.10" lon="11.20">
    <ele>1450</ele>
    <name>Alm Hut</name>
    <type>Hut</type>
  </wpt>
  <wpt lat="47.20" lon="11.30">
    <sym>Summit</sym>
  </wpt>
  <wpt lat="0" lon="0">
    <name>Null Island</name>
  </wpt>
  <wpt lat="47.30" lon="11.40">
    <ele>0</ele>
  </wpt>
  <trk>
    <name>Track name</name>
    <trkseg>
      <trkpt lat="47.000" lon="11.000"><ele>500</ele><time>2024-06-01T08:00:00Z</time></trkpt>
      <trkpt lat="47.001" lon="11.001"><ele>0</ele></trkpt>
      <trkpt lat="95.000" lon="11.002"></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="47.002" lon="11.002"></trkpt>
    </trkseg>
  </trk>
  <trk>
    <trkseg>
      <trkpt lat="47.003" lon="0"></trkpt>
      <trkpt lat="47.004" lon="11.004"></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


def test_parse_metadata():
    parsed = parse_gpx(SAMPLE_GPX.encode("utf-8"))
    assert parsed.track_name == "Lake Loop"
    assert parsed.track_description == "Morning ride around the lake"


def test_track_points_are_sequenced_across_tracks_and_segments():
    parsed = parse_gpx(SAMPLE_GPX)
    points = parsed.track_points

    assert [p.latitude for p in points] == [47.000, 47.001, 47.002, 47.004]
    assert [p.sequence for p in points] == [0, 1, 2, 3]
    assert points[0].altitude == 500.0
    assert points[0].timestamp is not None
    # zero elevation means "no elevation"
    assert points[1].altitude is None


def test_waypoints():
    parsed = parse_gpx(SAMPLE_GPX)
    hut, summit, unnamed = parsed.waypoints

    assert (hut.name, hut.type, hut.altitude) == ("Alm Hut", "shelter", 1450.0)
    assert (summit.name, summit.type) == ("Waypoint (Summit)", "viewpoint")
    assert (unnamed.name, unnamed.type, unnamed.altitude) == ("Unnamed Waypoint", "generic", None)
    assert all(wp.source == "gpx" and wp.position_confidence == "gps" for wp in parsed.waypoints)


def test_track_name_falls_back_to_first_track_then_default():
    with_track_name = """<gpx version="1.1" creator="t" xmlns="http://www.topografix.com/GPX/1/1">
      <trk><name>Ridge</name><desc>Up and over</desc><trkseg>
        <trkpt lat="47.0" lon="11.0"></trkpt>
      </trkseg></trk>
    </gpx>"""
    parsed = parse_gpx(with_track_name)
    assert (parsed.track_name, parsed.track_description) == ("Ridge", "Up and over")

    bare = '<gpx version="1.1" creator="t" xmlns="http://www.topografix.com/GPX/1/1"></gpx>'
    parsed = parse_gpx(bare)
    assert (parsed.track_name, parsed.track_description) == (DEFAULT_TRACK_NAME, "")
    assert parsed.track_points == []
    assert parsed.waypoints == []


def test_malformed_xml_raises():
    with pytest.raises(GPXParseError):
        parse_gpx(b"<gpx version='1.1'><trk><trkseg>")


def test_undecodable_bytes_raise():
    with pytest.raises(GPXParseError):
        parse_gpx(b"\xff\xfe\xfa not utf-8")


@pytest.mark.parametrize(
    "gpx_type, symbol, expected",
    [
        ("Restaurant", None, "food"),
        (" spring ", None, "water"),
        (None, "Campground", "camping"),
        ("unknown", "Trailhead", "parking"),
        ("Gas_Station", "", "fuel"),
        ("", "", "generic"),
        (None, None, "generic"),
    ],
)
def test_map_waypoint_type(gpx_type, symbol, expected):
    assert map_waypoint_type(gpx_type, symbol) == expected


@pytest.mark.parametrize(
    "lat, lon, valid",
    [
        (47.0, 11.0, True),
        (-90.0, 180.0, True),
        (90.1, 11.0, False),
        (47.0, -180.5, False),
        (0.0, 11.0, False),
        (47.0, 0.0, False),
    ],
)
def test_is_valid_coordinate(lat, lon, valid):
    assert is_valid_coordinate(lat, lon) is valid


@pytest.mark.parametrize(
    "filename, content_type, valid",
    [
        ("ride.gpx", "application/gpx+xml", True),
        ("RIDE.GPX", "application/octet-stream", True),
        ("ride.gpx", "text/xml", True),
        ("ride.xml", "application/xml", False),
        ("ride.gpx", "image/jpeg", False),
        ("", "application/gpx+xml", False),
    ],
)
def test_is_valid_gpx_upload(filename, content_type, valid):
    assert is_valid_gpx_upload(filename, content_type) is valid


def test_missing_version_raises():
    with pytest.raises(GPXParseError):
        parse_gpx(b'<gpx creator="x"><trk><trkseg><trkpt lat="47.0" lon="11.0"/></trkseg></trk></gpx>')


def test_foreign_root_element_raises():
    with pytest.raises(GPXParseError, match="expected <gpx>"):
        parse_gpx(b'<kml version="2.2"><Document/></kml>')


def test_namespaced_gpx_root_is_accepted():
    parsed = parse_gpx(b'<gpx xmlns="http://www.topografix.com/GPX/1/0" version="1.0"></gpx>')
    assert parsed.track_points == []

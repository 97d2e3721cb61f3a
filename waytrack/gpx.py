"""GPX upload parsing: track points for simplification, waypoints for import."""

from dataclasses import dataclass, field
from typing import List, Optional, Union
from xml.etree import ElementTree

import gpxpy
import gpxpy.gpx

from .models import PositionConfidence, WaypointSource
from .track_geometry import TrackPoint

DEFAULT_TRACK_NAME = "Imported Track"

VALID_GPX_CONTENT_TYPES = (
    "application/gpx+xml",
    "application/xml",
    "text/xml",
    "application/octet-stream",  # some browsers send this
)

# GPX <type> values and Garmin <sym> names mapped to waypoint types
WAYPOINT_TYPE_MAP = {
    # Food related
    "restaurant": "food",
    "food": "food",
    "cafe": "food",
    "bar": "food",
    # Water related
    "water": "water",
    "fountain": "water",
    "spring": "water",
    # Shelter related
    "lodging": "shelter",
    "hotel": "shelter",
    "camping": "camping",
    "campground": "camping",
    "hut": "shelter",
    # Transportation
    "parking": "parking",
    "trailhead": "parking",
    "airport": "transition",
    "bus_stop": "transition",
    # Points of interest
    "summit": "viewpoint",
    "peak": "viewpoint",
    "viewpoint": "viewpoint",
    # Safety
    "danger": "danger",
    "warning": "danger",
    "hospital": "medical",
    "medical": "medical",
    # Fuel
    "gas": "fuel",
    "fuel": "fuel",
    "gas_station": "fuel",
}


class GPXParseError(ValueError):
    """The uploaded document is not a usable GPX file."""


@dataclass
class ParsedWaypoint:
    name: str
    type: str
    description: str
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    source: str = WaypointSource.gpx.value
    position_confidence: str = PositionConfidence.gps.value


@dataclass
class ParsedGPX:
    track_name: str
    track_description: str
    track_points: List[TrackPoint] = field(default_factory=list)
    waypoints: List[ParsedWaypoint] = field(default_factory=list)


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """In range and not on either zero axis (null island exports)."""
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0 and lat != 0.0 and lon != 0.0


def is_valid_gpx_upload(filename: str, content_type: Optional[str]) -> bool:
    if not filename or not filename.lower().endswith(".gpx"):
        return False
    return content_type in VALID_GPX_CONTENT_TYPES


def _altitude(elevation: Optional[float]) -> Optional[float]:
    # 0 is what most exporters write when they have no elevation
    if elevation is None or elevation == 0:
        return None
    return elevation


def _first_text(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def map_waypoint_type(gpx_type: Optional[str], symbol: Optional[str]) -> str:
    gpx_type = (gpx_type or "").strip().lower()
    symbol = (symbol or "").strip().lower()
    return WAYPOINT_TYPE_MAP.get(gpx_type) or WAYPOINT_TYPE_MAP.get(symbol) or "generic"


def waypoint_name(wpt: gpxpy.gpx.GPXWaypoint) -> str:
    name = (wpt.name or "").strip()
    if name:
        return name
    if wpt.type:
        return f"Waypoint ({wpt.type})"
    if wpt.symbol:
        return f"Waypoint ({wpt.symbol})"
    return "Unnamed Waypoint"


def extract_track_points(gpx: gpxpy.gpx.GPX) -> List[TrackPoint]:
    """All valid points of all tracks and segments, numbered in document order."""
    points = []
    sequence = 0
    for track in gpx.tracks:
        for segment in track.segments:
            for point in segment.points:
                if not is_valid_coordinate(point.latitude, point.longitude):
                    continue
                points.append(TrackPoint(
                    latitude=point.latitude,
                    longitude=point.longitude,
                    altitude=_altitude(point.elevation),
                    sequence=sequence,
                    timestamp=point.time,
                ))
                sequence += 1
    return points


def extract_waypoints(gpx: gpxpy.gpx.GPX) -> List[ParsedWaypoint]:
    waypoints = []
    for wpt in gpx.waypoints:
        if not is_valid_coordinate(wpt.latitude, wpt.longitude):
            continue
        waypoints.append(ParsedWaypoint(
            name=waypoint_name(wpt),
            type=map_waypoint_type(wpt.type, wpt.symbol),
            description=(wpt.description or "").strip(),
            latitude=wpt.latitude,
            longitude=wpt.longitude,
            altitude=_altitude(wpt.elevation),
        ))
    return waypoints


def _root_tag(document: str) -> str:
    """Local name of the document root, namespace stripped."""
    try:
        root = ElementTree.fromstring(document)
    except ElementTree.ParseError as exc:
        raise GPXParseError(f"failed to parse GPX XML: {exc}") from exc
    return root.tag.rsplit("}", 1)[-1]


def parse_gpx(data: Union[bytes, str]) -> ParsedGPX:
    """
    Parse an uploaded GPX document.

    Raises:
        GPXParseError: undecodable bytes, malformed XML, a root element
            other than <gpx> or a missing version.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise GPXParseError("GPX file is not valid UTF-8") from exc

    root_tag = _root_tag(data)
    if root_tag != "gpx":
        raise GPXParseError(f"invalid GPX file: root element is <{root_tag}>, expected <gpx>")

    try:
        gpx = gpxpy.parse(data)
    except gpxpy.gpx.GPXException as exc:
        raise GPXParseError(f"failed to parse GPX XML: {exc}") from exc

    if not gpx.version:
        raise GPXParseError("invalid GPX file: missing version")

    first_track = gpx.tracks[0] if gpx.tracks else None
    track_name = _first_text(gpx.name, first_track.name if first_track else None) or DEFAULT_TRACK_NAME
    track_description = _first_text(gpx.description, first_track.description if first_track else None)

    return ParsedGPX(
        track_name=track_name,
        track_description=track_description,
        track_points=extract_track_points(gpx),
        waypoints=extract_waypoints(gpx),
    )

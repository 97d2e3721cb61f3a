"""Photo EXIF extraction focused on GPS position and capture time."""

import logging
import struct
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import piexif

logger = logging.getLogger("waytrack.exif")

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

VALID_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".tif", ".tiff")
VALID_IMAGE_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/tiff")
IMAGE_MAGIC_NUMBERS = (b"\xff\xd8", b"II*\x00", b"MM\x00*")


@dataclass
class PhotoExif:
    has_gps: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    timestamp: Optional[datetime] = None
    make: str = ""
    model: str = ""
    orientation: int = 1


def is_valid_image_upload(filename: str, content_type: Optional[str]) -> bool:
    """JPEG and TIFF only; those are the formats that carry EXIF GPS tags."""
    if not filename or Path(filename).suffix.lower() not in VALID_IMAGE_EXTENSIONS:
        return False
    return content_type in VALID_IMAGE_CONTENT_TYPES


def _rational(value) -> Optional[float]:
    try:
        numerator, denominator = value
    except (TypeError, ValueError):
        return None
    if denominator == 0:
        return None
    return numerator / denominator


def _dms_to_degrees(dms) -> Optional[float]:
    """(degrees, minutes, seconds) rationals to decimal degrees"""
    if not dms or len(dms) != 3:
        return None
    parts = [_rational(part) for part in dms]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    return degrees + minutes / 60.0 + seconds / 3600.0


def _text(value) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return (value or "").strip("\x00 ").strip()


def _gps_coordinates(gps: dict) -> Tuple[Optional[float], Optional[float]]:
    lat = _dms_to_degrees(gps.get(piexif.GPSIFD.GPSLatitude))
    lon = _dms_to_degrees(gps.get(piexif.GPSIFD.GPSLongitude))
    lat_ref = _text(gps.get(piexif.GPSIFD.GPSLatitudeRef)).upper()
    lon_ref = _text(gps.get(piexif.GPSIFD.GPSLongitudeRef)).upper()
    if lat is None or lon is None or not lat_ref or not lon_ref:
        return None, None

    if lat_ref == "S":
        lat = -lat
    if lon_ref == "W":
        lon = -lon

    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        logger.warning("Ignoring out-of-range EXIF GPS position lat=%s lon=%s", lat, lon)
        return None, None
    return lat, lon


def _gps_altitude(gps: dict) -> Optional[float]:
    altitude = _rational(gps.get(piexif.GPSIFD.GPSAltitude))
    if altitude is None:
        return None
    # Reference 1 means below sea level; absent means above
    if gps.get(piexif.GPSIFD.GPSAltitudeRef) == 1:
        altitude = -altitude
    return altitude


def _capture_time(exif_dict: dict) -> Optional[datetime]:
    candidates = (
        exif_dict.get("Exif", {}).get(piexif.ExifIFD.DateTimeOriginal),
        exif_dict.get("Exif", {}).get(piexif.ExifIFD.DateTimeDigitized),
        exif_dict.get("0th", {}).get(piexif.ImageIFD.DateTime),
    )
    for raw in candidates:
        text = _text(raw)
        if not text:
            continue
        try:
            return datetime.strptime(text, EXIF_DATETIME_FORMAT)
        except ValueError:
            continue
    return None


def extract_exif(data: bytes) -> PhotoExif:
    """
    Read GPS position, altitude, capture time and camera info from a photo.

    Photos without EXIF, or with EXIF piexif cannot read, give an empty
    :class:`PhotoExif` rather than an error.
    """
    # piexif treats anything it does not recognise as a file path
    if not data.startswith(IMAGE_MAGIC_NUMBERS):
        logger.warning("Photo is neither JPEG nor TIFF, skipping EXIF")
        return PhotoExif()

    try:
        exif_dict = piexif.load(data)
    except (piexif.InvalidImageDataError, ValueError, struct.error) as exc:
        logger.warning("Could not read EXIF data: %s", exc)
        return PhotoExif()

    gps = exif_dict.get("GPS") or {}
    zeroth = exif_dict.get("0th") or {}

    result = PhotoExif(
        altitude=_gps_altitude(gps),
        timestamp=_capture_time(exif_dict),
        make=_text(zeroth.get(piexif.ImageIFD.Make)),
        model=_text(zeroth.get(piexif.ImageIFD.Model)),
        orientation=zeroth.get(piexif.ImageIFD.Orientation) or 1,
    )

    lat, lon = _gps_coordinates(gps)
    if lat is not None and lon is not None:
        result.has_gps = True
        result.latitude = lat
        result.longitude = lon

    return result

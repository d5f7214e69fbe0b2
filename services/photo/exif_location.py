"""Embed GPS coordinates into a photo's EXIF block.

Uses Pillow to rewrite the EXIF GPS IFD:
- latitude/longitude as degrees, minutes, seconds rationals (seconds kept
  to 1/1000) with N/S and E/W reference flags,
- altitude (1/100 m) with its above/below sea level reference when known,
- horizontal accuracy as GPSHPositioningError (1/100 m) when known.

Only JPEG images carry EXIF here; anything else is returned untouched.
The work is CPU-bound, so async callers should run it in a thread.
"""

from __future__ import annotations

import io
import logging
from typing import Optional, Tuple

from PIL import ExifTags, Image
from PIL.TiffImagePlugin import IFDRational

from models.location_models import LocationSnapshot

LOGGER = logging.getLogger(__name__)

JPEG_MIME_MARKERS = ("jpeg", "jpg")


def is_jpeg_mime(mime_type: Optional[str]) -> bool:
    normalized = (mime_type or "").lower()
    return any(marker in normalized for marker in JPEG_MIME_MARKERS)


def degrees_to_dms_rational(value: float) -> Tuple[IFDRational, IFDRational, IFDRational]:
    """Convert non-negative decimal degrees to EXIF (degrees, minutes, seconds) rationals."""
    degrees = int(value)
    minutes_float = (value - degrees) * 60
    minutes = int(minutes_float)
    seconds = (minutes_float - minutes) * 60
    return (
        IFDRational(degrees, 1),
        IFDRational(minutes, 1),
        IFDRational(int(round(seconds * 1000)), 1000),
    )


def dms_to_degrees(dms, ref: str) -> float:
    """Inverse of `degrees_to_dms_rational`, applying the hemisphere reference."""
    degrees, minutes, seconds = (float(part) for part in dms)
    value = degrees + minutes / 60.0 + seconds / 3600.0
    return -value if ref in ("S", "W") else value


def build_gps_ifd(location: LocationSnapshot) -> dict:
    gps = {
        ExifTags.GPS.GPSLatitudeRef: "N" if location.latitude >= 0 else "S",
        ExifTags.GPS.GPSLatitude: degrees_to_dms_rational(abs(location.latitude)),
        ExifTags.GPS.GPSLongitudeRef: "E" if location.longitude >= 0 else "W",
        ExifTags.GPS.GPSLongitude: degrees_to_dms_rational(abs(location.longitude)),
    }
    if location.altitude is not None:
        gps[ExifTags.GPS.GPSAltitudeRef] = b"\x01" if location.altitude < 0 else b"\x00"
        gps[ExifTags.GPS.GPSAltitude] = IFDRational(int(round(abs(location.altitude) * 100)), 100)
    if location.accuracy is not None:
        gps[ExifTags.GPS.GPSHPositioningError] = IFDRational(int(round(abs(location.accuracy) * 100)), 100)
    return gps


def annotate_with_location(image_bytes: bytes, mime_type: str, location: LocationSnapshot) -> Optional[bytes]:
    """Return the image with GPS EXIF data embedded.

    Args:
        image_bytes: Raw image bytes as captured.
        mime_type: MIME type reported by the camera.
        location: Location to embed.

    Returns:
        Updated bytes for JPEG images, the input bytes unchanged for other
        formats, or None when the EXIF block could not be written (callers
        then fall back to the unannotated image).
    """
    if not is_jpeg_mime(mime_type):
        LOGGER.info("Skipping GPS embedding for non-JPEG mime type: %s", mime_type)
        return image_bytes

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            exif = img.getexif()
            exif[ExifTags.IFD.GPSInfo] = build_gps_ifd(location)
            out = io.BytesIO()
            save_kwargs = {"format": "JPEG", "exif": exif.tobytes()}
            if img.format == "JPEG":
                save_kwargs["quality"] = "keep"
            img.save(out, **save_kwargs)
    except Exception as exc:
        LOGGER.error("Failed to embed GPS metadata: %s", exc)
        return None

    LOGGER.info(
        "Embedded GPS into photo: lat=%s, lon=%s, accuracy=%s",
        location.latitude,
        location.longitude,
        location.accuracy,
    )
    return out.getvalue()


def read_gps_coordinates(image_bytes: bytes) -> Optional[Tuple[float, float]]:
    """Read back (latitude, longitude) from a JPEG's GPS EXIF block, if any."""
    with Image.open(io.BytesIO(image_bytes)) as img:
        gps = img.getexif().get_ifd(ExifTags.IFD.GPSInfo)
    if not gps or ExifTags.GPS.GPSLatitude not in gps or ExifTags.GPS.GPSLongitude not in gps:
        return None
    latitude = dms_to_degrees(gps[ExifTags.GPS.GPSLatitude], gps.get(ExifTags.GPS.GPSLatitudeRef, "N"))
    longitude = dms_to_degrees(gps[ExifTags.GPS.GPSLongitude], gps.get(ExifTags.GPS.GPSLongitudeRef, "E"))
    return latitude, longitude

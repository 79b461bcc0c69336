"""
Coordinate parsing and validation.

Raw latitude/longitude text comes straight from the upload form, so anything
may arrive here. Invalid input yields None, never an exception.
"""

import logging
import math

from .models import Coordinate

logger = logging.getLogger(__name__)

# Decimal places kept on validated coordinates
PRECISION = 5


def _parse(raw: str | None) -> float | None:
    """Parse one coordinate component, or None if it is not a finite number."""
    text = (raw or "").strip()
    # float() also accepts digit-group underscores ("4_5")
    if not text or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def validate(raw_lat: str | None, raw_lon: str | None) -> Coordinate | None:
    """
    Validate raw latitude/longitude strings.

    Args:
        raw_lat: Latitude text as entered
        raw_lon: Longitude text as entered

    Returns:
        Coordinate rounded to 5 decimal places, or None when either value is
        missing, not a number, or out of range.
    """
    lat = _parse(raw_lat)
    lon = _parse(raw_lon)

    if lat is None or lon is None:
        logger.debug(f"Invalid lat/lon: {raw_lat!r}, {raw_lon!r}")
        return None

    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        logger.debug(f"Lat/lon out of range: {lat}, {lon}")
        return None

    return Coordinate(lat=round(lat, PRECISION), lon=round(lon, PRECISION))

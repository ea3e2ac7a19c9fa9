"""
SmartCampus - Geospatial Utilities
Coordinate types and validation helpers.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Any


@dataclass(frozen=True)
class Coordinates:
    """
    Device coordinates. Either value may be None when no fix was obtained.
    """
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def is_captured(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_tuple(self) -> Tuple[Optional[float], Optional[float]]:
        return (self.latitude, self.longitude)

    @classmethod
    def unavailable(cls) -> "Coordinates":
        return cls(None, None)


def is_valid_coordinate(latitude: Any, longitude: Any) -> bool:
    """
    Check that a latitude/longitude pair is finite and within range.

    Args:
        latitude: Latitude in degrees (-90 to 90)
        longitude: Longitude in degrees (-180 to 180)

    Returns:
        True if both values are usable floats
    """
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return False
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False

    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def has_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """True when both values are present and valid (used to filter map points)."""
    if latitude is None or longitude is None:
        return False
    return is_valid_coordinate(latitude, longitude)

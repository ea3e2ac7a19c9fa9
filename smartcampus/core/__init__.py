"""
SmartCampus - Core Utilities
Central configuration, logging, and shared types.
"""

from smartcampus.core.config import settings
from smartcampus.core.constants import (
    CATEGORIES,
    WIZARD_STEPS,
    CAMPUS_CENTER,
)
from smartcampus.core.geo_utils import (
    Coordinates,
    is_valid_coordinate,
    has_coordinates,
)

__all__ = [
    "settings",
    "CATEGORIES",
    "WIZARD_STEPS",
    "CAMPUS_CENTER",
    "Coordinates",
    "is_valid_coordinate",
    "has_coordinates",
]

"""Location resolution: permission, coordinate fixes and place names."""

from .backends import LocationBackend, NominatimGeocoder, StaticLocationBackend
from .models import (
    PLACE_DENIED,
    PLACE_LOCATING,
    PLACE_UNKNOWN_CITY,
    PLACE_UNKNOWN_LOCATION,
    AuthorizationState,
    LocationUpdate,
)
from .resolver import LocationResolver

__all__ = [
    "PLACE_DENIED",
    "PLACE_LOCATING",
    "PLACE_UNKNOWN_CITY",
    "PLACE_UNKNOWN_LOCATION",
    "AuthorizationState",
    "LocationBackend",
    "LocationResolver",
    "LocationUpdate",
    "NominatimGeocoder",
    "StaticLocationBackend",
]

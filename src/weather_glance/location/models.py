"""Typed models for location authorization, fixes and subscriber updates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..weather.models import Coordinates

AuthorizationState = Literal["not_determined", "granted", "denied"]
UpdateKind = Literal["authorization", "coordinates", "place_name"]

PLACE_LOCATING = "Locating..."
PLACE_UNKNOWN_CITY = "Unknown City"
PLACE_UNKNOWN_LOCATION = "Unknown Location"
PLACE_DENIED = "Location Denied"


@dataclass(frozen=True, slots=True)
class LocationUpdate:
    """One change to the resolver's observable state.

    ``sequence`` is the fix sequence number the update belongs to; it is 0
    for updates that precede any fix (authorization, denial).
    """

    kind: UpdateKind
    sequence: int
    authorization_state: AuthorizationState | None = None
    coordinates: Coordinates | None = None
    place_name: str | None = None

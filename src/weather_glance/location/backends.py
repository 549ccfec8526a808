"""Location backends: the platform seam plus configured and HTTP-backed implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..exceptions import LocationUnavailableError
from ..redaction import sanitize_text
from ..weather.models import Coordinates

_LOCALITY_KEYS = ("city", "town", "village", "hamlet", "municipality")


class LocationBackend(ABC):
    """Platform location services used by the resolver."""

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Ask for permission to read the location; True when granted."""

    @abstractmethod
    async def request_fix(self) -> Coordinates:
        """Return one coordinate fix or raise LocationUnavailableError."""

    @abstractmethod
    async def reverse_geocode(self, coordinates: Coordinates) -> str | None:
        """Return the locality for a fix, or None when there is none."""


class NominatimGeocoder:
    """Reverse lookup through the OpenStreetMap Nominatim API."""

    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str,
        timeout: float = 5.0,
        logger: logging.Logger | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.reverse_url = f"{base_url.rstrip('/')}/reverse"
        self.logger = logger or logging.getLogger(__name__)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def locality(self, coordinates: Coordinates) -> str | None:
        """Return the best locality name for a coordinate, or None.

        Raises httpx errors on transport failure; callers decide how to
        present them.
        """
        response = await self._client.get(
            self.reverse_url,
            params={
                "lat": str(coordinates.latitude),
                "lon": str(coordinates.longitude),
                "format": "jsonv2",
                "zoom": "10",
            },
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            return None
        return _extract_locality(payload)


def _extract_locality(payload: dict[str, Any]) -> str | None:
    address = payload.get("address")
    if not isinstance(address, dict):
        return None
    for key in _LOCALITY_KEYS:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class StaticLocationBackend(LocationBackend):
    """Serves a configured coordinate as the device fix.

    Useful for headless runs, where "permission" is a configuration flag and
    the position is known up front.
    """

    def __init__(
        self,
        coordinates: Coordinates | None,
        *,
        denied: bool = False,
        geocoder: NominatimGeocoder | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.coordinates = coordinates
        self.denied = denied
        self.geocoder = geocoder
        self.logger = logger or logging.getLogger(__name__)

    async def request_authorization(self) -> bool:
        return not self.denied

    async def request_fix(self) -> Coordinates:
        if self.coordinates is None:
            raise LocationUnavailableError("No coordinates configured for this run.")
        return self.coordinates

    async def reverse_geocode(self, coordinates: Coordinates) -> str | None:
        if self.geocoder is None:
            return None
        try:
            return await self.geocoder.locality(coordinates)
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning(
                "Reverse geocoding failed (%s): %s",
                type(exc).__name__, sanitize_text(str(exc)),
            )
            return None

    async def aclose(self) -> None:
        if self.geocoder is not None:
            await self.geocoder.aclose()

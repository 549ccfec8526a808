"""Location resolver: permission flow, one-shot fixes and reverse lookup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..exceptions import LocationUnavailableError
from ..weather.models import Coordinates
from .backends import LocationBackend
from .models import (
    PLACE_DENIED,
    PLACE_LOCATING,
    PLACE_UNKNOWN_CITY,
    PLACE_UNKNOWN_LOCATION,
    AuthorizationState,
    LocationUpdate,
)

LocationListener = Callable[[LocationUpdate], None]


class LocationResolver:
    """Tracks authorization, the latest coordinate fix and its place name.

    Every fix is numbered. A reverse lookup only updates the place name if
    its fix is still the latest one, so a slow lookup for an old position
    cannot overwrite the name of a newer position. Listeners are called
    synchronously, in order, from the event loop running the resolver.
    """

    def __init__(self, backend: LocationBackend, logger: logging.Logger | None = None) -> None:
        self.backend = backend
        self.logger = logger or logging.getLogger(__name__)
        self.coordinates: Coordinates | None = None
        self.place_name: str = PLACE_LOCATING
        self.authorization_state: AuthorizationState = "not_determined"
        self._fix_sequence = 0
        self._listeners: list[LocationListener] = []
        self._access_lock = asyncio.Lock()

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: LocationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def fix_sequence(self) -> int:
        return self._fix_sequence

    async def request_access(self) -> None:
        """Run the permission flow, then request one fix if granted.

        Once access has been granted or denied, further calls do nothing;
        use :meth:`refresh` for a new fix. Overlapping calls prompt once.
        """
        async with self._access_lock:
            if self.authorization_state != "not_determined":
                return
            granted = await self.backend.request_authorization()
            self.authorization_state = "granted" if granted else "denied"
        self._emit(
            LocationUpdate(
                kind="authorization",
                sequence=self._fix_sequence,
                authorization_state=self.authorization_state,
            )
        )
        if not granted:
            self.logger.info("Location access denied")
            self._set_place_name(PLACE_DENIED, self._fix_sequence)
            return
        await self._request_fix()

    async def refresh(self) -> None:
        """Request a new fix when access is granted; otherwise do nothing."""
        if self.authorization_state != "granted":
            return
        await self._request_fix()

    async def _request_fix(self) -> None:
        self._fix_sequence += 1
        sequence = self._fix_sequence
        try:
            coordinates = await self.backend.request_fix()
        except LocationUnavailableError as exc:
            self.logger.warning("Location fix failed: %s", exc)
            if sequence == self._fix_sequence:
                self._set_place_name(PLACE_UNKNOWN_LOCATION, sequence)
            return
        except Exception:
            self.logger.exception("Unexpected location fix failure")
            if sequence == self._fix_sequence:
                self._set_place_name(PLACE_UNKNOWN_LOCATION, sequence)
            return

        if sequence != self._fix_sequence:
            self.logger.debug("Dropping stale fix #%d (latest #%d)", sequence, self._fix_sequence)
            return
        self.coordinates = coordinates
        self._emit(LocationUpdate(kind="coordinates", sequence=sequence, coordinates=coordinates))

        try:
            locality = await self.backend.reverse_geocode(coordinates)
        except Exception:
            self.logger.warning(
                "Reverse lookup failed for (%.4f, %.4f)",
                coordinates.latitude, coordinates.longitude, exc_info=True,
            )
            locality = None
        if sequence != self._fix_sequence:
            self.logger.debug(
                "Dropping reverse lookup for stale fix #%d (latest #%d)",
                sequence, self._fix_sequence,
            )
            return
        self._set_place_name(locality or PLACE_UNKNOWN_CITY, sequence)

    def _set_place_name(self, place_name: str, sequence: int) -> None:
        self.place_name = place_name
        self._emit(LocationUpdate(kind="place_name", sequence=sequence, place_name=place_name))

    def _emit(self, update: LocationUpdate) -> None:
        for listener in list(self._listeners):
            listener(update)

"""Fetch-status state machine around a weather provider."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..exceptions import WeatherProviderError
from .base import WeatherProvider
from .models import (
    FETCH_ERROR_MESSAGE,
    Coordinates,
    FetchError,
    FetchIdle,
    FetchLoading,
    FetchStatus,
    FetchSuccess,
    WeatherFetchResult,
)

StatusListener = Callable[[FetchStatus], None]


class WeatherFetcher:
    """Owns the idle/loading/success/error status for weather fetches.

    Each call to :meth:`fetch_weather` takes a new generation number. When
    calls overlap, only the newest one may publish a result; responses from
    superseded calls are discarded when they arrive. Failures never escape
    :meth:`fetch_weather`; they become ``FetchError`` with a fixed message.
    """

    def __init__(self, provider: WeatherProvider, logger: logging.Logger | None = None) -> None:
        self.provider = provider
        self.logger = logger or logging.getLogger(__name__)
        self._status: FetchStatus = FetchIdle()
        self._generation = 0
        self._listeners: list[StatusListener] = []
        self.last_success: FetchSuccess | None = None
        self.last_result: WeatherFetchResult | None = None

    @property
    def status(self) -> FetchStatus:
        return self._status

    @property
    def is_loading(self) -> bool:
        return isinstance(self._status, FetchLoading)

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener and return a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def fetch_weather(self, latitude: float, longitude: float) -> FetchStatus:
        """Fetch and normalize weather for one coordinate pair.

        Returns the status produced by this call. If a newer call started
        while this one was in flight, the returned status is the one this
        call would have published, but the fetcher's own status is left to
        the newer call.
        """
        self._generation += 1
        generation = self._generation
        try:
            coordinates = Coordinates(latitude=latitude, longitude=longitude)
        except ValueError:
            self.logger.warning("Rejected out-of-range coordinates (%s, %s)", latitude, longitude)
            return self._publish(generation, FetchError(FETCH_ERROR_MESSAGE))

        self._publish(generation, FetchLoading(coordinates=coordinates))

        try:
            result = await self.provider.fetch_forecast(lat=latitude, lon=longitude)
        except WeatherProviderError as exc:
            self.logger.warning("Weather fetch failed for (%s, %s): %s", latitude, longitude, exc)
            return self._publish(generation, FetchError(FETCH_ERROR_MESSAGE))
        except Exception:
            self.logger.exception(
                "Unexpected weather fetch failure for (%s, %s)", latitude, longitude
            )
            return self._publish(generation, FetchError(FETCH_ERROR_MESSAGE))

        report = result.report
        status = FetchSuccess(current=report.current, forecast=report.forecast)
        if generation == self._generation:
            self.last_success = status
            self.last_result = result
        self.logger.info(
            "Weather fetched for (%.4f, %.4f): %s, %d forecast day(s)",
            latitude, longitude, report.current.condition, len(report.forecast),
        )
        return self._publish(generation, status)

    def _publish(self, generation: int, status: FetchStatus) -> FetchStatus:
        if generation != self._generation:
            self.logger.debug(
                "Discarding %s status from superseded fetch #%d (current #%d)",
                status.state, generation, self._generation,
            )
            return status
        self._status = status
        for listener in list(self._listeners):
            listener(status)
        return status

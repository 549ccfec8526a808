"""Provider-agnostic weather interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import WeatherFetchResult


class WeatherProvider(ABC):
    """Base contract for providers feeding the weather fetcher."""

    @abstractmethod
    async def fetch_forecast(self, *, lat: float, lon: float) -> WeatherFetchResult:
        """Fetch and normalize current conditions plus the daily forecast.

        Implementations raise WeatherProviderError for every transport or
        decoding failure.
        """

    @abstractmethod
    async def aclose(self) -> None:
        """Release provider resources."""

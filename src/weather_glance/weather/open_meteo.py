"""Open-Meteo (api.open-meteo.com) weather provider implementation."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import WeatherProviderError
from ..redaction import sanitize_text
from .base import WeatherProvider
from .conditions import condition_from_wmo, round_half_away
from .models import (
    Coordinates,
    CurrentConditions,
    ForecastDay,
    OpenMeteoDaily,
    OpenMeteoForecastResponse,
    WeatherFetchResult,
    WeatherReport,
)

CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,weather_code,wind_speed_10m"
)
DAILY_FIELDS = "weather_code,temperature_2m_max,temperature_2m_min"
FORECAST_DAYS = 5

# Locale-independent labels, indexed by date.weekday().
_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class OpenMeteoProvider(WeatherProvider):
    """Fetches and normalizes current conditions and daily forecast from Open-Meteo."""

    provider_name = "open-meteo"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._base_url = str(settings.open_meteo_base_url)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.weather_timeout_seconds)

    async def __aenter__(self) -> OpenMeteoProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_params(self, lat: float, lon: float) -> dict[str, str]:
        """Query parameters for one forecast request."""
        params = {
            "latitude": str(lat),
            "longitude": str(lon),
            "current": CURRENT_FIELDS,
            "daily": DAILY_FIELDS,
            "temperature_unit": "celsius",
            "wind_speed_unit": "kmh",
            "timezone": "auto",
        }
        if self.settings.open_meteo_api_key:
            params["apikey"] = self.settings.open_meteo_api_key
        return params

    async def fetch_forecast(self, *, lat: float, lon: float) -> WeatherFetchResult:
        """Issue a single forecast request and normalize the response."""
        try:
            coordinates = Coordinates(latitude=lat, longitude=lon)
        except ValidationError as exc:
            raise WeatherProviderError(f"Invalid coordinates ({lat}, {lon}).") from exc

        payload = await self._request_json(self.build_params(lat, lon))
        try:
            parsed = OpenMeteoForecastResponse.model_validate(payload)
        except ValidationError as exc:
            raise WeatherProviderError(
                f"Open-Meteo payload did not match the expected schema: "
                f"{exc.error_count()} error(s)."
            ) from exc

        report = normalize_report(parsed, coordinates=coordinates, logger=self.logger)
        return WeatherFetchResult(
            report=report,
            raw_payload=payload,
            source_url=self._base_url,
        )

    async def _request_json(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.get(self._base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise WeatherProviderError(
                f"Open-Meteo forecast fetch failed with status {status}: "
                f"{sanitize_text(exc.response.text[:300])}"
            ) from exc
        except httpx.HTTPError as exc:
            raise WeatherProviderError(
                f"Open-Meteo forecast request failed ({type(exc).__name__}): "
                f"{sanitize_text(str(exc))}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise WeatherProviderError("Open-Meteo returned a non-JSON response.") from exc

        if not isinstance(payload, dict):
            raise WeatherProviderError(
                f"Open-Meteo returned unexpected payload type {type(payload).__name__}."
            )
        return payload


def normalize_report(
    response: OpenMeteoForecastResponse,
    *,
    coordinates: Coordinates,
    logger: logging.Logger | None = None,
) -> WeatherReport:
    """Map the source schema onto the rounded domain model."""
    current = response.current
    daily = response.daily
    if not daily.temperature_2m_max or not daily.temperature_2m_min:
        raise WeatherProviderError("Open-Meteo daily series is empty; no range for today.")

    conditions = CurrentConditions(
        temperature=round_half_away(current.temperature_2m),
        condition=condition_from_wmo(current.weather_code),
        high=round_half_away(daily.temperature_2m_max[0]),
        low=round_half_away(daily.temperature_2m_min[0]),
        feels_like=round_half_away(current.apparent_temperature),
        humidity=current.relative_humidity_2m,
        wind_speed=round_half_away(current.wind_speed_10m),
    )
    return WeatherReport(
        coordinates=coordinates,
        current=conditions,
        forecast=tuple(build_forecast(daily, logger=logger)),
    )


def build_forecast(
    daily: OpenMeteoDaily, *, logger: logging.Logger | None = None
) -> list[ForecastDay]:
    """Forecast rows for daily indices 1..5; index 0 is today and never included."""
    last_index = min(FORECAST_DAYS, len(daily.time) - 1)
    days: list[ForecastDay] = []
    for index in range(1, last_index + 1):
        forecast_date = parse_day(daily.time[index])
        if forecast_date is None:
            if logger is not None:
                logger.debug("Dropping forecast index %d with unparseable date %r",
                             index, daily.time[index])
            continue
        try:
            code = daily.weather_code[index]
            high = daily.temperature_2m_max[index]
            low = daily.temperature_2m_min[index]
        except IndexError as exc:
            raise WeatherProviderError(
                f"Open-Meteo daily series are misaligned at index {index}."
            ) from exc
        days.append(
            ForecastDay(
                day_name=_WEEKDAY_LABELS[forecast_date.weekday()],
                forecast_date=forecast_date,
                condition=condition_from_wmo(code),
                high=round_half_away(high),
                low=round_half_away(low),
            )
        )
    return days


def parse_day(value: str) -> date | None:
    """Parse a strict YYYY-MM-DD date string, returning None when malformed."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None

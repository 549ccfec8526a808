"""Typed models for the Open-Meteo source schema and the normalized weather report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat

WeatherCondition = Literal["sunny", "cloudy", "rainy", "stormy", "snowy", "partly-cloudy"]

FETCH_ERROR_MESSAGE = "Failed to load weather data"


class Coordinates(BaseModel):
    """A single latitude/longitude fix in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


# Source schema: only the fields consumed from the forecast response. Numbers
# that overflow to inf or arrive as NaN are rejected here.


class OpenMeteoCurrent(BaseModel):
    temperature_2m: FiniteFloat
    relative_humidity_2m: int
    apparent_temperature: FiniteFloat
    weather_code: int
    wind_speed_10m: FiniteFloat


class OpenMeteoDaily(BaseModel):
    time: list[str]
    weather_code: list[int]
    temperature_2m_max: list[FiniteFloat]
    temperature_2m_min: list[FiniteFloat]


class OpenMeteoForecastResponse(BaseModel):
    """Forecast response body; unknown fields are ignored."""

    current: OpenMeteoCurrent
    daily: OpenMeteoDaily


# Domain model.


class CurrentConditions(BaseModel):
    """Current conditions plus today's range, all rounded to whole units."""

    model_config = ConfigDict(frozen=True)

    temperature: int
    condition: WeatherCondition
    high: int
    low: int
    feels_like: int
    humidity: int
    wind_speed: int


class ForecastDay(BaseModel):
    """One upcoming day of the forecast."""

    model_config = ConfigDict(frozen=True)

    day_name: str = Field(description="Short English weekday name, e.g. 'Mon'")
    forecast_date: date
    condition: WeatherCondition
    high: int
    low: int


class WeatherReport(BaseModel):
    """Normalized result of one successful fetch."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    current: CurrentConditions
    forecast: tuple[ForecastDay, ...] = ()


class WeatherFetchResult(BaseModel):
    """Raw + normalized result returned by weather providers."""

    report: WeatherReport
    raw_payload: dict[str, Any]
    source_url: str


# Fetch status: exactly one of these is current at any time.


@dataclass(frozen=True, slots=True)
class FetchIdle:
    state: Literal["idle"] = "idle"


@dataclass(frozen=True, slots=True)
class FetchLoading:
    coordinates: Coordinates
    state: Literal["loading"] = "loading"


@dataclass(frozen=True, slots=True)
class FetchSuccess:
    current: CurrentConditions
    forecast: tuple[ForecastDay, ...] = ()
    state: Literal["success"] = "success"


@dataclass(frozen=True, slots=True)
class FetchError:
    message: str = FETCH_ERROR_MESSAGE
    state: Literal["error"] = "error"


FetchStatus = FetchIdle | FetchLoading | FetchSuccess | FetchError

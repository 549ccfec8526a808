"""Weather acquisition: Open-Meteo provider, normalization and fetch status."""

from .base import WeatherProvider
from .conditions import condition_from_wmo, round_half_away
from .fetcher import WeatherFetcher
from .models import (
    FETCH_ERROR_MESSAGE,
    Coordinates,
    CurrentConditions,
    FetchError,
    FetchIdle,
    FetchLoading,
    FetchStatus,
    FetchSuccess,
    ForecastDay,
    WeatherCondition,
    WeatherFetchResult,
    WeatherReport,
)
from .open_meteo import OpenMeteoProvider

__all__ = [
    "FETCH_ERROR_MESSAGE",
    "Coordinates",
    "CurrentConditions",
    "FetchError",
    "FetchIdle",
    "FetchLoading",
    "FetchStatus",
    "FetchSuccess",
    "ForecastDay",
    "OpenMeteoProvider",
    "WeatherCondition",
    "WeatherFetchResult",
    "WeatherFetcher",
    "WeatherProvider",
    "WeatherReport",
    "condition_from_wmo",
    "round_half_away",
]

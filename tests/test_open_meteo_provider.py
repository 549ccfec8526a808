"""Tests for the Open-Meteo provider request shape and normalization."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
import respx

from weather_glance.exceptions import WeatherProviderError
from weather_glance.weather.models import Coordinates, OpenMeteoForecastResponse
from weather_glance.weather.open_meteo import (
    CURRENT_FIELDS,
    DAILY_FIELDS,
    OpenMeteoProvider,
    normalize_report,
    parse_day,
)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
WEEK = [
    "2026-02-24",
    "2026-02-25",
    "2026-02-26",
    "2026-02-27",
    "2026-02-28",
    "2026-03-01",
    "2026-03-02",
]


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "open_meteo_base_url": FORECAST_URL,
        "open_meteo_api_key": None,
        "weather_timeout_seconds": 5.0,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _make_provider(**settings_overrides: Any) -> OpenMeteoProvider:
    return OpenMeteoProvider(
        settings=_make_settings(**settings_overrides),
        logger=logging.getLogger("test_open_meteo"),
    )


def _payload(times: list[str] | None = None, **current: Any) -> dict[str, Any]:
    times = WEEK if times is None else times
    count = len(times)
    return {
        "latitude": 37.77,
        "longitude": -122.42,
        "timezone": "America/Los_Angeles",
        "current": {
            "time": "2026-02-24T10:00",
            "temperature_2m": 18.6,
            "relative_humidity_2m": 64,
            "apparent_temperature": 17.5,
            "weather_code": 0,
            "wind_speed_10m": 12.4,
            **current,
        },
        "daily": {
            "time": times,
            "weather_code": [0, 1, 3, 61, 73, 95, 45][:count],
            "temperature_2m_max": [20.4, 21.5, 19.6, 15.2, 2.5, 18.0, 17.49][:count],
            "temperature_2m_min": [11.6, 10.5, 9.4, 8.0, -2.5, 9.9, 10.01][:count],
        },
    }


def _fetch(provider: OpenMeteoProvider, lat: float = 37.77, lon: float = -122.42) -> Any:
    async def _run() -> Any:
        async with provider:
            return await provider.fetch_forecast(lat=lat, lon=lon)

    return asyncio.run(_run())


@respx.mock
def test_request_carries_fixed_query_parameters() -> None:
    route = respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=_payload()))

    _fetch(_make_provider())

    assert route.call_count == 1
    params = route.calls.last.request.url.params
    assert params["latitude"] == "37.77"
    assert params["longitude"] == "-122.42"
    assert params["current"] == CURRENT_FIELDS
    assert params["daily"] == DAILY_FIELDS
    assert params["temperature_unit"] == "celsius"
    assert params["wind_speed_unit"] == "kmh"
    assert params["timezone"] == "auto"
    assert "apikey" not in params


def test_api_key_is_only_sent_when_configured() -> None:
    provider = _make_provider(open_meteo_api_key="secret-key")
    params = provider.build_params(1.5, 2.5)
    assert params["apikey"] == "secret-key"
    assert params["latitude"] == "1.5"


@respx.mock
def test_end_to_end_current_conditions_are_rounded() -> None:
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=_payload()))

    result = _fetch(_make_provider())
    current = result.report.current

    assert current.temperature == 19
    assert current.condition == "sunny"
    assert current.feels_like == 18
    assert current.humidity == 64
    assert current.wind_speed == 12
    assert current.high == 20
    assert current.low == 12
    assert result.report.coordinates == Coordinates(latitude=37.77, longitude=-122.42)
    assert result.raw_payload["timezone"] == "America/Los_Angeles"


@respx.mock
def test_seven_day_series_yields_indices_one_through_five() -> None:
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=_payload()))

    forecast = _fetch(_make_provider()).report.forecast

    assert [day.forecast_date for day in forecast] == [
        date(2026, 2, 25),
        date(2026, 2, 26),
        date(2026, 2, 27),
        date(2026, 2, 28),
        date(2026, 3, 1),
    ]
    assert [day.day_name for day in forecast] == ["Wed", "Thu", "Fri", "Sat", "Sun"]
    assert [day.condition for day in forecast] == [
        "partly-cloudy",
        "cloudy",
        "rainy",
        "snowy",
        "stormy",
    ]
    assert [day.high for day in forecast] == [22, 20, 15, 3, 18]
    assert [day.low for day in forecast] == [11, 9, 8, -3, 10]


@pytest.mark.parametrize("length", [1, 2, 4, 6, 7, 10])
def test_forecast_length_is_capped_and_excludes_today(length: int) -> None:
    times = [f"2026-03-{day:02d}" for day in range(1, length + 1)]
    payload = _payload(times)
    payload["daily"]["weather_code"] = [0] * length
    payload["daily"]["temperature_2m_max"] = [10.0] * length
    payload["daily"]["temperature_2m_min"] = [1.0] * length

    report = normalize_report(
        OpenMeteoForecastResponse.model_validate(payload),
        coordinates=Coordinates(latitude=0, longitude=0),
    )

    assert len(report.forecast) == min(5, length - 1)
    assert all(day.forecast_date != date(2026, 3, 1) for day in report.forecast)


def test_unparseable_dates_are_dropped_silently() -> None:
    times = list(WEEK)
    times[2] = "26/02/2026"
    times[4] = "not-a-date"

    report = normalize_report(
        OpenMeteoForecastResponse.model_validate(_payload(times)),
        coordinates=Coordinates(latitude=0, longitude=0),
    )

    assert [day.day_name for day in report.forecast] == ["Wed", "Fri", "Sun"]


def test_parse_day_is_strict() -> None:
    assert parse_day("2026-02-24") == date(2026, 2, 24)
    assert parse_day("2026-02-30") is None
    assert parse_day("2026-02-24T00:00") is None
    assert parse_day("") is None


@respx.mock
def test_missing_daily_block_raises_provider_error() -> None:
    payload = _payload()
    del payload["daily"]
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=payload))

    with pytest.raises(WeatherProviderError, match="expected schema"):
        _fetch(_make_provider())


@respx.mock
def test_non_finite_numbers_raise_provider_error() -> None:
    body = '{"current":{"temperature_2m":1e400,"relative_humidity_2m":64,'
    body += '"apparent_temperature":NaN,"weather_code":0,"wind_speed_10m":12.4},'
    body += '"daily":{"time":["2026-02-24"],"weather_code":[0],'
    body += '"temperature_2m_max":[20.4],"temperature_2m_min":[11.6]}}'
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, content=body))

    with pytest.raises(WeatherProviderError, match="expected schema"):
        _fetch(_make_provider())


@respx.mock
def test_empty_daily_series_raises_provider_error() -> None:
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=_payload([])))

    with pytest.raises(WeatherProviderError, match="daily series is empty"):
        _fetch(_make_provider())


@respx.mock
def test_misaligned_daily_series_raises_provider_error() -> None:
    payload = _payload()
    payload["daily"]["weather_code"] = [0, 1]
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=payload))

    with pytest.raises(WeatherProviderError, match="misaligned"):
        _fetch(_make_provider())


@respx.mock
def test_non_2xx_response_raises_provider_error() -> None:
    respx.get(FORECAST_URL).mock(
        return_value=httpx.Response(400, json={"error": True, "reason": "bad latitude"})
    )

    with pytest.raises(WeatherProviderError, match="status 400"):
        _fetch(_make_provider())


@respx.mock
def test_transport_error_raises_provider_error() -> None:
    respx.get(FORECAST_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(WeatherProviderError, match="ConnectError"):
        _fetch(_make_provider())


@respx.mock
def test_non_json_body_raises_provider_error() -> None:
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(WeatherProviderError, match="non-JSON"):
        _fetch(_make_provider())


@respx.mock
def test_json_array_body_raises_provider_error() -> None:
    respx.get(FORECAST_URL).mock(return_value=httpx.Response(200, json=[1, 2, 3]))

    with pytest.raises(WeatherProviderError, match="unexpected payload type list"):
        _fetch(_make_provider())


def test_out_of_range_coordinates_raise_before_request() -> None:
    with respx.mock(assert_all_called=False) as router:
        route = router.get(FORECAST_URL)
        with pytest.raises(WeatherProviderError, match="Invalid coordinates"):
            _fetch(_make_provider(), lat=91.0, lon=0.0)
        assert not route.called

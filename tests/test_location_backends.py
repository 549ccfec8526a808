"""Tests for the configured location backend and Nominatim reverse lookup."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest
import respx

from weather_glance.exceptions import LocationUnavailableError
from weather_glance.location.backends import NominatimGeocoder, StaticLocationBackend
from weather_glance.weather.models import Coordinates

REVERSE_URL = "https://geo.example.com/reverse"
SF = Coordinates(latitude=37.77, longitude=-122.42)


def _geocoder() -> NominatimGeocoder:
    return NominatimGeocoder(
        base_url="https://geo.example.com/",
        user_agent="weather-glance-tests/0.1",
        logger=logging.getLogger("test_location_backends"),
    )


def _backend(geocoder: NominatimGeocoder | None = None, **kwargs: object) -> StaticLocationBackend:
    return StaticLocationBackend(
        SF,
        geocoder=geocoder,
        logger=logging.getLogger("test_location_backends"),
        **kwargs,  # type: ignore[arg-type]
    )


@respx.mock
def test_nominatim_returns_city_and_sends_user_agent() -> None:
    route = respx.get(REVERSE_URL).mock(
        return_value=httpx.Response(
            200,
            json={"address": {"city": "San Francisco", "state": "California"}},
        )
    )
    geocoder = _geocoder()

    async def _run() -> str | None:
        try:
            return await geocoder.locality(SF)
        finally:
            await geocoder.aclose()

    assert asyncio.run(_run()) == "San Francisco"
    request = route.calls.last.request
    assert request.headers["user-agent"] == "weather-glance-tests/0.1"
    assert request.url.params["lat"] == "37.77"
    assert request.url.params["lon"] == "-122.42"
    assert request.url.params["format"] == "jsonv2"


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ({"town": "Sausalito"}, "Sausalito"),
        ({"village": "Bolinas", "county": "Marin"}, "Bolinas"),
        ({"county": "Marin County"}, None),
        ({"city": "   "}, None),
    ],
)
def test_locality_fallbacks(address: dict[str, str], expected: str | None) -> None:
    backend = _backend(_geocoder())

    async def _run() -> str | None:
        try:
            return await backend.reverse_geocode(SF)
        finally:
            await backend.aclose()

    with respx.mock:
        respx.get(REVERSE_URL).mock(
            return_value=httpx.Response(200, json={"address": address})
        )
        assert asyncio.run(_run()) == expected


@respx.mock
def test_geocoder_error_reports_no_locality() -> None:
    respx.get(REVERSE_URL).mock(return_value=httpx.Response(503))
    backend = _backend(_geocoder())

    async def _run() -> str | None:
        try:
            return await backend.reverse_geocode(SF)
        finally:
            await backend.aclose()

    assert asyncio.run(_run()) is None


@respx.mock
def test_geocoder_unable_to_geocode_payload_reports_no_locality() -> None:
    respx.get(REVERSE_URL).mock(
        return_value=httpx.Response(200, json={"error": "Unable to geocode"})
    )
    backend = _backend(_geocoder())

    async def _run() -> str | None:
        try:
            return await backend.reverse_geocode(SF)
        finally:
            await backend.aclose()

    assert asyncio.run(_run()) is None


def test_static_backend_authorization_and_fix() -> None:
    backend = _backend()
    assert asyncio.run(backend.request_authorization()) is True
    assert asyncio.run(backend.request_fix()) == SF
    assert asyncio.run(backend.reverse_geocode(SF)) is None

    denied = _backend(denied=True)
    assert asyncio.run(denied.request_authorization()) is False


def test_static_backend_without_coordinates_raises_on_fix() -> None:
    backend = StaticLocationBackend(None)
    with pytest.raises(LocationUnavailableError):
        asyncio.run(backend.request_fix())

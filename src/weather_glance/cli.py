"""CLI: resolve a location, fetch Open-Meteo weather and print the normalized report."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigError, JournalError, WeatherProviderError
from .journal import JournalWriter
from .location import LocationResolver, NominatimGeocoder, StaticLocationBackend
from .log_setup import setup_logger
from .weather import (
    FETCH_ERROR_MESSAGE,
    Coordinates,
    FetchError,
    FetchSuccess,
    OpenMeteoProvider,
    WeatherFetcher,
    WeatherProvider,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse weather CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Show current weather and a five-day forecast from Open-Meteo."
    )
    parser.add_argument("--lat", type=float, default=None, help="Latitude of the location.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude of the location.")
    parser.add_argument(
        "--deny-location",
        action="store_true",
        help="Refuse location access (exercise the denied path).",
    )
    parser.add_argument(
        "--no-geocode",
        action="store_true",
        help="Skip reverse geocoding of the location.",
    )
    return parser.parse_args(argv)


def _resolve_coords(args: argparse.Namespace, settings: Settings) -> Coordinates | None:
    if (args.lat is None) != (args.lon is None):
        raise WeatherProviderError("Pass both --lat and --lon, or neither.")
    lat = args.lat if args.lat is not None else settings.weather_default_lat
    lon = args.lon if args.lon is not None else settings.weather_default_lon
    if lat is None or lon is None:
        return None
    if not (-90 <= lat <= 90):
        raise WeatherProviderError(f"Invalid latitude {lat}; expected between -90 and 90.")
    if not (-180 <= lon <= 180):
        raise WeatherProviderError(f"Invalid longitude {lon}; expected between -180 and 180.")
    return Coordinates(latitude=lat, longitude=lon)


def _build_backend(
    args: argparse.Namespace,
    settings: Settings,
    coordinates: Coordinates | None,
    logger: logging.Logger,
) -> StaticLocationBackend:
    geocoder: NominatimGeocoder | None = None
    if settings.geocoder_enabled and not args.no_geocode:
        geocoder = NominatimGeocoder(
            base_url=str(settings.geocoder_base_url),
            user_agent=settings.geocoder_user_agent,
            timeout=settings.weather_timeout_seconds,
            logger=logger,
        )
    return StaticLocationBackend(
        coordinates,
        denied=args.deny_location or settings.location_denied,
        geocoder=geocoder,
        logger=logger,
    )


def _print_report(
    console: Console, place_name: str, coordinates: Coordinates, status: FetchSuccess
) -> None:
    current = status.current
    console.print(
        f"{place_name} ({coordinates.latitude:.4f}, {coordinates.longitude:.4f}) "
        f"{current.temperature}°C {current.condition}"
    )

    table = Table(title="Current Conditions")
    table.add_column("Temp")
    table.add_column("Feels Like")
    table.add_column("High / Low")
    table.add_column("Humidity")
    table.add_column("Wind")
    table.add_row(
        f"{current.temperature}°",
        f"{current.feels_like}°",
        f"{current.high}° / {current.low}°",
        f"{current.humidity}%",
        f"{current.wind_speed} km/h",
    )
    console.print(table)

    if not status.forecast:
        console.print("No forecast days returned.")
        return

    forecast_table = Table(title="Forecast")
    forecast_table.add_column("Day")
    forecast_table.add_column("Date")
    forecast_table.add_column("Condition")
    forecast_table.add_column("High")
    forecast_table.add_column("Low")
    for day in status.forecast:
        forecast_table.add_row(
            day.day_name,
            day.forecast_date.isoformat(),
            day.condition,
            f"{day.high}°",
            f"{day.low}°",
        )
    console.print(forecast_table)


async def run(
    args: argparse.Namespace,
    settings: Settings,
    *,
    logger: logging.Logger,
    console: Console,
    journal: JournalWriter,
    provider: WeatherProvider | None = None,
    backend: StaticLocationBackend | None = None,
) -> int:
    """Resolve location, fetch weather once, journal and print. Returns an exit code."""
    session = {"session_id": journal.session_id}
    if backend is None:
        backend = _build_backend(args, settings, _resolve_coords(args, settings), logger)
    resolver = LocationResolver(backend, logger=logger)

    resolver.subscribe(journal.write_location_update)
    try:
        await resolver.request_access()
    finally:
        await backend.aclose()

    if resolver.coordinates is None:
        logger.error("No location available: %s", resolver.place_name)
        console.print(f"Location unavailable: {resolver.place_name}")
        return 4

    coordinates = resolver.coordinates
    journal.write_event(
        "weather_request_start",
        payload={"lat": coordinates.latitude, "lon": coordinates.longitude},
        metadata=session,
    )

    if provider is None:
        provider = OpenMeteoProvider(settings=settings, logger=logger)
    fetcher = WeatherFetcher(provider, logger=logger)
    try:
        status = await fetcher.fetch_weather(coordinates.latitude, coordinates.longitude)
    finally:
        await provider.aclose()

    if not isinstance(status, FetchSuccess):
        message = status.message if isinstance(status, FetchError) else FETCH_ERROR_MESSAGE
        journal.write_event(
            "weather_request_failure",
            payload={"message": message, "state": status.state},
            metadata=session,
        )
        console.print(message)
        return 4

    result = fetcher.last_result
    raw_path: Path | None = None
    if result is not None and settings.weather_journal_raw_payloads:
        raw_path = journal.write_raw_snapshot("open_meteo_forecast", result.raw_payload)
    journal.write_weather_report(resolver.place_name, status, raw_path)
    _print_report(console, resolver.place_name, coordinates, status)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the weather CLI."""
    args = parse_args(argv)
    logger = setup_logger()
    console = Console()
    session_id = uuid.uuid4().hex[:12]

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    try:
        journal = JournalWriter(
            journal_dir=settings.journal_dir,
            raw_payload_dir=settings.weather_raw_payload_dir,
            session_id=session_id,
        )
        journal.write_event(
            "weather_startup",
            payload=settings.safe_summary(),
            metadata={"session_id": session_id},
        )
    except JournalError as exc:
        logger.error("Failed to initialize weather journal: %s", exc)
        return 3

    exit_code = 0
    try:
        exit_code = asyncio.run(
            run(args, settings, logger=logger, console=console, journal=journal)
        )
    except (WeatherProviderError, JournalError) as exc:
        exit_code = 4
        logger.error("Weather run failure: %s", exc)
    except Exception as exc:  # pragma: no cover - last-resort catch for CLI runtime
        exit_code = 99
        logger.exception("Unexpected weather CLI failure: %s", exc)
    finally:
        try:
            journal.write_event(
                "weather_shutdown",
                payload={"exit_code": exit_code},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write weather_shutdown event.")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())

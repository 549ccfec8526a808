"""Typed settings loader for weather-glance."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")

    open_meteo_base_url: AnyUrl = Field(
        default=AnyUrl(OPEN_METEO_FORECAST_URL),
        alias="OPEN_METEO_BASE_URL",
    )
    open_meteo_api_key: str | None = Field(
        default=None, alias="OPEN_METEO_API_KEY", repr=False
    )
    weather_timeout_seconds: float = Field(default=5.0, alias="WEATHER_TIMEOUT_SECONDS")
    weather_default_lat: float | None = Field(default=None, alias="WEATHER_DEFAULT_LAT")
    weather_default_lon: float | None = Field(default=None, alias="WEATHER_DEFAULT_LON")

    location_denied: bool = Field(default=False, alias="LOCATION_DENIED")
    geocoder_enabled: bool = Field(default=True, alias="GEOCODER_ENABLED")
    geocoder_base_url: AnyUrl = Field(
        default=AnyUrl(NOMINATIM_BASE_URL),
        alias="GEOCODER_BASE_URL",
    )
    geocoder_user_agent: str = Field(
        default="weather-glance/0.1",
        alias="GEOCODER_USER_AGENT",
    )

    journal_dir: Path = Field(default=Path("./data/journal"), alias="JOURNAL_DIR")
    weather_raw_payload_dir: Path = Field(
        default=Path("./data/raw/weather"),
        alias="WEATHER_RAW_PAYLOAD_DIR",
    )
    weather_journal_raw_payloads: bool = Field(
        default=True, alias="WEATHER_JOURNAL_RAW_PAYLOADS"
    )

    @field_validator(
        "weather_default_lat",
        "weather_default_lon",
        "open_meteo_api_key",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Validate cross-field constraints."""
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if self.geocoder_enabled and not self.geocoder_user_agent.strip():
            raise ValueError("GEOCODER_USER_AGENT must not be empty when the geocoder is on.")

        has_default_lat = self.weather_default_lat is not None
        has_default_lon = self.weather_default_lon is not None
        if has_default_lat != has_default_lon:
            raise ValueError("WEATHER_DEFAULT_LAT and WEATHER_DEFAULT_LON must be set together.")
        if has_default_lat and not (-90 <= self.weather_default_lat <= 90):
            raise ValueError("WEATHER_DEFAULT_LAT must be between -90 and 90.")
        if has_default_lon and not (-180 <= self.weather_default_lon <= 180):
            raise ValueError("WEATHER_DEFAULT_LON must be between -180 and 180.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for journaling (no credentials)."""
        return {
            "app_env": self.app_env,
            "open_meteo_base_url": str(self.open_meteo_base_url),
            "open_meteo_api_key_set": self.open_meteo_api_key is not None,
            "weather_timeout_seconds": self.weather_timeout_seconds,
            "location_denied": self.location_denied,
            "geocoder_enabled": self.geocoder_enabled,
            "geocoder_base_url": str(self.geocoder_base_url),
            "weather_raw_journaling": self.weather_journal_raw_payloads,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
    return settings

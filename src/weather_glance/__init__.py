"""Current weather and five-day forecast from device location and Open-Meteo."""

__version__ = "0.1.0"

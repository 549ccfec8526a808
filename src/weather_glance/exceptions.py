"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class JournalError(Exception):
    """Raised when writing to journal files fails."""


class WeatherProviderError(Exception):
    """Raised when weather provider requests or normalization fail."""


class LocationUnavailableError(Exception):
    """Raised by location backends when a coordinate fix cannot be obtained."""

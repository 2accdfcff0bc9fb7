"""Error types raised by the weather dashboard service."""


class WeatherAppError(Exception):
    """Base class for errors mapped to an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidInputError(WeatherAppError):
    """Raised when required request input is missing."""
    status_code = 400


class NotFoundError(WeatherAppError):
    """Raised when a city or a history entry cannot be found."""
    status_code = 404


class UpstreamError(WeatherAppError):
    """Raised when the geocoding or weather provider fails."""
    status_code = 500


class ConfigurationError(WeatherAppError):
    """Raised when the service is missing required configuration."""
    status_code = 500


class StorageError(WeatherAppError):
    """Raised when the search history file cannot be read or written."""
    status_code = 500

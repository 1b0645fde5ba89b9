# ABOUTME: Error taxonomy for weather acquisition and device geolocation.
# ABOUTME: Maps provider HTTP failures and geolocation codes to user-facing messages.

from enum import Enum, IntEnum


class ErrorKind(str, Enum):
    """Outcome tags for a failed weather fetch."""

    INVALID_QUERY = "invalid_query"
    LOCATION_NOT_FOUND = "location_not_found"
    AUTH_FAILURE = "auth_failure"
    NETWORK_UNREACHABLE = "network_unreachable"
    UNKNOWN = "unknown"


ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_QUERY: "Please enter a valid location",
    ErrorKind.LOCATION_NOT_FOUND: "Location not found. Please try another city or location.",
    ErrorKind.AUTH_FAILURE: "API key issue. Please try again later.",
    ErrorKind.NETWORK_UNREACHABLE: "No response from weather service. Check your internet connection.",
    ErrorKind.UNKNOWN: "Failed to fetch weather data. Please try again.",
}


class WeatherAppError(Exception):
    """Base class for errors that end up in front of the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AcquisitionError(WeatherAppError):
    """A weather fetch failed. `kind` drives the user-facing message."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        super().__init__(message or ERROR_MESSAGES[kind])
        self.kind = kind

    @classmethod
    def from_status(cls, status_code: int) -> "AcquisitionError":
        """Map a weather provider HTTP status to an error kind."""
        if status_code == 400:
            return cls(ErrorKind.LOCATION_NOT_FOUND)
        if status_code in (401, 403):
            return cls(ErrorKind.AUTH_FAILURE)
        return cls(ErrorKind.UNKNOWN)


class GeolocationCode(IntEnum):
    """Error codes reported by a geolocation environment."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


GEOLOCATION_UNSUPPORTED_MESSAGE = (
    "Geolocation is not supported by your browser. Please search for a city instead."
)

_GEOLOCATION_MESSAGES = {
    GeolocationCode.PERMISSION_DENIED: (
        "Location access denied. Please enable location services or search for a city."
    ),
    GeolocationCode.POSITION_UNAVAILABLE: "Location information is unavailable. Please search for a city instead.",
    GeolocationCode.TIMEOUT: "Location request timed out. Please search for a city instead.",
}

_GEOLOCATION_DEFAULT_MESSAGE = "Unable to access your location. Please search for a city instead."


def geolocation_message(code: int | None) -> str:
    """User-facing remediation text for a geolocation error code."""
    try:
        return _GEOLOCATION_MESSAGES[GeolocationCode(code)]
    except ValueError:
        return _GEOLOCATION_DEFAULT_MESSAGE


class GeolocationError(WeatherAppError):
    """The environment could not provide device coordinates."""

    def __init__(self, code: int | None, message: str | None = None):
        super().__init__(message or geolocation_message(code))
        self.code = code

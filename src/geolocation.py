# ABOUTME: Geolocation environment interface and an IP-based implementation for server use.
# ABOUTME: Implementations yield Coordinates or raise GeolocationError with a standard code.

import logging
from typing import Protocol

import httpx

from src.errors import GeolocationCode, GeolocationError
from src.models import Coordinates

logger = logging.getLogger(__name__)

IP_LOOKUP_URL = "https://ipapi.co/json/"
IP_LOOKUP_URL_FOR = "https://ipapi.co/{ip}/json/"


class Geolocator(Protocol):
    """A `getCurrentPosition`-style source of device coordinates."""

    async def current_position(
        self, *, high_accuracy: bool, timeout: float, maximum_age: float
    ) -> Coordinates: ...


class IpGeolocator:
    """Approximate position from the caller's public IP address.

    `high_accuracy` is accepted for interface compatibility; IP lookup has one accuracy.
    No position is cached, so `maximum_age` has nothing to reuse.
    """

    def __init__(self, http_client: httpx.AsyncClient, ip: str | None = None):
        self.http_client = http_client
        self.url = IP_LOOKUP_URL_FOR.format(ip=ip) if ip else IP_LOOKUP_URL

    async def current_position(
        self, *, high_accuracy: bool = True, timeout: float = 10.0, maximum_age: float = 0
    ) -> Coordinates:
        try:
            resp = await self.http_client.get(self.url, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            raise GeolocationError(GeolocationCode.TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            code = GeolocationCode.PERMISSION_DENIED if e.response.status_code == 403 else GeolocationCode.POSITION_UNAVAILABLE
            raise GeolocationError(code) from e
        except (httpx.RequestError, ValueError) as e:
            raise GeolocationError(GeolocationCode.POSITION_UNAVAILABLE) from e

        try:
            return Coordinates(latitude=float(data["latitude"]), longitude=float(data["longitude"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("IP lookup returned no usable coordinates: %s", data)
            raise GeolocationError(GeolocationCode.POSITION_UNAVAILABLE) from e

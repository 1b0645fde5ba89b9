# ABOUTME: Dependency container for weather provider calls using Pydantic BaseModel.
# ABOUTME: Holds the httpx.AsyncClient and API credentials used to fetch weather snapshots.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception, stop_after_attempt, stop_before_delay

from src.config import DEFAULT_WEATHER_API_URL, Settings


class WeatherDeps(BaseModel):
    """Dependencies injected into the weather acquisition pipeline."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    api_key: str
    api_url: str = DEFAULT_WEATHER_API_URL

    @classmethod
    def from_settings(cls, settings: Settings) -> "WeatherDeps":
        return cls(
            http_client=create_http_client(timeout=settings.weather_timeout_seconds),
            api_key=settings.weather_api_key,
            api_url=settings.weather_api_url,
        )


def is_transient(exc: BaseException) -> bool:
    """Connection failures, read timeouts, 429 and 5xx are worth retrying; other 4xx are final."""
    if isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _raise_for_transient_status(response: httpx.Response) -> None:
    if response.status_code == 429 or response.status_code >= 500:
        response.raise_for_status()


def retry_config(max_delay: float = 15.0) -> RetryConfig:
    """Retry policy for weather calls: at most 3 attempts, never starting one past `max_delay` seconds."""
    return RetryConfig(
        retry=retry_if_exception(is_transient),
        wait=wait_retry_after(max_wait=5),
        stop=stop_after_attempt(3) | stop_before_delay(max_delay),
        reraise=True,
    )


def create_http_client(timeout: float = 15.0) -> httpx.AsyncClient:
    """Create an httpx client with tenacity retry on transient HTTP errors.

    Retries connection errors, timeouts, and 429/5xx responses. No retry starts once its wait
    would end more than `timeout` seconds after the first attempt began.
    """
    transport = AsyncTenacityTransport(retry_config(timeout), validate_response=_raise_for_transient_status)
    return httpx.AsyncClient(transport=transport, timeout=timeout)

# ABOUTME: Service layer for WeatherAPI.com forecast calls and response parsing.
# ABOUTME: Normalizes provider failures into AcquisitionError and payloads into WeatherSnapshot.

import logging
from datetime import date, datetime

import httpx
from pydantic import ValidationError

from src.deps import WeatherDeps
from src.errors import AcquisitionError, ErrorKind
from src.models import (
    AirQuality,
    Astronomy,
    CurrentConditions,
    DayForecast,
    DayStats,
    HourForecast,
    Location,
    LocationQuery,
    WeatherAlert,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

FORECAST_DAYS = 3
LOCALTIME_FORMAT = "%Y-%m-%d %H:%M"


async def fetch_snapshot(deps: WeatherDeps, query: LocationQuery) -> WeatherSnapshot:
    """Fetch a 3-day forecast with air quality and alerts for a validated query.

    Raises:
        AcquisitionError: LOCATION_NOT_FOUND on 400, AUTH_FAILURE on 401/403,
            NETWORK_UNREACHABLE when no response arrives, UNKNOWN otherwise.
    """
    try:
        resp = await deps.http_client.get(
            deps.api_url,
            params={
                "key": deps.api_key,
                "q": query.text,
                "days": FORECAST_DAYS,
                "aqi": "yes",
                "alerts": "yes",
            },
        )
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as e:
        logger.warning("Weather provider returned %s for %r", e.response.status_code, query.text)
        raise AcquisitionError.from_status(e.response.status_code) from e
    except httpx.RequestError as e:
        logger.warning("No response from weather provider for %r: %s", query.text, e)
        raise AcquisitionError(ErrorKind.NETWORK_UNREACHABLE) from e
    except ValueError as e:
        logger.warning("Weather provider sent a non-JSON body for %r", query.text)
        raise AcquisitionError(ErrorKind.UNKNOWN) from e

    try:
        snapshot = parse_snapshot(data)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning("Malformed weather payload for %r: %s", query.text, e)
        raise AcquisitionError(ErrorKind.UNKNOWN) from e

    logger.info("Fetched weather for %s (%s)", snapshot.location.name, query.text)
    return snapshot


def parse_snapshot(data: dict) -> WeatherSnapshot:
    """Parse a WeatherAPI.com forecast payload into a WeatherSnapshot."""
    return WeatherSnapshot(
        location=parse_location(data["location"]),
        current=parse_current(data["current"]),
        forecast=tuple(parse_forecast_day(d) for d in data["forecast"]["forecastday"]),
        alerts=tuple(parse_alerts(data.get("alerts") or {})),
    )


def parse_location(raw: dict) -> Location:
    return Location(
        name=raw["name"],
        region=raw.get("region") or None,
        country=raw.get("country") or None,
        latitude=raw.get("lat"),
        longitude=raw.get("lon"),
        timezone=raw.get("tz_id"),
        localtime=parse_localtime(raw["localtime"]),
    )


def parse_localtime(value: str) -> datetime:
    """Parse provider local time such as "2025-01-15 2:30" (hour is not zero-padded)."""
    return datetime.strptime(value.strip(), LOCALTIME_FORMAT)


def parse_current(raw: dict) -> CurrentConditions:
    aq = raw.get("air_quality")
    return CurrentConditions(
        temp_c=raw["temp_c"],
        feelslike_c=raw.get("feelslike_c"),
        condition=_condition_text(raw),
        is_day=bool(raw.get("is_day", 1)),
        wind_kph=raw.get("wind_kph"),
        wind_dir=raw.get("wind_dir"),
        humidity=raw.get("humidity"),
        uv=raw.get("uv"),
        precip_mm=raw.get("precip_mm"),
        vis_km=raw.get("vis_km"),
        pressure_mb=raw.get("pressure_mb"),
        air_quality=parse_air_quality(aq) if aq else None,
    )


def parse_air_quality(raw: dict) -> AirQuality:
    return AirQuality(
        co=raw.get("co"),
        no2=raw.get("no2"),
        o3=raw.get("o3"),
        so2=raw.get("so2"),
        pm2_5=raw.get("pm2_5"),
        pm10=raw.get("pm10"),
        us_epa_index=raw.get("us-epa-index"),
    )


def parse_forecast_day(raw: dict) -> DayForecast:
    """Parse one forecastday entry, including its hourly breakdown."""
    day = raw.get("day", {})
    astro = raw.get("astro", {})
    return DayForecast(
        date=date.fromisoformat(raw["date"]),
        day=DayStats(
            maxtemp_c=day.get("maxtemp_c"),
            mintemp_c=day.get("mintemp_c"),
            avghumidity=day.get("avghumidity"),
            totalprecip_mm=day.get("totalprecip_mm"),
            daily_chance_of_rain=day.get("daily_chance_of_rain"),
            uv=day.get("uv"),
            condition=_condition_text(day) or None,
        ),
        astro=Astronomy(
            sunrise=astro.get("sunrise"),
            sunset=astro.get("sunset"),
            moonrise=astro.get("moonrise"),
            moonset=astro.get("moonset"),
            moon_phase=astro.get("moon_phase"),
            moon_illumination=astro.get("moon_illumination"),
        ),
        hours=tuple(parse_hour(h) for h in raw.get("hour", [])),
    )


def parse_hour(raw: dict) -> HourForecast:
    return HourForecast(
        time=parse_localtime(raw["time"]),
        temp_c=raw.get("temp_c"),
        condition=_condition_text(raw) or None,
        wind_kph=raw.get("wind_kph"),
        humidity=raw.get("humidity"),
        chance_of_rain=raw.get("chance_of_rain"),
        is_day=bool(raw["is_day"]) if "is_day" in raw else None,
    )


def parse_alerts(raw: dict) -> list[WeatherAlert]:
    """Parse the provider's alert block. Entries without an event name are skipped."""
    alerts = []
    for a in raw.get("alert", []):
        event = a.get("event") or a.get("headline")
        if not event:
            continue
        alerts.append(
            WeatherAlert(
                headline=a.get("headline") or None,
                event=event,
                severity=a.get("severity") or None,
                urgency=a.get("urgency") or None,
                areas=a.get("areas") or None,
                description=a.get("desc") or None,
                effective=a.get("effective") or None,
                expires=a.get("expires") or None,
            )
        )
    return alerts


def _condition_text(raw: dict) -> str:
    """Pull the condition text out of a nested {"condition": {"text": ...}} block."""
    return (raw.get("condition") or {}).get("text", "")

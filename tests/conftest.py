# ABOUTME: Shared test fixtures for the weather insights test suite.
# ABOUTME: Blocks real LLM calls and provides WeatherAPI-shaped payload and snapshot factories.

import copy

import pydantic_ai.models
import pytest

from src.weather_service import parse_snapshot

# Prevent accidental LLM calls during testing
pydantic_ai.models.ALLOW_MODEL_REQUESTS = False


def _hour(day: str, h: int, temp_c: float, condition: str) -> dict:
    return {
        "time": f"{day} {h:02d}:00",
        "temp_c": temp_c,
        "condition": {"text": condition},
        "wind_kph": 10.0,
        "humidity": 80,
        "chance_of_rain": 60,
        "is_day": 1 if 7 <= h < 17 else 0,
    }


_BASE_PAYLOAD = {
    "location": {
        "name": "London",
        "region": "City of London, Greater London",
        "country": "United Kingdom",
        "lat": 51.52,
        "lon": -0.11,
        "tz_id": "Europe/London",
        "localtime": "2025-01-15 2:30",
    },
    "current": {
        "temp_c": 5.0,
        "feelslike_c": 2.1,
        "is_day": 0,
        "condition": {"text": "Light rain"},
        "wind_kph": 14.4,
        "wind_dir": "SW",
        "pressure_mb": 1012.0,
        "precip_mm": 0.4,
        "humidity": 87,
        "vis_km": 8.0,
        "uv": 0.0,
        "air_quality": {"co": 230.3, "no2": 20.1, "o3": 40.0, "so2": 3.2, "pm2_5": 6.5, "pm10": 9.1, "us-epa-index": 1},
    },
    "forecast": {
        "forecastday": [
            {
                "date": "2025-01-15",
                "day": {
                    "maxtemp_c": 8.2,
                    "mintemp_c": 3.1,
                    "avghumidity": 84,
                    "totalprecip_mm": 3.5,
                    "daily_chance_of_rain": 85,
                    "uv": 1.0,
                    "condition": {"text": "Patchy rain nearby"},
                },
                "astro": {
                    "sunrise": "08:01 AM",
                    "sunset": "04:22 PM",
                    "moonrise": "06:12 PM",
                    "moonset": "09:40 AM",
                    "moon_phase": "Waning Gibbous",
                    "moon_illumination": 96,
                },
                "hour": [_hour("2025-01-15", h, 4.0 + h / 4, "Light rain") for h in range(24)],
            },
            {
                "date": "2025-01-16",
                "day": {
                    "maxtemp_c": 7.0,
                    "mintemp_c": 1.5,
                    "avghumidity": 78,
                    "totalprecip_mm": 0.0,
                    "daily_chance_of_rain": 10,
                    "uv": 1.0,
                    "condition": {"text": "Partly cloudy"},
                },
                "astro": {"sunrise": "08:00 AM", "sunset": "04:24 PM", "moon_phase": "Waning Gibbous"},
                "hour": [],
            },
        ]
    },
    "alerts": {"alert": []},
}


@pytest.fixture
def make_payload():
    """Factory for WeatherAPI.com forecast payloads with selected overrides."""

    def _make(*, name=None, localtime=None, temp_c=None, condition=None, alerts=None):
        data = copy.deepcopy(_BASE_PAYLOAD)
        if name is not None:
            data["location"]["name"] = name
        if localtime is not None:
            data["location"]["localtime"] = localtime
        if temp_c is not None:
            data["current"]["temp_c"] = temp_c
        if condition is not None:
            data["current"]["condition"]["text"] = condition
        if alerts is not None:
            data["alerts"]["alert"] = alerts
        return data

    return _make


@pytest.fixture
def make_snapshot(make_payload):
    """Factory for parsed WeatherSnapshot objects."""

    def _make(**overrides):
        return parse_snapshot(make_payload(**overrides))

    return _make


@pytest.fixture
def payload(make_payload) -> dict:
    return make_payload()


@pytest.fixture
def snapshot(make_snapshot):
    return make_snapshot()

# ABOUTME: Pydantic BaseModels for weather snapshots, location queries, and insight records.
# ABOUTME: Defines the structured types passed between acquisition, prompt building, and parsing.

import math
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.errors import AcquisitionError, ErrorKind, WeatherAppError


class Coordinates(BaseModel):
    """A latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    def as_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


class LocationQuery(BaseModel):
    """A validated search query: free-text place name or a "lat,lon" pair."""

    model_config = ConfigDict(frozen=True)

    text: str
    coordinates: Coordinates | None = None

    @classmethod
    def parse(cls, raw: str | None) -> "LocationQuery":
        """Validate raw user input.

        Raises AcquisitionError(INVALID_QUERY) for blank input, or for a coordinate
        pair that contains a non-finite number.
        """
        text = (raw or "").strip()
        if not text:
            raise AcquisitionError(ErrorKind.INVALID_QUERY)

        parts = text.split(",")
        if len(parts) != 2:
            return cls(text=text)
        try:
            lat, lon = float(parts[0]), float(parts[1])
        except ValueError:
            return cls(text=text)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise AcquisitionError(ErrorKind.INVALID_QUERY)
        return cls(text=f"{lat},{lon}", coordinates=Coordinates(latitude=lat, longitude=lon))


class Location(BaseModel):
    """Location metadata reported by the weather provider."""

    model_config = ConfigDict(frozen=True)

    name: str
    region: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    localtime: datetime


class AirQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    co: float | None = None
    no2: float | None = None
    o3: float | None = None
    so2: float | None = None
    pm2_5: float | None = None
    pm10: float | None = None
    us_epa_index: int | None = None


class CurrentConditions(BaseModel):
    """Current observation for the location."""

    model_config = ConfigDict(frozen=True)

    temp_c: float
    feelslike_c: float | None = None
    condition: str
    is_day: bool = True
    wind_kph: float | None = None
    wind_dir: str | None = None
    humidity: float | None = None
    uv: float | None = None
    precip_mm: float | None = None
    vis_km: float | None = None
    pressure_mb: float | None = None
    air_quality: AirQuality | None = None


class DayStats(BaseModel):
    """Aggregate stats for one forecast day."""

    model_config = ConfigDict(frozen=True)

    maxtemp_c: float | None = None
    mintemp_c: float | None = None
    avghumidity: float | None = None
    totalprecip_mm: float | None = None
    daily_chance_of_rain: float | None = None
    uv: float | None = None
    condition: str | None = None


class Astronomy(BaseModel):
    model_config = ConfigDict(frozen=True)

    sunrise: str | None = None
    sunset: str | None = None
    moonrise: str | None = None
    moonset: str | None = None
    moon_phase: str | None = None
    moon_illumination: float | None = None


class HourForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: datetime
    temp_c: float | None = None
    condition: str | None = None
    wind_kph: float | None = None
    humidity: float | None = None
    chance_of_rain: float | None = None
    is_day: bool | None = None


class DayForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    day: DayStats
    astro: Astronomy
    hours: tuple[HourForecast, ...] = ()


class WeatherAlert(BaseModel):
    """An official weather alert issued for the location."""

    model_config = ConfigDict(frozen=True)

    headline: str | None = None
    event: str
    severity: str | None = None
    urgency: str | None = None
    areas: str | None = None
    description: str | None = None
    effective: str | None = None
    expires: str | None = None


class WeatherSnapshot(BaseModel):
    """Everything fetched for one location in one request. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    location: Location
    current: CurrentConditions
    forecast: tuple[DayForecast, ...] = Field(min_length=1, max_length=3)
    alerts: tuple[WeatherAlert, ...] = ()

    @property
    def today(self) -> DayForecast:
        return self.forecast[0]


class TimeBucket(str, Enum):
    """Nine time-of-day labels covering the whole day."""

    LATE_NIGHT = "late night"
    EARLY_MORNING = "early morning"
    MORNING = "morning"
    LATE_MORNING = "late morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EARLY_EVENING = "early evening"
    EVENING = "evening"
    NIGHT = "night"


class TimeContext(BaseModel):
    """Time-of-day context derived from a snapshot's local time. Not persisted."""

    model_config = ConfigDict(frozen=True)

    bucket: TimeBucket
    sleep_context: str
    formatted_time: str
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)


class InsightRecord(BaseModel):
    """Natural-language insights for one snapshot.

    Attribute names are snake_case; the model is asked for (and parsed from) the
    camelCase aliases. Every field except `alerts` is a non-empty string.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    summary: str = Field(min_length=1)
    clothing: str = Field(min_length=1)
    activities: str = Field(min_length=1)
    health: str = Field(min_length=1)
    travel: str = Field(min_length=1)
    context: str = Field(min_length=1)
    energy: str = Field(min_length=1)
    mood: str = Field(min_length=1)
    food_suggestions: str = Field(min_length=1)
    sleep_recommendations: str = Field(min_length=1)
    smart_home_settings: str = Field(min_length=1)
    outdoor_timing: str = Field(min_length=1)
    local_events: str = Field(min_length=1)
    astronomical_events: str = Field(min_length=1)
    productivity_insights: str = Field(min_length=1)
    recreational_spots: str = Field(min_length=1)
    alerts: str | None = None


# Wire names of the required insight fields, in prompt order.
INSIGHT_KEYS: tuple[str, ...] = tuple(
    field.alias for name, field in InsightRecord.model_fields.items() if name != "alerts"
)
ALERTS_KEY = "alerts"


class BasicInsights(BaseModel):
    """Minimal inline summary used when the insight layer itself fails."""

    model_config = ConfigDict(frozen=True)

    summary: str
    clothing: str
    activities: str


class AcquisitionStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"


class InsightStatus(str, Enum):
    PENDING = "pending"
    ATTACHED = "attached"
    DEGRADED = "degraded"


class AcquisitionState(BaseModel):
    """Observable UI state. Replaced as a whole on every transition."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: AcquisitionStatus = AcquisitionStatus.IDLE
    request_id: int = 0
    query: str | None = None
    weather: WeatherSnapshot | None = None
    insights: InsightRecord | BasicInsights | None = None
    insight_status: InsightStatus | None = None
    error: WeatherAppError | None = None

    @property
    def loading(self) -> bool:
        return self.status is AcquisitionStatus.FETCHING

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None

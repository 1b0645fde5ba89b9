# ABOUTME: Builds the natural-language insight request from a weather snapshot and time context.
# ABOUTME: Template assembly only: every snapshot field is rendered, nothing is summarized away.

from pydantic import BaseModel, ConfigDict

from src.conditions import air_quality_label, format_temp, format_value, uv_description
from src.models import ALERTS_KEY, INSIGHT_KEYS, DayForecast, TimeContext, WeatherSnapshot

FIELD_GUIDANCE: dict[str, str] = {
    "summary": "A friendly 2-3 sentence description of current conditions, temperatures, and any notable weather events",
    "clothing": "Specific clothing recommendations based on the temperature and conditions",
    "activities": "3-5 activity ideas that suit the weather at this time of day, or things to avoid",
    "health": "How the weather might affect health: allergies, respiratory issues, UV exposure, hydration",
    "travel": "Advice for travelers and commuters: road conditions, transit, walking and cycling safety",
    "context": "Put today's weather in seasonal context or compare it to typical conditions",
    "energy": "Tips for heating, cooling and ventilation based on the weather",
    "mood": "How this weather at this time of day tends to affect mood and well-being",
    "foodSuggestions": "Meal or drink ideas that suit the weather and the time of day",
    "sleepRecommendations": "Advice for sleeping well tonight given temperature, humidity and noise from wind or rain",
    "smartHomeSettings": "Suggested thermostat, humidifier, lighting and window settings",
    "outdoorTiming": "The best and worst windows for being outside in the coming hours",
    "localEvents": "The kind of local plans or venues that work in these conditions",
    "astronomicalEvents": "Sunrise, sunset, moon phase and sky-watching conditions",
    "productivityInsights": "How to plan focused work or chores around the weather and time of day",
    "recreationalSpots": "Types of places (indoor or outdoor) worth visiting in these conditions",
}


class InsightPrompt(BaseModel):
    """A rendered prompt and the keys its reply is expected to contain."""

    model_config = ConfigDict(frozen=True)

    text: str
    expected_keys: tuple[str, ...] = INSIGHT_KEYS


def build_insight_prompt(snapshot: WeatherSnapshot, ctx: TimeContext) -> InsightPrompt:
    """Render the insight request for a snapshot at the given time of day."""
    loc = snapshot.location
    place = ", ".join(p for p in (loc.name, loc.region, loc.country) if p)
    local_time = loc.localtime.strftime("%Y-%m-%d") + f" {ctx.formatted_time}"

    sections = [
        f"You are a helpful AI weather assistant. Based on the following weather data for {place}, "
        "provide personalized insights and recommendations as a single JSON object with these fields:",
        _render_schema(),
        f'Only include the "{ALERTS_KEY}" field if there are genuine weather hazards to be aware of; '
        "omit it entirely otherwise.",
        "Current Weather Data:\n" + _render_current(snapshot, local_time, ctx),
        "Forecast Data:\n" + "\n".join(_render_day(day) for day in snapshot.forecast),
        "Remaining Hours Today:\n" + _render_hours(snapshot.today, ctx.hour),
        "Official Alerts:\n" + _render_alerts(snapshot),
        _render_time_instructions(loc.name, local_time, ctx),
    ]
    return InsightPrompt(text="\n\n".join(sections))


def _render_schema() -> str:
    lines = [f'  "{key}": "{FIELD_GUIDANCE[key]}",' for key in INSIGHT_KEYS]
    lines.append(f'  "{ALERTS_KEY}": "Only if there are genuine weather hazards, otherwise omit"')
    return "{\n" + "\n".join(lines) + "\n}"


def _render_current(snapshot: WeatherSnapshot, local_time: str, ctx: TimeContext) -> str:
    cur = snapshot.current
    loc = snapshot.location
    aq = cur.air_quality
    if aq is not None:
        air = (
            f"US EPA index {format_value(aq.us_epa_index)} ({air_quality_label(aq.us_epa_index)}), "
            f"PM2.5: {format_value(aq.pm2_5)}, PM10: {format_value(aq.pm10)}, CO: {format_value(aq.co)}, "
            f"NO2: {format_value(aq.no2)}, O3: {format_value(aq.o3)}, SO2: {format_value(aq.so2)}"
        )
    else:
        air = "Not available"
    lines = [
        f"- Location: {loc.name}, {loc.region or 'n/a'}, {loc.country or 'n/a'}",
        f"- Local Time: {local_time} ({ctx.bucket.value}, {ctx.sleep_context})",
        f"- Temperature: {format_temp(cur.temp_c)} (feels like {format_temp(cur.feelslike_c)})",
        f"- Condition: {cur.condition} ({'day' if cur.is_day else 'night'})",
        f"- Wind: {format_value(cur.wind_kph, ' km/h')}, {cur.wind_dir or 'n/a'}",
        f"- Humidity: {format_value(cur.humidity, '%')}",
        f"- UV Index: {format_value(cur.uv)} ({uv_description(cur.uv)})",
        f"- Precipitation: {format_value(cur.precip_mm, ' mm')}",
        f"- Visibility: {format_value(cur.vis_km, ' km')}",
        f"- Pressure: {format_value(cur.pressure_mb, ' mb')}",
        f"- Air Quality: {air}",
    ]
    return "\n".join(lines)


def _render_day(forecast: DayForecast) -> str:
    day, astro = forecast.day, forecast.astro
    return "\n".join(
        [
            f"- {forecast.date.isoformat()}: {day.condition or 'n/a'}",
            f"  Max Temperature: {format_temp(day.maxtemp_c)}, Min Temperature: {format_temp(day.mintemp_c)}",
            f"  Average Humidity: {format_value(day.avghumidity, '%')}",
            f"  Total Precipitation: {format_value(day.totalprecip_mm, ' mm')}",
            f"  Chance of Rain: {format_value(day.daily_chance_of_rain, '%')}",
            f"  UV Index: {format_value(day.uv)}",
            f"  Sunrise: {astro.sunrise or 'n/a'}, Sunset: {astro.sunset or 'n/a'}",
            f"  Moonrise: {astro.moonrise or 'n/a'}, Moonset: {astro.moonset or 'n/a'}, "
            f"Moon Phase: {astro.moon_phase or 'n/a'} ({format_value(astro.moon_illumination, '%')} illuminated)",
        ]
    )


def _render_hours(today: DayForecast, from_hour: int) -> str:
    hours = [h for h in today.hours if h.time.hour >= from_hour]
    if not hours:
        return "- None"
    return "\n".join(
        f"- {h.time.strftime('%H:%M')}: {format_temp(h.temp_c)}, {h.condition or 'n/a'}, "
        f"rain chance {format_value(h.chance_of_rain, '%')}"
        for h in hours
    )


def _render_alerts(snapshot: WeatherSnapshot) -> str:
    if not snapshot.alerts:
        return "- None issued"
    return "\n".join(
        f"- {a.event} (severity: {a.severity or 'unknown'}): {a.headline or a.description or ''}".rstrip(": ")
        for a in snapshot.alerts
    )


def _render_time_instructions(name: str, local_time: str, ctx: TimeContext) -> str:
    lines = [
        f"IMPORTANT: It is currently {ctx.bucket.value} ({local_time}) in {name}, during {ctx.sleep_context}. "
        "Tailor every field to this time of day.",
    ]
    if ctx.sleep_context in ("sleep hours", "pre-sleep hours"):
        lines.append(
            "Most people are asleep or getting ready for bed. Do not suggest outdoor activities, "
            "photography outings or errands; focus on rest, comfort and the next morning."
        )
    lines += [
        f"Activities: suggest things that make sense for {ctx.bucket.value}.",
        "Write in a friendly, conversational tone while being informative.",
        f"Greet the user appropriately for the time of day in {name}.",
        "Respond with the JSON object only.",
    ]
    return "\n".join(lines)

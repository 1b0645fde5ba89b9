# ABOUTME: Turns a raw language model reply into a complete InsightRecord, never raising.
# ABOUTME: Extracts the brace-delimited JSON span and fills gaps from a deterministic fallback generator.

import json
import logging

from pydantic.alias_generators import to_snake

from src.conditions import format_temp, format_value, uv_description
from src.models import ALERTS_KEY, INSIGHT_KEYS, InsightRecord, TimeContext, WeatherSnapshot

logger = logging.getLogger(__name__)

# Hours before this get the sleep-oriented fallback.
DEAD_OF_NIGHT_END_HOUR = 5


def extract_json_span(text: str | None) -> str | None:
    """Return the largest brace-delimited substring of `text`, or None.

    First "{" through the last "}", so prose around the object is tolerated.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


def resolve_insights(raw: str | None, snapshot: WeatherSnapshot, ctx: TimeContext) -> InsightRecord:
    """Parse a model reply into an InsightRecord.

    Keys missing or empty in the reply are filled from the fallback generator. If no
    JSON object can be decoded at all, the whole record comes from the fallback.
    `alerts` is kept only when the reply itself carries a non-empty value.
    """
    fallback = build_fallback_insights(snapshot, ctx)

    span = extract_json_span(raw)
    if span is None:
        logger.warning("No JSON object in insight reply for %s, using fallback", snapshot.location.name)
        return fallback
    try:
        decoded = json.loads(span)
    except (ValueError, RecursionError) as e:
        logger.warning("Could not decode insight reply for %s (%s), using fallback", snapshot.location.name, e)
        return fallback
    if not isinstance(decoded, dict):
        return fallback

    values = fallback.model_dump(by_alias=True, exclude={"alerts"})
    missing = []
    for key in INSIGHT_KEYS:
        text = _as_text(_lookup(decoded, key))
        if text is None:
            missing.append(key)
        else:
            values[key] = text
    if missing:
        logger.debug("Insight reply missing %s, filled from fallback", ", ".join(missing))

    alerts = _as_text(decoded.get(ALERTS_KEY))
    if alerts is not None:
        values[ALERTS_KEY] = alerts
    return InsightRecord.model_validate(values)


def _lookup(decoded: dict, key: str):
    if key in decoded:
        return decoded[key]
    return decoded.get(to_snake(key))


def _as_text(value) -> str | None:
    """Coerce a decoded JSON value to usable text, or None when it carries nothing."""
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        items = [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
        return "; ".join(items) or None
    return None


def build_fallback_insights(snapshot: WeatherSnapshot, ctx: TimeContext) -> InsightRecord:
    """Synthesize a full InsightRecord from the snapshot alone.

    Deterministic: the output depends only on the arguments. Before 5am every field is
    sleep-oriented and names the current time; otherwise generic templates are filled
    with temperature, condition, location and time-of-day label.
    """
    facts = _facts(snapshot, ctx)
    templates = _NIGHT_TEMPLATES if ctx.hour < DEAD_OF_NIGHT_END_HOUR else _DAY_TEMPLATES
    values = {key: templates[key].format(**facts) for key in INSIGHT_KEYS}
    if snapshot.alerts:
        events = ", ".join(dict.fromkeys(a.event for a in snapshot.alerts))
        values[ALERTS_KEY] = f"Official weather alert in effect for {facts['name']}: {events}. Check local guidance."
    return InsightRecord.model_validate(values)


def _facts(snapshot: WeatherSnapshot, ctx: TimeContext) -> dict[str, str]:
    cur = snapshot.current
    today = snapshot.today
    temp = cur.temp_c
    condition = cur.condition.strip().lower() or "current conditions"
    wet = any(w in condition for w in ("rain", "drizzle", "shower", "snow", "sleet", "storm", "thunder"))
    clear = "clear" in condition or "sunny" in condition

    if temp < 0:
        clothing = "a heavy coat, hat, gloves and warm boots"
    elif temp < 10:
        clothing = "a warm jacket and layers"
    elif temp < 18:
        clothing = "a light jacket or sweater"
    elif temp < 25:
        clothing = "light, breathable clothes"
    else:
        clothing = "loose, light clothing, a hat and sunscreen"
    if wet:
        clothing += ", plus waterproofs or an umbrella"

    if temp < 16:
        energy = "run the heating a little lower and keep doors and windows closed to hold the warmth"
        food = "warm soups, stews and hot drinks"
        night_food = "a warm herbal tea or warm milk"
        thermostat = "heating on a gentle night setback around 17°C"
    elif temp > 24:
        energy = "use fans before air conditioning and close blinds against the sun"
        food = "light salads, fruit and plenty of cold water"
        night_food = "a glass of cool water"
        thermostat = "cooling or a quiet fan set for a bedroom around 19°C"
    else:
        energy = "skip heating and cooling and open windows for natural ventilation"
        food = "fresh, seasonal meals"
        night_food = "a glass of water or a caffeine-free tea"
        thermostat = "climate control off or in eco mode"

    outdoor_friendly = not wet and 10 <= temp <= 28
    if outdoor_friendly:
        activity = "a walk, a bike ride or time in a park"
        spots = "parks, riverside paths and outdoor terraces"
    else:
        activity = "museums, a gym session, a café or a film"
        spots = "museums, galleries, indoor markets and cafés"

    return {
        "name": snapshot.location.name,
        "temp": format_temp(temp),
        "condition": condition,
        "Condition": condition.capitalize(),
        "bucket": ctx.bucket.value,
        "time": ctx.formatted_time,
        "sleep_context": ctx.sleep_context,
        "high": format_temp(today.day.maxtemp_c),
        "low": format_temp(today.day.mintemp_c),
        "rain_chance": format_value(today.day.daily_chance_of_rain, "%"),
        "humidity": format_value(cur.humidity, "%"),
        "uv": uv_description(cur.uv).lower(),
        "visibility": format_value(cur.vis_km, " km"),
        "sunrise": today.astro.sunrise or "sunrise",
        "sunset": today.astro.sunset or "sunset",
        "moon_phase": (today.astro.moon_phase or "unknown").lower(),
        "illumination": format_value(today.astro.moon_illumination, "%"),
        "clothing": clothing,
        "energy": energy,
        "food": food,
        "night_food": night_food,
        "thermostat": thermostat,
        "windows": "closed" if wet or temp < 10 else "slightly open",
        "activity": activity,
        "spots": spots,
        "travel": "allow extra time, as wet roads and spray slow things down" if wet else "conditions look straightforward",
        "sky": "Clear skies make it a good time to look up." if clear else f"The {condition} will likely hide much of the sky.",
    }


_NIGHT_TEMPLATES: dict[str, str] = {
    "summary": (
        "It's {time} in the middle of the night in {name}, where it's {temp} with {condition}. "
        "You're up at an unusual hour, so here is what matters if you're awake right now."
    ),
    "clothing": (
        "If you're in bed, keep an extra blanket within reach, as it's {temp} outside at {time}. "
        "If you have to step out, wear {clothing}."
    ),
    "activities": (
        "At {time} the best plan is rest. Keep anything you do quiet and indoors, like reading "
        "or a calm playlist, rather than heading out into the {condition}."
    ),
    "health": (
        "Sleep is the priority at {time}. Sip some water, keep screens dim, and avoid caffeine "
        "so you can settle again. Humidity is {humidity} overnight."
    ),
    "travel": (
        "If you must travel at {time}, expect dark, quiet roads and {condition} with visibility "
        "around {visibility}. Drive slowly and let someone know your plans."
    ),
    "context": (
        "Overnight readings like {temp} at {time} are usually close to the day's low in {name}; "
        "today is expected to range from {low} to {high}."
    ),
    "energy": "At {time} with {temp} outside, {energy}, and switch off anything you don't need overnight.",
    "mood": (
        "Being awake at {time} can make things feel heavier than they are. Dim light and a slow, "
        "familiar routine help your mind wind down."
    ),
    "foodSuggestions": (
        "If you're hungry at {time}, keep it light: {night_food} and a small snack rather than a full meal."
    ),
    "sleepRecommendations": (
        "With {temp} and {condition} outside at {time}, keep the bedroom cool, dark and quiet and "
        "try to get back to sleep soon. Sunrise is at {sunrise}."
    ),
    "smartHomeSettings": (
        "Night mode for {time}: {thermostat}, lights off or a dim warm night-light, windows {windows}."
    ),
    "outdoorTiming": (
        "Not now. It's {time} and {temp}; wait until after sunrise ({sunrise}) for outdoor plans. "
        "The high today should reach {high}."
    ),
    "localEvents": (
        "Nothing in {name} is worth going out for at {time}. Check what's on later today once you've slept."
    ),
    "astronomicalEvents": (
        "At {time} the moon phase is {moon_phase} ({illumination} illuminated). {sky} Sunrise is at {sunrise}."
    ),
    "productivityInsights": (
        "Work done at {time} costs you tomorrow. Jot down whatever is keeping you up and pick it "
        "up after a proper rest."
    ),
    "recreationalSpots": (
        "Your bed is the best spot at {time}. Save {spots} in {name} for later today."
    ),
}

_DAY_TEMPLATES: dict[str, str] = {
    "summary": (
        "It's currently {temp} and {condition} in {name} this {bucket} ({time}). "
        "Today ranges from {low} to {high} with a {rain_chance} chance of rain."
    ),
    "clothing": "For {temp} and {condition} in {name} this {bucket}, wear {clothing}.",
    "activities": "With {condition} at {temp}, good {bucket} options in {name} include {activity}.",
    "health": (
        "Dress for {temp}, stay hydrated, and note the {uv} UV level with {condition} in {name} this {bucket}."
    ),
    "travel": "Getting around {name} this {bucket} with {condition} at {temp}: {travel}.",
    "context": "{temp} with {condition} this {bucket} sits within today's expected range of {low} to {high} in {name}.",
    "energy": "At {temp} with {condition} in {name} this {bucket}, {energy}.",
    "mood": (
        "{Condition} at {temp} this {bucket} in {name} can shape your energy; "
        "make time for daylight and a short break."
    ),
    "foodSuggestions": "Try {food} to suit {temp} and {condition} in {name} this {bucket}.",
    "sleepRecommendations": (
        "After a {bucket} of {condition} at {temp} in {name}, expect lows near {low} tonight; "
        "keep the bedroom cool and dark."
    ),
    "smartHomeSettings": (
        "For {temp} and {condition} in {name} this {bucket}: {thermostat}, windows {windows}."
    ),
    "outdoorTiming": (
        "In {name} it's {temp} with {condition} this {bucket}; daylight runs from {sunrise} to {sunset}, "
        "so plan outdoor time inside that window."
    ),
    "localEvents": "With {condition} at {temp} this {bucket}, look for events in {name} around {spots}.",
    "astronomicalEvents": (
        "Sunrise {sunrise}, sunset {sunset}, and the moon phase over {name} is {moon_phase} ({illumination} illuminated). "
        "{sky} It's {temp} and {condition} this {bucket}."
    ),
    "productivityInsights": (
        "{Condition} at {temp} this {bucket} in {name}: line up focused work now and save errands "
        "for the driest part of the day."
    ),
    "recreationalSpots": "With {temp} and {condition} this {bucket}, try {spots} in {name}.",
}

# ABOUTME: Human-readable labels for raw condition readings (UV index, US EPA air quality).
# ABOUTME: Shared by the insight prompt and the fallback insight generator.


def uv_description(uv: float | None) -> str:
    if uv is None:
        return "Unknown"
    if uv <= 2:
        return "Low"
    if uv <= 5:
        return "Moderate"
    if uv <= 7:
        return "High"
    if uv <= 10:
        return "Very High"
    return "Extreme"


_EPA_LABELS = {
    1: "Good",
    2: "Moderate",
    3: "Unhealthy for Sensitive Groups",
    4: "Unhealthy",
    5: "Very Unhealthy",
    6: "Hazardous",
}


def air_quality_label(us_epa_index: int | None) -> str:
    """Label for a US EPA air quality index (1-6)."""
    return _EPA_LABELS.get(us_epa_index, "Unknown")


def format_temp(value: float | None) -> str:
    """Render a Celsius reading, dropping a trailing .0 ("5°C", "5.5°C")."""
    if value is None:
        return "n/a"
    return f"{value:g}°C"


def format_value(value, unit: str = "") -> str:
    if value is None:
        return "n/a"
    if isinstance(value, float):
        value = f"{value:g}"
    return f"{value}{unit}"

# ABOUTME: Contract tests for insight prompt assembly.
# ABOUTME: Checks that every snapshot field and time-of-day instruction appears in the rendered text.

from src.models import INSIGHT_KEYS
from src.prompts import build_insight_prompt
from src.time_context import classify_time


class TestBuildInsightPrompt:
    def test_embeds_location_and_current_conditions(self, snapshot):
        """The prompt carries location identity and every current-condition reading.

        Implementation: Renders the London fixture and searches for each value.
        Passing implies: No current-condition field is dropped from the model's input.
        """
        text = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime)).text

        for expected in [
            "London",
            "City of London, Greater London",
            "United Kingdom",
            "5°C",
            "feels like 2.1°C",
            "Light rain",
            "14.4 km/h, SW",
            "Humidity: 87%",
            "UV Index: 0 (Low)",
            "Precipitation: 0.4 mm",
            "Visibility: 8 km",
            "Pressure: 1012 mb",
            "PM2.5: 6.5",
            "(Good)",
        ]:
            assert expected in text, expected

    def test_embeds_forecast_aggregates_and_astronomy(self, snapshot):
        text = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime)).text

        for expected in [
            "Max Temperature: 8.2°C",
            "Min Temperature: 3.1°C",
            "Average Humidity: 84%",
            "Total Precipitation: 3.5 mm",
            "Chance of Rain: 85%",
            "Sunrise: 08:01 AM",
            "Sunset: 04:22 PM",
            "Moon Phase: Waning Gibbous",
            "2025-01-16",
        ]:
            assert expected in text, expected

    def test_lists_every_expected_key_and_alert_rule(self, snapshot):
        """The prompt names every insight key and makes alerts conditional.

        Implementation: Checks each camelCase key and the alerts instruction.
        Passing implies: The reply can be parsed against the same key set.
        """
        prompt = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime))

        assert prompt.expected_keys == INSIGHT_KEYS
        for key in INSIGHT_KEYS:
            assert f'"{key}"' in prompt.text
        assert '"alerts"' in prompt.text
        assert "omit it entirely otherwise" in prompt.text

    def test_sleep_hours_suppress_outdoor_guidance(self, snapshot):
        """During sleep hours the prompt tells the model to avoid outdoor suggestions.

        Implementation: Renders at 2:30 local time.
        Passing implies: The time bucket shapes the request, not only the label.
        """
        text = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime)).text
        assert "late night" in text
        assert "sleep hours" in text
        assert "Do not suggest outdoor activities" in text

    def test_daytime_has_no_sleep_instruction(self, make_snapshot):
        snapshot = make_snapshot(localtime="2025-01-15 13:10")
        text = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime)).text
        assert "midday" in text
        assert "Do not suggest outdoor activities" not in text

    def test_includes_remaining_hours_and_alerts(self, make_snapshot):
        snapshot = make_snapshot(
            localtime="2025-01-15 22:05",
            alerts=[{"event": "Wind Warning", "severity": "Moderate", "headline": "Gusts to 80 km/h"}],
        )
        text = build_insight_prompt(snapshot, classify_time(snapshot.location.localtime)).text
        assert "- 22:00:" in text
        assert "- 23:00:" in text
        assert "- 21:00:" not in text
        assert "Wind Warning (severity: Moderate): Gusts to 80 km/h" in text

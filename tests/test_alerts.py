# ABOUTME: Unit tests for severe alert filtering and notification dispatch.
# ABOUTME: Uses an in-memory store and a mock notification surface.

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.alerts import NOTIFICATIONS_KEY, AlertNotifier, severe_alerts
from src.models import WeatherAlert
from src.storage import InMemoryStore


def _surface(granted: bool = True) -> MagicMock:
    surface = MagicMock()
    surface.request_permission = AsyncMock(return_value=granted)
    return surface


class TestSevereAlerts:
    def test_keeps_only_severe_and_extreme(self):
        alerts = [
            WeatherAlert(event="Fog Advisory", severity="Minor"),
            WeatherAlert(event="Flood Warning", severity="Severe"),
            WeatherAlert(event="Tornado Warning", severity=" EXTREME "),
            WeatherAlert(event="Heat Statement", severity=None),
        ]
        assert [a.event for a in severe_alerts(alerts)] == ["Flood Warning", "Tornado Warning"]


class TestAlertNotifier:
    @pytest.mark.asyncio
    async def test_enable_requires_permission(self):
        store = InMemoryStore()
        notifier = AlertNotifier(store, _surface(granted=False))

        assert await notifier.enable("London") is False
        assert store.get(NOTIFICATIONS_KEY) is None

    @pytest.mark.asyncio
    async def test_enable_confirms_with_location(self):
        store = InMemoryStore()
        surface = _surface()
        notifier = AlertNotifier(store, surface)

        assert await notifier.enable("London") is True
        assert notifier.enabled
        surface.show.assert_called_once_with(
            "Weather Notifications Enabled", "You'll be notified about important weather updates for London."
        )

    def test_disable_persists(self):
        store = InMemoryStore({NOTIFICATIONS_KEY: "true"})
        notifier = AlertNotifier(store, _surface())
        notifier.disable()
        assert store.get(NOTIFICATIONS_KEY) == "false"
        assert not notifier.enabled

    def test_dispatch_shows_severe_alerts_only(self, make_snapshot):
        """Only severe or extreme alerts are pushed, one notification each.

        Implementation: Dispatches a snapshot with mixed-severity alerts.
        Passing implies: Minor advisories do not interrupt the user.
        """
        snapshot = make_snapshot(
            alerts=[
                {"event": "Fog Advisory", "severity": "Minor", "desc": "Patchy fog"},
                {"event": "Flood Warning", "severity": "Severe", "desc": "Rivers rising"},
                {"event": "Wind Warning", "severity": "Extreme", "headline": "Gusts to 120 km/h"},
            ]
        )
        surface = _surface()
        notifier = AlertNotifier(InMemoryStore({NOTIFICATIONS_KEY: "true"}), surface)

        assert notifier.dispatch(snapshot) == 2
        assert [c.args for c in surface.show.call_args_list] == [
            ("Weather Alert: Flood Warning", "Rivers rising"),
            ("Weather Alert: Wind Warning", "Gusts to 120 km/h"),
        ]

    def test_dispatch_is_silent_when_disabled(self, make_snapshot):
        snapshot = make_snapshot(alerts=[{"event": "Flood Warning", "severity": "Severe"}])
        surface = _surface()
        assert AlertNotifier(InMemoryStore(), surface).dispatch(snapshot) == 0
        surface.show.assert_not_called()

# ABOUTME: Severe weather alert filtering and user-notification dispatch.
# ABOUTME: The on/off preference lives in a key-value store; delivery is fire-and-forget.

import logging
from typing import Iterable, Protocol

from src.models import WeatherAlert, WeatherSnapshot
from src.storage import KeyValueStore

logger = logging.getLogger(__name__)

NOTIFICATIONS_KEY = "weatherNotifications"
SEVERE_LEVELS = frozenset({"severe", "extreme"})


class Notifier(Protocol):
    """A notification surface: permission prompt plus display."""

    async def request_permission(self) -> bool: ...

    def show(self, title: str, body: str) -> None: ...


def severe_alerts(alerts: Iterable[WeatherAlert]) -> list[WeatherAlert]:
    return [a for a in alerts if (a.severity or "").strip().lower() in SEVERE_LEVELS]


class AlertNotifier:
    def __init__(self, store: KeyValueStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier

    @property
    def enabled(self) -> bool:
        return self.store.get(NOTIFICATIONS_KEY) == "true"

    async def enable(self, location_name: str | None = None) -> bool:
        """Ask for permission and turn notifications on if granted. Returns the new setting."""
        if not await self.notifier.request_permission():
            return self.enabled
        self.store.set(NOTIFICATIONS_KEY, "true")
        self.notifier.show(
            "Weather Notifications Enabled",
            f"You'll be notified about important weather updates for {location_name or 'your location'}.",
        )
        return True

    def disable(self) -> None:
        self.store.set(NOTIFICATIONS_KEY, "false")

    def dispatch(self, snapshot: WeatherSnapshot) -> int:
        """Show one notification per severe or extreme alert. Returns how many were shown."""
        if not self.enabled:
            return 0
        shown = 0
        for alert in severe_alerts(snapshot.alerts):
            self.notifier.show(f"Weather Alert: {alert.event}", alert.description or alert.headline or "")
            shown += 1
        if shown:
            logger.info("Sent %d severe weather notification(s) for %s", shown, snapshot.location.name)
        return shown

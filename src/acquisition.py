# ABOUTME: Request orchestrator: fetches weather for a query or device position, then attaches insights.
# ABOUTME: Publishes immutable AcquisitionState objects; only the newest request may write state.

import asyncio
import logging
from typing import Callable, Protocol

from src.alerts import AlertNotifier
from src.conditions import format_temp
from src.deps import WeatherDeps
from src.errors import (
    GEOLOCATION_UNSUPPORTED_MESSAGE,
    AcquisitionError,
    ErrorKind,
    GeolocationCode,
    GeolocationError,
    WeatherAppError,
)
from src.geolocation import Geolocator
from src.models import (
    AcquisitionState,
    AcquisitionStatus,
    BasicInsights,
    InsightRecord,
    InsightStatus,
    LocationQuery,
    WeatherSnapshot,
)
from src.weather_service import fetch_snapshot

logger = logging.getLogger(__name__)

GEOLOCATION_TIMEOUT_SECONDS = 10.0

StateListener = Callable[[AcquisitionState], None]


class InsightGenerator(Protocol):
    async def generate(self, snapshot: WeatherSnapshot) -> InsightRecord: ...


def basic_insights(snapshot: WeatherSnapshot) -> BasicInsights:
    """Inline summary built straight from the snapshot, used when the insight layer raises."""
    cur = snapshot.current
    return BasicInsights(
        summary=f"It's currently {format_temp(cur.temp_c)} and {cur.condition.lower()} in {snapshot.location.name}.",
        clothing="Wear appropriate clothing for the current weather conditions.",
        activities="Plan your activities according to the current weather forecast.",
    )


class WeatherAcquisition:
    """Runs the weather -> insight pipeline and owns the observable state.

    Every call gets a monotonically increasing request id. A completion whose id is
    not the latest is dropped, so a slow older request never overwrites a newer one.
    The fetch methods never raise; failures are reported through the state.
    """

    def __init__(
        self,
        deps: WeatherDeps,
        insights: InsightGenerator,
        *,
        geolocator: Geolocator | None = None,
        notifier: AlertNotifier | None = None,
    ):
        self.deps = deps
        self.insights = insights
        self.geolocator = geolocator
        self.notifier = notifier
        self._state = AcquisitionState()
        self._latest_request = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> AcquisitionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def fetch_by_query(self, raw_query: str | None) -> AcquisitionState:
        """Fetch weather and insights for a place name or "lat,lon" string.

        Blank input fails with INVALID_QUERY before any network call.
        """
        return await self._run_query(self._next_request(), raw_query)

    async def fetch_by_geolocation(self) -> AcquisitionState:
        """Resolve the device position, then fetch as `fetch_by_query("lat,lon")`.

        Geolocation failures are reported without calling the weather provider.
        """
        request_id = self._next_request()
        self._publish(AcquisitionState(status=AcquisitionStatus.FETCHING, request_id=request_id))

        if self.geolocator is None:
            return self._fail(request_id, None, GeolocationError(None, GEOLOCATION_UNSUPPORTED_MESSAGE))
        try:
            coords = await asyncio.wait_for(
                self.geolocator.current_position(
                    high_accuracy=True, timeout=GEOLOCATION_TIMEOUT_SECONDS, maximum_age=0
                ),
                timeout=GEOLOCATION_TIMEOUT_SECONDS,
            )
        except GeolocationError as e:
            logger.warning("Geolocation failed with code %s", e.code)
            return self._fail(request_id, None, e)
        except asyncio.TimeoutError:
            logger.warning("Geolocation timed out after %ss", GEOLOCATION_TIMEOUT_SECONDS)
            return self._fail(request_id, None, GeolocationError(GeolocationCode.TIMEOUT))

        return await self._run_query(request_id, coords.as_query())

    async def _run_query(self, request_id: int, raw_query: str | None) -> AcquisitionState:
        try:
            query = LocationQuery.parse(raw_query)
        except AcquisitionError as e:
            return self._fail(request_id, raw_query, e)

        self._publish(AcquisitionState(status=AcquisitionStatus.FETCHING, request_id=request_id, query=query.text))
        try:
            snapshot = await fetch_snapshot(self.deps, query)
        except AcquisitionError as e:
            return self._fail(request_id, query.text, e)
        except Exception:
            logger.exception("Unexpected error fetching weather for %r", query.text)
            return self._fail(request_id, query.text, AcquisitionError(ErrorKind.UNKNOWN))

        self._publish(
            AcquisitionState(
                status=AcquisitionStatus.READY,
                request_id=request_id,
                query=query.text,
                weather=snapshot,
                insight_status=InsightStatus.PENDING,
            )
        )
        self._notify_alerts(snapshot)

        try:
            insights = await self.insights.generate(snapshot)
            insight_status = InsightStatus.ATTACHED
        except Exception:
            logger.exception("Insight layer failed for %s, attaching inline summary", snapshot.location.name)
            insights = basic_insights(snapshot)
            insight_status = InsightStatus.DEGRADED

        final = AcquisitionState(
            status=AcquisitionStatus.READY,
            request_id=request_id,
            query=query.text,
            weather=snapshot,
            insights=insights,
            insight_status=insight_status,
        )
        self._publish(final)
        return final

    def _notify_alerts(self, snapshot: WeatherSnapshot) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch(snapshot)
        except Exception:
            logger.exception("Alert notification failed for %s", snapshot.location.name)

    def _next_request(self) -> int:
        self._latest_request += 1
        return self._latest_request

    def _fail(self, request_id: int, query: str | None, error: WeatherAppError) -> AcquisitionState:
        state = AcquisitionState(status=AcquisitionStatus.FAILED, request_id=request_id, query=query, error=error)
        self._publish(state)
        return state

    def _publish(self, state: AcquisitionState) -> None:
        if state.request_id != self._latest_request:
            logger.debug("Dropping stale state for request %d (latest is %d)", state.request_id, self._latest_request)
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

# ABOUTME: Tests for the Starlette web surface.
# ABOUTME: Injects mocked weather deps, a fallback-backed insight generator and in-memory history.

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from starlette.testclient import TestClient

from src.alerts import NOTIFICATIONS_KEY, AlertNotifier
from src.config import Settings
from src.deps import WeatherDeps
from src.errors import GeolocationCode, GeolocationError
from src.history import SearchHistory
from src.insight_parser import build_fallback_insights
from src.models import AcquisitionState, AcquisitionStatus, Coordinates, InsightStatus
from src.storage import InMemoryStore
from src.time_context import classify_time
from src.web import create_app, http_status, serialize_state


class FallbackInsights:
    async def generate(self, snapshot):
        return build_fallback_insights(snapshot, classify_time(snapshot.location.localtime))


class StaticGeolocator:
    def __init__(self, coords=None, error=None):
        self.coords = coords
        self.error = error

    async def current_position(self, **options):
        if self.error:
            raise self.error
        return self.coords


def _mock_client(json_data: dict, status_code: int = 200) -> httpx.AsyncClient:
    mock = AsyncMock(spec=httpx.AsyncClient)
    mock.get.return_value = httpx.Response(
        status_code=status_code, json=json_data, request=httpx.Request("GET", "https://test")
    )
    return mock


@pytest.fixture
def history() -> SearchHistory:
    return SearchHistory(InMemoryStore())


@pytest.fixture
def make_client(history):
    def _make(json_data: dict, status_code: int = 200, geolocator=None, notifier=None) -> TestClient:
        deps = WeatherDeps(http_client=_mock_client(json_data, status_code), api_key="k", api_url="https://test")
        app = create_app(
            Settings(weather_api_key="k", openrouter_api_key=""),
            deps=deps,
            insight_service=FallbackInsights(),
            history=history,
            geolocator_factory=lambda request: geolocator,
            notifier=notifier,
        )
        return TestClient(app)

    return _make


class TestWeatherRoute:
    def test_success_returns_weather_and_camel_case_insights(self, make_client, payload, history):
        """A successful search returns 200, the snapshot, camelCase insights, and is recorded.

        Implementation: Requests /api/weather?q=London against a mocked provider.
        Passing implies: The browser UI gets the same insight keys the model is asked for.
        """
        resp = make_client(payload).get("/api/weather", params={"q": "London"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ready"
        assert body["insight_status"] == "attached"
        assert body["weather"]["location"]["name"] == "London"
        assert "foodSuggestions" in body["insights"]
        assert "food_suggestions" not in body["insights"]
        assert "alerts" not in body["insights"]
        assert body["error"] is None
        assert history.recent() == ["London"]

    def test_blank_query_is_bad_request(self, make_client, payload, history):
        resp = make_client(payload).get("/api/weather", params={"q": "  "})

        assert resp.status_code == 400
        assert resp.json()["error"] == {"kind": "invalid_query", "message": "Please enter a valid location"}
        assert history.recent() == []

    @pytest.mark.parametrize(
        "provider_status, expected_status, kind",
        [(400, 404, "location_not_found"), (401, 502, "auth_failure"), (500, 502, "unknown")],
    )
    def test_provider_errors_map_to_http_status(self, make_client, provider_status, expected_status, kind):
        resp = make_client({}, status_code=provider_status).get("/api/weather", params={"q": "Nowhere"})
        assert resp.status_code == expected_status
        assert resp.json()["error"]["kind"] == kind

    def test_severe_alerts_reach_configured_notifier(self, make_client, make_payload):
        """A notifier passed to create_app receives severe alerts from a search.

        Implementation: Enables notifications in memory and searches a city with a severe alert.
        Passing implies: The web surface can push alerts when given a notification surface.
        """
        surface = MagicMock()
        notifier = AlertNotifier(InMemoryStore({NOTIFICATIONS_KEY: "true"}), surface)
        payload = make_payload(alerts=[{"event": "Flood Warning", "severity": "Severe", "desc": "Rivers rising"}])

        resp = make_client(payload, notifier=notifier).get("/api/weather", params={"q": "London"})

        assert resp.status_code == 200
        surface.show.assert_called_once_with("Weather Alert: Flood Warning", "Rivers rising")


class TestWeatherHereRoute:
    def test_uses_geolocated_coordinates(self, make_client, payload):
        client = make_client(payload, geolocator=StaticGeolocator(Coordinates(latitude=51.5, longitude=-0.12)))
        resp = client.get("/api/weather/here")

        assert resp.status_code == 200
        assert resp.json()["query"] == "51.5,-0.12"

    def test_geolocation_failure_is_unprocessable(self, make_client, payload):
        geolocator = StaticGeolocator(error=GeolocationError(GeolocationCode.PERMISSION_DENIED))
        resp = make_client(payload, geolocator=geolocator).get("/api/weather/here")

        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["kind"] == "geolocation"
        assert error["code"] == 1
        assert error["message"].startswith("Location access denied")


class TestSuggestionsRoute:
    def test_filters_recent_searches(self, make_client, payload, history):
        history.add("London")
        history.add("Lisbon")
        client = make_client(payload)

        assert client.get("/api/suggestions", params={"q": "lon"}).json() == {"suggestions": ["London"]}
        assert client.get("/api/suggestions").json() == {"suggestions": ["Lisbon", "London"]}


class TestSerializeState:
    def test_idle_state(self):
        state = AcquisitionState()
        assert serialize_state(state) == {
            "status": "idle",
            "query": None,
            "weather": None,
            "insights": None,
            "insight_status": None,
            "error": None,
        }
        assert http_status(state) == 500

    def test_pending_insights_serialize_as_null(self, snapshot):
        state = AcquisitionState(
            status=AcquisitionStatus.READY, request_id=1, weather=snapshot, insight_status=InsightStatus.PENDING
        )
        body = serialize_state(state)
        assert body["insights"] is None
        assert body["insight_status"] == "pending"
        assert http_status(state) == 200

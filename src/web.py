# ABOUTME: ASGI web entry point serving weather, insights and search suggestions to the browser UI.
# ABOUTME: Creates a Starlette app that runs one WeatherAcquisition per request and returns its state as JSON.

import logging
from contextlib import asynccontextmanager
from typing import Callable

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from src.acquisition import InsightGenerator, WeatherAcquisition
from src.alerts import AlertNotifier
from src.config import Settings
from src.deps import WeatherDeps
from src.errors import AcquisitionError, ErrorKind, GeolocationError
from src.geolocation import Geolocator, IpGeolocator
from src.history import SearchHistory
from src.insight_service import InsightService
from src.models import AcquisitionState, AcquisitionStatus
from src.storage import InMemoryStore, JsonFileStore

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    ErrorKind.INVALID_QUERY: 400,
    ErrorKind.LOCATION_NOT_FOUND: 404,
    ErrorKind.AUTH_FAILURE: 502,
    ErrorKind.NETWORK_UNREACHABLE: 503,
    ErrorKind.UNKNOWN: 502,
}

GeolocatorFactory = Callable[[Request], Geolocator]


def serialize_state(state: AcquisitionState) -> dict:
    """JSON-ready view of an acquisition state. Insight keys use their camelCase names."""
    error = None
    if isinstance(state.error, AcquisitionError):
        error = {"kind": state.error.kind.value, "message": state.error.message}
    elif isinstance(state.error, GeolocationError):
        error = {"kind": "geolocation", "code": state.error.code, "message": state.error.message}
    return {
        "status": state.status.value,
        "query": state.query,
        "weather": state.weather.model_dump(mode="json") if state.weather else None,
        "insights": state.insights.model_dump(by_alias=True, exclude_none=True) if state.insights else None,
        "insight_status": state.insight_status.value if state.insight_status else None,
        "error": error,
    }


def http_status(state: AcquisitionState) -> int:
    if state.status is AcquisitionStatus.READY:
        return 200
    if isinstance(state.error, AcquisitionError):
        return _ERROR_STATUS[state.error.kind]
    if isinstance(state.error, GeolocationError):
        return 422
    return 500


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def create_app(
    settings: Settings | None = None,
    *,
    deps: WeatherDeps | None = None,
    insight_service: InsightGenerator | None = None,
    history: SearchHistory | None = None,
    geolocator_factory: GeolocatorFactory | None = None,
    notifier: AlertNotifier | None = None,
) -> Starlette:
    """Build the ASGI app. Anything not passed in is built from `settings` (or the environment).

    The server has no notification surface of its own, so severe alerts are only
    dispatched when an `AlertNotifier` is passed in.
    """
    settings = settings or Settings.from_env()
    deps = deps or WeatherDeps.from_settings(settings)
    insight_service = insight_service or InsightService(settings=settings)
    if history is None:
        store = JsonFileStore(settings.search_history_path) if settings.search_history_path else InMemoryStore()
        history = SearchHistory(store)
    if geolocator_factory is None:

        def geolocator_factory(request: Request) -> Geolocator:
            return IpGeolocator(deps.http_client, ip=client_ip(request))

    async def weather(request: Request) -> JSONResponse:
        query = request.query_params.get("q", "")
        acquisition = WeatherAcquisition(deps, insight_service, notifier=notifier)
        state = await acquisition.fetch_by_query(query)
        if state.status is AcquisitionStatus.READY:
            history.add(query)
        return JSONResponse(serialize_state(state), status_code=http_status(state))

    async def weather_here(request: Request) -> JSONResponse:
        acquisition = WeatherAcquisition(
            deps, insight_service, geolocator=geolocator_factory(request), notifier=notifier
        )
        state = await acquisition.fetch_by_geolocation()
        return JSONResponse(serialize_state(state), status_code=http_status(state))

    async def suggestions(request: Request) -> JSONResponse:
        return JSONResponse({"suggestions": history.suggestions(request.query_params.get("q", ""))})

    @asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        await deps.http_client.aclose()

    return Starlette(
        routes=[
            Route("/api/weather", weather),
            Route("/api/weather/here", weather_here),
            Route("/api/suggestions", suggestions),
        ],
        lifespan=lifespan,
    )


app = create_app()

# ABOUTME: Pydantic AI agent and service that turn a weather snapshot into an InsightRecord.
# ABOUTME: Calls the language model exactly once per request and degrades to parser fallbacks on failure.

import logging

from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider
from pydantic_ai.settings import ModelSettings

from src.config import Settings
from src.insight_parser import resolve_insights
from src.models import InsightRecord, WeatherSnapshot
from src.prompts import build_insight_prompt
from src.time_context import classify_time

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

insight_agent = Agent(
    output_type=str,
    name="weather_insights",
    retries=0,
    system_prompt=(
        "You are a weather insight generator. You receive current weather, forecast and local time "
        "for one location and reply with a single JSON object using exactly the requested keys. "
        "Every value is a short, practical, friendly paragraph of plain text.\n"
        "Never invent hazards: include the alerts key only when the data shows a genuine weather hazard."
    ),
)


def create_insight_model(api_key: str, model_name: str) -> OpenRouterModel:
    """Build the OpenRouter model with SDK-level retries disabled so each request is sent once."""
    if not api_key:
        raise RuntimeError("OPENROUTER_API_KEY is not set")
    client = AsyncOpenAI(base_url=OPENROUTER_BASE_URL, api_key=api_key, max_retries=0)
    return OpenRouterModel(model_name, provider=OpenRouterProvider(openai_client=client))


class InsightService:
    """Builds the prompt, calls the model once, and resolves the reply.

    `generate` always returns an InsightRecord; model errors, timeouts and malformed
    replies all end up in the resolver's fallback path.
    """

    def __init__(self, model: Model | None = None, *, settings: Settings | None = None, timeout: float | None = None):
        self._model = model
        self._settings = settings or Settings()
        self.timeout = timeout if timeout is not None else self._settings.insight_timeout_seconds

    def _get_model(self) -> Model:
        # Built on first use so a missing key degrades to fallback instead of failing at startup.
        if self._model is None:
            self._model = create_insight_model(self._settings.openrouter_api_key, self._settings.openrouter_model)
        return self._model

    async def generate(self, snapshot: WeatherSnapshot) -> InsightRecord:
        ctx = classify_time(snapshot.location.localtime)
        prompt = build_insight_prompt(snapshot, ctx)

        raw: str | None = None
        try:
            result = await insight_agent.run(
                prompt.text,
                model=self._get_model(),
                model_settings=ModelSettings(timeout=self.timeout),
            )
            raw = result.output
        except Exception:
            logger.exception("Insight generation failed for %s, using fallback", snapshot.location.name)

        return resolve_insights(raw, snapshot, ctx)

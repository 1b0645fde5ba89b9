# ABOUTME: Environment-driven settings for the weather and language model providers.
# ABOUTME: Loads .env via python-dotenv and collects values into a Pydantic model.

import os

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_WEATHER_API_URL = "https://api.weatherapi.com/v1/forecast.json"
DEFAULT_OPENROUTER_MODEL = "google/gemini-2.0-flash-001"


class Settings(BaseModel):
    """Runtime configuration. Every field has an environment variable of the same name, upper-cased."""

    weather_api_key: str = ""
    weather_api_url: str = DEFAULT_WEATHER_API_URL
    openrouter_api_key: str = ""
    openrouter_model: str = DEFAULT_OPENROUTER_MODEL
    weather_timeout_seconds: float = 15.0
    insight_timeout_seconds: float = 15.0
    search_history_path: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        values = {
            name: os.environ[name.upper()] for name in cls.model_fields if os.environ.get(name.upper())
        }
        return cls(**values)

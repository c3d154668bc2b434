"""Runtime configuration for the docagent services."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="docagent_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"

    # Initial credentials; a credentials file, when present, takes precedence
    llm_api_key: str = ""
    vector_api_key: str = ""
    vector_endpoint: str = ""
    weather_api_key: str = ""
    credentials_file: Path | None = None

    # Language model provider
    completion_url: str = "https://api.openai.com/v1/chat/completions"
    models_url: str = "https://api.openai.com/v1/models"
    completion_model: str = "gpt-4o-mini"
    completion_max_tokens: int = 1000
    completion_temperature: float = 0.7
    llm_key_prefix: str = "sk-"
    llm_key_min_length: int = 21

    # Vector search
    retrieval_limit: int = 5
    retrieval_path_segment: str = "/retrieval"
    upsert_path_segment: str = "/upsert"

    # Weather
    weather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    weather_units: str = "imperial"
    default_weather_location: str = "San Francisco"

    # Timeouts (seconds); None leaves the call bounded only by the transport
    health_timeout_seconds: float = 10.0
    request_timeout_seconds: float | None = None

    # CORS
    cors_allow_origins: tuple[str, ...] = ()
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    # Security
    api_key: str | None = None  # if set, required in X-API-Key header

    @property
    def is_test(self) -> bool:
        return self.environment == "test"


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()

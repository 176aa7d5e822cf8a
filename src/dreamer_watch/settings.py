"""
dreamer_watch.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Accept provider credentials under their conventional env names as well as
  the `DREAMER_` prefixed ones.
- Hide secrets from repr/logging (API keys, store token).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _secret(*env_names: str) -> Any:
    # Secrets may come from the prefixed name or the provider's conventional name.
    return Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices(*env_names),
    )


class Settings(BaseSettings):
    """
    - Strict env-driven configuration
    - Defaults safe for local dev (in-memory store, no external calls without keys)
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(
        env_prefix="DREAMER_",
        case_sensitive=False,
        populate_by_name=True,
    )

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "dreamer-watch"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Store backend is chosen once at startup (see `store.factory.create_store`).
    store_backend: Literal["memory", "redis", "rest"] = "memory"
    redis_url: str = Field(
        default="redis://localhost:6379",
        validation_alias=AliasChoices("DREAMER_REDIS_URL", "LOCAL_REDIS_URL"),
    )
    rest_store_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DREAMER_REST_STORE_URL", "UPSTASH_REDIS_REST_URL"),
    )
    rest_store_token: str | None = _secret(
        "DREAMER_REST_STORE_TOKEN", "UPSTASH_REDIS_REST_TOKEN"
    )

    # Search cache
    search_cache_ttl_seconds: int = 3600
    # 0 disables the background sweep; the sweep is still callable on demand.
    search_cache_sweep_interval_seconds: int = 0

    # Search providers
    tavily_api_key: str | None = _secret("DREAMER_TAVILY_API_KEY", "TAVILY_API_KEY")
    tavily_base_url: str = "https://api.tavily.com"
    serper_api_key: str | None = _secret("DREAMER_SERPER_API_KEY", "SERPER_API_KEY")
    serper_base_url: str = "https://google.serper.dev"
    http_timeout_seconds: float = 20.0

    # Model providers
    default_model: str = "anthropic:claude-3-5-haiku-20241022"
    anthropic_api_key: str | None = _secret("DREAMER_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY")
    openai_api_key: str | None = _secret("DREAMER_OPENAI_API_KEY", "OPENAI_API_KEY")
    google_api_key: str | None = _secret(
        "DREAMER_GOOGLE_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY"
    )
    groq_api_key: str | None = _secret("DREAMER_GROQ_API_KEY", "GROQ_API_KEY")
    openai_compatible_api_key: str | None = _secret(
        "DREAMER_OPENAI_COMPATIBLE_API_KEY", "OPENAI_COMPATIBLE_API_KEY"
    )
    openai_compatible_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "DREAMER_OPENAI_COMPATIBLE_BASE_URL", "OPENAI_COMPATIBLE_API_BASE_URL"
        ),
    )
    max_output_tokens: int = 4096

    # Workflow
    max_research_steps: int = 5
    max_history_messages: int = 10


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Provider keys left unset disable the matching models (`/api/models`) and tools
# (video search needs `serper_api_key`).

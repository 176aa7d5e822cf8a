"""
dreamer_watch.llm.registry

Model catalogue and provider registry.

Responsibilities:
- Publish the selectable models (`MODELS`) under `<providerId>:<id>` ids.
- Report which providers have credentials configured.
- Resolve a model id to a `ChatModel`, reusing one SDK client per provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from dreamer_watch.llm.anthropic_model import AnthropicChatModel
from dreamer_watch.llm.base import ChatModel, ModelConfigError
from dreamer_watch.llm.openai_model import OpenAIChatModel
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.settings import Settings

log = get_logger(__name__)

GOOGLE_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
GROQ_OPENAI_BASE_URL = "https://api.groq.com/openai/v1"

PROVIDERS = ("anthropic", "openai", "google", "groq", "openai-compatible")


@dataclass(frozen=True, slots=True)
class ModelInfo:
    id: str
    name: str
    provider: str
    provider_id: str

    @property
    def model_id(self) -> str:
        return f"{self.provider_id}:{self.id}"

    def to_public(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "providerId": self.provider_id,
        }


MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("claude-3-5-haiku-20241022", "DreamerAI 3.5 Speedy", "DreamerAI", "anthropic"),
    ModelInfo("gpt-4o-mini", "DreamerAI 4 Mini", "DreamerAI", "openai"),
    ModelInfo("gemini-2.0-flash-exp", "DreamerAI Flash 2", "DreamerAI", "google"),
    ModelInfo("sonar-pro", "DreamerAI W Pro", "DreamerAI Pro", "openai-compatible"),
    ModelInfo(
        "sonar-reasoning-pro", "DreamerAI W Reasoning Pro", "DreamerAI Pro", "openai-compatible"
    ),
)


def parse_model_id(model_id: str) -> tuple[str, str]:
    provider_id, sep, name = model_id.partition(":")
    if not sep or not provider_id or not name:
        raise ModelConfigError(f"Invalid model id {model_id!r}; expected '<provider>:<model>'")
    if provider_id not in PROVIDERS:
        raise ModelConfigError(f"Unknown model provider {provider_id!r}")
    return provider_id, name


def is_provider_enabled(provider_id: str, settings: Settings) -> bool:
    if provider_id == "anthropic":
        return bool(settings.anthropic_api_key)
    if provider_id == "openai":
        return bool(settings.openai_api_key)
    if provider_id == "google":
        return bool(settings.google_api_key)
    if provider_id == "groq":
        return bool(settings.groq_api_key)
    if provider_id == "openai-compatible":
        return bool(settings.openai_compatible_api_key and settings.openai_compatible_base_url)
    return False


class ModelProvider(Protocol):
    def get_model(self, model_id: str | None = None) -> ChatModel: ...

    def enabled_models(self) -> list[ModelInfo]: ...

    async def close(self) -> None: ...


class ModelRegistry:
    """
    Lazily builds SDK clients from settings.

    Clients are cached per provider and closed together on shutdown.
    """

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings
        self._anthropic: AsyncAnthropic | None = None
        self._openai: dict[str, AsyncOpenAI] = {}

    def enabled_models(self) -> list[ModelInfo]:
        return [m for m in MODELS if is_provider_enabled(m.provider_id, self._settings)]

    def get_model(self, model_id: str | None = None) -> ChatModel:
        provider_id, name = parse_model_id(model_id or self._settings.default_model)
        if not is_provider_enabled(provider_id, self._settings):
            raise ModelConfigError(f"Model provider {provider_id!r} is not configured")

        max_tokens = self._settings.max_output_tokens
        if provider_id == "anthropic":
            return AnthropicChatModel(
                client=self._anthropic_client(), model=name, max_tokens=max_tokens
            )
        return OpenAIChatModel(
            client=self._openai_client(provider_id),
            model=name,
            provider=provider_id,
            max_tokens=max_tokens,
        )

    def _anthropic_client(self) -> AsyncAnthropic:
        if self._anthropic is None:
            self._anthropic = AsyncAnthropic(api_key=self._settings.anthropic_api_key)
            log.info("model_client_created", provider="anthropic")
        return self._anthropic

    def _openai_client(self, provider_id: str) -> AsyncOpenAI:
        client = self._openai.get(provider_id)
        if client is not None:
            return client

        s = self._settings
        if provider_id == "openai":
            client = AsyncOpenAI(api_key=s.openai_api_key)
        elif provider_id == "google":
            client = AsyncOpenAI(api_key=s.google_api_key, base_url=GOOGLE_OPENAI_BASE_URL)
        elif provider_id == "groq":
            client = AsyncOpenAI(api_key=s.groq_api_key, base_url=GROQ_OPENAI_BASE_URL)
        elif provider_id == "openai-compatible":
            client = AsyncOpenAI(
                api_key=s.openai_compatible_api_key, base_url=s.openai_compatible_base_url
            )
        else:
            raise ModelConfigError(f"Provider {provider_id!r} has no OpenAI-compatible endpoint")
        log.info("model_client_created", provider=provider_id)
        self._openai[provider_id] = client
        return client

    async def close(self) -> None:
        anthropic, self._anthropic = self._anthropic, None
        openai_clients, self._openai = self._openai, {}
        if anthropic is not None:
            await anthropic.close()
        for client in openai_clients.values():
            await client.close()

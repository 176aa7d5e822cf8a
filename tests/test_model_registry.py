from __future__ import annotations

import pytest

from dreamer_watch.llm.anthropic_model import AnthropicChatModel
from dreamer_watch.llm.base import ModelConfigError
from dreamer_watch.llm.openai_model import OpenAIChatModel
from dreamer_watch.llm.registry import ModelRegistry, is_provider_enabled, parse_model_id
from dreamer_watch.settings import Settings


def test_parse_model_id() -> None:
    assert parse_model_id("openai:gpt-4o-mini") == ("openai", "gpt-4o-mini")
    assert parse_model_id("openai-compatible:sonar-pro") == ("openai-compatible", "sonar-pro")
    for bad in ("gpt-4o-mini", "openai:", ":gpt", "mistral:large"):
        with pytest.raises(ModelConfigError):
            parse_model_id(bad)


def test_compatible_provider_needs_key_and_base_url(settings: Settings) -> None:
    assert not is_provider_enabled("openai-compatible", settings)
    keyed = settings.model_copy(update={"openai_compatible_api_key": "k"})
    assert not is_provider_enabled("openai-compatible", keyed)
    full = keyed.model_copy(update={"openai_compatible_base_url": "https://llm.example/v1"})
    assert is_provider_enabled("openai-compatible", full)


def test_enabled_models_follow_credentials(settings: Settings) -> None:
    assert ModelRegistry(settings=settings).enabled_models() == []

    s = settings.model_copy(update={"openai_api_key": "sk-test"})
    assert [m.model_id for m in ModelRegistry(settings=s).enabled_models()] == [
        "openai:gpt-4o-mini"
    ]


@pytest.mark.asyncio
async def test_get_model_builds_provider_models(settings: Settings) -> None:
    s = settings.model_copy(
        update={"anthropic_api_key": "sk-ant-test", "google_api_key": "g-test"}
    )
    registry = ModelRegistry(settings=s)
    try:
        default = registry.get_model()
        assert isinstance(default, AnthropicChatModel)
        assert default.model_id == s.default_model

        gemini = registry.get_model("google:gemini-2.0-flash-exp")
        assert isinstance(gemini, OpenAIChatModel)
        assert gemini.model_id == "google:gemini-2.0-flash-exp"

        with pytest.raises(ModelConfigError):
            registry.get_model("openai:gpt-4o-mini")
    finally:
        await registry.close()


@pytest.mark.asyncio
async def test_clients_are_reused_per_provider(settings: Settings) -> None:
    s = settings.model_copy(
        update={"anthropic_api_key": "sk-ant-test", "openai_api_key": "sk-test"}
    )
    registry = ModelRegistry(settings=s)
    try:
        first = registry.get_model("openai:gpt-4o-mini")
        second = registry.get_model("openai:gpt-4o")
        assert first._client is second._client

        claude = registry.get_model("anthropic:claude-3-5-haiku-20241022")
        assert claude._client is registry.get_model()._client

        with pytest.raises(ModelConfigError):
            registry._openai_client("anthropic")
    finally:
        await registry.close()

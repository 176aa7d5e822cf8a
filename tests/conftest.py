"""
tests.conftest

Shared fixtures: test settings (no real provider keys) and a clock-driven
in-memory store.
"""

from __future__ import annotations

import pytest

from dreamer_watch.settings import Settings
from dreamer_watch.store.memory import MemoryStore
from tests.fakes import FakeClock


@pytest.fixture
def settings() -> Settings:
    return Settings(
        env="test",
        store_backend="memory",
        tavily_api_key="tvly-test",
        serper_api_key=None,
        anthropic_api_key=None,
        openai_api_key=None,
        google_api_key=None,
        groq_api_key=None,
        openai_compatible_api_key=None,
        openai_compatible_base_url=None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)

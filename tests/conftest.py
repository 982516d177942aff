"""Shared test fixtures."""

from __future__ import annotations

import pytest

from multiai.app import AppContext
from multiai.config import Settings
from multiai.memory.models import MemoryConfig
from multiai.persistence import InMemoryStore
from multiai.providers.base import Credentials
from multiai.providers.registry import ProviderRegistry


class FakeAdapter:
    """Adapter that records its calls and replies from a script.

    Each entry of *replies* is returned in turn; an Exception entry is raised
    instead. When the script runs out, a default reply is generated.
    """

    def __init__(self, name: str, replies: list[str | Exception] | None = None) -> None:
        self.name = name
        self.replies = list(replies or [])
        self.calls: list[tuple[list[dict[str, str]], str]] = []

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        self.calls.append((history, prompt))
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return f"{self.name} reply {len(self.calls)}"


PARTICIPANTS = ("openai", "anthropic", "gemini")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(reactive_call_delay=0, dialogue_round_delay=0)


@pytest.fixture
def adapters() -> dict[str, FakeAdapter]:
    return {pid: FakeAdapter(pid) for pid in PARTICIPANTS}


@pytest.fixture
def registry(adapters: dict[str, FakeAdapter]) -> ProviderRegistry:
    reg = ProviderRegistry()
    for pid, adapter in adapters.items():
        reg.register(pid, pid.capitalize(), adapter)
    return reg


@pytest.fixture
def credentials() -> Credentials:
    return Credentials({pid: f"key-{pid}" for pid in PARTICIPANTS})


@pytest.fixture
def ctx(
    test_settings: Settings, registry: ProviderRegistry, credentials: Credentials
) -> AppContext:
    """Context with fake adapters, no delays and an in-memory store."""
    return AppContext(
        settings=test_settings,
        persistence=InMemoryStore(),
        registry=registry,
        credentials=credentials,
        memory_config=MemoryConfig(),
    )


@pytest.fixture
def memory_ctx(ctx: AppContext) -> AppContext:
    """Same context with memory enabled."""
    ctx.update_memory_config(enabled=True)
    return ctx

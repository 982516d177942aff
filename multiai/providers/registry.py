"""Participant registry that routes a participant id to its adapter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from multiai.errors import UnsupportedProviderError
from multiai.providers.base import Participant

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.providers.base import Credentials, ProviderAdapter

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Fixed catalog of participants.

    Usage::

        registry = ProviderRegistry()
        registry.register("openai", "OpenAI GPT", OpenAIChatAdapter(...))
        adapter = registry.dispatch("openai")
    """

    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def register(self, participant_id: str, display_name: str, adapter: ProviderAdapter) -> None:
        """Register a participant. Raises ValueError on duplicate id."""
        if participant_id in self._participants:
            msg = f"Participant '{participant_id}' is already registered"
            raise ValueError(msg)
        self._participants[participant_id] = Participant(participant_id, display_name, adapter)
        logger.debug("Registered participant: %s", participant_id)

    def dispatch(self, participant_id: str) -> ProviderAdapter:
        """Return the adapter for *participant_id*.

        Raises ``UnsupportedProviderError`` if the id is not registered.
        """
        participant = self._participants.get(participant_id)
        if participant is None:
            raise UnsupportedProviderError(participant_id)
        return participant.adapter

    def resolve(
        self, participant_ids: list[str], credentials: Credentials
    ) -> list[tuple[str, ProviderAdapter]]:
        """Dispatch every participant and check its credential up front.

        Raises ``UnsupportedProviderError`` or ``ConfigurationError`` before
        any adapter is called.
        """
        resolved = []
        for participant_id in participant_ids:
            adapter = self.dispatch(participant_id)
            credentials.require(participant_id)
            resolved.append((participant_id, adapter))
        return resolved

    def get(self, participant_id: str) -> Participant | None:
        return self._participants.get(participant_id)

    def display_name(self, participant_id: str) -> str:
        """Friendly name for a participant, or the id itself."""
        participant = self._participants.get(participant_id)
        return participant.display_name if participant else participant_id

    def ids(self) -> list[str]:
        return list(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._participants


def build_default_registry(credentials: Credentials, settings: Settings) -> ProviderRegistry:
    """Registry with the six built-in providers."""
    from multiai.providers.anthropic_messages import AnthropicAdapter
    from multiai.providers.gemini import GeminiAdapter
    from multiai.providers.ollama import OllamaAdapter
    from multiai.providers.openai_chat import OpenAIChatAdapter

    registry = ProviderRegistry()
    registry.register("openai", "OpenAI GPT", OpenAIChatAdapter(credentials, settings))
    registry.register(
        "anthropic", "Claude (Anthropic)", AnthropicAdapter(credentials, settings)
    )
    registry.register("ollama", "Ollama (Local)", OllamaAdapter(credentials, settings))
    registry.register(
        "ollamaCloud",
        "Ollama Cloud",
        OllamaAdapter(
            credentials,
            settings,
            provider_id="ollamaCloud",
            api_key=settings.ollama_api_key,
        ),
    )
    registry.register("gemini", "Google Gemini", GeminiAdapter(credentials, settings))
    registry.register(
        "claude", "Claude API", AnthropicAdapter(credentials, settings, provider_id="claude")
    )
    return registry

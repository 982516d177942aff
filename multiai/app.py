"""Application context: the state every orchestrator operation works on.

Replaces UI-held globals with one explicit object. Persistence is an injected
``KeyValueStore``; ``load()`` and ``save()`` move the four documents in and
out of it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from multiai.config import settings as default_settings
from multiai.conversation.manager import ConversationManager
from multiai.memory.models import MemoryConfig
from multiai.memory.store import MemoryStore
from multiai.orchestrator.dialogue import DialogueOrchestrator
from multiai.orchestrator.reactive import ReactiveOrchestrator
from multiai.persistence import (
    API_KEYS_KEY,
    CONVERSATIONS_KEY,
    MEMORIES_KEY,
    MEMORY_CONFIG_KEY,
    InMemoryStore,
)
from multiai.providers.base import Credentials
from multiai.providers.registry import build_default_registry

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.conversation.models import Conversation
    from multiai.orchestrator.control import DialogueResult, RoundControl, RoundResult
    from multiai.persistence import KeyValueStore
    from multiai.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class AppContext:
    """Conversations, memories, credentials and providers for one user."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        persistence: KeyValueStore | None = None,
        registry: ProviderRegistry | None = None,
        credentials: Credentials | None = None,
        memory_config: MemoryConfig | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.persistence = persistence or InMemoryStore()
        self.credentials = credentials or Credentials(self.settings.default_credentials())
        self.registry = registry or build_default_registry(self.credentials, self.settings)
        self.memory = MemoryStore(memory_config or MemoryConfig())
        self.conversations = ConversationManager()
        self.reactive = ReactiveOrchestrator(self)
        self.dialogue = DialogueOrchestrator(self)

    @property
    def memory_config(self) -> MemoryConfig:
        return self.memory.config

    def update_memory_config(self, **changes: object) -> MemoryConfig:
        """Replace the memory config with a validated copy."""
        config = MemoryConfig.model_validate({**self.memory.config.model_dump(), **changes})
        self.memory.config = config
        return config

    # -- Persistence -----------------------------------------------------------

    async def load(self) -> None:
        """Read all four documents; expired memories are dropped on the way in."""
        raw_config = await self.persistence.get(MEMORY_CONFIG_KEY)
        if raw_config:
            self.memory.config = MemoryConfig.model_validate(raw_config)

        raw_keys = await self.persistence.get(API_KEYS_KEY)
        if raw_keys:
            self.credentials.update(raw_keys)

        self.conversations.load(await self.persistence.get(CONVERSATIONS_KEY))
        self.memory.load_with_expiry(await self.persistence.get(MEMORIES_KEY))
        logger.info(
            "Loaded %d conversations and %d memories",
            len(self.conversations.conversations()),
            len(self.memory),
        )

    async def save(self) -> None:
        """Write all four documents."""
        await self.persistence.set(CONVERSATIONS_KEY, self.conversations.state())
        await self.persistence.set(API_KEYS_KEY, self.credentials.to_dict())
        await self.persistence.set(MEMORY_CONFIG_KEY, self.memory.config.to_json_dict())
        await self.persistence.set(MEMORIES_KEY, self.memory.state())
        self.memory.dirty = False

    # -- Operations ------------------------------------------------------------

    async def send_message(
        self, conversation: Conversation, text: str, *, control: RoundControl | None = None
    ) -> RoundResult:
        return await self.reactive.handle_user_message(conversation, text, control=control)

    async def start_dialogue(
        self,
        conversation: Conversation,
        topic: str,
        *,
        max_rounds: int | None = None,
        control: RoundControl | None = None,
    ) -> DialogueResult:
        return await self.dialogue.run(
            conversation, topic, max_rounds=max_rounds, control=control
        )

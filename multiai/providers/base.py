"""Provider adapter protocol and credential lookup."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from multiai.errors import ConfigurationError


@runtime_checkable
class ProviderAdapter(Protocol):
    """Interface every upstream LLM adapter satisfies.

    Adapters own their request/response shape entirely; the orchestrator
    only ever sees the returned text.
    """

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        """Return the assistant text for *prompt* given the recent *history*.

        Raises ``ProviderError`` on non-success status or malformed responses.
        """
        ...


@dataclass(frozen=True)
class Participant:
    """A registered participant: display name plus its adapter."""

    id: str
    display_name: str
    adapter: ProviderAdapter


class Credentials:
    """Secret (or base URL) per participant id.

    Mutable by the application; adapters read it at call time so edits take
    effect without rebuilding the registry.
    """

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def get(self, participant_id: str) -> str:
        return self._values.get(participant_id, "")

    def set(self, participant_id: str, value: str) -> None:
        self._values[participant_id] = value

    def update(self, values: Mapping[str, str]) -> None:
        self._values.update(values)

    def require(self, participant_id: str) -> str:
        """Return the credential, or raise ``ConfigurationError`` if blank."""
        value = self._values.get(participant_id, "")
        if not value or not value.strip():
            msg = f"API key not configured for {participant_id}"
            raise ConfigurationError(msg)
        return value.strip()

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)

"""Error taxonomy shared by the memory engine, dispatch and orchestrators."""

from __future__ import annotations


class MultiAIError(Exception):
    """Base class for all orchestrator errors."""


class ConfigurationError(MultiAIError):
    """A participant is missing the credential it needs to be called."""


class ProviderError(MultiAIError):
    """An upstream provider call failed or returned a non-success status."""

    def __init__(self, provider_id: str, message: str, status_code: int | None = None) -> None:
        self.provider_id = provider_id
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_id}: {message}")


class UnsupportedProviderError(MultiAIError):
    """No adapter is registered for the participant id."""

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Unsupported AI provider: {provider_id}")


class FormatError(MultiAIError, ValueError):
    """An import payload is missing the expected format marker."""


class ValidationError(MultiAIError, ValueError):
    """Operation preconditions are not met (e.g. a dialogue with one participant)."""


class DialogueError(MultiAIError):
    """A dialogue round failed; the dialogue was aborted."""

    def __init__(self, round_number: int, participant_id: str, cause: Exception) -> None:
        self.round_number = round_number
        self.participant_id = participant_id
        self.cause = cause
        super().__init__(
            f"Failed to complete AI dialogue at round {round_number} ({participant_id}): {cause}"
        )

"""Anthropic Messages API adapter (used by both ``anthropic`` and ``claude``)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import anthropic

from multiai.errors import ProviderError

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.providers.base import Credentials

logger = logging.getLogger(__name__)


class AnthropicAdapter:
    def __init__(
        self,
        credentials: Credentials,
        settings: Settings,
        *,
        provider_id: str = "anthropic",
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self.provider_id = provider_id
        self._client: anthropic.AsyncAnthropic | None = None
        self._client_key = ""

    def _get_client(self, api_key: str) -> anthropic.AsyncAnthropic:
        """Lazily initialize the client, rebuilding it if the key changed."""
        if self._client is None or self._client_key != api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=api_key, timeout=self._settings.request_timeout
            )
            self._client_key = api_key
        return self._client

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        api_key = self._credentials.require(self.provider_id)
        client = self._get_client(api_key)
        messages: list[dict[str, Any]] = [
            {
                "role": "assistant" if m.get("role") == "assistant" else "user",
                "content": m.get("content", ""),
            }
            for m in history
        ]
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.messages.create(
                model=self._settings.anthropic_model,
                max_tokens=self._settings.max_tokens,
                messages=messages,
            )
        except anthropic.APIStatusError as exc:
            msg = f"API error {exc.status_code}: {exc.message}"
            raise ProviderError(self.provider_id, msg, status_code=exc.status_code) from exc
        except anthropic.APIError as exc:
            logger.exception("%s request failed", self.provider_id)
            msg = f"Request failed: {exc}"
            raise ProviderError(self.provider_id, msg) from exc

        try:
            text = response.content[0].text
        except (IndexError, AttributeError) as exc:
            msg = f"Malformed response: {exc!r}"
            raise ProviderError(self.provider_id, msg) from exc
        if not isinstance(text, str):
            msg = "Malformed response: expected text content"
            raise ProviderError(self.provider_id, msg)
        return text

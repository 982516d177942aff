"""OpenAI chat-completions adapter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import openai

from multiai.errors import ProviderError

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.providers.base import Credentials

logger = logging.getLogger(__name__)


class OpenAIChatAdapter:
    def __init__(
        self,
        credentials: Credentials,
        settings: Settings,
        *,
        provider_id: str = "openai",
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self.provider_id = provider_id
        self._client: openai.AsyncOpenAI | None = None
        self._client_key = ""

    def _get_client(self, api_key: str) -> openai.AsyncOpenAI:
        """Lazily initialize the client, rebuilding it if the key changed."""
        if self._client is None or self._client_key != api_key:
            self._client = openai.AsyncOpenAI(
                api_key=api_key, timeout=self._settings.request_timeout
            )
            self._client_key = api_key
        return self._client

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        api_key = self._credentials.require(self.provider_id)
        client = self._get_client(api_key)
        messages: list[dict[str, Any]] = [*history, {"role": "user", "content": prompt}]

        try:
            response = await client.chat.completions.create(
                model=self._settings.openai_model,
                messages=messages,
                max_tokens=self._settings.max_tokens,
                temperature=self._settings.temperature,
            )
        except openai.APIStatusError as exc:
            msg = f"API error {exc.status_code}: {exc.message}"
            raise ProviderError(self.provider_id, msg, status_code=exc.status_code) from exc
        except openai.APIError as exc:
            logger.exception("%s request failed", self.provider_id)
            msg = f"Request failed: {exc}"
            raise ProviderError(self.provider_id, msg) from exc

        try:
            text = response.choices[0].message.content
        except (IndexError, AttributeError) as exc:
            msg = f"Malformed response: {exc!r}"
            raise ProviderError(self.provider_id, msg) from exc
        if not isinstance(text, str):
            msg = "Malformed response: expected text content"
            raise ProviderError(self.provider_id, msg)
        return text

"""Ollama chat adapter, for both a local daemon and Ollama Cloud.

The participant's credential is the server base URL; the cloud variant also
sends a bearer token.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from multiai.providers.http import extract_text, post_json

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.providers.base import Credentials


class OllamaAdapter:
    def __init__(
        self,
        credentials: Credentials,
        settings: Settings,
        *,
        provider_id: str = "ollama",
        api_key: str = "",
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self.provider_id = provider_id
        self._api_key = api_key

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        base_url = self._credentials.require(self.provider_id).rstrip("/")
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        payload = {
            "model": self._settings.ollama_model,
            "messages": [*history, {"role": "user", "content": prompt}],
            "stream": False,
        }
        data = await post_json(
            self.provider_id,
            f"{base_url}/api/chat",
            payload,
            headers=headers,
            timeout=self._settings.request_timeout,
        )
        return extract_text(self.provider_id, data, lambda d: d["message"]["content"])

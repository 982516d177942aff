"""Google Gemini generateContent adapter.

Gemini receives the prompt only; history is not forwarded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from multiai.providers.http import extract_text, post_json

if TYPE_CHECKING:
    from multiai.config import Settings
    from multiai.providers.base import Credentials

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiAdapter:
    def __init__(
        self,
        credentials: Credentials,
        settings: Settings,
        *,
        provider_id: str = "gemini",
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self.provider_id = provider_id

    async def complete(self, history: list[dict[str, str]], prompt: str) -> str:
        api_key = self._credentials.require(self.provider_id)
        url = f"{GEMINI_BASE_URL}/{self._settings.gemini_model}:generateContent?key={api_key}"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._settings.temperature,
                "maxOutputTokens": self._settings.max_tokens,
            },
        }
        data = await post_json(
            self.provider_id, url, payload, timeout=self._settings.request_timeout
        )
        return extract_text(
            self.provider_id, data, lambda d: d["candidates"][0]["content"]["parts"][0]["text"]
        )

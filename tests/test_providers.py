"""Tests for the provider adapters (HTTP calls are mocked)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from multiai.config import Settings
from multiai.errors import ConfigurationError, ProviderError
from multiai.providers.anthropic_messages import AnthropicAdapter
from multiai.providers.base import Credentials
from multiai.providers.gemini import GEMINI_BASE_URL, GeminiAdapter
from multiai.providers.http import extract_text
from multiai.providers.ollama import OllamaAdapter
from multiai.providers.openai_chat import OpenAIChatAdapter

HISTORY = [
    {"role": "user", "content": "earlier question"},
    {"role": "assistant", "content": "earlier answer"},
]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(max_tokens=256, temperature=0.5, request_timeout=5)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        {
            "openai": "sk-openai",
            "ollama": "http://localhost:11434/",
            "ollamaCloud": "https://api.ollama.ai",
            "gemini": "gm-key",
            "anthropic": "sk-ant",
        }
    )


def _json_response(status_code: int, body, url: str = "https://example.test") -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=body,
        request=httpx.Request("POST", url),
    )


def _mock_httpx_client(mock_client_cls: MagicMock, response: httpx.Response) -> AsyncMock:
    """Wire up an AsyncClient context-manager mock that returns *response*."""
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


def _mock_openai(mock_cls: MagicMock, text: str | None = "Hi from GPT") -> MagicMock:
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content=text))]
        )
    )
    mock_cls.return_value = mock_client
    return mock_client


class TestOpenAIChatAdapter:
    async def test_success(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(credentials, settings)

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            mock_client = _mock_openai(mock_cls)
            text = await adapter.complete(HISTORY, "Hello")

        assert text == "Hi from GPT"
        mock_cls.assert_called_once_with(api_key="sk-openai", timeout=5)
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == settings.openai_model
        assert kwargs["messages"] == [*HISTORY, {"role": "user", "content": "Hello"}]
        assert kwargs["max_tokens"] == 256
        assert kwargs["temperature"] == 0.5

    async def test_status_error(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(credentials, settings)
        error = openai.AuthenticationError(
            "bad key",
            response=httpx.Response(
                401, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
            ),
            body=None,
        )

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            mock_client = _mock_openai(mock_cls)
            mock_client.chat.completions.create.side_effect = error
            with pytest.raises(ProviderError, match="API error 401") as exc_info:
                await adapter.complete([], "Hello")

        assert exc_info.value.provider_id == "openai"
        assert exc_info.value.status_code == 401

    async def test_connection_error(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(credentials, settings)
        error = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            mock_client = _mock_openai(mock_cls)
            mock_client.chat.completions.create.side_effect = error
            with pytest.raises(ProviderError, match="Request failed"):
                await adapter.complete([], "Hello")

    async def test_empty_choices(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(credentials, settings)

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            mock_client = _mock_openai(mock_cls)
            mock_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
            with pytest.raises(ProviderError, match="Malformed response"):
                await adapter.complete([], "Hello")

    async def test_null_content(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(credentials, settings)

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            _mock_openai(mock_cls, text=None)
            with pytest.raises(ProviderError, match="expected text"):
                await adapter.complete([], "Hello")

    async def test_missing_key(self, settings: Settings) -> None:
        adapter = OpenAIChatAdapter(Credentials(), settings)

        with patch("multiai.providers.openai_chat.openai.AsyncOpenAI") as mock_cls:
            with pytest.raises(ConfigurationError):
                await adapter.complete([], "Hello")

        mock_cls.assert_not_called()


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class TestOllamaAdapter:
    async def test_local_posts_to_base_url(
        self, credentials: Credentials, settings: Settings
    ) -> None:
        resp = _json_response(200, {"message": {"role": "assistant", "content": "llama says hi"}})
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, resp)
            text = await adapter.complete(HISTORY, "Hello")

        assert text == "llama says hi"
        call = mock_client.post.call_args
        assert call.args[0] == "http://localhost:11434/api/chat"
        assert call.kwargs["headers"] == {}
        assert call.kwargs["json"]["stream"] is False
        assert call.kwargs["json"]["model"] == settings.ollama_model
        assert call.kwargs["json"]["messages"][-1] == {"role": "user", "content": "Hello"}

    async def test_cloud_sends_bearer_token(
        self, credentials: Credentials, settings: Settings
    ) -> None:
        resp = _json_response(200, {"message": {"content": "cloud reply"}})
        adapter = OllamaAdapter(
            credentials, settings, provider_id="ollamaCloud", api_key="cloud-token"
        )

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, resp)
            text = await adapter.complete([], "Hello")

        assert text == "cloud reply"
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.ollama.ai/api/chat"
        assert call.kwargs["headers"] == {"Authorization": "Bearer cloud-token"}

    async def test_error_status(self, credentials: Credentials, settings: Settings) -> None:
        resp = _json_response(500, {"error": "model not found"})
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, resp)
            with pytest.raises(ProviderError, match="API error 500") as exc_info:
                await adapter.complete([], "Hello")

        assert exc_info.value.provider_id == "ollama"
        assert exc_info.value.status_code == 500

    async def test_non_json_body(self, credentials: Credentials, settings: Settings) -> None:
        resp = httpx.Response(
            status_code=200,
            text="<html>oops</html>",
            request=httpx.Request("POST", "http://localhost:11434/api/chat"),
        )
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, resp)
            with pytest.raises(ProviderError, match="not valid JSON"):
                await adapter.complete([], "Hello")

    async def test_malformed_body(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, _json_response(200, {"done": True}))
            with pytest.raises(ProviderError, match="Malformed response"):
                await adapter.complete([], "Hello")

    async def test_timeout(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, _json_response(200, {}))
            mock_client.post.side_effect = httpx.ReadTimeout("slow")
            with pytest.raises(ProviderError, match="timed out"):
                await adapter.complete([], "Hello")

    async def test_connection_error(self, credentials: Credentials, settings: Settings) -> None:
        adapter = OllamaAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, _json_response(200, {}))
            mock_client.post.side_effect = httpx.ConnectError("refused")
            with pytest.raises(ProviderError, match="Request failed"):
                await adapter.complete([], "Hello")

    async def test_missing_base_url(self, settings: Settings) -> None:
        adapter = OllamaAdapter(Credentials(), settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            with pytest.raises(ConfigurationError):
                await adapter.complete([], "Hello")

        mock_cls.assert_not_called()


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TestGeminiAdapter:
    async def test_sends_prompt_only(self, credentials: Credentials, settings: Settings) -> None:
        resp = _json_response(
            200, {"candidates": [{"content": {"parts": [{"text": "Gemini here"}]}}]}
        )
        adapter = GeminiAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, resp)
            text = await adapter.complete(HISTORY, "Hello")

        assert text == "Gemini here"
        call = mock_client.post.call_args
        assert call.args[0] == f"{GEMINI_BASE_URL}/{settings.gemini_model}:generateContent?key=gm-key"
        payload = call.kwargs["json"]
        assert payload["contents"] == [{"parts": [{"text": "Hello"}]}]
        assert payload["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 256}

    async def test_no_candidates(self, credentials: Credentials, settings: Settings) -> None:
        resp = _json_response(200, {"candidates": []})
        adapter = GeminiAdapter(credentials, settings)

        with patch("multiai.providers.http.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, resp)
            with pytest.raises(ProviderError, match="Malformed response"):
                await adapter.complete([], "Hello")


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


def _mock_anthropic(mock_cls: MagicMock, text: str = "Claude here") -> MagicMock:
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])
    )
    mock_cls.return_value = mock_client
    return mock_client


class TestAnthropicAdapter:
    async def test_success(self, credentials: Credentials, settings: Settings) -> None:
        adapter = AnthropicAdapter(credentials, settings)
        history = [*HISTORY, {"role": "system", "content": "odd role"}]

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = _mock_anthropic(mock_cls)
            text = await adapter.complete(history, "Hello")

        assert text == "Claude here"
        mock_cls.assert_called_once_with(api_key="sk-ant", timeout=5)
        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == settings.anthropic_model
        assert kwargs["max_tokens"] == 256
        assert [m["role"] for m in kwargs["messages"]] == ["user", "assistant", "user", "user"]
        assert kwargs["messages"][-1] == {"role": "user", "content": "Hello"}

    async def test_client_rebuilt_when_key_changes(
        self, credentials: Credentials, settings: Settings
    ) -> None:
        adapter = AnthropicAdapter(credentials, settings)

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            _mock_anthropic(mock_cls)
            await adapter.complete([], "one")
            await adapter.complete([], "two")
            assert mock_cls.call_count == 1

            credentials.set("anthropic", "sk-new")
            await adapter.complete([], "three")
            assert mock_cls.call_count == 2

    async def test_claude_uses_its_own_credential(self, settings: Settings) -> None:
        adapter = AnthropicAdapter(Credentials({"claude": "sk-claude"}), settings, provider_id="claude")

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            _mock_anthropic(mock_cls)
            await adapter.complete([], "Hello")

        assert mock_cls.call_args.kwargs["api_key"] == "sk-claude"

    async def test_status_error(self, credentials: Credentials, settings: Settings) -> None:
        adapter = AnthropicAdapter(credentials, settings)
        error = anthropic.RateLimitError(
            "rate limited",
            response=httpx.Response(
                429, request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
            ),
            body=None,
        )

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = _mock_anthropic(mock_cls)
            mock_client.messages.create.side_effect = error
            with pytest.raises(ProviderError, match="API error 429") as exc_info:
                await adapter.complete([], "Hello")

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider_id == "anthropic"

    async def test_connection_error(self, credentials: Credentials, settings: Settings) -> None:
        adapter = AnthropicAdapter(credentials, settings)
        error = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = _mock_anthropic(mock_cls)
            mock_client.messages.create.side_effect = error
            with pytest.raises(ProviderError, match="Request failed"):
                await adapter.complete([], "Hello")

    async def test_empty_content(self, credentials: Credentials, settings: Settings) -> None:
        adapter = AnthropicAdapter(credentials, settings)

        with patch("multiai.providers.anthropic_messages.anthropic.AsyncAnthropic") as mock_cls:
            mock_client = _mock_anthropic(mock_cls)
            mock_client.messages.create.return_value = SimpleNamespace(content=[])
            with pytest.raises(ProviderError, match="Malformed response"):
                await adapter.complete([], "Hello")


# ---------------------------------------------------------------------------
# extract_text
# ---------------------------------------------------------------------------


class TestExtractText:
    def test_returns_text(self) -> None:
        assert extract_text("x", {"a": "b"}, lambda d: d["a"]) == "b"

    def test_rejects_non_text(self) -> None:
        with pytest.raises(ProviderError, match="expected text"):
            extract_text("x", {"a": None}, lambda d: d["a"])

    def test_wraps_type_errors(self) -> None:
        with pytest.raises(ProviderError, match="Malformed"):
            extract_text("x", None, lambda d: d["a"])

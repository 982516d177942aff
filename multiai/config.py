"""Application settings loaded from environment variables."""

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Orchestrator configuration. All values come from environment variables."""

    # Provider credentials (seed values for the persisted credential document)
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    gemini_api_key: str = Field(default="")
    ollama_url: str = Field(default="http://localhost:11434")
    ollama_cloud_url: str = Field(default="https://api.ollama.ai")
    ollama_api_key: str = Field(default="")

    # Provider models
    openai_model: str = Field(default="gpt-4")
    anthropic_model: str = Field(default="claude-3-sonnet-20240229")
    ollama_model: str = Field(default="llama2")
    gemini_model: str = Field(default="gemini-pro")
    max_tokens: int = Field(default=1000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    request_timeout: float = Field(default=60.0, gt=0)

    # Orchestration
    history_window: int = Field(default=10, ge=0)
    reactive_call_delay: float = Field(default=0.5, ge=0)
    dialogue_round_delay: float = Field(default=1.0, ge=0)
    max_dialogue_rounds: int = Field(default=5, ge=1)
    fan_out_policy: Literal["sequential", "concurrent"] = Field(default="sequential")
    failure_policy: Literal["abort", "continue"] = Field(default="abort")

    # Persistence
    storage_backend: Literal["sqlite", "json"] = Field(default="sqlite")
    database_path: Path = Field(default=Path("data/multiai.db"))
    data_dir: Path = Field(default=Path("data/state"))

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def default_credentials(self) -> dict[str, str]:
        """Credential values per participant id, used before anything is persisted."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "ollama": self.ollama_url,
            "ollamaCloud": self.ollama_cloud_url,
            "gemini": self.gemini_api_key,
            "claude": self.anthropic_api_key,
        }


settings = Settings()

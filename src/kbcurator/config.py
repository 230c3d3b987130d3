"""Configuration management using pydantic-settings."""

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PROVIDERS = ("anthropic", "openai", "ollama")

# Default model per provider when ai_model is not set
DEFAULT_MODELS = {
    "anthropic": "claude-haiku-4-5",
    "openai": "gpt-4o",
    "ollama": "gpt-oss:20b",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KBCURATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Workspace settings
    workspace_root: Path = Path("notes")
    exclude_patterns: list[str] = []

    # LLM settings
    llm_provider: str = "anthropic"  # "anthropic", "openai" or "ollama"
    ai_model: str | None = None  # None = provider default
    llm_fallback: bool = True
    llm_timeout_seconds: float = 60.0

    # Ollama settings (local LLM)
    ollama_base_url: str = "http://127.0.0.1:11434/v1"
    ollama_model: str = "gpt-oss:20b"

    # API keys (loaded from env or .env file)
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None

    # Agent settings
    agent_max_steps: int = 8

    debug: bool = False

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, value: object) -> str:
        provider = str(value or "").strip().lower()
        if provider not in PROVIDERS:
            logger.warning(
                "Invalid llm_provider %r. Supported values: %s. Defaulting to 'anthropic'.",
                value,
                ", ".join(PROVIDERS),
            )
            return "anthropic"
        return provider

    def model_for(self, provider: str) -> str:
        """Model to use for a provider: ai_model for the primary one, else its default."""
        if provider == self.llm_provider and self.ai_model:
            return self.ai_model
        if provider == "ollama":
            return self.ollama_model
        return DEFAULT_MODELS[provider]


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()

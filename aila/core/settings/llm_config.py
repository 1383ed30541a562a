"""LLM provider configuration."""

from typing import Literal

from pydantic import BaseModel, SecretStr


class LLMConfig(BaseModel, frozen=True):
    """LLM provider settings."""

    provider: Literal["google", "openai", "anthropic"]
    google_api_key: SecretStr
    google_model: str
    openai_api_key: SecretStr
    openai_model: str
    anthropic_api_key: SecretStr
    anthropic_model: str
    temperature: float | None = None

    @property
    def active_api_key(self) -> SecretStr:
        """API key of the selected provider."""
        match self.provider:
            case "google":
                return self.google_api_key
            case "openai":
                return self.openai_api_key
            case "anthropic":
                return self.anthropic_api_key

    @property
    def active_model(self) -> str:
        """Model name of the selected provider."""
        match self.provider:
            case "google":
                return self.google_model
            case "openai":
                return self.openai_model
            case "anthropic":
                return self.anthropic_model

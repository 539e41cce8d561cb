"""Embedding provider configuration for CodeWhisper."""

from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """
    Embedding provider configuration.

    Environment Variables:
        CODEWHISPER_EMBEDDING__PROVIDER=openai
        CODEWHISPER_EMBEDDING__MODEL=text-embedding-3-small
        CODEWHISPER_EMBEDDING__API_KEY=sk-...
        CODEWHISPER_EMBEDDING__BASE_URL=http://localhost:8080
    """

    model_config = SettingsConfigDict(
        env_prefix="CODEWHISPER_EMBEDDING__",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    provider: Literal["openai", "openai-compatible"] = Field(
        default="openai", description="Embedding provider"
    )
    model: str = Field(default="text-embedding-3-small", description="Embedding model")
    api_key: SecretStr | None = Field(default=None, description="API key")
    base_url: str | None = Field(default=None, description="Base URL for the embeddings API")
    batch_size: int = Field(default=100, ge=1, le=2048, description="Max texts per request")
    timeout: int = Field(default=60, ge=1, description="Request timeout in seconds")

    @field_validator("base_url")
    def validate_base_url(cls, v: str | None) -> str | None:  # noqa: N805
        if v is None:
            return v
        v = v.rstrip("/")
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    def is_provider_configured(self) -> bool:
        if self.provider == "openai-compatible":
            return self.base_url is not None
        return self.api_key is not None

    def get_missing_config(self) -> list[str]:
        missing = []
        if self.provider == "openai" and not self.api_key:
            missing.append("api_key (set CODEWHISPER_EMBEDDING__API_KEY)")
        if self.provider == "openai-compatible" and not self.base_url:
            missing.append("base_url (set CODEWHISPER_EMBEDDING__BASE_URL)")
        return missing

    def get_provider_config(self) -> dict[str, Any]:
        config: dict[str, Any] = {
            "provider": self.provider,
            "model": self.model,
            "batch_size": self.batch_size,
            "timeout": self.timeout,
        }
        if self.api_key:
            config["api_key"] = self.api_key.get_secret_value()
        if self.base_url:
            config["base_url"] = self.base_url
        return config

    def __repr__(self) -> str:
        api_key_display = "***" if self.api_key else None
        return (
            f"EmbeddingConfig(provider={self.provider}, model={self.model}, "
            f"api_key={api_key_display}, base_url={self.base_url})"
        )

"""
LLM configuration for the CodeWhisper agentic responder.

Configuration Sources (in order of precedence):
1. CLI arguments
2. Environment variables (CODEWHISPER_LLM_*)
3. Config files
4. Default values

Environment Variables:
    CODEWHISPER_LLM_API_KEY=sk-...
    CODEWHISPER_LLM_MODEL=gpt-4o-mini
    CODEWHISPER_LLM_BASE_URL=https://api.openai.com/v1
    CODEWHISPER_LLM_PROVIDER=openai
"""

import argparse
from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """LLM configuration for answering questions about the codebase."""

    model_config = SettingsConfigDict(
        env_prefix="CODEWHISPER_LLM_",
        env_nested_delimiter="__",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    provider: Literal["openai", "ollama"] = Field(
        default="openai", description="LLM provider (openai, ollama)"
    )

    model: str = Field(
        default="",  # resolved by get_default_model() when empty
        description="Chat model used by the agentic responder",
    )

    api_key: SecretStr | None = Field(
        default=None, description="API key for authentication (provider-specific)"
    )

    base_url: str | None = Field(default=None, description="Base URL for the LLM API")

    timeout: int = Field(default=60, description="HTTP timeout for LLM calls")
    max_retries: int = Field(default=0, description="Client-level retries (loop never retries)")

    @field_validator("base_url")
    def validate_base_url(cls, v: str | None) -> str | None:  # noqa: N805
        """Validate and normalize base URL."""
        if v is None:
            return v

        v = v.rstrip("/")

        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("base_url must start with http:// or https://")

        return v

    def get_default_model(self) -> str:
        if self.provider == "ollama":
            return "llama3.2"
        return "gpt-4o-mini"

    def get_provider_config(self) -> dict[str, Any]:
        """Keyword arguments for the provider factory."""
        config: dict[str, Any] = {
            "provider": self.provider,
            "model": self.model or self.get_default_model(),
            "timeout": self.timeout,
            "max_retries": self.max_retries,
        }

        if self.api_key:
            config["api_key"] = self.api_key.get_secret_value()

        if self.base_url:
            config["base_url"] = self.base_url
        elif self.provider == "ollama":
            config["base_url"] = "http://localhost:11434/v1"

        return config

    def is_provider_configured(self) -> bool:
        if self.provider == "ollama":
            return True
        return self.api_key is not None

    def get_missing_config(self) -> list[str]:
        missing = []

        if self.provider != "ollama" and not self.api_key:
            missing.append("api_key (set CODEWHISPER_LLM_API_KEY)")

        return missing

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add LLM-related CLI arguments."""
        parser.add_argument("--llm-model", help="Chat model for answers")
        parser.add_argument(
            "--llm-api-key",
            help="API key for LLM provider (uses env var if not specified)",
        )
        parser.add_argument(
            "--llm-base-url",
            help="Base URL for LLM API (uses env var if not specified)",
        )
        parser.add_argument(
            "--llm-provider",
            choices=["openai", "ollama"],
            help="LLM provider (default: openai)",
        )

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract LLM config from CLI arguments."""
        overrides = {}

        if getattr(args, "llm_model", None):
            overrides["model"] = args.llm_model
        if getattr(args, "llm_api_key", None):
            overrides["api_key"] = args.llm_api_key
        if getattr(args, "llm_base_url", None):
            overrides["base_url"] = args.llm_base_url
        if getattr(args, "llm_provider", None):
            overrides["provider"] = args.llm_provider

        return overrides

    def __repr__(self) -> str:
        """String representation hiding sensitive information."""
        api_key_display = "***" if self.api_key else None
        return (
            f"LLMConfig("
            f"provider={self.provider}, "
            f"model={self.model or self.get_default_model()}, "
            f"api_key={api_key_display}, "
            f"base_url={self.base_url})"
        )

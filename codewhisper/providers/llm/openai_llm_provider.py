"""OpenAI chat-completion provider (also serves Ollama's OpenAI-compatible API)."""

from typing import Any

from loguru import logger
from openai import AsyncOpenAI

from codewhisper.core.config.llm_config import LLMConfig
from codewhisper.interfaces.llm_provider import LLMProvider, LLMResponse


class OpenAILLMProvider(LLMProvider):
    """OpenAI LLM provider using GPT models."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: int = 60,
        max_retries: int = 0,
        provider_name: str = "openai",
    ):
        """Initialize OpenAI LLM provider.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            model: Model name to use
            base_url: Base URL for OpenAI API (optional for custom endpoints)
            timeout: Request timeout in seconds
            max_retries: Retries inside the SDK; the responder itself never retries
            provider_name: Reported provider name
        """
        self._model = model
        self._timeout = timeout
        self._provider_name = provider_name

        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout,
            "max_retries": max_retries,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = AsyncOpenAI(**client_kwargs)

        # Usage tracking
        self._requests_made = 0
        self._tokens_used = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0

    @property
    def name(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_completion_tokens: int = 1024,
        timeout: float | None = None,
    ) -> LLMResponse:
        request_timeout = timeout if timeout is not None else self._timeout

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                max_completion_tokens=max_completion_tokens,
                timeout=request_timeout,
            )

            self._requests_made += 1
            if response.usage:
                self._prompt_tokens += response.usage.prompt_tokens
                self._completion_tokens += response.usage.completion_tokens
                self._tokens_used += response.usage.total_tokens

            content = response.choices[0].message.content or ""
            tokens = response.usage.total_tokens if response.usage else 0

            return LLMResponse(
                content=content,
                tokens_used=tokens,
                model=self._model,
                finish_reason=response.choices[0].finish_reason,
            )

        except Exception as e:
            logger.error(f"[LLM] {self._provider_name} completion failed: {e}")
            raise RuntimeError(f"LLM completion failed: {e}") from e

    def estimate_tokens(self, text: str) -> int:
        # Rough estimation: ~4 chars per token for GPT models
        return len(text) // 4

    def get_usage_stats(self) -> dict[str, Any]:
        return {
            "requests_made": self._requests_made,
            "total_tokens": self._tokens_used,
            "prompt_tokens": self._prompt_tokens,
            "completion_tokens": self._completion_tokens,
        }


def create_llm_provider(config: LLMConfig) -> LLMProvider:
    settings = config.get_provider_config()
    return OpenAILLMProvider(
        # the SDK insists on a key; local Ollama ignores it
        api_key=settings.get("api_key") or ("ollama" if config.provider == "ollama" else None),
        model=settings["model"],
        base_url=settings.get("base_url"),
        timeout=settings["timeout"],
        max_retries=settings["max_retries"],
        provider_name=settings["provider"],
    )

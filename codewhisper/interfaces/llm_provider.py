"""LLM provider interface used by the agentic responder."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class LLMResponse:
    """Response from LLM completion."""

    content: str
    tokens_used: int
    model: str
    finish_reason: str | None = None


class LLMProvider(ABC):
    """Abstract base class for chat-completion providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'openai', 'ollama')."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        max_completion_tokens: int = 1024,
        timeout: float | None = None,
    ) -> LLMResponse:
        """
        Generate the next assistant turn for a full message history.

        Args:
            messages: ``{"role", "content"}`` dicts, system prompt first
            max_completion_tokens: Maximum completion tokens to generate
            timeout: Optional request timeout in seconds

        Returns:
            LLMResponse with content and metadata
        """
        ...

    @abstractmethod
    def estimate_tokens(self, text: str) -> int:
        ...

    @abstractmethod
    def get_usage_stats(self) -> dict[str, Any]:
        ...

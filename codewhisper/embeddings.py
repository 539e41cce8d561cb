"""Embedding providers for CodeWhisper - pluggable vector embedding generation."""

import asyncio
from typing import Any, Protocol

import aiohttp
from loguru import logger
from openai import AsyncOpenAI

from codewhisper.core.config.embedding_config import EmbeddingConfig


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    @property
    def name(self) -> str:
        """Provider name (e.g., 'openai')."""
        ...

    @property
    def model(self) -> str:
        """Model name (e.g., 'text-embedding-3-small')."""
        ...

    @property
    def batch_size(self) -> int:
        """Maximum batch size for embedding requests."""
        ...

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors (one per input text)

        Raises on any transport or API failure; callers decide whether the
        failure is fatal.
        """
        ...


class OpenAIEmbeddingProvider:
    """Embedding provider backed by the official OpenAI SDK."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
        timeout: int = 60,
    ):
        client_kwargs: dict[str, Any] = {"api_key": api_key, "timeout": timeout}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model
        self._batch_size = batch_size
        self._requests_made = 0

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        try:
            for i in range(0, len(texts), self._batch_size):
                batch = texts[i : i + self._batch_size]
                response = await self._client.embeddings.create(
                    model=self._model, input=batch, encoding_format="float"
                )
                self._requests_made += 1
                ordered = sorted(response.data, key=lambda item: item.index)
                all_embeddings.extend(item.embedding for item in ordered)
        except Exception as e:
            logger.error(f"[Embeddings] OpenAI embedding request failed: {e}")
            raise

        logger.debug(f"[Embeddings] Generated {len(all_embeddings)} embeddings using {self._model}")
        return all_embeddings


class OpenAICompatibleProvider:
    """Generic OpenAI-compatible embedding provider for any server implementing the embeddings API."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str | None = None,
        batch_size: int = 100,
        provider_name: str = "openai-compatible",
        timeout: int = 60,
    ):
        """Initialize OpenAI-compatible embedding provider.

        Args:
            base_url: Base URL for the embedding server (e.g., 'http://localhost:8080')
            model: Model name to use for embeddings
            api_key: Optional API key for authentication
            batch_size: Maximum batch size for API requests
            provider_name: Name for this provider instance
            timeout: Request timeout in seconds
        """
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._batch_size = batch_size
        self._provider_name = provider_name
        self._timeout = timeout

    @property
    def name(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        logger.debug(
            f"[Embeddings] Generating embeddings for {len(texts)} texts using {self.model} at {self._base_url}"
        )

        try:
            all_embeddings: list[list[float]] = []

            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            ) as session:
                for i in range(0, len(texts), self.batch_size):
                    batch = texts[i : i + self.batch_size]
                    payload = {
                        "model": self.model,
                        "input": batch,
                        "encoding_format": "float",
                    }

                    url = f"{self._base_url}/v1/embeddings"
                    async with session.post(
                        url, headers=self._headers(), json=payload
                    ) as response:
                        if response.status != 200:
                            error_text = await response.text()
                            raise RuntimeError(
                                f"API request failed with status {response.status}: {error_text}"
                            )

                        response_data = await response.json()
                        if "data" not in response_data:
                            raise RuntimeError("Invalid response format: missing 'data' field")

                        all_embeddings.extend(
                            item["embedding"] for item in response_data["data"]
                        )

                    # small pause between batches to be gentle on local servers
                    if i + self.batch_size < len(texts):
                        await asyncio.sleep(0.1)

            return all_embeddings

        except Exception as e:
            logger.error(f"[Embeddings] Failed to generate embeddings from {self._base_url}: {e}")
            raise



def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider:
    """Build the provider described by ``config``."""
    settings = config.get_provider_config()
    if config.provider == "openai-compatible":
        if not config.base_url:
            raise ValueError("openai-compatible embedding provider requires base_url")
        return OpenAICompatibleProvider(
            base_url=config.base_url,
            model=settings["model"],
            api_key=settings.get("api_key"),
            batch_size=settings["batch_size"],
            timeout=settings["timeout"],
        )
    return OpenAIEmbeddingProvider(
        api_key=settings.get("api_key"),
        base_url=settings.get("base_url"),
        model=settings["model"],
        batch_size=settings["batch_size"],
        timeout=settings["timeout"],
    )

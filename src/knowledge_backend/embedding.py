"""Embedding client abstraction for model-agnostic vector generation.

Every stored and query vector goes through the same model at the same
dimensionality so that they stay comparable. Calls are made exactly once:
upstream failures are translated into ``EmbeddingServiceError`` and returned
to the caller without retry.
"""

from typing import Protocol

import httpx
from loguru import logger
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field

from knowledge_backend.errors import EmbeddingServiceError

EMBEDDING_MODEL = "openai/text-embedding-3-small"
EMBEDDING_DIMENSIONS = 512


class EmbeddingConfig(BaseModel):
    """Configuration for embedding generation.

    Attributes:
        model: Model identifier (e.g., "openai/text-embedding-3-small")
        dimensions: Output dimensionality requested from the model
        timeout_seconds: API request timeout
        api_key: API key for the embedding service (set via env var)
    """

    model: str = EMBEDDING_MODEL
    dimensions: int = Field(default=EMBEDDING_DIMENSIONS, ge=128, le=4096)
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    api_key: str | None = None


class EmbeddingClient(Protocol):
    """Protocol for embedding client implementations."""

    async def embed(self, text: str) -> list[float]:
        """Generate the embedding for a single text.

        Args:
            text: Non-empty input text

        Returns:
            Embedding vector of the configured dimensionality

        Raises:
            ValueError: If text is empty
            EmbeddingServiceError: For any upstream failure
        """
        ...


class OpenAIEmbedding:
    """OpenAI embedding client with a fixed model and dimensionality."""

    def __init__(self, config: EmbeddingConfig):
        """Initialize OpenAI client.

        Args:
            config: Embedding configuration with API key
        """
        self.config = config
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

        # Extract model name (strip "openai/" prefix if present)
        self.model_name = config.model.removeprefix("openai/")

    async def embed(self, text: str) -> list[float]:
        if not text:
            raise ValueError("Cannot embed empty text")

        try:
            response = await self.client.embeddings.create(
                model=self.model_name,
                input=text,
                dimensions=self.config.dimensions,
            )
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.error(f"Embedding request to {self.model_name} failed: {exc}")
            raise EmbeddingServiceError(
                f"Embedding service error: {exc}", {"model": self.model_name}
            ) from exc

        if not response.data:
            raise EmbeddingServiceError(
                "Embedding service returned no vectors", {"model": self.model_name}
            )

        embedding = list(response.data[0].embedding)
        if len(embedding) != self.config.dimensions:
            raise EmbeddingServiceError(
                f"Expected {self.config.dimensions} dimensions, got {len(embedding)}",
                {"model": self.model_name},
            )

        logger.debug(f"Embedded {len(text)} characters with {self.model_name}")
        return embedding


def create_embedding_client(config: EmbeddingConfig) -> EmbeddingClient:
    """Factory function to create embedding client based on model config.

    Args:
        config: Embedding configuration

    Returns:
        Embedding client implementation

    Example:
        >>> config = EmbeddingConfig(api_key="sk-...")
        >>> client = create_embedding_client(config)
    """
    if config.model.startswith("openai/"):
        return OpenAIEmbedding(config)
    raise ValueError(f"Unknown model prefix in {config.model!r}. Expected 'openai/'")

"""Error taxonomy for the agent knowledge base.

Every failure that can reach the MCP tool boundary is one of these types.
Adapters translate third-party exceptions (OpenAI, httpx, Pinecone) into them
with ``raise ... from exc`` so the original cause stays on ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class KnowledgeBaseError(Exception):
    """Base class for all knowledge base failures.

    Attributes:
        message: Human-readable description, surfaced verbatim to callers
        context: Optional diagnostic details (never contains secrets)
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConfigurationError(KnowledgeBaseError):
    """A required setting is absent. Not transient, never retried."""

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"{setting} environment variable is not set", {"setting": setting})


class ValidationError(KnowledgeBaseError):
    """Tool input failed schema validation before any network call."""


class EmbeddingServiceError(KnowledgeBaseError):
    """The embedding service failed (timeout, quota, HTTP error, malformed response)."""


class StoreWriteError(KnowledgeBaseError):
    """The vector store rejected or failed an upsert."""


class StoreQueryError(KnowledgeBaseError):
    """The vector store failed a nearest-neighbour query."""

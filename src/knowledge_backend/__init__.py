"""Embedding and vector-store backend for the agent knowledge base.

This package provides embedding generation, record shaping and vector store
access independent of the MCP server interface. The MCP server in
`agent_kb_mcp` consumes this backend as a service layer.

Architecture:
    - embedding: OpenAI embedding client (fixed model, 512 dimensions)
    - index: Narrow upsert/query capability over Pinecone
    - models: Pydantic schemas for records, matches and search results
    - config: Hydra/OmegaConf settings with env-var credentials
    - errors: Error taxonomy surfaced to tool callers

Usage:
    >>> from knowledge_backend.config import load_settings
    >>> from knowledge_backend.embedding import create_embedding_client
    >>> settings = load_settings("default")
    >>> client = create_embedding_client(settings.embedding)
"""

__version__ = "1.0.0"

from knowledge_backend.errors import (
    ConfigurationError,
    EmbeddingServiceError,
    KnowledgeBaseError,
    StoreQueryError,
    StoreWriteError,
    ValidationError,
)
from knowledge_backend.models import KnowledgeRecord, RecordMetadata, SearchResult, StoreMatch

__all__ = [
    "ConfigurationError",
    "EmbeddingServiceError",
    "KnowledgeBaseError",
    "KnowledgeRecord",
    "RecordMetadata",
    "SearchResult",
    "StoreMatch",
    "StoreQueryError",
    "StoreWriteError",
    "ValidationError",
]

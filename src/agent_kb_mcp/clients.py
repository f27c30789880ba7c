"""Lazy, once-per-process construction of the external clients."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from knowledge_backend.config import IndexConfig, KnowledgeBaseSettings
from knowledge_backend.embedding import EmbeddingClient, EmbeddingConfig, create_embedding_client
from knowledge_backend.errors import ConfigurationError
from knowledge_backend.index import KnowledgeStore, PineconeStore

# Factories may build synchronously or return an awaitable
EmbeddingFactory = Callable[[EmbeddingConfig], EmbeddingClient | Awaitable[EmbeddingClient]]
StoreFactory = Callable[[IndexConfig], KnowledgeStore | Awaitable[KnowledgeStore]]


@dataclass(frozen=True, slots=True)
class KnowledgeClients:
    """The two external clients every tool invocation shares (read-only)."""

    embedding: EmbeddingClient
    store: KnowledgeStore


async def _build(factory: Callable[[Any], Any], config: Any) -> Any:
    client = factory(config)
    if inspect.isawaitable(client):
        client = await client
    return client


def create_pinecone_store(config: IndexConfig) -> KnowledgeStore:
    """Build the Pinecone-backed store from validated index settings."""
    return PineconeStore(
        index_name=config.index_name,
        api_key=config.api_key or "",
        host=config.host or "",
        namespace=config.namespace,
    )


class ClientLifecycleManager:
    """Construct the embedding and store clients exactly once.

    The first ``ensure_clients()`` call validates that every required setting
    is present and builds both clients; later calls return the cached pair.
    Concurrent first callers wait on the same lock and then observe the cached
    clients instead of racing to build their own. A failed construction leaves
    the manager uninitialized.
    """

    def __init__(
        self,
        settings: KnowledgeBaseSettings,
        embedding_factory: EmbeddingFactory = create_embedding_client,
        store_factory: StoreFactory = create_pinecone_store,
    ) -> None:
        self._settings = settings
        self._embedding_factory = embedding_factory
        self._store_factory = store_factory
        self._lock = asyncio.Lock()
        self._clients: KnowledgeClients | None = None

    @property
    def initialized(self) -> bool:
        return self._clients is not None

    async def ensure_clients(self) -> KnowledgeClients:
        """Return the shared clients, building them on first use.

        Raises:
            ConfigurationError: If a required setting is missing; raised before
                any client is constructed or any network call is attempted.
        """
        if self._clients is not None:
            return self._clients

        async with self._lock:
            if self._clients is None:
                missing = self._settings.missing_required()
                if missing:
                    logger.error(f"Cannot initialize clients, missing setting: {missing[0]}")
                    raise ConfigurationError(missing[0])

                embedding = await _build(self._embedding_factory, self._settings.embedding)
                store = await _build(self._store_factory, self._settings.index)
                self._clients = KnowledgeClients(embedding=embedding, store=store)
                logger.info(
                    f"Initialized clients (model={self._settings.embedding.model}, "
                    f"index={self._settings.index.index_name})"
                )

        return self._clients

    def reset(self) -> None:
        """Drop cached clients so the next call rebuilds them."""
        self._clients = None

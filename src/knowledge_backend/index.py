"""Vector store access for knowledge records.

The rest of the system only sees the narrow ``KnowledgeStore`` capability:
upsert one record by ID, and query the top-K nearest records with metadata.
Which vector-index product sits behind it is an adapter detail.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from knowledge_backend.errors import StoreQueryError, StoreWriteError
from knowledge_backend.models import StoreMatch


class KnowledgeStore(ABC):
    """Abstract base class for knowledge store implementations."""

    @abstractmethod
    async def upsert(self, record_id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Write or overwrite the record at ``record_id``.

        Raises:
            StoreWriteError: For any upstream failure
        """
        ...

    @abstractmethod
    async def query(
        self, vector: list[float], top_k: int, include_metadata: bool = True
    ) -> list[StoreMatch]:
        """Return at most ``top_k`` nearest records, in descending score order.

        Raises:
            StoreQueryError: For any upstream failure
        """
        ...


class PineconeStore(KnowledgeStore):
    """Pinecone-backed knowledge store.

    The Pinecone SDK is synchronous; calls are pushed to a worker thread so
    they do not block the event loop serving other tool invocations.
    """

    def __init__(
        self,
        index_name: str,
        api_key: str,
        host: str,
        namespace: str | None = None,
    ):
        """Initialize Pinecone index client.

        Args:
            index_name: Name of Pinecone index
            api_key: Pinecone API key
            host: Data-plane host of the index
            namespace: Optional namespace inside the index
        """
        from pinecone import Pinecone

        self.index_name = index_name
        self.host = host
        self.namespace = namespace

        self.pc = Pinecone(api_key=api_key)
        self.index = self.pc.Index(name=index_name, host=host)

    async def upsert(self, record_id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(
                self.index.upsert,
                vectors=[{"id": record_id, "values": vector, "metadata": metadata}],
                namespace=self.namespace,
            )
        except Exception as exc:
            logger.error(f"Pinecone upsert into {self.index_name!r} failed: {exc}")
            raise StoreWriteError(
                f"Vector store write failed: {exc}", {"index": self.index_name}
            ) from exc

    async def query(
        self, vector: list[float], top_k: int, include_metadata: bool = True
    ) -> list[StoreMatch]:
        try:
            response = await asyncio.to_thread(
                self.index.query,
                vector=vector,
                top_k=top_k,
                namespace=self.namespace,
                include_metadata=include_metadata,
                include_values=False,  # Vectors are never returned to callers
            )
        except Exception as exc:
            logger.error(f"Pinecone query against {self.index_name!r} failed: {exc}")
            raise StoreQueryError(
                f"Vector store query failed: {exc}", {"index": self.index_name}
            ) from exc

        return [
            StoreMatch(id=match.id, score=match.score, metadata=dict(match.metadata or {}))
            for match in response.matches
        ]

    async def describe(self) -> dict[str, Any]:
        """Return basic index statistics."""
        stats = await asyncio.to_thread(self.index.describe_index_stats)
        return {
            "index_name": self.index_name,
            "total_vector_count": getattr(stats, "total_vector_count", 0),
            "dimension": getattr(stats, "dimension", None),
        }

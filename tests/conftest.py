"""Pytest configuration for test discovery, env, and fixtures.

This file ensures that:
- `src/` is importable
- Integration tests can read credentials from `conf/secrets.yml`
- Unit tests get in-memory stand-ins for the embedding service and vector store
"""

from __future__ import annotations

import hashlib
import math
import os
import random
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure src directory is in path for imports
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from agent_kb_mcp.clients import ClientLifecycleManager  # noqa: E402
from agent_kb_mcp.service import KnowledgeBaseService  # noqa: E402
from knowledge_backend.config import IndexConfig, KnowledgeBaseSettings  # noqa: E402
from knowledge_backend.embedding import EmbeddingConfig  # noqa: E402
from knowledge_backend.errors import (  # noqa: E402
    EmbeddingServiceError,
    StoreQueryError,
    StoreWriteError,
)
from knowledge_backend.index import KnowledgeStore  # noqa: E402
from knowledge_backend.models import StoreMatch  # noqa: E402


def _load_secrets_into_env() -> None:
    """Load secrets from conf/secrets.yml into environment if not set.

    Only sets variables that are currently unset to avoid overriding user-provided
    environment. This supports running integration tests locally without manual
    export of credentials.
    """
    secrets_path = repo_root / "conf" / "secrets.yml"
    if not secrets_path.exists():
        return

    import yaml  # type: ignore[import-untyped]

    data = yaml.safe_load(secrets_path.read_text()) or {}

    for env_key in ("OPENAI_API_KEY", "PINECONE_API_KEY", "PINECONE_HOST"):
        if os.environ.get(env_key):
            continue
        value = data.get(env_key)
        if value:
            os.environ[env_key] = str(value)


def pytest_sessionstart(session: object) -> None:
    _load_secrets_into_env()


class FakeEmbedding:
    """Deterministic embedding: identical text yields an identical unit vector."""

    def __init__(self, dimensions: int = 512) -> None:
        self.dimensions = dimensions
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        rng = random.Random(seed)
        vector = [rng.uniform(-1.0, 1.0) for _ in range(self.dimensions)]
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]


class InMemoryStore(KnowledgeStore):
    """Cosine-similarity store with upsert-by-id and top-K query."""

    def __init__(self) -> None:
        self.records: dict[str, tuple[list[float], dict[str, Any]]] = {}
        self.upsert_calls = 0
        self.query_calls = 0
        self.write_error: Exception | None = None
        self.query_error: Exception | None = None

    async def upsert(self, record_id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        self.upsert_calls += 1
        if self.write_error is not None:
            raise self.write_error
        self.records[record_id] = (list(vector), dict(metadata))

    async def query(
        self, vector: list[float], top_k: int, include_metadata: bool = True
    ) -> list[StoreMatch]:
        self.query_calls += 1
        if self.query_error is not None:
            raise self.query_error
        scored = [
            StoreMatch(
                id=record_id,
                score=_cosine(vector, stored_vector),
                metadata=dict(metadata) if include_metadata else {},
            )
            for record_id, (stored_vector, metadata) in self.records.items()
        ]
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:top_k]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


@pytest.fixture
def settings() -> KnowledgeBaseSettings:
    """Fully configured settings (no network is ever reached in unit tests)."""
    return KnowledgeBaseSettings(
        embedding=EmbeddingConfig(api_key="sk-test-key"),
        index=IndexConfig(api_key="pc-test-key", host="https://cleopatra.svc.pinecone.io"),
    )


@pytest.fixture
def fake_embedding() -> FakeEmbedding:
    return FakeEmbedding()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def lifecycle(
    settings: KnowledgeBaseSettings, fake_embedding: FakeEmbedding, memory_store: InMemoryStore
) -> ClientLifecycleManager:
    return ClientLifecycleManager(
        settings,
        embedding_factory=lambda _config: fake_embedding,
        store_factory=lambda _config: memory_store,
    )


@pytest.fixture
def service(lifecycle: ClientLifecycleManager) -> KnowledgeBaseService:
    return KnowledgeBaseService(lifecycle)


@pytest.fixture
def upstream_errors() -> dict[str, Exception]:
    """One instance of each upstream failure type, keyed by the failing stage."""
    return {
        "embed": EmbeddingServiceError("Embedding service error: quota exceeded"),
        "upsert": StoreWriteError("Vector store write failed: 503 Service Unavailable"),
        "query": StoreQueryError("Vector store query failed: 503 Service Unavailable"),
    }

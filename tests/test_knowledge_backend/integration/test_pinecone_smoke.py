"""Integration smoke tests against the live Pinecone index.

These tests require:
- OPENAI_API_KEY environment variable
- PINECONE_API_KEY environment variable
- PINECONE_HOST environment variable (data-plane host of a 512-d index)

Records are written into a throwaway namespace so the shared index stays clean.

Run with: pytest tests/test_knowledge_backend/integration/ -v -m integration
"""

import asyncio
import os
import uuid

import pytest
import pytest_asyncio

from agent_kb_mcp.clients import ClientLifecycleManager
from agent_kb_mcp.service import KnowledgeBaseService
from knowledge_backend.config import IndexConfig, KnowledgeBaseSettings
from knowledge_backend.embedding import EmbeddingConfig

pytestmark = pytest.mark.integration


@pytest.fixture
def live_settings() -> KnowledgeBaseSettings:
    required = ("OPENAI_API_KEY", "PINECONE_API_KEY", "PINECONE_HOST")
    missing = [name for name in required if not os.environ.get(name)]
    if missing:
        pytest.skip(f"{', '.join(missing)} not set")

    return KnowledgeBaseSettings(
        embedding=EmbeddingConfig(api_key=os.environ["OPENAI_API_KEY"]),
        index=IndexConfig(
            api_key=os.environ["PINECONE_API_KEY"],
            host=os.environ["PINECONE_HOST"],
            namespace=f"smoke-{uuid.uuid4().hex[:8]}",
        ),
    )


@pytest_asyncio.fixture
async def live_service(live_settings):
    lifecycle = ClientLifecycleManager(live_settings)
    yield KnowledgeBaseService(lifecycle)

    clients = await lifecycle.ensure_clients()
    await asyncio.to_thread(
        clients.store.index.delete, delete_all=True, namespace=live_settings.index.namespace
    )


@pytest.mark.asyncio
async def test_upload_then_search_finds_pair(live_service):
    problem = "pytest fixture 'live_service' not found when running from repo root"
    solution = "Run pytest from the directory containing conftest.py or set rootdir"

    upload = await live_service.upload(problem, solution, language="Python")
    assert upload.ok, upload.message

    # Pinecone serverless writes are eventually consistent
    await asyncio.sleep(10)

    outcome = await live_service.search(problem, top_k=3)

    assert outcome.ok, outcome.message
    assert outcome.results_found >= 1
    top = outcome.results[0]
    assert top.problem == problem
    assert top.solution == solution
    assert top.metadata.language == "Python"
    assert top.metadata.framework is None

#!/usr/bin/env python
"""Search the agent knowledge base from the terminal.

Runs the same pipeline as the MCP ``search`` tool (embed the query, query
Pinecone) and prints the ranked problem/solution pairs.

Usage:
    python scripts/search_knowledge_base.py "TypeError: x is undefined"
    python scripts/search_knowledge_base.py "CORS preflight fails" --top-k 10
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import click
from loguru import logger

from agent_kb_mcp.clients import ClientLifecycleManager
from agent_kb_mcp.service import MAX_TOP_K, KnowledgeBaseService
from knowledge_backend.config import load_settings

# Configure logging
logger.remove()
logger.add(sys.stderr, level="INFO", format="<level>{message}</level>")


async def search(query: str, top_k: int = 5) -> bool:
    """Search the knowledge base and log each result.

    Args:
        query: Description of the problem to look up
        top_k: Number of results to return

    Returns:
        True if the search succeeded
    """
    logger.info("=" * 60)
    logger.info(f"🔍 Searching: '{query}'")
    logger.info("=" * 60)

    settings = load_settings("default")
    service = KnowledgeBaseService(ClientLifecycleManager(settings))

    outcome = await service.search(query, top_k=top_k)
    if not outcome.ok:
        logger.error(f"❌ {outcome.message}")
        return False

    if not outcome.results:
        logger.warning("No results found!")
        return True

    logger.success(f"Found {outcome.results_found} results:\n")

    for i, result in enumerate(outcome.results, 1):
        logger.info(f"{'='*60}")
        logger.info(f"Result {i} (score: {result.score:.4f})")
        logger.info(f"{'='*60}")
        if result.metadata.language:
            logger.info(f"💬 Language: {result.metadata.language}")
        if result.metadata.framework:
            logger.info(f"🧰 Framework: {result.metadata.framework}")
        if result.metadata.timestamp:
            logger.info(f"📅 Recorded: {result.metadata.timestamp}")
        logger.info(f"\n🐛 Problem:\n{result.problem}")
        logger.info(f"\n✅ Solution:\n{result.solution}")
        logger.info("")

    return True


@click.command()
@click.argument("query", type=str)
@click.option(
    "--top-k",
    default=5,
    type=click.IntRange(1, MAX_TOP_K),
    help=f"Number of results to return (1-{MAX_TOP_K})",
)
def cli(query: str, top_k: int):
    """Search the shared knowledge base for solutions to similar problems."""
    if not asyncio.run(search(query, top_k)):
        sys.exit(1)


if __name__ == "__main__":
    cli()

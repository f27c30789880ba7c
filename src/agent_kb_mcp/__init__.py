"""Agent knowledge base MCP server package."""

from .clients import ClientLifecycleManager, KnowledgeClients
from .mcp_server import build_server, create_app, run_server
from .service import KnowledgeBaseService

__all__ = [
    "ClientLifecycleManager",
    "KnowledgeBaseService",
    "KnowledgeClients",
    "build_server",
    "create_app",
    "run_server",
]

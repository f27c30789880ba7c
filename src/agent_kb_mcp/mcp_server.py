"""MCP server entry point for the agent knowledge base.

Exposes two tools, ``upload`` and ``search``, over stdio or over HTTP where
the same tools are reachable through streamable HTTP (``/mcp``) and the
legacy SSE transport (``/sse``).
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import json
import sys
from collections.abc import Callable, Coroutine, Sequence
from importlib import metadata
from typing import Annotated, Any, NoReturn, cast

import uvicorn
from fastmcp.exceptions import ToolError
from fastmcp.server.http import create_sse_app
from loguru import logger
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from knowledge_backend.config import KnowledgeBaseSettings, load_settings
from knowledge_backend.models import SearchOutcome, UploadOutcome

from .clients import ClientLifecycleManager
from .schemas import (
    FRAMEWORK_DESCRIPTION,
    LANGUAGE_DESCRIPTION,
    PROBLEM_DESCRIPTION,
    QUERY_DESCRIPTION,
    SOLUTION_DESCRIPTION,
    TOP_K_DESCRIPTION,
    SearchArguments,
    UploadArguments,
)
from .service import DEFAULT_TOP_K, MAX_TOP_K, KnowledgeBaseService

FastMCP: type[Any] | None = None

__all__ = [
    "build_server",
    "create_app",
    "run_server",
    "run",
    "main",
    "__version__",
]

SERVER_NAME = "Agent Knowledge Base"

# Starlette mounts match only below the prefix, hence the trailing slash
SSE_MESSAGE_PATH = "/sse/message/"

# Advertised in the tool schemas only; the argument models in the tool bodies
# enforce them so violations come back as error envelopes.
NON_EMPTY: dict[str, Any] = {"minLength": 1}
TOP_K_BOUNDS: dict[str, Any] = {"minimum": 1, "maximum": MAX_TOP_K}


def _resolve_version() -> str:
    """Return the installed distribution version or fall back to the project default."""

    try:
        return metadata.version("agent-knowledge-base")
    except metadata.PackageNotFoundError:
        return "1.0.0"


__version__ = _resolve_version()


def _import_fastmcp() -> type[Any]:
    """Import FastMCP lazily so tests can stub the implementation."""

    global FastMCP
    if FastMCP is not None:
        return FastMCP

    import fastmcp
    from fastmcp import FastMCP as FastMCPClass

    # Disable banner for stdio transport compatibility
    fastmcp.settings.show_cli_banner = False

    FastMCP = cast(type[Any], FastMCPClass)
    return FastMCP


def _instantiate_fastmcp(class_: type[Any], **metadata: Any) -> Any:
    signature = inspect.signature(class_.__init__)
    parameters = signature.parameters

    filtered: dict[str, Any] = {key: value for key, value in metadata.items() if key in parameters}

    if not filtered and any(
        param.kind == inspect.Parameter.VAR_KEYWORD for param in parameters.values()
    ):
        filtered = metadata

    return class_(**filtered)


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr; stdout carries the stdio transport."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def error_envelope(message: str) -> dict[str, Any]:
    return {"status": "error", "message": message}


def _fail(message: str) -> NoReturn:
    """Abort the tool call with an error envelope; MCP marks the result ``isError``."""
    raise ToolError(json.dumps(error_envelope(message)))


def _describe_validation_error(exc: PydanticValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "input"
        details.append(f"{location}: {error['msg']}")
    return "Invalid input: " + "; ".join(details)


def upload_envelope(outcome: UploadOutcome) -> dict[str, Any]:
    """Translate an upload outcome into the tool response envelope."""
    if not outcome.ok:
        _fail(outcome.message)
    return {"status": "success", "id": outcome.id, "message": outcome.message}


def search_envelope(outcome: SearchOutcome) -> dict[str, Any]:
    """Translate a search outcome into the tool response envelope."""
    if not outcome.ok:
        _fail(outcome.message)
    return {
        "status": "success",
        "query": outcome.query,
        "results_found": outcome.results_found,
        "results": [result.to_payload() for result in outcome.results],
    }


def build_server(service: KnowledgeBaseService) -> Any:
    """Create the FastMCP server and register the knowledge base tools."""

    fastmcp_class = _import_fastmcp()
    server = _instantiate_fastmcp(
        fastmcp_class,
        name=SERVER_NAME,
        version=__version__,
        instructions=(
            "Shared knowledge base of problem/solution pairs. Search before debugging; "
            "upload once a problem is solved."
        ),
    )

    @server.tool()  # type: ignore[misc]
    async def upload(
        problem: Annotated[
            str, Field(description=PROBLEM_DESCRIPTION, json_schema_extra=NON_EMPTY)
        ],
        solution: Annotated[
            str, Field(description=SOLUTION_DESCRIPTION, json_schema_extra=NON_EMPTY)
        ],
        language: Annotated[str | None, Field(description=LANGUAGE_DESCRIPTION)] = None,
        framework: Annotated[str | None, Field(description=FRAMEWORK_DESCRIPTION)] = None,
    ) -> dict[str, Any]:
        """Upload a problem-solution pair to the knowledge base. Use this when you've
        successfully solved a bug or error to help other agents."""
        logger.info(f"upload called: language={language}, framework={framework}")

        try:
            arguments = UploadArguments(
                problem=problem, solution=solution, language=language, framework=framework
            )
        except PydanticValidationError as exc:
            logger.warning(f"Rejected upload input: {exc.error_count()} error(s)")
            _fail(_describe_validation_error(exc))

        outcome = await service.upload(
            arguments.problem,
            arguments.solution,
            language=arguments.language,
            framework=arguments.framework,
        )
        return upload_envelope(outcome)

    @server.tool()  # type: ignore[misc]
    async def search(
        query: Annotated[
            str, Field(description=QUERY_DESCRIPTION, json_schema_extra=NON_EMPTY)
        ],
        topK: Annotated[
            int, Field(description=TOP_K_DESCRIPTION, json_schema_extra=TOP_K_BOUNDS)
        ] = DEFAULT_TOP_K,
    ) -> dict[str, Any]:
        """Search the knowledge base for solutions to similar problems. Use this when
        you encounter an error or bug to find solutions from other agents."""
        logger.info(f"search called: query='{query}', topK={topK}")

        try:
            arguments = SearchArguments(query=query, topK=topK)
        except PydanticValidationError as exc:
            logger.warning(f"Rejected search input: {exc.error_count()} error(s)")
            _fail(_describe_validation_error(exc))

        outcome = await service.search(arguments.query, top_k=arguments.top_k)
        return search_envelope(outcome)

    return server


def create_app(server: Any, lifecycle: ClientLifecycleManager | None = None) -> Starlette:
    """Build the ASGI app serving both HTTP transports plus a health probe.

    Routes:
        /mcp     streamable HTTP transport
        /sse     legacy SSE transport, client messages posted to /sse/message/
        /health  liveness probe, never touches upstream services
    """
    stream_app = server.http_app(path="/mcp", transport="streamable-http")
    sse_app = create_sse_app(server, message_path=SSE_MESSAGE_PATH, sse_path="/sse")

    async def health(_request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "version": __version__,
                "clients_initialized": bool(lifecycle and lifecycle.initialized),
            }
        )

    return Starlette(
        routes=[Route("/health", health, methods=["GET"]), *stream_app.routes, *sse_app.routes],
        lifespan=stream_app.lifespan,
    )


async def run_server(
    transport: str = "stdio",
    host: str | None = None,
    port: int | None = None,
    settings: KnowledgeBaseSettings | None = None,
) -> None:
    """Run the MCP server event loop."""

    settings = settings or load_settings("default")
    configure_logging(settings.server.log_level)

    lifecycle = ClientLifecycleManager(settings)
    service = KnowledgeBaseService(lifecycle)
    server = build_server(service)

    if transport == "stdio":
        logger.info("Serving knowledge base tools over stdio")
        await server.run_async()
        return

    app = create_app(server, lifecycle)
    bind_host = host or settings.server.host
    bind_port = port or settings.server.port
    logger.info(f"Serving knowledge base tools on http://{bind_host}:{bind_port} (/mcp, /sse)")
    config = uvicorn.Config(
        app, host=bind_host, port=bind_port, log_level=settings.server.log_level.lower()
    )
    await uvicorn.Server(config).serve()


def run(main: Callable[[], Coroutine[Any, Any, None]] | None = None) -> None:
    """Synchronous helper for CLI entry points."""
    entry = main or run_server
    try:
        asyncio.run(entry())
    except KeyboardInterrupt:
        logger.warning("MCP server interrupted by user.")
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled MCP server failure: {}", exc)
        raise


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agent-kb-mcp",
        description="Shared problem/solution knowledge base for agents, served over MCP.",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="stdio for local MCP clients, http to serve /mcp and /sse (default: stdio)",
    )
    parser.add_argument("--host", default=None, help="Bind address for the http transport")
    parser.add_argument("--port", type=int, default=None, help="Port for the http transport")
    parser.add_argument(
        "--config-name", default="default", help="Config file in conf/knowledge_base/"
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Hydra-style config override, may be repeated",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point."""
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config_name, overrides=args.override)

    async def _entry() -> None:
        await run_server(
            transport=args.transport, host=args.host, port=args.port, settings=settings
        )

    run(_entry)

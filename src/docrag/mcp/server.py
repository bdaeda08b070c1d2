"""FastMCP server setup for docrag.

This module creates and configures the MCP server with the docrag
tools and resources.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from docrag._version import __version__
from docrag.core.config import DocRagSettings, get_settings
from docrag.core.exceptions import ConfigurationError
from docrag.core.logging import get_logger
from docrag.ingest.pipeline import IndexingCoordinator

logger = get_logger(__name__)

# Global server instance
_server: Any = None


def make_lifespan(
    coordinator: IndexingCoordinator,
    auto_ingest: bool,
) -> Any:
    """Build the server lifespan.

    Startup initializes the chunk store and, if enabled, ingests the
    configured documents directory. A failed ingest is logged and the
    server starts anyway.
    """

    @asynccontextmanager
    async def lifespan(server: Any) -> AsyncIterator[dict[str, Any]]:
        await coordinator.initialize()

        if auto_ingest:
            logger.info("Starting automatic document ingestion")
            try:
                result = await coordinator.ingest()
                logger.info(f"Auto-ingestion completed: {result.summary()}")
            except Exception as e:
                logger.error(f"Auto-ingestion failed: {e}")

        try:
            yield {"coordinator": coordinator}
        finally:
            await coordinator.close()

    return lifespan


def create_server(
    coordinator: IndexingCoordinator | None = None,
    config: DocRagSettings | None = None,
) -> Any:
    """Create and configure the MCP server.

    Args:
        coordinator: Coordinator to serve (built from settings if None)
        config: docrag settings

    Returns:
        Configured FastMCP server instance
    """
    global _server

    if _server is not None:
        return _server

    try:
        from mcp.server.fastmcp import FastMCP
    except ImportError as e:
        raise ImportError(
            "MCP SDK is required for the docrag server. "
            "Install it with: pip install mcp"
        ) from e

    config = config or get_settings()
    coordinator = coordinator or IndexingCoordinator.from_settings(config)

    _server = FastMCP(
        name=config.server_name,
        instructions=(
            "Search and read chunks of the local document collection. "
            "Use search for relevant passages, get_chunk for a specific one."
        ),
        lifespan=make_lifespan(coordinator, config.auto_ingest),
        port=config.mcp_http_port,
    )

    from docrag.mcp.resources import register_resources
    from docrag.mcp.tools import register_tools

    register_tools(_server, coordinator)
    register_resources(_server, coordinator)

    logger.info(f"docrag MCP server v{__version__} initialized")
    return _server


def reset_server() -> None:
    """Drop the cached server instance."""
    global _server
    _server = None


def run_stdio() -> None:
    """Run the MCP server with stdio transport.

    This is the default transport for desktop MCP clients.
    """
    server = create_server()
    logger.info("Starting docrag MCP server (stdio transport)")
    server.run()


def run_http(port: int | None = None) -> None:
    """Run the MCP server with streamable HTTP transport.

    Args:
        port: HTTP port to listen on (defaults to settings.mcp_http_port)
    """
    server = create_server()
    if port is not None:
        server.settings.port = port
    logger.info(f"Starting docrag MCP server (HTTP transport on port {server.settings.port})")
    server.run(transport="streamable-http")


def run_server(transport: str | None = None, port: int | None = None) -> None:
    """Run the MCP server on the named transport.

    Args:
        transport: "stdio" or "http" (defaults to settings.mcp_transport)
        port: HTTP port, only used with the http transport

    Raises:
        ConfigurationError: If the transport is unknown
    """
    transport = transport or get_settings().mcp_transport

    if transport == "stdio":
        run_stdio()
    elif transport == "http":
        run_http(port=port)
    else:
        raise ConfigurationError(
            f"Unknown transport: {transport}",
            setting_name="mcp_transport",
            setting_value=transport,
        )

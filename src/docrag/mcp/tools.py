"""MCP tools for docrag.

This module defines the four tools exposed to AI agents and the
dispatcher that renders their results as success/failure payloads.
"""

import inspect
from typing import Any, Awaitable, Callable

from docrag.core.exceptions import DocRagError, UnknownOperationError, ValidationError
from docrag.core.logging import get_logger
from docrag.core.types import Chunk
from docrag.ingest.pipeline import IndexingCoordinator

logger = get_logger(__name__)


def chunk_payload(chunk: Chunk) -> dict[str, Any]:
    """Render a chunk with its resource locator."""
    return {**chunk.to_dict(), "uri": chunk.locator}


async def ingest_docs(coordinator: IndexingCoordinator, path: str | None = None) -> dict[str, Any]:
    result = await coordinator.ingest(path)
    return {
        "success": True,
        "message": (
            f"Successfully processed {result.processed} documents "
            f"and created {result.chunks} chunks"
        ),
        "processed": result.processed,
        "chunks": result.chunks,
    }


async def search(coordinator: IndexingCoordinator, query: str, k: int = 5) -> dict[str, Any]:
    chunks = await coordinator.search(query, k)
    return {
        "success": True,
        "results": [chunk_payload(chunk) for chunk in chunks],
    }


async def get_chunk(coordinator: IndexingCoordinator, id: str) -> dict[str, Any]:
    chunk = await coordinator.get_chunk(id)
    if chunk is None:
        return {"success": False, "error": "Chunk not found"}
    return {"success": True, "chunk": chunk_payload(chunk)}


async def refresh_index(coordinator: IndexingCoordinator) -> dict[str, Any]:
    await coordinator.refresh_index()
    return {"success": True, "message": "Index refreshed successfully"}


TOOLS: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {
    "ingest_docs": ingest_docs,
    "search": search,
    "get_chunk": get_chunk,
    "refresh_index": refresh_index,
}


async def dispatch(
    name: str,
    arguments: dict[str, Any] | None,
    coordinator: IndexingCoordinator,
) -> dict[str, Any]:
    """Run a tool by name.

    Raises:
        UnknownOperationError: If no tool has that name
        ValidationError: If the arguments do not fit the tool
        DocRagError: Whatever the tool raises
    """
    handler = TOOLS.get(name)
    if handler is None:
        raise UnknownOperationError(name)
    try:
        bound = inspect.signature(handler).bind(coordinator, **(arguments or {}))
    except TypeError as e:
        raise ValidationError(f"Invalid arguments for {name}: {e}") from e
    return await handler(*bound.args, **bound.kwargs)


async def handle_tool_call(
    name: str,
    arguments: dict[str, Any] | None,
    coordinator: IndexingCoordinator,
) -> dict[str, Any]:
    """Run a tool and turn docrag errors into a failure payload."""
    try:
        return await dispatch(name, arguments, coordinator)
    except DocRagError as e:
        logger.warning(f"Tool {name} failed: {e}")
        return {"success": False, "error": e.message}


def register_tools(mcp: Any, coordinator: IndexingCoordinator) -> None:
    """Register all MCP tools.

    Args:
        mcp: FastMCP server instance
        coordinator: Coordinator the tools operate on
    """

    @mcp.tool(name="ingest_docs")
    async def ingest_docs_tool(path: str | None = None) -> dict[str, Any]:
        """Ingest documents from a directory into the RAG system.

        Args:
            path: Directory (or file) to ingest; uses the configured
                documents path if not provided
        """
        return await handle_tool_call("ingest_docs", {"path": path}, coordinator)

    @mcp.tool(name="search")
    async def search_tool(query: str, k: int = 5) -> dict[str, Any]:
        """Search for relevant document chunks using semantic similarity.

        Args:
            query: The search query to find relevant document chunks
            k: Number of top results to return
        """
        return await handle_tool_call("search", {"query": query, "k": k}, coordinator)

    @mcp.tool(name="get_chunk")
    async def get_chunk_tool(id: str) -> dict[str, Any]:
        """Retrieve a specific document chunk by its ID.

        Args:
            id: The unique identifier of the chunk to retrieve
        """
        return await handle_tool_call("get_chunk", {"id": id}, coordinator)

    @mcp.tool(name="refresh_index")
    async def refresh_index_tool() -> dict[str, Any]:
        """Clear and refresh the entire document index."""
        return await handle_tool_call("refresh_index", {}, coordinator)

    logger.info("Registered MCP tools")

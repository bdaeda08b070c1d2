"""MCP resources for docrag.

This module exposes the collection summary and individual chunks as
MCP resources.
"""

import json
from typing import Any

from docrag.core.exceptions import ChunkNotFoundError, DocRagError
from docrag.core.logging import get_logger
from docrag.ingest.pipeline import IndexingCoordinator
from docrag.mcp.tools import chunk_payload

logger = get_logger(__name__)

SCHEME = "rag://"
SUMMARY_URI = "rag://collection/summary"
DOC_PREFIX = "rag://doc/"


def is_resource_uri(uri: str) -> bool:
    return uri.startswith(SCHEME)


async def read_resource(uri: str, coordinator: IndexingCoordinator) -> str:
    """Render a rag:// resource as JSON.

    Supports the collection summary and chunk locators of the form
    rag://doc/{source}#{id}.

    Raises:
        DocRagError: If the URI is not a rag:// resource
        ChunkNotFoundError: If the URI names no stored chunk
    """
    if not is_resource_uri(uri):
        raise DocRagError(f"Invalid resource URI: {uri}", {"uri": uri})

    if uri == SUMMARY_URI:
        summary = await coordinator.get_collection_summary()
        return json.dumps(summary, indent=2)

    if uri.startswith(DOC_PREFIX) and "#" in uri:
        chunk_id = uri.rsplit("#", 1)[1]
        if chunk_id:
            chunk = await coordinator.get_chunk(chunk_id)
            if chunk is not None:
                return json.dumps({**chunk_payload(chunk), "uri": uri}, indent=2)
            raise ChunkNotFoundError(chunk_id)

    raise DocRagError(f"Resource not found: {uri}", {"uri": uri})


def register_resources(mcp: Any, coordinator: IndexingCoordinator) -> None:
    """Register all MCP resources.

    Args:
        mcp: FastMCP server instance
        coordinator: Coordinator the resources read from
    """

    @mcp.resource(SUMMARY_URI, mime_type="application/json")
    async def collection_summary() -> str:
        """Summary of the document collection including statistics
        and available sources."""
        return await read_resource(SUMMARY_URI, coordinator)

    @mcp.resource("rag://chunk/{chunk_id}", mime_type="application/json")
    async def chunk_by_id(chunk_id: str) -> str:
        """A single document chunk by its ID."""
        chunk = await coordinator.get_chunk(chunk_id)
        if chunk is None:
            raise ChunkNotFoundError(chunk_id)
        return json.dumps(chunk_payload(chunk), indent=2)

    logger.info("Registered MCP resources")

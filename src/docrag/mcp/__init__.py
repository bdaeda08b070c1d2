"""MCP server for docrag.

This module provides the FastMCP server that exposes the ingest,
search, get_chunk and refresh_index operations as MCP tools.
"""

from docrag.mcp.server import create_server, run_http, run_server, run_stdio

__all__ = [
    "create_server",
    "run_server",
    "run_stdio",
    "run_http",
]

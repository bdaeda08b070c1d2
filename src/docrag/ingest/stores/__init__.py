"""Chunk stores.

This module provides the primary Chroma store, the in-memory shadow
store and the ChunkStore that routes between them.
"""

from docrag.ingest.stores.base import AddResult, BaseStore
from docrag.ingest.stores.memory import MemoryStore
from docrag.ingest.stores.resilient import ChunkStore

__all__ = [
    "AddResult",
    "BaseStore",
    "ChunkStore",
    "MemoryStore",
]


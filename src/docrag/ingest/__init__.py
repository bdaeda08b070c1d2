"""Ingestion layer for docrag.

This module provides extraction, chunking, the chunk stores and the
coordinator that sequences them.
"""

from docrag.ingest.chunkers import TokenChunker, chunk_id, sanitize_source
from docrag.ingest.extract import DocumentExtractor, ExtractedDocument, FileStats
from docrag.ingest.pipeline import IndexingCoordinator, IngestResult
from docrag.ingest.stores import AddResult, BaseStore, ChunkStore, MemoryStore

__all__ = [
    "TokenChunker",
    "chunk_id",
    "sanitize_source",
    "DocumentExtractor",
    "ExtractedDocument",
    "FileStats",
    "IndexingCoordinator",
    "IngestResult",
    "AddResult",
    "BaseStore",
    "ChunkStore",
    "MemoryStore",
]

"""docrag - resilient document chunk store with semantic search.

Chunk. Embed. Store. Search.

docrag splits documents into overlapping token windows, embeds them
into a Chroma collection and serves semantic search over them. When
Chroma or the embedding provider is unreachable it keeps working from
an in-memory store with plain substring search.

Example:
    >>> from docrag import IndexingCoordinator
    >>>
    >>> coordinator = IndexingCoordinator.from_settings()
    >>> await coordinator.initialize()
    >>> await coordinator.ingest("./docs")
    >>> for chunk in await coordinator.search("vector store", k=3):
    ...     print(chunk.locator)
"""

from docrag._version import __version__
from docrag.core.config import DocRagSettings, configure, get_settings, load_settings
from docrag.core.exceptions import (
    AcquisitionError,
    ChunkNotFoundError,
    ConfigurationError,
    DocRagError,
    EmbeddingError,
    EmbeddingServiceUnavailable,
    StoreError,
    ValidationError,
)
from docrag.core.logging import get_logger, setup_logging
from docrag.core.types import (
    BackendMode,
    Chunk,
    ChunkMetadata,
    CollectionStats,
    StoreState,
)

__all__ = [
    # Version
    "__version__",
    # Core types
    "Chunk",
    "ChunkMetadata",
    "CollectionStats",
    "BackendMode",
    "StoreState",
    # Config
    "DocRagSettings",
    "get_settings",
    "configure",
    "load_settings",
    # Exceptions
    "DocRagError",
    "ValidationError",
    "AcquisitionError",
    "EmbeddingError",
    "EmbeddingServiceUnavailable",
    "StoreError",
    "ChunkNotFoundError",
    "ConfigurationError",
    # Logging
    "get_logger",
    "setup_logging",
    # Lazy
    "TokenChunker",
    "ChunkStore",
    "MemoryStore",
    "ChromaStore",
    "OllamaEmbedder",
    "DocumentExtractor",
    "IndexingCoordinator",
]


def __getattr__(name: str):
    """Lazy import for modules with heavy dependencies."""
    if name == "TokenChunker":
        from docrag.ingest.chunkers import TokenChunker
        return TokenChunker

    if name == "ChunkStore":
        from docrag.ingest.stores.resilient import ChunkStore
        return ChunkStore

    if name == "MemoryStore":
        from docrag.ingest.stores.memory import MemoryStore
        return MemoryStore

    if name == "ChromaStore":
        from docrag.ingest.stores.chroma import ChromaStore
        return ChromaStore

    if name == "OllamaEmbedder":
        from docrag.embeddings import OllamaEmbedder
        return OllamaEmbedder

    if name == "DocumentExtractor":
        from docrag.ingest.extract import DocumentExtractor
        return DocumentExtractor

    if name == "IndexingCoordinator":
        from docrag.ingest.pipeline import IndexingCoordinator
        return IndexingCoordinator

    raise AttributeError(f"module 'docrag' has no attribute {name!r}")

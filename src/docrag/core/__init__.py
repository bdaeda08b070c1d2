"""Core module for docrag - types, configuration, and utilities."""

from docrag.core.types import (
    BackendMode,
    Chunk,
    ChunkMetadata,
    CollectionStats,
    StoreState,
)
from docrag.core.config import DocRagSettings
from docrag.core.exceptions import (
    AcquisitionError,
    ChunkNotFoundError,
    ConfigurationError,
    DocRagError,
    EmbeddingError,
    EmbeddingServiceUnavailable,
    ExtractionError,
    StoreError,
    UnknownOperationError,
    UnsupportedFileError,
    ValidationError,
)

__all__ = [
    # Types
    "BackendMode",
    "Chunk",
    "ChunkMetadata",
    "CollectionStats",
    "StoreState",
    # Config
    "DocRagSettings",
    # Exceptions
    "DocRagError",
    "ValidationError",
    "ConfigurationError",
    "AcquisitionError",
    "UnsupportedFileError",
    "ExtractionError",
    "EmbeddingError",
    "EmbeddingServiceUnavailable",
    "StoreError",
    "ChunkNotFoundError",
    "UnknownOperationError",
]

"""Core data types for docrag.

This module defines the fundamental data structures used throughout docrag:
- ChunkMetadata: Fixed metadata record attached to every chunk
- Chunk: A bounded slice of a source document
- CollectionStats: Derived count/source summary of a store
- BackendMode / StoreState: ChunkStore lifecycle values
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from docrag.core.exceptions import ValidationError


class BackendMode(str, Enum):
    """Session-long backend choice of a ChunkStore."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class StoreState(str, Enum):
    """Lifecycle state of a ChunkStore."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    PRIMARY_ACTIVE = "primary_active"
    FALLBACK_ACTIVE = "fallback_active"

    @property
    def mode(self) -> BackendMode | None:
        """Backend mode implied by this state, None until decided."""
        if self is StoreState.PRIMARY_ACTIVE:
            return BackendMode.PRIMARY
        if self is StoreState.FALLBACK_ACTIVE:
            return BackendMode.FALLBACK
        return None


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by a chunk.

    Attributes:
        source: Origin identifier (usually an absolute file path)
        chunk_index: 0-based position among the chunks emitted for the source
        total_chunks: Window count precomputed for the source at chunk time
        title: Document title, if known
        page: Page number, if known
        distance: Backend dissimilarity score, set only on query results
    """
    source: str
    chunk_index: int
    total_chunks: int
    title: str | None = None
    page: int | None = None
    distance: float | None = None

    def __post_init__(self) -> None:
        """Validate metadata once, at construction."""
        if not isinstance(self.source, str) or not self.source:
            raise ValidationError("source must be a non-empty string", field="source")
        if isinstance(self.chunk_index, bool) or not isinstance(self.chunk_index, int) or self.chunk_index < 0:
            raise ValidationError(
                f"chunk_index must be a non-negative integer, got {self.chunk_index!r}",
                field="chunk_index",
            )
        if isinstance(self.total_chunks, bool) or not isinstance(self.total_chunks, int) or self.total_chunks < 0:
            raise ValidationError(
                f"total_chunks must be a non-negative integer, got {self.total_chunks!r}",
                field="total_chunks",
            )
        if self.title is not None and not isinstance(self.title, str):
            raise ValidationError("title must be a string", field="title")
        if self.page is not None and (isinstance(self.page, bool) or not isinstance(self.page, int)):
            raise ValidationError("page must be an integer", field="page")

    def to_dict(self, include_none: bool = True) -> dict[str, Any]:
        """Convert metadata to a flat dictionary.

        Args:
            include_none: Keep optional fields that are unset. Vector
                stores that reject null values pass False.
        """
        data: dict[str, Any] = {
            "source": self.source,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "title": self.title,
            "page": self.page,
            "distance": self.distance,
        }
        if not include_none:
            data = {k: v for k, v in data.items() if v is not None}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChunkMetadata":
        """Create metadata from a stored dictionary.

        Unknown keys are ignored; numeric fields stored as floats by a
        backend are coerced back to integers.
        """
        def _int(value: Any) -> Any:
            if isinstance(value, float) and value.is_integer():
                return int(value)
            return value

        page = data.get("page")
        distance = data.get("distance")
        return cls(
            source=data.get("source", ""),
            chunk_index=_int(data.get("chunk_index", 0)),
            total_chunks=_int(data.get("total_chunks", 0)),
            title=data.get("title"),
            page=_int(page) if page is not None else None,
            distance=float(distance) if distance is not None else None,
        )


@dataclass(frozen=True)
class Chunk:
    """A bounded, overlapping slice of a source document.

    Attributes:
        id: Deterministic identifier, unique within a store
        content: Non-empty, trimmed chunk text
        metadata: Fixed metadata record
    """
    id: str
    content: str
    metadata: ChunkMetadata

    def __post_init__(self) -> None:
        """Validate chunk after initialization."""
        if not isinstance(self.id, str) or not self.id:
            raise ValidationError("chunk id must be a non-empty string", field="id")
        if not isinstance(self.content, str) or not self.content.strip():
            raise ValidationError(
                "chunk content must not be empty", chunk_id=self.id, field="content"
            )
        if not isinstance(self.metadata, ChunkMetadata):
            raise ValidationError(
                "chunk metadata must be a ChunkMetadata", chunk_id=self.id, field="metadata"
            )

    @property
    def source(self) -> str:
        """Shortcut for metadata.source."""
        return self.metadata.source

    @property
    def locator(self) -> str:
        """Resource locator for this chunk."""
        return f"rag://doc/{self.metadata.source}#{self.id}"

    def with_distance(self, distance: float) -> "Chunk":
        """Return a copy carrying a query-time distance."""
        return replace(self, metadata=replace(self.metadata, distance=distance))

    def to_dict(self) -> dict[str, Any]:
        """Convert chunk to dictionary for serialization."""
        return {
            "id": self.id,
            "content": self.content,
            "metadata": self.metadata.to_dict(include_none=False),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chunk":
        """Create a Chunk from a dictionary."""
        return cls(
            id=data.get("id", ""),
            content=data.get("content", ""),
            metadata=ChunkMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass
class CollectionStats:
    """Count and distinct sources of a store.

    Attributes:
        count: Number of chunks stored
        sources: Distinct source identifiers
    """
    count: int = 0
    sources: set[str] = field(default_factory=set)

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "sources": sorted(self.sources)}

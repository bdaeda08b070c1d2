"""Abstract base class for chunk stores.

This module defines the interface shared by the primary vector store
and the in-memory shadow store, so the ChunkStore can route any
operation to either one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from docrag.core.types import Chunk, CollectionStats


@dataclass
class AddResult:
    """Result of adding chunks to a store.

    Attributes:
        added: Number of chunks written
        backend: Name of the store that accepted the write
    """
    added: int = 0
    backend: str | None = None


class BaseStore(ABC):
    """Abstract base class for chunk stores.

    Example:
        >>> class MyStore(BaseStore):
        ...     store_type = "mine"
        ...     async def add(self, chunks): ...
        ...     async def search(self, query, k): ...
        ...     async def get(self, chunk_id): ...
        ...     async def get_stats(self): ...
        ...     async def delete_by_source(self, source): ...
        ...     async def clear(self): ...
    """

    store_type: str = "base"

    async def connect(self) -> None:
        """Probe the backend and prepare its collection.

        Stores without a remote side need not override this.
        """

    @abstractmethod
    async def add(self, chunks: list[Chunk]) -> AddResult:
        """Write chunks, replacing any with the same id.

        Args:
            chunks: Chunks to write

        Returns:
            AddResult with add statistics
        """
        ...

    @abstractmethod
    async def search(self, query: str, k: int = 5) -> list[Chunk]:
        """Return up to k chunks ranked by relevance to query.

        Returned chunks carry a distance in their metadata.
        """
        ...

    @abstractmethod
    async def get(self, chunk_id: str) -> Chunk | None:
        """Fetch one chunk by id, or None if it is not stored."""
        ...

    @abstractmethod
    async def get_stats(self) -> CollectionStats:
        """Count stored chunks and collect their distinct sources."""
        ...

    @abstractmethod
    async def delete_by_source(self, source: str) -> int:
        """Delete every chunk whose metadata source equals source.

        Returns:
            Number of chunks deleted
        """
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Delete every chunk.

        Returns:
            Number of chunks deleted
        """
        ...

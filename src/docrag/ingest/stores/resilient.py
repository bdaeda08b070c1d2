"""Chunk store with in-memory fallback.

The ChunkStore prefers a primary vector store and degrades to an
in-memory shadow store in two ways:

- permanently, when the primary cannot be reached at initialize();
- per call, when a primary operation raises. The store stays in
  PRIMARY mode and the next call tries the primary again.

The shadow store is never synchronized with the primary. Writes and
deletes that land in it during a degraded call are not replayed, so the
two stores can diverge for the rest of the process.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from docrag.core.logging import get_logger
from docrag.core.types import BackendMode, Chunk, CollectionStats, StoreState
from docrag.ingest.stores.base import AddResult, BaseStore
from docrag.ingest.stores.memory import MemoryStore

logger = get_logger(__name__)

T = TypeVar("T")


class ChunkStore:
    """Resilient chunk store.

    Example:
        >>> store = ChunkStore(ChromaStore(embedder=OllamaEmbedder()))
        >>> await store.initialize()
        >>> store.mode
        <BackendMode.PRIMARY: 'primary'>
        >>> await store.add(chunks)
        >>> await store.search("query", k=5)
    """

    def __init__(
        self,
        primary: BaseStore | None,
        shadow: MemoryStore | None = None,
    ) -> None:
        """Initialize ChunkStore.

        Args:
            primary: Primary similarity store; None runs in fallback mode
            shadow: In-memory store used on fallback
        """
        self.primary = primary
        self.shadow = shadow if shadow is not None else MemoryStore()
        self._state = StoreState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def mode(self) -> BackendMode | None:
        """Session-long backend mode, None before initialize()."""
        return self._state.mode

    async def initialize(self) -> BackendMode:
        """Decide the backend mode. Later calls are no-ops.

        Returns:
            The decided mode
        """
        async with self._lock:
            await self._initialize()
            return self._state.mode  # type: ignore[return-value]

    async def _initialize(self) -> None:
        if self._state is not StoreState.UNINITIALIZED:
            return

        self._state = StoreState.INITIALIZING

        if self.primary is None:
            logger.warning("No primary store configured, using in-memory storage")
            self._state = StoreState.FALLBACK_ACTIVE
            return

        try:
            await self.primary.connect()
        except Exception as e:
            logger.warning(
                f"{self.primary.store_type} not available, falling back to in-memory storage: {e}"
            )
            self._state = StoreState.FALLBACK_ACTIVE
            return

        self._state = StoreState.PRIMARY_ACTIVE

    async def _run(
        self,
        action: str,
        primary_call: Callable[[BaseStore], Awaitable[T]],
        shadow_call: Callable[[MemoryStore], Awaitable[T]],
    ) -> T:
        """Run one operation against the active backend.

        In PRIMARY mode a primary failure is logged and the same
        operation is served by the shadow store instead.
        """
        async with self._lock:
            await self._initialize()

            if self._state is StoreState.PRIMARY_ACTIVE and self.primary is not None:
                try:
                    return await primary_call(self.primary)
                except Exception as e:
                    logger.warning(
                        f"{self.primary.store_type} {action} failed, falling back to memory: {e}"
                    )

            return await shadow_call(self.shadow)

    async def add(self, chunks: list[Chunk]) -> AddResult:
        """Write a batch to the primary, or all of it to the shadow store."""
        if not chunks:
            return AddResult(added=0)

        return await self._run(
            "add",
            lambda store: store.add(chunks),
            lambda store: store.add(chunks),
        )

    async def search(self, query: str, k: int = 5) -> list[Chunk]:
        """Similarity search on the primary, substring search on fallback."""
        return await self._run(
            "search",
            lambda store: store.search(query, k),
            lambda store: store.search(query, k),
        )

    async def get_chunk(self, chunk_id: str) -> Chunk | None:
        """Fetch a chunk by id.

        A primary that answers "not found" is final; the shadow store
        is only asked when the primary call itself fails.
        """
        return await self._run(
            "get",
            lambda store: store.get(chunk_id),
            lambda store: store.get(chunk_id),
        )

    async def get_collection_stats(self) -> CollectionStats:
        return await self._run(
            "stats",
            lambda store: store.get_stats(),
            lambda store: store.get_stats(),
        )

    async def delete_by_source(self, source: str) -> int:
        """Delete every chunk of source from the active backend."""
        return await self._run(
            "delete_by_source",
            lambda store: store.delete_by_source(source),
            lambda store: store.delete_by_source(source),
        )

    async def refresh_index(self) -> int:
        """Delete every chunk.

        If the primary fails, only the shadow store is cleared and the
        primary keeps its data.
        """
        return await self._run(
            "refresh",
            lambda store: store.clear(),
            lambda store: store.clear(),
        )

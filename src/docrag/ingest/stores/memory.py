"""In-memory chunk store.

The MemoryStore is the shadow store used when the primary vector
store is unreachable. It keeps chunks in insertion order and answers
queries with a case-insensitive literal substring search.
"""

from docrag.core.logging import get_logger
from docrag.core.types import Chunk, CollectionStats
from docrag.ingest.stores.base import AddResult, BaseStore

logger = get_logger(__name__)

# Text matches carry no similarity score.
FALLBACK_DISTANCE = 0.0


def count_occurrences(haystack: str, needle: str) -> int:
    """Count non-overlapping literal occurrences of needle in haystack."""
    if not needle:
        return 0
    return haystack.count(needle)


class MemoryStore(BaseStore):
    """Process-local chunk store.

    Example:
        >>> store = MemoryStore()
        >>> await store.add(chunks)
        >>> results = await store.search("vector", k=3)
    """

    store_type = "memory"

    def __init__(self) -> None:
        # dict preserves insertion order; re-adding an id keeps its slot.
        self._chunks: dict[str, Chunk] = {}

    def __len__(self) -> int:
        return len(self._chunks)

    async def add(self, chunks: list[Chunk]) -> AddResult:
        for chunk in chunks:
            self._chunks[chunk.id] = chunk
        logger.debug(f"Stored {len(chunks)} chunks in memory ({len(self._chunks)} total)")
        return AddResult(added=len(chunks), backend=self.store_type)

    async def search(self, query: str, k: int = 5) -> list[Chunk]:
        """Rank chunks containing query by how often it occurs.

        Matching is case-insensitive and literal. Ties keep insertion order.
        """
        needle = query.lower()
        if not needle or k <= 0:
            return []

        scored: list[tuple[int, Chunk]] = []
        for chunk in self._chunks.values():
            hits = count_occurrences(chunk.content.lower(), needle)
            if hits:
                scored.append((hits, chunk))

        # sort is stable, so equal counts stay in insertion order
        scored.sort(key=lambda item: item[0], reverse=True)
        return [chunk.with_distance(FALLBACK_DISTANCE) for _, chunk in scored[:k]]

    async def get(self, chunk_id: str) -> Chunk | None:
        return self._chunks.get(chunk_id)

    async def get_stats(self) -> CollectionStats:
        return CollectionStats(
            count=len(self._chunks),
            sources={chunk.source for chunk in self._chunks.values()},
        )

    async def delete_by_source(self, source: str) -> int:
        doomed = [cid for cid, chunk in self._chunks.items() if chunk.source == source]
        for cid in doomed:
            del self._chunks[cid]
        return len(doomed)

    async def clear(self) -> int:
        removed = len(self._chunks)
        self._chunks.clear()
        return removed

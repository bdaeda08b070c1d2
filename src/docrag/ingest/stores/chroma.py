"""Chroma vector store adapter.

This module provides the primary, similarity-searching chunk store
backed by a ChromaDB server. Embeddings are computed by the
configured embedder rather than by Chroma itself.
"""

from typing import Any, Protocol
from urllib.parse import urlparse

from docrag.core.config import DocRagSettings, get_settings
from docrag.core.exceptions import StoreError
from docrag.core.logging import get_logger
from docrag.core.types import Chunk, ChunkMetadata, CollectionStats
from docrag.ingest.stores.base import AddResult, BaseStore

logger = get_logger(__name__)


class Embedder(Protocol):
    """Anything that can embed a single text."""

    async def embed(self, text: str) -> list[float]: ...


class ChromaStore(BaseStore):
    """ChromaDB vector store adapter.

    Every method raises StoreError (or lets an embedder error through)
    on failure; deciding what to do about a failure is left to the caller.

    Example:
        >>> store = ChromaStore("rag_documents", embedder=OllamaEmbedder())
        >>> await store.connect()
        >>> await store.add(chunks)
        >>> results = await store.search("What is...", k=5)
    """

    store_type = "chroma"

    def __init__(
        self,
        collection_name: str | None = None,
        embedder: Embedder | None = None,
        url: str | None = None,
        client: Any = None,
        config: DocRagSettings | None = None,
    ) -> None:
        """Initialize ChromaStore.

        Args:
            collection_name: Name of the collection
            embedder: Embedding client used for documents and queries
            url: ChromaDB server URL (defaults to settings.chroma_url)
            client: Existing ChromaDB client (creates an HttpClient if not provided)
            config: docrag settings
        """
        self.config = config or get_settings()
        self._collection_name = collection_name or self.config.collection_name
        self._url = url or self.config.chroma_url
        self._embedder = embedder
        self._client = client
        self._collection: Any = None

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return self._collection_name

    def _create_client(self) -> Any:
        try:
            import chromadb
        except ImportError as e:
            raise ImportError(
                "ChromaDB is required for ChromaStore. "
                "Install it with: pip install chromadb"
            ) from e

        parsed = urlparse(self._url)
        return chromadb.HttpClient(
            host=parsed.hostname or "localhost",
            port=parsed.port or (443 if parsed.scheme == "https" else 8000),
            ssl=parsed.scheme == "https",
        )

    def _error(self, action: str, error: Exception, chunk_count: int | None = None) -> StoreError:
        return StoreError(
            f"Chroma {action} failed: {error}",
            store_type=self.store_type,
            collection=self._collection_name,
            chunk_count=chunk_count,
        )

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise StoreError(
                "Chroma collection is not connected",
                store_type=self.store_type,
                collection=self._collection_name,
            )
        return self._collection

    def _require_embedder(self) -> Embedder:
        if self._embedder is None:
            raise StoreError(
                "ChromaStore needs an embedder to add or search",
                store_type=self.store_type,
                collection=self._collection_name,
            )
        return self._embedder

    async def connect(self) -> None:
        """Heartbeat the server and get or create the collection."""
        logger.info(f"Attempting to connect to ChromaDB at {self._url}")
        try:
            if self._client is None:
                self._client = self._create_client()
            self._client.heartbeat()
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                embedding_function=None,
            )
        except Exception as e:
            raise self._error("connect", e) from e

        logger.info(f"Connected to ChromaDB, using collection {self._collection_name}")

    async def add(self, chunks: list[Chunk]) -> AddResult:
        """Embed and upsert chunks.

        All embeddings are computed before anything is written, so a
        provider failure leaves the collection untouched.
        """
        if not chunks:
            return AddResult(added=0, backend=self.store_type)

        collection = self._require_collection()
        embedder = self._require_embedder()

        embeddings = []
        for chunk in chunks:
            embeddings.append(await embedder.embed(chunk.content))

        try:
            collection.upsert(
                ids=[chunk.id for chunk in chunks],
                documents=[chunk.content for chunk in chunks],
                # Chroma metadata values must be str, int, float or bool
                metadatas=[chunk.metadata.to_dict(include_none=False) for chunk in chunks],
                embeddings=embeddings,
            )
        except Exception as e:
            raise self._error("upsert", e, chunk_count=len(chunks)) from e

        logger.info(f"Added {len(chunks)} chunks to {self._collection_name}")
        return AddResult(added=len(chunks), backend=self.store_type)

    async def search(self, query: str, k: int = 5) -> list[Chunk]:
        """Query Chroma by embedding, keeping its ranking order."""
        collection = self._require_collection()
        embedder = self._require_embedder()

        query_embedding = await embedder.embed(query)

        try:
            results = collection.query(
                query_embeddings=[query_embedding],
                n_results=k,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            raise self._error("query", e) from e

        if not results.get("ids") or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        documents = results["documents"][0]
        metadatas = results["metadatas"][0]
        distances = (results.get("distances") or [[]])[0]

        chunks: list[Chunk] = []
        for i, chunk_id in enumerate(ids):
            distance = distances[i] if i < len(distances) and distances[i] is not None else 0.0
            chunks.append(
                Chunk(
                    id=chunk_id,
                    content=documents[i],
                    metadata=ChunkMetadata.from_dict(metadatas[i] or {}),
                ).with_distance(float(distance))
            )

        return chunks

    async def get(self, chunk_id: str) -> Chunk | None:
        collection = self._require_collection()

        try:
            results = collection.get(ids=[chunk_id], include=["documents", "metadatas"])
        except Exception as e:
            raise self._error("get", e) from e

        if not results.get("ids"):
            return None

        return Chunk(
            id=results["ids"][0],
            content=results["documents"][0],
            metadata=ChunkMetadata.from_dict(results["metadatas"][0] or {}),
        )

    async def get_stats(self) -> CollectionStats:
        collection = self._require_collection()

        try:
            results = collection.get(include=["metadatas"])
        except Exception as e:
            raise self._error("get", e) from e

        sources = {
            metadata["source"]
            for metadata in results.get("metadatas") or []
            if metadata and metadata.get("source")
        }
        return CollectionStats(count=len(results.get("ids") or []), sources=sources)

    async def delete_by_source(self, source: str) -> int:
        collection = self._require_collection()

        try:
            results = collection.get(where={"source": {"$eq": source}}, include=[])
            ids = results.get("ids") or []
            if ids:
                collection.delete(ids=ids)
        except Exception as e:
            raise self._error("delete", e) from e

        if ids:
            logger.info(f"Deleted {len(ids)} chunks of {source} from {self._collection_name}")
        return len(ids)

    async def clear(self) -> int:
        collection = self._require_collection()

        try:
            ids = collection.get(include=[]).get("ids") or []
            if ids:
                collection.delete(ids=ids)
        except Exception as e:
            raise self._error("clear", e) from e

        logger.info(f"Cleared {len(ids)} chunks from {self._collection_name}")
        return len(ids)

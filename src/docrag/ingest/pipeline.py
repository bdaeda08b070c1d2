"""Indexing coordinator.

This module provides the IndexingCoordinator, which ties extraction,
chunking and the ChunkStore together and exposes the operations the
protocol layer serves: ingest, search, get_chunk and refresh_index.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from docrag.core.config import DocRagSettings, get_settings
from docrag.core.exceptions import EmbeddingServiceUnavailable, ValidationError
from docrag.core.logging import LogContext, get_logger
from docrag.core.types import BackendMode, Chunk
from docrag.ingest.chunkers import TokenChunker
from docrag.ingest.extract import DocumentExtractor
from docrag.ingest.stores.resilient import ChunkStore

logger = get_logger(__name__)


@dataclass
class IngestResult:
    """Results from an ingest run.

    Attributes:
        processed: Number of distinct sources written
        chunks: Number of chunks written
        duration_seconds: Total processing time
    """
    processed: int = 0
    chunks: int = 0
    duration_seconds: float = 0.0

    def summary(self) -> str:
        """Generate human-readable summary."""
        return (
            f"Processed {self.processed} documents and created {self.chunks} chunks "
            f"in {self.duration_seconds:.1f}s"
        )


class IndexingCoordinator:
    """Sequence ingestion and retrieval over a ChunkStore.

    Ingesting a source always replaces its previous chunks: every
    source in a batch is deleted from the store before the batch is
    written, so a shrunk document leaves no stale chunks behind.

    Example:
        >>> coordinator = IndexingCoordinator.from_settings()
        >>> await coordinator.initialize()
        >>> result = await coordinator.ingest("./docs")
        >>> hits = await coordinator.search("vector store", k=3)
    """

    def __init__(
        self,
        store: ChunkStore,
        chunker: TokenChunker | None = None,
        extractor: DocumentExtractor | None = None,
        embedder: Any | None = None,
        config: DocRagSettings | None = None,
    ) -> None:
        """Initialize IndexingCoordinator.

        Args:
            store: ChunkStore holding the chunks
            chunker: Chunker to use (defaults to TokenChunker from settings)
            extractor: Document extractor
            embedder: Embedding client, used for readiness checks
            config: docrag settings
        """
        self.store = store
        self.config = config or get_settings()
        self.chunker = chunker or TokenChunker(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
            tokenizer_model=self.config.tokenizer_model,
        )
        self.extractor = extractor or DocumentExtractor()
        self.embedder = embedder

    @classmethod
    def from_settings(cls, config: DocRagSettings | None = None) -> "IndexingCoordinator":
        """Build a coordinator backed by Ollama and Chroma."""
        from docrag.embeddings import OllamaEmbedder
        from docrag.ingest.stores.chroma import ChromaStore

        config = config or get_settings()
        embedder = OllamaEmbedder(config=config)
        store = ChunkStore(ChromaStore(embedder=embedder, config=config))
        return cls(store=store, embedder=embedder, config=config)

    async def initialize(self) -> BackendMode:
        """Initialize the underlying store."""
        mode = await self.store.initialize()
        logger.info(f"Chunk store initialized in {mode.value} mode")
        return mode

    async def close(self) -> None:
        """Release the embedding client, if it holds one."""
        close = getattr(self.embedder, "close", None)
        if close is not None:
            await close()

    async def ingest(self, path: str | Path | None = None) -> IngestResult:
        """Ingest every supported document under path.

        Args:
            path: File or directory (defaults to settings.documents_path)

        Returns:
            IngestResult; zero counts when nothing was found

        Raises:
            UnsupportedFileError: If path is a single unsupported file
            AcquisitionError: If the directory cannot be walked
        """
        start_time = datetime.now()
        absolute = Path(path or self.config.documents_path).expanduser().resolve()

        with LogContext(logger, path=str(absolute)):
            logger.info(f"Processing documents from {absolute}")

            documents = await self.extractor.extract(absolute)

            chunks: list[Chunk] = []
            for document in documents:
                try:
                    chunks.extend(
                        self.chunker.chunk(document.text, document.source, document.metadata)
                    )
                except Exception as e:
                    logger.warning(f"Failed to chunk {document.source}, skipping: {e}")

            if not chunks:
                logger.info("No documents found to process")
                return IngestResult(processed=0, chunks=0)

            # dict keeps first-seen order of sources
            sources = list(dict.fromkeys(chunk.source for chunk in chunks))
            logger.info(f"Generated {len(chunks)} chunks from {len(sources)} documents")

            for source in sources:
                await self.store.delete_by_source(source)

            await self.store.add(chunks)

        result = IngestResult(
            processed=len(sources),
            chunks=len(chunks),
            duration_seconds=(datetime.now() - start_time).total_seconds(),
        )
        logger.info(result.summary())
        return result

    async def search(self, query: str, k: int = 5) -> list[Chunk]:
        """Return up to k chunks relevant to query.

        Raises:
            ValidationError: If query is blank or k is not positive
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query must not be empty", field="query")
        if isinstance(k, bool) or not isinstance(k, int) or k < 1:
            raise ValidationError(f"k must be a positive integer, got {k!r}", field="k")
        return await self.store.search(query, k)

    async def get_chunk(self, chunk_id: str) -> Chunk | None:
        """Fetch a chunk by id, or None if unknown."""
        if not chunk_id:
            raise ValidationError("id must not be empty", field="id")
        return await self.store.get_chunk(chunk_id)

    async def refresh_index(self) -> None:
        """Clear the whole index."""
        removed = await self.store.refresh_index()
        logger.info(f"Index refreshed, {removed} chunks removed")

    async def get_collection_summary(self) -> dict[str, Any]:
        """Summarize the stored chunks and the documents directory."""
        stats = await self.store.get_collection_stats()
        file_stats = self.extractor.get_file_stats(
            Path(self.config.documents_path).expanduser().resolve()
        )
        sources = sorted(stats.sources)
        return {
            "total_chunks": stats.count,
            "total_sources": len(sources),
            "sources": sources,
            "stats": file_stats.to_dict(),
        }

    async def check_embedding_connection(self) -> bool:
        """Return True if the embedding provider is reachable."""
        if self.embedder is None:
            return False
        return await self.embedder.check_connectivity()

    async def ensure_embedding_ready(self) -> None:
        """Verify the provider is up and its model is pulled.

        Raises:
            EmbeddingServiceUnavailable: If the provider cannot be reached
        """
        if not await self.check_embedding_connection():
            url = getattr(self.embedder, "base_url", self.config.ollama_url)
            raise EmbeddingServiceUnavailable(
                f"Cannot connect to Ollama at {url}. Please ensure Ollama is running.",
                url=url,
            )
        await self.embedder.ensure_model_available()

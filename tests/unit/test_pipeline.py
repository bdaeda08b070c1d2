"""Tests for the IndexingCoordinator."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from docrag.core.exceptions import (
    EmbeddingServiceUnavailable,
    UnsupportedFileError,
    ValidationError,
)
from docrag.core.types import BackendMode, CollectionStats
from docrag.ingest.chunkers import TokenChunker
from docrag.ingest.pipeline import IndexingCoordinator, IngestResult
from docrag.ingest.stores.resilient import ChunkStore


@pytest.fixture
def docs(settings) -> Path:
    root = Path(settings.documents_path)
    root.mkdir(parents=True)
    return root


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestIngest:
    """Tests for ingest()."""

    @pytest.mark.asyncio
    async def test_missing_directory(self, memory_coordinator, tmp_path):
        result = await memory_coordinator.ingest(tmp_path / "does-not-exist")

        assert (result.processed, result.chunks) == (0, 0)

    @pytest.mark.asyncio
    async def test_empty_directory(self, memory_coordinator, docs):
        result = await memory_coordinator.ingest(docs)

        assert (result.processed, result.chunks) == (0, 0)
        assert (await memory_coordinator.store.get_collection_stats()).count == 0

    @pytest.mark.asyncio
    async def test_defaults_to_documents_path(self, memory_coordinator, docs):
        write(docs / "a.txt", "alpha document")

        result = await memory_coordinator.ingest()

        assert result.processed == 1

    @pytest.mark.asyncio
    async def test_three_documents(self, memory_coordinator, docs):
        write(docs / "a.txt", "alpha document about storage")
        write(docs / "b.md", "beta document about chunking")
        write(docs / "sub" / "c.txt", "gamma document about search")

        result = await memory_coordinator.ingest(docs)

        assert isinstance(result, IngestResult)
        assert (result.processed, result.chunks) == (3, 3)
        stats = await memory_coordinator.store.get_collection_stats()
        assert stats.count == 3
        assert all(Path(source).is_absolute() for source in stats.sources)

    @pytest.mark.asyncio
    async def test_reingest_of_shrunk_document_leaves_no_stale_chunks(self, memory_coordinator, docs):
        doc = write(docs / "long.txt", "abcdefghij" * 20)
        first = await memory_coordinator.ingest(docs)
        assert first.chunks == 7

        write(docs / "long.txt", "abcdefghij" * 5)
        second = await memory_coordinator.ingest(docs)

        assert second.chunks == 2
        stats = await memory_coordinator.store.get_collection_stats()
        assert stats.count == 2
        source = str(doc.resolve())
        from docrag.ingest.chunkers import chunk_id

        assert await memory_coordinator.get_chunk(chunk_id(source, 5)) is None

    @pytest.mark.asyncio
    async def test_deletes_every_source_before_adding(self, settings, char_tokenizer, docs):
        write(docs / "a.txt", "first")
        write(docs / "b.txt", "second")
        store = AsyncMock(spec=ChunkStore)
        coordinator = IndexingCoordinator(
            store=store,
            chunker=TokenChunker(chunk_size=40, chunk_overlap=10, tokenizer=char_tokenizer),
            config=settings,
        )

        await coordinator.ingest(docs)

        assert [call[0] for call in store.mock_calls] == [
            "delete_by_source",
            "delete_by_source",
            "add",
        ]
        added = store.add.call_args.args[0]
        assert [c.content for c in added] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_unsupported_single_file(self, memory_coordinator, docs):
        image = docs / "image.png"
        image.write_bytes(b"\x89PNG")

        with pytest.raises(UnsupportedFileError):
            await memory_coordinator.ingest(image)


class TestQueries:
    """Tests for search/get_chunk/refresh_index."""

    @pytest.mark.asyncio
    async def test_search_blank_query(self, memory_coordinator):
        with pytest.raises(ValidationError) as exc_info:
            await memory_coordinator.search("   ")
        assert exc_info.value.field == "query"

    @pytest.mark.asyncio
    async def test_search_bad_k(self, memory_coordinator):
        with pytest.raises(ValidationError):
            await memory_coordinator.search("query", k=0)

    @pytest.mark.asyncio
    async def test_search_after_ingest(self, memory_coordinator, docs):
        write(docs / "a.txt", "the vector store")
        write(docs / "b.txt", "an unrelated note")
        await memory_coordinator.ingest(docs)

        results = await memory_coordinator.search("VECTOR", k=5)

        assert [Path(r.source).name for r in results] == ["a.txt"]

    @pytest.mark.asyncio
    async def test_get_chunk_validation(self, memory_coordinator):
        with pytest.raises(ValidationError):
            await memory_coordinator.get_chunk("")
        assert await memory_coordinator.get_chunk("unknown_chunk_0") is None

    @pytest.mark.asyncio
    async def test_refresh_index(self, memory_coordinator, docs):
        write(docs / "a.txt", "some text")
        await memory_coordinator.ingest(docs)

        await memory_coordinator.refresh_index()

        assert (await memory_coordinator.store.get_collection_stats()).count == 0


class TestSummaryAndReadiness:
    """Tests for the collection summary and embedding checks."""

    @pytest.mark.asyncio
    async def test_collection_summary(self, memory_coordinator, docs):
        write(docs / "b.txt", "second")
        write(docs / "a.md", "first")
        await memory_coordinator.ingest(docs)

        summary = await memory_coordinator.get_collection_summary()

        assert summary["total_chunks"] == 2
        assert summary["total_sources"] == 2
        assert summary["sources"] == sorted(summary["sources"])
        assert summary["stats"]["file_types"] == {".md": 1, ".txt": 1}

    @pytest.mark.asyncio
    async def test_initialize_reports_mode(self, memory_coordinator):
        assert await memory_coordinator.initialize() is BackendMode.FALLBACK

    @pytest.mark.asyncio
    async def test_no_embedder_is_not_connected(self, memory_coordinator):
        assert await memory_coordinator.check_embedding_connection() is False

    @pytest.mark.asyncio
    async def test_ensure_embedding_ready(self, settings):
        embedder = AsyncMock()
        embedder.base_url = "http://ollama.test"
        store = AsyncMock(spec=ChunkStore)
        store.get_collection_stats.return_value = CollectionStats()
        coordinator = IndexingCoordinator(store=store, embedder=embedder, config=settings)

        embedder.check_connectivity.return_value = False
        with pytest.raises(EmbeddingServiceUnavailable, match="http://ollama.test"):
            await coordinator.ensure_embedding_ready()
        embedder.ensure_model_available.assert_not_awaited()

        embedder.check_connectivity.return_value = True
        await coordinator.ensure_embedding_ready()
        embedder.ensure_model_available.assert_awaited_once()


class TestChunkingFailures:
    """A document that fails to chunk is skipped, not fatal."""

    @pytest.mark.asyncio
    async def test_special_token_text_ingests(self, settings, byte_encoding, docs):
        write(docs / "good.txt", "Plain notes.")
        write(docs / "llm.md", "Models end with <|endoftext|> markers.")
        coordinator = IndexingCoordinator(
            store=ChunkStore(primary=None),
            chunker=TokenChunker(chunk_size=40, chunk_overlap=10, tokenizer=byte_encoding),
            config=settings,
        )

        result = await coordinator.ingest(docs)

        assert (result.processed, result.chunks) == (2, 2)
        hits = await coordinator.search("<|endoftext|>")
        assert [Path(h.source).name for h in hits] == ["llm.md"]

    @pytest.mark.asyncio
    async def test_failing_document_is_skipped(self, settings, char_tokenizer, docs):
        write(docs / "good.txt", "Plain notes.")
        write(docs / "bad.txt", "Breaks the chunker.")

        class BrittleChunker(TokenChunker):
            def chunk(self, text, source, metadata=None):
                if source.endswith("bad.txt"):
                    raise ValueError("cannot tokenize")
                return super().chunk(text, source, metadata)

        coordinator = IndexingCoordinator(
            store=ChunkStore(primary=None),
            chunker=BrittleChunker(chunk_size=40, chunk_overlap=10, tokenizer=char_tokenizer),
            config=settings,
        )

        result = await coordinator.ingest(docs)

        assert (result.processed, result.chunks) == (1, 1)
        stats = await coordinator.store.get_collection_stats()
        assert [Path(s).name for s in stats.sources] == ["good.txt"]

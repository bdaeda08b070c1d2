"""Tests for the Chroma adapter.

A MagicMock stands in for the Chroma client, so no server is needed.
"""

from unittest.mock import MagicMock

import pytest

from docrag.core.exceptions import StoreError
from docrag.ingest.stores.base import BaseStore
from docrag.ingest.stores.chroma import ChromaStore


@pytest.fixture
def client():
    client = MagicMock()
    client.get_or_create_collection.return_value = MagicMock()
    return client


@pytest.fixture
def store(client, fake_embedder):
    return ChromaStore("test_docs", embedder=fake_embedder, client=client)


def test_chroma_implements_base():
    assert issubclass(ChromaStore, BaseStore)


def test_defaults_from_settings(settings):
    store = ChromaStore(config=settings)
    assert store.collection_name == settings.collection_name
    assert store._url == settings.chroma_url
    assert store._client is None


class TestConnect:
    """Tests for connect()."""

    @pytest.mark.asyncio
    async def test_heartbeat_and_collection(self, store, client):
        await store.connect()

        client.heartbeat.assert_called_once()
        client.get_or_create_collection.assert_called_once_with(
            name="test_docs", embedding_function=None
        )

    @pytest.mark.asyncio
    async def test_heartbeat_failure_raises_store_error(self, store, client):
        client.heartbeat.side_effect = ConnectionError("refused")

        with pytest.raises(StoreError) as exc_info:
            await store.connect()

        assert exc_info.value.store_type == "chroma"
        assert exc_info.value.collection == "test_docs"

    @pytest.mark.asyncio
    async def test_operations_need_connection(self, store):
        with pytest.raises(StoreError):
            await store.get("anything")


class TestAdd:
    """Tests for add()."""

    @pytest.mark.asyncio
    async def test_embeds_each_chunk_then_upserts(self, store, client, fake_embedder, sample_chunks):
        await store.connect()
        collection = client.get_or_create_collection.return_value

        result = await store.add(sample_chunks)

        assert result.added == 3
        assert result.backend == "chroma"
        assert fake_embedder.calls == [c.content for c in sample_chunks]
        kwargs = collection.upsert.call_args.kwargs
        assert kwargs["ids"] == [c.id for c in sample_chunks]
        assert kwargs["documents"] == [c.content for c in sample_chunks]
        assert len(kwargs["embeddings"]) == 3
        # None-valued fields are not sent to Chroma
        assert kwargs["metadatas"][0] == {
            "source": "/docs/a.md",
            "chunk_index": 0,
            "total_chunks": 1,
            "title": "a.md",
        }

    @pytest.mark.asyncio
    async def test_embedding_failure_writes_nothing(self, client, embedder_factory, sample_chunks):
        store = ChromaStore("test_docs", embedder=embedder_factory(fail_after=1), client=client)
        await store.connect()
        collection = client.get_or_create_collection.return_value

        with pytest.raises(RuntimeError):
            await store.add(sample_chunks)

        collection.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_failure_raises_store_error(self, store, client, sample_chunks):
        await store.connect()
        client.get_or_create_collection.return_value.upsert.side_effect = ValueError("bad")

        with pytest.raises(StoreError) as exc_info:
            await store.add(sample_chunks)

        assert exc_info.value.chunk_count == 3

    @pytest.mark.asyncio
    async def test_empty_batch(self, store, client):
        await store.connect()
        result = await store.add([])
        assert result.added == 0
        client.get_or_create_collection.return_value.upsert.assert_not_called()


class TestQueries:
    """Tests for search/get/stats."""

    @pytest.mark.asyncio
    async def test_search_keeps_backend_order_and_distance(self, store, client):
        await store.connect()
        client.get_or_create_collection.return_value.query.return_value = {
            "ids": [["b_chunk_0", "a_chunk_1"]],
            "documents": [["second doc", "first doc"]],
            "metadatas": [[
                {"source": "b", "chunk_index": 0, "total_chunks": 1},
                {"source": "a", "chunk_index": 1, "total_chunks": 2, "title": "A"},
            ]],
            "distances": [[0.12, 0.34]],
        }

        results = await store.search("query", k=2)

        assert [r.id for r in results] == ["b_chunk_0", "a_chunk_1"]
        assert [r.metadata.distance for r in results] == [0.12, 0.34]
        assert results[1].metadata.title == "A"
        query_kwargs = client.get_or_create_collection.return_value.query.call_args.kwargs
        assert query_kwargs["n_results"] == 2
        assert len(query_kwargs["query_embeddings"]) == 1

    @pytest.mark.asyncio
    async def test_search_no_results(self, store, client):
        await store.connect()
        client.get_or_create_collection.return_value.query.return_value = {
            "ids": [[]], "documents": [[]], "metadatas": [[]], "distances": [[]],
        }
        assert await store.search("query") == []

    @pytest.mark.asyncio
    async def test_get_found_and_missing(self, store, client):
        await store.connect()
        collection = client.get_or_create_collection.return_value
        collection.get.return_value = {
            "ids": ["a_chunk_0"],
            "documents": ["hello"],
            "metadatas": [{"source": "a", "chunk_index": 0, "total_chunks": 1}],
        }

        chunk = await store.get("a_chunk_0")
        assert chunk.content == "hello"
        assert chunk.metadata.source == "a"

        collection.get.return_value = {"ids": [], "documents": [], "metadatas": []}
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_stats_collect_sources(self, store, client):
        await store.connect()
        client.get_or_create_collection.return_value.get.return_value = {
            "ids": ["1", "2", "3"],
            "metadatas": [{"source": "a"}, {"source": "b"}, {"source": "a"}],
        }

        stats = await store.get_stats()

        assert stats.count == 3
        assert stats.sources == {"a", "b"}


class TestDeletes:
    """Tests for delete_by_source/clear."""

    @pytest.mark.asyncio
    async def test_delete_by_source_filters_then_deletes(self, store, client):
        await store.connect()
        collection = client.get_or_create_collection.return_value
        collection.get.return_value = {"ids": ["a_chunk_0", "a_chunk_1"]}

        removed = await store.delete_by_source("a")

        assert removed == 2
        assert collection.get.call_args.kwargs["where"] == {"source": {"$eq": "a"}}
        collection.delete.assert_called_once_with(ids=["a_chunk_0", "a_chunk_1"])

    @pytest.mark.asyncio
    async def test_delete_by_source_no_match(self, store, client):
        await store.connect()
        collection = client.get_or_create_collection.return_value
        collection.get.return_value = {"ids": []}

        assert await store.delete_by_source("a") == 0
        collection.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_clear_deletes_everything(self, store, client):
        await store.connect()
        collection = client.get_or_create_collection.return_value
        collection.get.return_value = {"ids": ["1", "2"]}

        assert await store.clear() == 2
        collection.delete.assert_called_once_with(ids=["1", "2"])

    @pytest.mark.asyncio
    async def test_delete_failure_raises_store_error(self, store, client):
        await store.connect()
        client.get_or_create_collection.return_value.get.side_effect = RuntimeError("down")

        with pytest.raises(StoreError):
            await store.delete_by_source("a")

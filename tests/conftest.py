"""Pytest configuration and fixtures for docrag tests."""

import pytest

from docrag.core.config import DocRagSettings
from docrag.core.types import Chunk, ChunkMetadata
from docrag.ingest.chunkers import TokenChunker
from docrag.ingest.pipeline import IndexingCoordinator
from docrag.ingest.stores.memory import MemoryStore
from docrag.ingest.stores.resilient import ChunkStore


class CharTokenizer:
    """One token per character, so token arithmetic is easy to follow."""

    def encode(self, text: str, disallowed_special=()) -> list[int]:
        return [ord(c) for c in text]

    def decode(self, tokens: list[int]) -> str:
        return "".join(chr(t) for t in tokens)


class FakeEmbedder:
    """Deterministic embedder that can be told to fail."""

    def __init__(self, fail_after: int | None = None) -> None:
        self.calls: list[str] = []
        self.fail_after = fail_after

    async def embed(self, text: str) -> list[float]:
        if self.fail_after is not None and len(self.calls) >= self.fail_after:
            raise RuntimeError("embedding provider down")
        self.calls.append(text)
        return [float(len(text)), float(sum(map(ord, text)) % 97), 1.0]


class FlakyStore(MemoryStore):
    """Primary stand-in that fails the operations listed in fail_on."""

    store_type = "flaky"

    def __init__(self, fail_on: set[str] | None = None, fail_connect: bool = False) -> None:
        super().__init__()
        self.fail_on = fail_on or set()
        self.fail_connect = fail_connect
        self.connect_calls = 0

    def _check(self, action: str) -> None:
        if action in self.fail_on:
            raise ConnectionError(f"{action} unavailable")

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectionError("primary unreachable")

    async def add(self, chunks):
        self._check("add")
        return await super().add(chunks)

    async def search(self, query, k=5):
        self._check("search")
        return [c.with_distance(0.25) for c in await super().search(query, k)]

    async def get(self, chunk_id):
        self._check("get")
        return await super().get(chunk_id)

    async def get_stats(self):
        self._check("stats")
        return await super().get_stats()

    async def delete_by_source(self, source):
        self._check("delete_by_source")
        return await super().delete_by_source(source)

    async def clear(self):
        self._check("clear")
        return await super().clear()


def make_chunk(content: str, source: str = "/docs/a.txt", index: int = 0, **meta) -> Chunk:
    """Build a chunk with id following the chunker's convention."""
    from docrag.ingest.chunkers import chunk_id

    return Chunk(
        id=chunk_id(source, index),
        content=content,
        metadata=ChunkMetadata(source=source, chunk_index=index, total_chunks=meta.pop("total_chunks", 1), **meta),
    )


@pytest.fixture
def char_tokenizer() -> CharTokenizer:
    return CharTokenizer()


@pytest.fixture
def byte_encoding():
    """Real tiktoken Encoding with one token per byte and one special token."""
    import tiktoken

    return tiktoken.Encoding(
        name="docrag_test_bytes",
        pat_str=r"\S+|\s+",
        mergeable_ranks={bytes([i]): i for i in range(256)},
        special_tokens={"<|endoftext|>": 256},
    )


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def embedder_factory():
    """Factory for embedders: embedder_factory(fail_after=None)."""
    return FakeEmbedder


@pytest.fixture
def sample_chunks() -> list[Chunk]:
    """Three chunks from two sources."""
    return [
        make_chunk("Vector stores hold embeddings of document chunks.", "/docs/a.md", 0, title="a.md"),
        make_chunk("Chunks overlap so context is not lost at the edges.", "/docs/a.md", 1, title="a.md"),
        make_chunk("Ollama serves the embedding model locally.", "/docs/b.txt", 0, title="b.txt"),
    ]


@pytest.fixture
def settings(tmp_path) -> DocRagSettings:
    return DocRagSettings(
        documents_path=str(tmp_path / "docs"),
        chunk_size=40,
        chunk_overlap=10,
        auto_ingest=True,
    )


@pytest.fixture
def memory_coordinator(settings, char_tokenizer) -> IndexingCoordinator:
    """Coordinator whose store has no primary and runs in fallback mode."""
    return IndexingCoordinator(
        store=ChunkStore(primary=None),
        chunker=TokenChunker(chunk_size=40, chunk_overlap=10, tokenizer=char_tokenizer),
        config=settings,
    )


@pytest.fixture
def chunk_factory():
    """Factory for chunks: chunk_factory(content, source, index, **metadata)."""
    return make_chunk


@pytest.fixture
def flaky_store():
    """Factory for a primary store that fails selected operations."""
    return FlakyStore

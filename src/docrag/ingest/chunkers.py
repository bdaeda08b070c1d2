"""Token-window chunking.

This module provides the TokenChunker, which splits normalized text
into overlapping windows of a fixed number of tokens and assigns each
emitted window a deterministic id.
"""

import math
import re
from typing import Any, Protocol

from docrag.core.config import get_settings
from docrag.core.logging import get_logger
from docrag.core.types import Chunk, ChunkMetadata

logger = get_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


class Tokenizer(Protocol):
    """Anything that can encode text to token ids and back."""

    def encode(self, text: str, *, disallowed_special: Any = ...) -> list[int]: ...

    def decode(self, tokens: list[int]) -> str: ...


def sanitize_source(source: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _NON_ALNUM.sub("_", source)


def chunk_id(source: str, index: int) -> str:
    """Build the id of the index-th emitted chunk of a source."""
    return f"{sanitize_source(source)}_chunk_{index}"


def load_tokenizer(model: str) -> Tokenizer:
    """Load the tiktoken encoding used by a model.

    Args:
        model: Model name such as "gpt-4"

    Returns:
        A tiktoken Encoding
    """
    import tiktoken

    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.warning(f"No tiktoken encoding registered for {model}, using cl100k_base")
        return tiktoken.get_encoding("cl100k_base")


class TokenChunker:
    """Split text into overlapping token windows.

    The window start advances by max(1, chunk_size - chunk_overlap)
    tokens, so an overlap at or above the chunk size still makes
    progress. Windows that decode to blank text are dropped without
    consuming an index.

    Example:
        >>> chunker = TokenChunker(chunk_size=1000, chunk_overlap=200)
        >>> chunks = chunker.chunk(text, source="/docs/guide.md")
        >>> chunks[0].id
        '_docs_guide_md_chunk_0'
    """

    def __init__(
        self,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        tokenizer: Tokenizer | None = None,
        tokenizer_model: str | None = None,
    ) -> None:
        """Initialize TokenChunker.

        Args:
            chunk_size: Window size in tokens
            chunk_overlap: Tokens shared by consecutive windows
            tokenizer: Tokenizer to use; loaded lazily from tiktoken if None
            tokenizer_model: Model name for the tiktoken lookup
        """
        settings = get_settings()
        self.chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap
        self.tokenizer_model = tokenizer_model or settings.tokenizer_model
        self._tokenizer = tokenizer

        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must not be negative, got {self.chunk_overlap}")
        if self.chunk_overlap >= self.chunk_size:
            logger.warning(
                f"chunk_overlap ({self.chunk_overlap}) >= chunk_size ({self.chunk_size}); "
                "windows will advance one token at a time"
            )

    @property
    def tokenizer(self) -> Tokenizer:
        """The tokenizer, loaded on first use."""
        if self._tokenizer is None:
            self._tokenizer = load_tokenizer(self.tokenizer_model)
        return self._tokenizer

    @property
    def stride(self) -> int:
        """Tokens the window start advances per step."""
        return max(1, self.chunk_size - self.chunk_overlap)

    def windows(self, token_count: int) -> list[tuple[int, int]]:
        """Return the [start, end) token bounds of every window."""
        bounds = []
        start = 0
        while start < token_count:
            bounds.append((start, min(start + self.chunk_size, token_count)))
            start += self.stride
        return bounds

    def chunk(
        self,
        text: str,
        source: str,
        metadata: dict[str, Any] | None = None,
    ) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Normalized document text
            source: Source identifier
            metadata: Document metadata; "title" and "page" are carried over

        Returns:
            List of Chunk objects in document order
        """
        if not text:
            return []

        metadata = metadata or {}
        # Special-token text such as <|endoftext|> in a document is ordinary text
        tokens = self.tokenizer.encode(text, disallowed_special=())
        total_chunks = math.ceil(len(tokens) / self.chunk_size)

        title = metadata.get("title")
        page = metadata.get("page")

        chunks: list[Chunk] = []
        for start, end in self.windows(len(tokens)):
            window_text = self.tokenizer.decode(tokens[start:end]).strip()
            if not window_text:
                continue

            index = len(chunks)
            chunks.append(
                Chunk(
                    id=chunk_id(source, index),
                    content=window_text,
                    metadata=ChunkMetadata(
                        source=source,
                        chunk_index=index,
                        total_chunks=total_chunks,
                        title=str(title) if title is not None else None,
                        page=page if isinstance(page, int) and not isinstance(page, bool) else None,
                    ),
                )
            )

        logger.debug(f"Chunked {source}: {len(tokens)} tokens -> {len(chunks)} chunks")
        return chunks

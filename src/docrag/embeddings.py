"""Embedding client for the Ollama HTTP API.

This module provides the OllamaEmbedder class, which turns text into
vectors and checks that the provider and its embedding model are ready.
"""

from typing import Any

import httpx

from docrag.core.config import DocRagSettings, get_settings
from docrag.core.exceptions import EmbeddingError, EmbeddingServiceUnavailable
from docrag.core.logging import get_logger

logger = get_logger(__name__)


class OllamaEmbedder:
    """Generate embeddings through a local Ollama server.

    One HTTP round-trip is made per text; batches are embedded
    sequentially.

    Example:
        >>> async with OllamaEmbedder() as embedder:
        ...     vector = await embedder.embed("Some text")
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        config: DocRagSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize OllamaEmbedder.

        Args:
            base_url: Ollama base URL (defaults to settings.ollama_url)
            model: Embedding model name (defaults to settings.embedding_model)
            timeout: Request timeout in seconds
            config: docrag settings
            transport: Optional httpx transport, used by tests
        """
        self.config = config or get_settings()
        self.base_url = (base_url or self.config.ollama_url).rstrip("/")
        self.model = model or self.config.embedding_model
        self.timeout = timeout or self.config.embedding_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OllamaEmbedder":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _unavailable(self) -> EmbeddingServiceUnavailable:
        return EmbeddingServiceUnavailable(
            f"Cannot connect to Ollama at {self.base_url}. Please ensure Ollama is "
            f"running and the {self.model} model is installed.",
            model=self.model,
            url=self.base_url,
        )

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            EmbeddingServiceUnavailable: If the server refuses the connection
            EmbeddingError: On any other request failure or a malformed reply
        """
        client = await self._get_client()

        try:
            response = await client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.ConnectError as e:
            raise self._unavailable() from e
        except httpx.HTTPError as e:
            raise EmbeddingError(
                f"Ollama API error: {e}", model=self.model, url=self.base_url
            ) from e
        except ValueError as e:
            raise EmbeddingError(
                f"Invalid JSON from Ollama: {e}", model=self.model, url=self.base_url
            ) from e

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not embedding:
            raise EmbeddingError(
                "No embedding returned from Ollama", model=self.model, url=self.base_url
            )

        return [float(v) for v in embedding]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts one request at a time.

        Any failure aborts the whole batch.
        """
        embeddings: list[list[float]] = []
        for text in texts:
            embeddings.append(await self.embed(text))
        return embeddings

    async def check_connectivity(self) -> bool:
        """Return True if the Ollama server answers /api/tags."""
        client = await self._get_client()
        try:
            response = await client.get("/api/tags")
        except httpx.HTTPError as e:
            logger.debug(f"Ollama connectivity check failed: {e}")
            return False
        return response.status_code == 200

    async def ensure_model_available(self) -> None:
        """Pull the embedding model if the server does not list it.

        Raises:
            EmbeddingServiceUnavailable: If the server cannot be reached
            EmbeddingError: If listing or pulling fails
        """
        client = await self._get_client()

        try:
            response = await client.get("/api/tags")
            response.raise_for_status()
            models = response.json().get("models") or []

            if any(self.model in model.get("name", "") for model in models):
                logger.debug(f"Embedding model {self.model} is available")
                return

            logger.info(f"Model {self.model} not found. Pulling...")
            # Pulls can take minutes; the request timeout does not apply.
            pull = await client.post(
                "/api/pull",
                json={"name": self.model, "stream": False},
                timeout=None,
            )
            pull.raise_for_status()
            logger.info(f"Model {self.model} pulled successfully")
        except httpx.ConnectError as e:
            raise self._unavailable() from e
        except (httpx.HTTPError, ValueError) as e:
            raise EmbeddingError(
                f"Failed to ensure model availability: {e}",
                model=self.model,
                url=self.base_url,
            ) from e

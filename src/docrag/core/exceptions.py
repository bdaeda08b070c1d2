"""Custom exceptions for docrag.

This module defines the exception hierarchy used throughout docrag.
Structural failures (bad input, unknown ids, unknown operations) are
raised to callers; backend and provider failures are raised by the
individual adapters and absorbed by the ChunkStore fallback path.
"""


class DocRagError(Exception):
    """Base exception for all docrag errors.

    All docrag-specific exceptions inherit from this class,
    allowing users to catch all docrag errors with a single except clause.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize DocRagError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(DocRagError):
    """Raised when a chunk, its metadata or an argument is invalid."""

    def __init__(
        self,
        message: str,
        chunk_id: str | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Human-readable error message
            chunk_id: ID of the offending chunk
            field: Name of the offending field or argument
        """
        details = {}
        if chunk_id:
            details["chunk_id"] = chunk_id
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.chunk_id = chunk_id
        self.field = field


class ConfigurationError(DocRagError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        setting_name: str | None = None,
        setting_value: str | None = None,
    ) -> None:
        details = {}
        if setting_name:
            details["setting_name"] = setting_name
        if setting_value:
            details["setting_value"] = setting_value
        super().__init__(message, details)
        self.setting_name = setting_name
        self.setting_value = setting_value


class AcquisitionError(DocRagError):
    """Raised when documents cannot be read from their source.

    A directory-level AcquisitionError aborts an ingest call.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        source_type: str | None = None,
    ) -> None:
        """Initialize AcquisitionError.

        Args:
            message: Human-readable error message
            source: The file or directory path
            source_type: Type of source (pdf, md, txt, directory)
        """
        details = {}
        if source:
            details["source"] = source
        if source_type:
            details["source_type"] = source_type
        super().__init__(message, details)
        self.source = source
        self.source_type = source_type


class UnsupportedFileError(AcquisitionError):
    """Raised when a file has an extension the extractor cannot read."""

    def __init__(self, file_path: str, extension: str) -> None:
        super().__init__(
            f"Unsupported file type: {extension or '<none>'}",
            source=file_path,
            source_type=extension.lstrip(".") or None,
        )
        self.file_path = file_path
        self.extension = extension


class ExtractionError(AcquisitionError):
    """Raised when a single supported file fails to parse."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        page_number: int | None = None,
    ) -> None:
        extension = file_path.rsplit(".", 1)[-1].lower() if file_path and "." in file_path else None
        super().__init__(message, source=file_path, source_type=extension)
        if page_number:
            self.details["page_number"] = page_number
        self.file_path = file_path
        self.page_number = page_number


class EmbeddingError(DocRagError):
    """Raised when the embedding provider rejects or fails a request."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize EmbeddingError.

        Args:
            message: Human-readable error message
            model: Embedding model name
            url: Provider base URL
        """
        details = {}
        if model:
            details["model"] = model
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.model = model
        self.url = url


class EmbeddingServiceUnavailable(EmbeddingError):
    """Raised when the embedding provider cannot be reached at all."""


class StoreError(DocRagError):
    """Raised when the primary vector store fails an operation.

    The ChunkStore treats any StoreError from the primary backend as a
    signal to serve the current call from the in-memory shadow store.
    """

    def __init__(
        self,
        message: str,
        store_type: str | None = None,
        collection: str | None = None,
        chunk_count: int | None = None,
    ) -> None:
        details = {}
        if store_type:
            details["store_type"] = store_type
        if collection:
            details["collection"] = collection
        if chunk_count:
            details["chunk_count"] = chunk_count
        super().__init__(message, details)
        self.store_type = store_type
        self.collection = collection
        self.chunk_count = chunk_count


class ChunkNotFoundError(DocRagError):
    """Raised when a chunk id or locator does not resolve to a chunk."""

    def __init__(self, chunk_id: str) -> None:
        super().__init__(f"Chunk not found: {chunk_id}", {"chunk_id": chunk_id})
        self.chunk_id = chunk_id


class UnknownOperationError(DocRagError):
    """Raised when the protocol layer is asked for an operation it does not expose."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Unknown tool: {operation}", {"operation": operation})
        self.operation = operation

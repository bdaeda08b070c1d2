"""Configuration management for docrag.

This module provides the DocRagSettings class for managing all
configuration options, supporting environment variables, a .env
file and an optional JSON configuration file.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

# Module-level logging goes through the stdlib logger here because
# docrag.core.logging depends on this module.
_log = logging.getLogger(__name__)


class DocRagSettings(BaseSettings):
    """Global configuration for docrag.

    Settings can be configured via:
    - Environment variables (prefixed with DOCRAG_)
    - .env file
    - A JSON config file (see load_settings)
    - Direct instantiation

    Example:
        >>> settings = DocRagSettings(chunk_size=500)
        >>> # Or via environment: DOCRAG_CHUNK_SIZE=500
    """

    # Documents
    documents_path: str = Field(
        default="./docs",
        description="Default directory scanned by ingest",
    )

    # Chunking
    chunk_size: int = Field(
        default=1000,
        ge=1,
        description="Chunk window size in tokens",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Tokens shared between consecutive chunks",
    )
    tokenizer_model: str = Field(
        default="gpt-4",
        description="Model name used to select the tiktoken encoding",
    )

    # Embedding provider
    ollama_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the Ollama server",
    )
    embedding_model: str = Field(
        default="nomic-embed-text",
        description="Ollama embedding model name",
    )
    embedding_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for embedding requests in seconds",
    )

    # Vector store
    chroma_url: str = Field(
        default="http://localhost:8001",
        description="URL of the ChromaDB server",
    )
    collection_name: str = Field(
        default="rag_documents",
        description="ChromaDB collection holding the chunks",
    )

    # Server
    server_name: str = Field(
        default="mcp-rag-server",
        description="Name advertised by the MCP server",
    )
    auto_ingest: bool = Field(
        default=True,
        description="Ingest documents_path when the MCP server starts",
    )
    mcp_transport: str = Field(
        default="stdio",
        description="MCP transport: 'stdio' or 'http'",
    )
    mcp_http_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="HTTP port for MCP server",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="plain",
        description="Log format: 'structured' or 'plain'",
    )

    model_config = SettingsConfigDict(
        env_prefix="DOCRAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance (lazy-loaded)
_settings: DocRagSettings | None = None


def get_settings() -> DocRagSettings:
    """Get the global settings instance.

    Returns:
        The global DocRagSettings instance, creating it if needed.
    """
    global _settings
    if _settings is None:
        _settings = DocRagSettings()
    return _settings


def configure(**kwargs: Any) -> DocRagSettings:
    """Configure global settings.

    Args:
        **kwargs: Settings to override

    Returns:
        The updated global settings instance

    Example:
        >>> configure(chunk_size=500, log_level="DEBUG")
    """
    global _settings
    _settings = DocRagSettings(**kwargs)
    return _settings


def load_settings(config_path: str | Path | None = None) -> DocRagSettings:
    """Load settings from a JSON file and install them globally.

    Values in the file override environment and defaults. A missing or
    malformed file is reported and the defaults are used instead.

    Args:
        config_path: Path to a JSON config file, or None for defaults

    Returns:
        The installed global settings instance
    """
    if config_path is None:
        return configure()

    path = Path(config_path)
    try:
        overrides = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(overrides, dict):
            raise ValueError("config root must be a JSON object")
        return configure(**overrides)
    except (OSError, ValueError, ValidationError) as e:
        _log.warning(f"Failed to load config from {path}, using defaults: {e}")
        return configure()


def write_default_config(config_path: str | Path = "config.json") -> Path:
    """Write the default settings to a JSON file.

    Args:
        config_path: Destination file

    Returns:
        Path of the written file
    """
    path = Path(config_path)
    defaults = DocRagSettings.model_construct().model_dump()
    path.write_text(json.dumps(defaults, indent=2) + "\n", encoding="utf-8")
    return path

"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from docs_rag.errors import ConfigurationError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Corpus
    docs_dir: str = Field(default="./src/app", description="Root directory holding the Markdoc pages")
    docs_glob: str = "**/*.md"
    docs_base_url: str = Field(
        default="https://docs.onboardjs.com",
        description="Public base URL prepended to every document path in ``source_url``",
    )

    # Chunking
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    max_workers: int = Field(default=4, gt=0, description="Documents chunked in parallel")

    # Embedding
    embedding_provider: str = Field(default="huggingface", description="'huggingface' or 'openai'")
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_api_key: str = Field(default="", description="Required when embedding_provider='openai'")
    embed_concurrency: int = Field(default=4, gt=0)
    embed_max_retries: int = Field(default=3, gt=0)
    embed_backoff_seconds: float = Field(default=1.0, ge=0)

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "documentation_chunks"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_overlap(self) -> Settings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < chunk_size ({self.chunk_size})"
            )
        return self

    def require_embedding_credentials(self) -> None:
        """Raise :class:`ConfigurationError` when the embedding provider cannot authenticate."""
        if self.embedding_provider not in ("huggingface", "openai"):
            raise ConfigurationError(
                f"Unsupported embedding_provider={self.embedding_provider!r}. "
                "Choose from: huggingface, openai."
            )
        if self.embedding_provider == "openai" and not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY must be set when embedding_provider='openai'")


# Module-level instance shared by the CLI and library code.
settings = Settings()

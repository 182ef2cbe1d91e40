"""Embedding provider wrapper with transient/permanent error classification."""

from __future__ import annotations

from typing import TYPE_CHECKING

import openai

from docs_rag.errors import (
    ConfigurationError,
    EmbeddingError,
    PermanentEmbeddingError,
    TransientEmbeddingError,
)

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
    TimeoutError,
    ConnectionError,
)


def get_embedding_function(
    provider: str,
    model: str,
    api_key: str = "",
) -> Embeddings:
    """Return the configured LangChain embedding function.

    Parameters
    ----------
    provider:
        ``"huggingface"`` (local sentence-transformer) or ``"openai"``.
    model:
        Model identifier understood by the provider.
    api_key:
        OpenAI API key; ignored for HuggingFace models.
    """
    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=model)
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        # Retries are handled per chunk by the indexer.
        return OpenAIEmbeddings(model=model, api_key=api_key, max_retries=0)
    raise ConfigurationError(
        f"Unsupported embedding_provider={provider!r}. Choose from: huggingface, openai."
    )


def classify_embedding_error(exc: BaseException) -> EmbeddingError:
    """Map a provider exception onto the transient / permanent split."""
    if isinstance(exc, EmbeddingError):
        return exc
    if isinstance(exc, _TRANSIENT_ERRORS):
        return TransientEmbeddingError(f"{type(exc).__name__}: {exc}")
    return PermanentEmbeddingError(f"{type(exc).__name__}: {exc}")


class EmbeddingService:
    """Single-text embedding calls that only raise :class:`EmbeddingError`.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    """

    def __init__(self, embeddings: Embeddings) -> None:
        self._embeddings = embeddings

    def embed(self, text: str) -> list[float]:
        try:
            return self._embeddings.embed_query(text)
        except Exception as exc:
            raise classify_embedding_error(exc) from exc

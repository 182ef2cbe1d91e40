"""
Indexing — embed chunks and upsert them into a vector store.

Public surface
--------------
- :class:`Indexer` — bounded-concurrency embed + upsert with per-chunk retries.
- :class:`IndexReport` — chunk ids grouped by outcome.
- :class:`EmbeddingService` / :func:`get_embedding_function` — embedding provider.
- :class:`VectorStoreBase` — abstract backend (subclass for pgvector, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
"""

from docs_rag.indexing.base import VectorStoreBase
from docs_rag.indexing.embedder import EmbeddingService, get_embedding_function
from docs_rag.indexing.indexer import Indexer, IndexReport

__all__ = [
    "ChromaVectorStore",
    "EmbeddingService",
    "IndexReport",
    "Indexer",
    "VectorStoreBase",
    "get_embedding_function",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docs_rag.indexing.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import chromadb

from docs_rag.config import settings
from docs_rag.errors import VectorStoreError
from docs_rag.indexing.base import VectorStoreBase

logger = logging.getLogger(__name__)


def _flatten_metadata(metadata: dict[str, Any], updated_at: datetime) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    flat = {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}
    flat["updated_at"] = updated_at.isoformat()
    return flat


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        ``cosine`` | ``l2`` | ``ip``; only applied when the collection is created.
    client:
        Pre-built Chroma client; when given, *host* / *port* are ignored.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = "cosine",
        client: Any | None = None,
    ) -> None:
        super().__init__(collection_name)
        self._client = client or chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance_metric},
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(
        self,
        id: str,
        content: str,
        embedding: list[float],
        metadata: dict[str, Any],
        updated_at: datetime,
    ) -> None:
        try:
            self._collection.upsert(
                ids=[id],
                embeddings=[embedding],
                documents=[content],
                metadatas=[_flatten_metadata(metadata, updated_at)],
            )
        except Exception as exc:
            raise VectorStoreError(f"Chroma upsert failed for {id!r}: {exc}") from exc

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def list_ids(self) -> list[str]:
        return list(self._collection.get(include=[])["ids"])

    def delete(self, ids: list[str]) -> None:
        try:
            self._collection.delete(ids=ids)
        except Exception as exc:
            raise VectorStoreError(f"Chroma delete failed: {exc}") from exc

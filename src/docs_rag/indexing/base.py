"""Abstract base class for vector-store backends.

Adding a new backend (Supabase/pgvector, Qdrant …) only requires
subclassing :class:`VectorStoreBase` and implementing the two abstract
methods.  The indexer is backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / table / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(
        self,
        id: str,
        content: str,
        embedding: list[float],
        metadata: dict[str, Any],
        updated_at: datetime,
    ) -> None:
        """Insert or overwrite the record keyed by *id*.

        Repeating the call with the same *id* must overwrite in place.
        Backends raise :class:`~docs_rag.errors.VectorStoreError` on failure.

        Parameters
        ----------
        id:
            Chunk identifier, the upsert key.
        content:
            The text that was embedded.
        embedding:
            Dense vector for *content*.
        metadata:
            ``source_url``, ``document_title`` and, when present,
            ``section_heading`` / ``section_hash``.
        updated_at:
            Timestamp of this write.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def list_ids(self) -> list[str]:
        """Return every stored record id.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support list_ids")

    def delete(self, ids: list[str]) -> None:
        """Delete records by their IDs.  Optional — raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

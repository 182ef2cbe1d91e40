"""Exception hierarchy shared by the chunking pipeline and the indexer.

Only :class:`ConfigurationError` is fatal to a run.  Every other error is
scoped to a single document or chunk and is recovered where it is raised.
"""

from __future__ import annotations


class DocsRagError(Exception):
    """Base class for all errors raised by ``docs_rag``."""


class ConfigurationError(DocsRagError):
    """Missing credentials, inaccessible corpus root, or invalid settings."""


class DocumentParseError(DocsRagError):
    """A single source document could not be read or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class EmbeddingError(DocsRagError):
    """The embedding provider failed for one chunk."""


class TransientEmbeddingError(EmbeddingError):
    """Rate limit, timeout or provider outage; safe to retry."""


class PermanentEmbeddingError(EmbeddingError):
    """The provider rejected the content; retrying will not help."""


class VectorStoreError(DocsRagError):
    """An upsert or delete against the vector store failed."""

"""Indexer — embed chunks and upsert them with bounded concurrency.

A fixed pool of async workers pulls chunks from a queue.  Each chunk is
embedded and upserted on its own: transient embedding errors are retried
with exponential backoff, and a failure never affects sibling chunks.
Setting the stop event stops workers from taking new chunks while the
chunks already in flight run to completion.

Usage::

    indexer = Indexer(ChromaVectorStore(), EmbeddingService(embeddings))
    report = asyncio.run(indexer.index(result.chunks))
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from docs_rag.errors import PermanentEmbeddingError, TransientEmbeddingError
from docs_rag.indexing.base import VectorStoreBase
from docs_rag.indexing.embedder import EmbeddingService
from docs_rag.ingestion.models import DocumentChunk

logger = logging.getLogger(__name__)


class ChunkStatus(str, Enum):
    UPSERTED = "upserted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class IndexReport:
    """Chunk ids grouped by outcome.

    Attributes
    ----------
    upserted:
        Embedded and written to the store.
    skipped:
        Rejected by the embedding provider (permanent error).
    failed:
        Transient retries exhausted, or the upsert failed.
    not_attempted:
        Never started because the run was stopped.
    """

    upserted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    not_attempted: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """``True`` when every chunk was upserted."""
        return not (self.skipped or self.failed or self.not_attempted)

    def record(self, chunk_id: str, status: ChunkStatus) -> None:
        getattr(self, status.value).append(chunk_id)

    def summary(self) -> str:
        return (
            f"{len(self.upserted)} upserted, {len(self.skipped)} skipped, "
            f"{len(self.failed)} failed, {len(self.not_attempted)} not attempted"
        )


class Indexer:
    """Embeds and upserts :class:`DocumentChunk` records.

    Parameters
    ----------
    store:
        Target vector store; upserts are keyed by chunk id.
    embedder:
        Embedding service raising only ``EmbeddingError`` subclasses.
    concurrency:
        Number of chunks embedded / upserted at the same time.
    max_retries:
        Attempts per chunk for transient embedding errors.
    backoff_seconds:
        Base delay; attempt *n* waits ``backoff_seconds * 2 ** (n - 1)``.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingService,
        *,
        concurrency: int = 4,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self._store = store
        self._embedder = embedder
        self.concurrency = concurrency
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    # -- public API -----------------------------------------------------------

    async def index(
        self,
        chunks: Sequence[DocumentChunk],
        stop_event: asyncio.Event | None = None,
    ) -> IndexReport:
        """Embed and upsert every chunk; never raises for per-chunk failures."""
        stop = stop_event or asyncio.Event()
        report = IndexReport()
        queue: asyncio.Queue[DocumentChunk] = asyncio.Queue()
        for chunk in chunks:
            queue.put_nowait(chunk)

        async def worker() -> None:
            while not stop.is_set():
                try:
                    chunk = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                report.record(chunk.id, await self._index_one(chunk))

        logger.info(
            "Indexing %d chunks into %r (concurrency=%d)",
            len(chunks),
            self._store.collection_name,
            self.concurrency,
        )
        await asyncio.gather(*(worker() for _ in range(self.concurrency)))

        while not queue.empty():
            report.not_attempted.append(queue.get_nowait().id)
        if report.not_attempted:
            logger.warning("Stopped early; %d chunks not attempted", len(report.not_attempted))

        logger.info("Indexing finished: %s", report.summary())
        return report

    def prune(self, current_ids: Iterable[str]) -> list[str]:
        """Delete stored records whose id is not in *current_ids*; return them."""
        keep = set(current_ids)
        stale = sorted(i for i in self._store.list_ids() if i not in keep)
        if stale:
            self._store.delete(stale)
            logger.info("Pruned %d stale chunks", len(stale))
        return stale

    # -- internals ------------------------------------------------------------

    async def _index_one(self, chunk: DocumentChunk) -> ChunkStatus:
        try:
            embedding = await self._embed_with_retry(chunk)
        except PermanentEmbeddingError as exc:
            logger.error("Skipping chunk %s, content rejected: %s", chunk.id, exc)
            return ChunkStatus.SKIPPED
        except TransientEmbeddingError as exc:
            logger.error(
                "Error generating embedding for chunk %s after %d attempts: %s",
                chunk.id,
                self.max_retries,
                exc,
            )
            return ChunkStatus.FAILED

        try:
            await asyncio.to_thread(
                self._store.upsert,
                chunk.id,
                chunk.content,
                embedding,
                chunk.store_metadata(),
                datetime.now(timezone.utc),
            )
        except Exception as exc:
            logger.error("Error upserting chunk %s: %s", chunk.id, exc)
            return ChunkStatus.FAILED
        return ChunkStatus.UPSERTED

    async def _embed_with_retry(self, chunk: DocumentChunk) -> list[float]:
        attempt = 1
        while True:
            try:
                return await asyncio.to_thread(self._embedder.embed, chunk.content)
            except TransientEmbeddingError as exc:
                if attempt >= self.max_retries:
                    raise
                wait = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Retry %d/%d for chunk %s (wait %.1fs): %s",
                    attempt,
                    self.max_retries,
                    chunk.id,
                    wait,
                    exc,
                )
                await asyncio.sleep(wait)
                attempt += 1

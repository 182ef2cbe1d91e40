"""
Ingestion — parse documentation pages and cut them into retrieval chunks.

Page source is parsed into a typed node tree, flattened to plain text,
segmented at level-1/2 headings and split into overlapping windows that
become :class:`DocumentChunk` records.
"""

from docs_rag.ingestion.models import DocumentChunk
from docs_rag.ingestion.pipeline import CorpusChunks, chunk_corpus, process_document

__all__ = ["CorpusChunks", "DocumentChunk", "chunk_corpus", "process_document"]

"""Document pipeline — page tree → sections → windows → :class:`DocumentChunk` records.

Usage::

    from docs_rag.ingestion.pipeline import chunk_corpus

    result = chunk_corpus("./src/app", "https://docs.onboardjs.com")
    for chunk in result.chunks:
        print(chunk.id, chunk.source_url)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from docs_rag.errors import ConfigurationError, DocumentParseError
from docs_rag.ingestion.chunker import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    SectionTextSplitter,
)
from docs_rag.ingestion.models import DocumentChunk
from docs_rag.ingestion.nodes import Node
from docs_rag.ingestion.parser import load_document
from docs_rag.ingestion.segmenter import segment

logger = logging.getLogger(__name__)

PAGE_SUFFIX = "/page"


@dataclass(frozen=True)
class DocumentLocation:
    """Where a source file lives and how its chunks are addressed.

    Attributes
    ----------
    path:
        Absolute path of the source file.
    relative_path:
        POSIX path relative to the corpus root (``steps/typed-steps.md``).
    document_path:
        URL path appended to the base URL (``/steps/typed-steps``).
    base_path_for_id:
        Chunk-id prefix (``steps-typed-steps``).
    """

    path: Path
    relative_path: str
    document_path: str
    base_path_for_id: str


@dataclass(frozen=True)
class DocumentFailure:
    """A document that was reported and skipped."""

    path: str
    error: str


@dataclass
class CorpusChunks:
    """Outcome of chunking a whole corpus."""

    chunks: list[DocumentChunk] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)
    documents_processed: int = 0


def process_document(
    tree: Node,
    document_title: str,
    base_url: str,
    document_path: str,
    base_path_for_id: str,
    *,
    splitter: SectionTextSplitter | None = None,
) -> list[DocumentChunk]:
    """Turn one parsed document into ordered, identified chunks.

    The ordinal behind ``id`` is shared by every section of the document
    and never resets.
    """
    splitter = splitter or SectionTextSplitter()
    page_url = f"{base_url}{document_path}"

    chunks: list[DocumentChunk] = []
    for section in segment(tree, document_title):
        source_url = f"{page_url}#{section.hash}" if section.hash else page_url
        for window in splitter.split_text(section.text):
            chunks.append(
                DocumentChunk(
                    id=f"{base_path_for_id}-{len(chunks)}",
                    content=window,
                    source_url=source_url,
                    document_title=document_title,
                    section_heading=section.heading,
                    section_hash=section.hash,
                )
            )
    return chunks


def locate_document(root: str | Path, path: str | Path) -> DocumentLocation:
    """Derive the URL path and chunk-id prefix of *path* below *root*."""
    root = Path(root)
    path = Path(path)
    relative = PurePosixPath(path.relative_to(root).as_posix())
    stem = str(relative.with_suffix("")) if relative.suffix == ".md" else str(relative)

    url_path = stem
    if url_path == "page":
        url_path = ""
    elif url_path.endswith(PAGE_SUFFIX):
        url_path = url_path[: -len(PAGE_SUFFIX)]
    if url_path and not url_path.startswith("/"):
        url_path = f"/{url_path}"

    return DocumentLocation(
        path=path,
        relative_path=str(relative),
        document_path=url_path,
        base_path_for_id=stem.replace("/", "-").replace(".", "-"),
    )


def discover_documents(root: str | Path, glob: str = "**/*.md") -> list[DocumentLocation]:
    """Return every document below *root* matching *glob*, sorted by relative path."""
    root = Path(root)
    if not root.is_dir():
        raise ConfigurationError(f"Corpus directory not found: {root}")
    locations = [locate_document(root, p) for p in root.glob(glob) if p.is_file()]
    return sorted(locations, key=lambda loc: loc.relative_path)


def chunk_corpus(
    root: str | Path,
    base_url: str,
    *,
    glob: str = "**/*.md",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    max_workers: int = 4,
) -> CorpusChunks:
    """Chunk every document below *root*.

    Documents are processed on a thread pool of *max_workers*; results are
    concatenated in sorted path order, so repeated runs are identical.  A
    document that fails to parse is logged and recorded in
    :attr:`CorpusChunks.failures` without stopping the run.

    Raises
    ------
    ConfigurationError
        If *root* is not an accessible directory.
    """
    base_url = base_url.rstrip("/")
    locations = discover_documents(root, glob)
    logger.info("Chunking %d documents from %s", len(locations), root)

    def _run(location: DocumentLocation) -> list[DocumentChunk] | DocumentFailure:
        splitter = SectionTextSplitter(chunk_size, chunk_overlap)
        try:
            parsed = load_document(location.path)
        except DocumentParseError as exc:
            logger.error("✗ %s: %s", location.relative_path, exc.reason)
            return DocumentFailure(path=location.relative_path, error=exc.reason)
        try:
            chunks = process_document(
                parsed.tree,
                parsed.title,
                base_url,
                location.document_path,
                location.base_path_for_id,
                splitter=splitter,
            )
        except RecursionError:
            logger.error("✗ %s: document nesting too deep", location.relative_path)
            return DocumentFailure(
                path=location.relative_path, error="document nesting too deep"
            )
        logger.debug("✓ %s (%d chunks)", location.relative_path, len(chunks))
        return chunks

    result = CorpusChunks()
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        for outcome in pool.map(_run, locations):
            if isinstance(outcome, DocumentFailure):
                result.failures.append(outcome)
            else:
                result.chunks.extend(outcome)
                result.documents_processed += 1

    logger.info(
        "Produced %d chunks from %d documents (%d failed)",
        len(result.chunks),
        result.documents_processed,
        len(result.failures),
    )
    return result

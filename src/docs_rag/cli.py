"""Command-line entry point: chunk the docs corpus, or chunk + embed + upsert it.

Chunk only (JSON-Lines to stdout or a file)
-------------------------------------------
    docs-rag chunk --docs-dir ./src/app --output chunks.jsonl

Index into Chroma
-----------------
    docs-rag index --docs-dir ./src/app --prune
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

from docs_rag.config import Settings, settings
from docs_rag.errors import ConfigurationError
from docs_rag.ingestion.pipeline import CorpusChunks, chunk_corpus

logger = logging.getLogger("docs_rag")

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-rag",
        description="Chunk Markdoc documentation and index it for retrieval",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("chunk", "Write chunks as JSON-Lines"),
        ("index", "Embed chunks and upsert them into the vector store"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--docs-dir", default=settings.docs_dir, help="Corpus root directory")
        cmd.add_argument("--glob", default=settings.docs_glob, help="Document file pattern")
        cmd.add_argument("--base-url", default=settings.docs_base_url, help="Public docs base URL")
        cmd.add_argument("--chunk-size", type=int, default=settings.chunk_size)
        cmd.add_argument("--chunk-overlap", type=int, default=settings.chunk_overlap)
        cmd.add_argument("--max-workers", type=int, default=settings.max_workers)

    sub.choices["chunk"].add_argument(
        "--output", default="-", help="Output path for the JSON-Lines file ('-' for stdout)"
    )
    sub.choices["index"].add_argument(
        "--prune",
        action="store_true",
        help="Delete stored chunks that this run no longer produces",
    )
    return parser


def _chunk(args: argparse.Namespace) -> CorpusChunks:
    if args.chunk_overlap >= args.chunk_size:
        raise ConfigurationError(
            f"chunk_overlap ({args.chunk_overlap}) must be < chunk_size ({args.chunk_size})"
        )
    return chunk_corpus(
        args.docs_dir,
        args.base_url,
        glob=args.glob,
        chunk_size=args.chunk_size,
        chunk_overlap=args.chunk_overlap,
        max_workers=args.max_workers,
    )


def run_chunk(args: argparse.Namespace) -> int:
    result = _chunk(args)

    lines = (chunk.model_dump_json(exclude_none=True) for chunk in result.chunks)
    if args.output == "-":
        for line in lines:
            sys.stdout.write(line + "\n")
    else:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as fh:
            for line in lines:
                fh.write(line + "\n")
        logger.info("Wrote %d chunks → %s", len(result.chunks), out_path)

    for failure in result.failures:
        logger.error("Skipped %s: %s", failure.path, failure.error)
    return EXIT_PARTIAL if result.failures else EXIT_OK


def run_index(args: argparse.Namespace, config: Settings = settings) -> int:
    from docs_rag.indexing.chroma_store import ChromaVectorStore
    from docs_rag.indexing.embedder import EmbeddingService, get_embedding_function
    from docs_rag.indexing.indexer import Indexer

    config.require_embedding_credentials()
    result = _chunk(args)

    try:
        store = ChromaVectorStore(
            config.chroma_collection, host=config.chroma_host, port=config.chroma_port
        )
    except Exception as exc:
        raise ConfigurationError(
            f"Vector store unreachable at {config.chroma_host}:{config.chroma_port}: {exc}"
        ) from exc
    if not store.health_check():
        raise ConfigurationError(
            f"Vector store unreachable at {config.chroma_host}:{config.chroma_port}"
        )
    embedder = EmbeddingService(
        get_embedding_function(
            config.embedding_provider, config.embedding_model, config.openai_api_key
        )
    )
    indexer = Indexer(
        store,
        embedder,
        concurrency=config.embed_concurrency,
        max_retries=config.embed_max_retries,
        backoff_seconds=config.embed_backoff_seconds,
    )

    async def _run():
        stop = asyncio.Event()
        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGINT, stop.set)
        except (NotImplementedError, RuntimeError):
            logger.debug("SIGINT handler unavailable; Ctrl-C aborts immediately")
        return await indexer.index(result.chunks, stop_event=stop)

    report = asyncio.run(_run())

    if args.prune:
        if report.not_attempted or result.failures:
            logger.warning("Skipping prune: run was incomplete")
        else:
            indexer.prune(chunk.id for chunk in result.chunks)

    ok = report.complete and not result.failures
    return EXIT_OK if ok else EXIT_PARTIAL


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())

    try:
        if args.command == "chunk":
            return run_chunk(args)
        return run_index(args)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())

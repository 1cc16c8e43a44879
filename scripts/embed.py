#!/usr/bin/env python
"""Embed text chunks from a file.

Usage:
    python -m scripts.embed notes.txt --chunk punctuation --dimensions 512

Writes one JSON object per line, ``{"chunk": ..., "embedding": [...]}``,
to ``<file>.jsonl`` unless ``--output`` is given.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from embedkit.documents.chunker import ChunkStrategy, chunk_text
from embedkit.embeddings.client import EmbeddingClient
from embedkit.embeddings.models import (
    BatchStatus,
    EmbeddingOptions,
    EmbeddingResult,
    TaskType,
)
from embedkit.exceptions import EmbedKitError
from embedkit.logging_config import get_logger, setup_logging
from embedkit.observability.metrics import get_metrics

logger = get_logger(__name__)


def aligned_pairs(
    chunks: list[str], result: EmbeddingResult
) -> list[tuple[str, list[float]]]:
    """Pair chunks with their vectors, skipping chunks of aborted batches."""
    if not result.batches:
        return list(zip(chunks, result.embeddings, strict=False))

    pairs: list[tuple[str, list[float]]] = []
    start = 0
    vectors = iter(result.embeddings)
    for batch in result.batches:
        batch_chunks = chunks[start : start + batch.size]
        start += batch.size
        if batch.status is BatchStatus.ABORTED:
            continue
        pairs.extend((chunk, next(vectors)) for chunk in batch_chunks)
    return pairs


def write_jsonl(path: Path, pairs: list[tuple[str, list[float]]]) -> None:
    """Write chunk/embedding pairs as JSON Lines."""
    with path.open("w", encoding="utf-8") as fh:
        for chunk, embedding in pairs:
            fh.write(json.dumps({"chunk": chunk, "embedding": embedding}) + "\n")


def write_metrics(path: Path) -> None:
    """Dump request, retry and placeholder counters in Prometheus text format."""
    path.write_bytes(get_metrics())
    logger.info(f"Metrics written to {path}")

async def run_embed(
    input_path: Path,
    output_path: Path,
    strategy: ChunkStrategy,
    value: str | None,
    options: EmbeddingOptions,
) -> int:
    """Chunk, embed and write a file.

    Args:
        input_path: Text file to embed.
        output_path: JSON Lines destination.
        strategy: Chunking strategy.
        value: Chunking parameter (window size or regex).
        options: Embedding options.

    Returns:
        Number of chunks written.
    """
    text = input_path.read_text(encoding="utf-8")
    chunks = chunk_text(text, strategy, value)
    logger.info(f"Chunked text into {len(chunks)} pieces")

    async with EmbeddingClient() as client:
        result = await client.embed(chunks, options)

    if result.aborted_batches:
        logger.error(
            f"{result.aborted_batches} batch(es) aborted by the provider; "
            f"{len(chunks) - len(result.embeddings)} chunks have no embedding"
        )
    elif result.placeholder_count:
        logger.warning(
            f"{result.placeholder_count} chunks got zero-vector placeholders"
        )

    pairs = aligned_pairs(chunks, result)
    write_jsonl(output_path, pairs)
    logger.info(
        f"Embeddings written to {output_path} (JSON Lines format, "
        f"{result.tokens} tokens)"
    )
    return len(pairs)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Embed text chunks from a file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("file", type=Path, help="Input text file path")
    parser.add_argument(
        "-c",
        "--chunk",
        type=ChunkStrategy,
        choices=list(ChunkStrategy),
        default=ChunkStrategy.NEWLINE,
        help="Chunking type",
    )
    parser.add_argument(
        "-v",
        "--value",
        default=None,
        help="Value for chunking (number for characters, pattern for regex)",
    )
    parser.add_argument(
        "-m",
        "--model",
        default=None,
        help="Embedding model (selects the provider)",
    )
    parser.add_argument(
        "-d",
        "--dimensions",
        type=int,
        default=1024,
        help="Embedding dimensions",
    )
    parser.add_argument(
        "-l",
        "--late-chunking",
        action="store_true",
        help="Enable late chunking",
    )
    parser.add_argument(
        "-t",
        "--embedding-type",
        default=None,
        help="Embedding type",
    )
    parser.add_argument(
        "--task",
        type=TaskType,
        choices=list(TaskType),
        default=None,
        help="Task hint for task-aware models",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output JSON Lines file path (default: <file>.jsonl)",
    )
    parser.add_argument(
        "--metrics",
        type=Path,
        default=None,
        help="Write Prometheus metrics to this file when done",
    )

    args = parser.parse_args()
    setup_logging()

    output_path = args.output or args.file.with_name(f"{args.file.name}.jsonl")
    options = EmbeddingOptions(
        model=args.model,
        dimensions=args.dimensions,
        late_chunking=args.late_chunking,
        task=args.task,
        embedding_type=args.embedding_type,
    )

    try:
        asyncio.run(
            run_embed(
                input_path=args.file,
                output_path=output_path,
                strategy=args.chunk,
                value=args.value,
                options=options,
            )
        )
    except (EmbedKitError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    finally:
        if args.metrics:
            write_metrics(args.metrics)


if __name__ == "__main__":
    main()

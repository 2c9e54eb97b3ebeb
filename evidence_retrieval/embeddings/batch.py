"""
Ingestion-time embedding of chunks.

Chunks are immutable, so embedding produces new Chunk objects. Texts the
provider cannot embed keep ``embedding=None`` and will only take part in the
lexical lane and the heuristic booster.
"""

import dataclasses

from evidence_retrieval.config import EMBEDDING_CONCURRENCY
from evidence_retrieval.embeddings.base import EmbeddingProvider
from evidence_retrieval.logging_config import Timer
from evidence_retrieval.models import Chunk
from evidence_retrieval.parallel import ExecutorStrategy


def embed_chunks(
    chunks: list[Chunk],
    provider: EmbeddingProvider,
    max_concurrency: int = EMBEDDING_CONCURRENCY,
    strategy: ExecutorStrategy | None = None,
) -> list[Chunk]:
    """
    Return copies of ``chunks`` carrying embeddings from ``provider``.

    Args:
        chunks: Chunks to embed (order is preserved)
        provider: Embedding provider
        max_concurrency: Maximum concurrent provider calls
        strategy: Optional execution strategy (overrides max_concurrency)

    Returns:
        New chunks; existing embeddings are replaced
    """
    with Timer(f"[Embeddings] Embedding {len(chunks)} chunks with {provider.name}"):
        vectors = provider.embed_many(
            [chunk.text for chunk in chunks],
            max_concurrency=max_concurrency,
            strategy=strategy,
        )

    return [
        dataclasses.replace(chunk, embedding=vector)
        for chunk, vector in zip(chunks, vectors)
    ]

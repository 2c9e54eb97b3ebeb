"""
Evidence Retrieval: a hybrid retrieval and ranking engine.

Given a free-text query over a bounded evidence corpus, produces a ranked
list of chunks by fusing a lexical (BM25+) lane and a semantic (embedding)
lane with Reciprocal Rank Fusion, nudged by deterministic heuristics.

Example:
    from evidence_retrieval import (
        Chunk, HashingEmbeddingProvider, HybridRetriever, MemoryEvidenceStore, embed_chunks,
    )

    provider = HashingEmbeddingProvider()
    store = MemoryEvidenceStore(embed_chunks(chunks, provider))

    with HybridRetriever(store, provider) as retriever:
        results = retriever.search("quick fox", top_k=5)
"""

from evidence_retrieval.embeddings import (
    EmbeddingProvider,
    HashingEmbeddingProvider,
    HuggingFaceEmbeddingProvider,
    embed_chunks,
)
from evidence_retrieval.models import SOURCE_TYPES, Chunk, RetrievalResult
from evidence_retrieval.retrieval import (
    GLOBAL_SCOPE,
    CorpusRegistry,
    HybridRetriever,
    RetrievalService,
    search_report_content,
)
from evidence_retrieval.store import EvidenceStore, IndexQueryError, MemoryEvidenceStore

__all__ = [
    "Chunk",
    "RetrievalResult",
    "SOURCE_TYPES",
    "EvidenceStore",
    "IndexQueryError",
    "MemoryEvidenceStore",
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "HuggingFaceEmbeddingProvider",
    "embed_chunks",
    "HybridRetriever",
    "CorpusRegistry",
    "RetrievalService",
    "GLOBAL_SCOPE",
    "search_report_content",
]

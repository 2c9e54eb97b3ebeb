"""
Embedding providers for the semantic lane.

Architecture:
- EmbeddingProvider: ABC; embed() returns a vector or None (unavailable)
- HashingEmbeddingProvider: deterministic trigram-hash vectors, no model needed
- HuggingFaceEmbeddingProvider: sentence-transformers via langchain_huggingface
- embed_chunks: ingestion helper with a bounded number of concurrent calls
- cosine_similarity: directional closeness of two vectors

Example:
    from evidence_retrieval.embeddings import HashingEmbeddingProvider, embed_chunks

    provider = HashingEmbeddingProvider()
    chunks = embed_chunks(chunks, provider)
"""

from evidence_retrieval.embeddings.base import EmbeddingProvider
from evidence_retrieval.embeddings.batch import embed_chunks
from evidence_retrieval.embeddings.hashing import HashingEmbeddingProvider
from evidence_retrieval.embeddings.huggingface import HuggingFaceEmbeddingProvider
from evidence_retrieval.embeddings.similarity import cosine_similarity

__all__ = [
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "HuggingFaceEmbeddingProvider",
    "embed_chunks",
    "cosine_similarity",
]

"""
Hashing Embedding Provider.

Deterministic, dependency-free vectors for when no embedding model is
available. Each lowercased character trigram is hashed with 32-bit FNV-1a
into one of ``dimensions`` buckets; the bucket counts are L2-normalized.

The vectors capture surface overlap only, not meaning, but they are stable
across processes (unlike Python's salted ``hash()``), so stored chunk vectors
stay comparable with query vectors computed later.
"""

import numpy as np

from evidence_retrieval.config import EMBEDDING_DIMENSIONS
from evidence_retrieval.embeddings.base import EmbeddingProvider

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_MASK_32 = 0xFFFFFFFF


def fnv1a_trigram_hash(trigram: str) -> int:
    """32-bit FNV-1a over the code points of a trigram."""
    h = _FNV_OFFSET_BASIS
    for ch in trigram:
        h = ((h ^ ord(ch)) * _FNV_PRIME) & _MASK_32
    return h


class HashingEmbeddingProvider(EmbeddingProvider):
    """
    Character-trigram hashing embeddings.

    Example:
        provider = HashingEmbeddingProvider()
        vector = provider.embed("quick brown fox")   # shape (384,)
    """

    name: str = "HashingEmbeddings"

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")
        self.dimensions = dimensions

    def embed(self, text: str) -> np.ndarray | None:
        """Embed text; None for empty or blank text."""
        if not text or not text.strip():
            return None

        vector = np.zeros(self.dimensions, dtype=np.float32)
        lower = text.lower()
        for i in range(len(lower) - 2):
            vector[fnv1a_trigram_hash(lower[i:i + 3]) % self.dimensions] += 1.0

        norm = float(np.linalg.norm(vector))
        if norm > 0:
            vector /= norm
        return vector

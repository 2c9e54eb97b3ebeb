"""
Tests for embedding providers and ingestion-time embedding.
"""

import numpy as np
import pytest

from evidence_retrieval.embeddings import (
    EmbeddingProvider,
    HashingEmbeddingProvider,
    HuggingFaceEmbeddingProvider,
    cosine_similarity,
    embed_chunks,
)
from evidence_retrieval.embeddings.hashing import fnv1a_trigram_hash
from evidence_retrieval.models import Chunk


class FlakyProvider(EmbeddingProvider):
    """Fails on texts containing 'bad'."""

    name = "Flaky"

    def embed(self, text):
        if "bad" in text:
            raise RuntimeError("model crashed")
        return np.array([float(len(text)), 1.0], dtype=np.float32)


class FakeHuggingFaceEmbeddings:
    """Stands in for langchain_huggingface.HuggingFaceEmbeddings."""

    def __init__(self, fail=False):
        self.fail = fail

    def embed_query(self, text):
        if self.fail:
            raise OSError("model download failed")
        return [0.6, 0.8, 0.0]


class TestCosineSimilarity:
    """Test cosine similarity edge cases."""

    def test_identical_and_orthogonal(self):
        """Parallel vectors score 1, orthogonal ones 0."""
        assert cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)

    def test_opposite(self):
        """Opposite vectors score -1."""
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_degenerate_inputs_score_zero(self):
        """Missing, mismatched or zero vectors never raise."""
        assert cosine_similarity(None, [1.0]) == 0.0
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0
        assert cosine_similarity([], []) == 0.0


class TestHashingEmbeddingProvider:
    """Test the trigram-hashing provider."""

    def test_fnv1a_reference_value(self):
        """Matches the published 32-bit FNV-1a value for 'a'."""
        assert fnv1a_trigram_hash("a") == 0xE40C292C
        assert fnv1a_trigram_hash("") == 2166136261

    def test_vectors_are_unit_length(self):
        """Vectors are L2-normalized with the configured size."""
        vector = HashingEmbeddingProvider().embed("quick brown fox")
        assert vector.shape == (384,)
        assert float(np.linalg.norm(vector)) == pytest.approx(1.0, abs=1e-5)

    def test_deterministic(self):
        """The same text always embeds the same way."""
        provider = HashingEmbeddingProvider(dimensions=64)
        assert np.array_equal(provider.embed("Parser Notes"), provider.embed("parser notes"))

    def test_overlap_means_similarity(self):
        """Texts sharing trigrams are closer than unrelated texts."""
        provider = HashingEmbeddingProvider()
        base = provider.embed("quick brown fox")
        near = provider.embed("quick brown foxes")
        far = provider.embed("lazy sleeping dog")
        assert cosine_similarity(base, near) > cosine_similarity(base, far)

    def test_blank_text_not_embedded(self):
        """Blank text has no vector."""
        assert HashingEmbeddingProvider().embed("   ") is None

    def test_invalid_dimensions(self):
        """Dimensions must be positive."""
        with pytest.raises(ValueError, match="dimensions"):
            HashingEmbeddingProvider(dimensions=0)


class TestHuggingFaceEmbeddingProvider:
    """Test the model-backed provider with an injected embeddings object."""

    def test_embed(self):
        """Vectors come back as float32 and set the dimensions."""
        provider = HuggingFaceEmbeddingProvider(embeddings=FakeHuggingFaceEmbeddings())
        vector = provider.embed("who maintains the parser")

        assert vector.dtype == np.float32
        assert provider.dimensions == 3

    def test_failure_marks_unavailable(self):
        """A model failure returns None and starts the back-off window."""
        provider = HuggingFaceEmbeddingProvider(embeddings=FakeHuggingFaceEmbeddings(fail=True), retry_seconds=60)

        assert provider.embed("query") is None
        assert provider.is_available is False
        assert provider.get_config()["available"] is False

    def test_retry_after_backoff(self):
        """With no back-off window the model is tried again on the next call."""
        fake = FakeHuggingFaceEmbeddings(fail=True)
        provider = HuggingFaceEmbeddingProvider(embeddings=fake, retry_seconds=0)
        assert provider.embed("query") is None

        fake.fail = False
        assert provider.embed("query") is not None
        assert provider.is_available is True

    def test_blank_text(self):
        """Blank text is never sent to the model."""
        provider = HuggingFaceEmbeddingProvider(embeddings=FakeHuggingFaceEmbeddings(fail=True))
        assert provider.embed("") is None
        assert provider.is_available is True


class TestEmbedMany:
    """Test bulk embedding with per-text failure isolation."""

    def test_failures_isolated(self, sequential):
        """A failing text leaves None in its own slot only."""
        vectors = FlakyProvider().embed_many(["good", "bad", "fine"], strategy=sequential)

        assert vectors[0] is not None and vectors[0][0] == 4.0
        assert vectors[1] is None
        assert vectors[2] is not None and vectors[2][0] == 4.0

    def test_thread_pool_keeps_order(self):
        """Results line up with the inputs when running concurrently."""
        texts = [f"text number {i}" for i in range(12)]
        vectors = FlakyProvider().embed_many(texts, max_concurrency=3)
        assert [int(v[0]) for v in vectors] == [len(t) for t in texts]

    def test_empty(self):
        """No texts, no work."""
        assert FlakyProvider().embed_many([]) == []

    def test_embed_chunks(self, quick_fox, sequential):
        """Embedding produces new chunks and leaves the originals alone."""
        bad = Chunk(id="c9", source_id="Z", source_type="code", text="bad input")
        embedded = embed_chunks([quick_fox, bad], FlakyProvider(), strategy=sequential)

        assert [c.id for c in embedded] == ["c1", "c9"]
        assert embedded[0].embedding[0] == float(len(quick_fox.text))
        assert embedded[1].embedding is None
        assert quick_fox.embedding[0] == pytest.approx(0.9)

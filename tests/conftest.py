"""
Shared fixtures for the retrieval tests.

The corpus is tiny and the embedding provider is a lookup table, so every
expected ranking can be worked out by hand.
"""

import os
import tempfile

import numpy as np
import pytest

# Keep test runs from writing logs into the real home directory
os.environ.setdefault("EVIDENCE_RETRIEVAL_HOME", tempfile.mkdtemp(prefix="evidence-retrieval-tests-"))

from evidence_retrieval.embeddings import EmbeddingProvider
from evidence_retrieval.models import Chunk
from evidence_retrieval.parallel import SequentialStrategy
from evidence_retrieval.store import MemoryEvidenceStore


class TableEmbeddingProvider(EmbeddingProvider):
    """Returns a fixed vector per known text, None for anything else."""

    name = "TableEmbeddings"

    def __init__(self, table: dict[str, list[float]] | None = None):
        self.table = {text: np.asarray(vector, dtype=np.float32) for text, vector in (table or {}).items()}
        self.calls: list[str] = []
        self.dimensions = 4

    def embed(self, text: str):
        self.calls.append(text)
        return self.table.get(text)


class RaisingEmbeddingProvider(EmbeddingProvider):
    """Raises on every call."""

    name = "RaisingEmbeddings"

    def embed(self, text: str):
        raise RuntimeError("embedding service down")


QUICK_FOX_TEXT = "the quick brown fox jumps"
SWIFT_FOX_TEXT = "a swift auburn fox leaps over a log"
LAZY_DOG_TEXT = "the lazy dog sleeps near the quick river"

QUERY_VECTOR = [1.0, 0.0, 0.0, 0.0]
QUICK_FOX_VECTOR = [0.9, 0.1, 0.0, 0.0]
SWIFT_FOX_VECTOR = [0.6, 0.8, 0.0, 0.0]
LAZY_DOG_VECTOR = [0.1, 0.2, 0.9, 0.1]


@pytest.fixture
def quick_fox():
    return Chunk(
        id="c1", source_id="A", source_type="snapshot", text=QUICK_FOX_TEXT,
        chunk_index=0, end_offset=len(QUICK_FOX_TEXT), embedding=QUICK_FOX_VECTOR,
    )


@pytest.fixture
def swift_fox():
    return Chunk(
        id="c2", source_id="B", source_type="snapshot", text=SWIFT_FOX_TEXT,
        chunk_index=0, end_offset=len(SWIFT_FOX_TEXT), embedding=SWIFT_FOX_VECTOR,
    )


@pytest.fixture
def lazy_dog():
    return Chunk(
        id="c3", source_id="A", source_type="document", text=LAZY_DOG_TEXT,
        chunk_index=1, start_offset=26, end_offset=26 + len(LAZY_DOG_TEXT), embedding=LAZY_DOG_VECTOR,
    )


@pytest.fixture
def fox_store(quick_fox, swift_fox):
    """Two-chunk corpus: one lexical match, one paraphrase."""
    return MemoryEvidenceStore([quick_fox, swift_fox], name="foxes")


@pytest.fixture
def corpus_store(quick_fox, swift_fox, lazy_dog):
    """Three chunks over two sources and two source types."""
    return MemoryEvidenceStore([quick_fox, swift_fox, lazy_dog], name="corpus")


@pytest.fixture
def provider():
    return TableEmbeddingProvider({
        "quick fox": QUERY_VECTOR,
        "fox": QUERY_VECTOR,
        "quick brown fox": QUERY_VECTOR,
        QUICK_FOX_TEXT: QUICK_FOX_VECTOR,
        SWIFT_FOX_TEXT: SWIFT_FOX_VECTOR,
        LAZY_DOG_TEXT: LAZY_DOG_VECTOR,
    })


@pytest.fixture
def unavailable_provider():
    return TableEmbeddingProvider({})


@pytest.fixture
def sequential():
    return SequentialStrategy()

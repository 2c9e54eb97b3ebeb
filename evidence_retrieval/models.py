"""
Data model shared by the evidence store, the embedding providers and the
retrieval lanes.

A Chunk is the atomic retrievable unit. Chunks are immutable: the retrieval
engine reads them during a query and never mutates them. A chunk refers to
its originating document only through ``source_id``, a plain lookup key;
sibling chunks are fetched from the store, never through object references.
"""

from dataclasses import dataclass, field

import numpy as np

# Closed set of source tags used for filtering
SOURCE_TYPES = frozenset({
    "snapshot",
    "artifact",
    "capture",
    "code",
    "document",
    "report",
    "strategy",
    "repo_code",
    "repo_doc",
})


@dataclass(frozen=True)
class Chunk:
    """
    A unit of retrievable text.

    Attributes:
        id: Unique identifier within the corpus
        source_id: Identifier of the originating document/page/file
        source_type: Tag from SOURCE_TYPES, used for filtering
        text: The chunk text content
        chunk_index: Ordinal position within its source (0 = first chunk)
        start_offset: Start of the character span in the source text
        end_offset: End of the character span in the source text
        embedding: Optional read-only vector; None when embedding failed
        domain: Optional domain tag (used by the global corpus)
    """

    id: str
    source_id: str
    source_type: str
    text: str
    chunk_index: int = 0
    start_offset: int = 0
    end_offset: int = 0
    embedding: np.ndarray | None = field(default=None, compare=False, repr=False)
    domain: str | None = None

    def __post_init__(self):
        """Validate fields and freeze the embedding buffer."""
        if not self.id:
            raise ValueError("Chunk id must be a non-empty string")
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(
                f"Unknown source type {self.source_type!r}; expected one of {sorted(SOURCE_TYPES)}"
            )
        if self.chunk_index < 0:
            raise ValueError(f"chunk_index must be >= 0, got {self.chunk_index}")
        if self.end_offset < self.start_offset:
            raise ValueError(
                f"end_offset ({self.end_offset}) precedes start_offset ({self.start_offset})"
            )

        if self.embedding is not None:
            vector = np.array(self.embedding, dtype=np.float32)
            if vector.ndim != 1 or vector.size == 0:
                raise ValueError("Chunk embedding must be a non-empty 1-D vector")
            vector.flags.writeable = False
            object.__setattr__(self, "embedding", vector)

    @property
    def has_embedding(self) -> bool:
        """True if the chunk can take part in the semantic lane."""
        return self.embedding is not None


@dataclass(frozen=True)
class RetrievalResult:
    """
    One entry of a fused ranking.

    The score is only meaningful relative to other results of the same
    query; it is never persisted or compared across queries.

    Attributes:
        chunk: The retrieved chunk
        score: Fused, non-negative relevance score
        source_id: Copied from the chunk for convenience
        source_type: Copied from the chunk for convenience
        lanes: Names of the lanes that ranked this chunk
    """

    chunk: Chunk
    score: float
    source_id: str
    source_type: str
    lanes: tuple[str, ...] = ()

    @classmethod
    def from_chunk(cls, chunk: Chunk, score: float, lanes: tuple[str, ...] = ()) -> "RetrievalResult":
        """Build a result, copying the source fields from the chunk."""
        return cls(
            chunk=chunk,
            score=score,
            source_id=chunk.source_id,
            source_type=chunk.source_type,
            lanes=lanes,
        )

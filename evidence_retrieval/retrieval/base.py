"""
Base classes for retrieval lanes.

A lane is one independent scoring pipeline (lexical or semantic) feeding the
fusion merger. Each lane returns its own ranked candidate list; lane scores
live on different scales and are never compared directly, only the ranks
reach the merger.

Design Principles:
- Single Responsibility: each lane does one retrieval strategy
- Open/Closed: add lanes without modifying the merger
- Dependency Injection: the evidence store and embedding provider are
  passed at construction
"""

from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass, field
from typing import Any

from evidence_retrieval.models import Chunk


@dataclass(frozen=True)
class ChunkFilter:
    """
    Candidate restriction applied by every lane.

    Attributes:
        source_types: Allowed source types, or None for no restriction.
                      An empty set allows nothing.
        source_id: Restrict to one source document, or None
    """

    source_types: frozenset[str] | None = None
    source_id: str | None = None

    @classmethod
    def build(
        cls,
        source_types: Collection[str] | None = None,
        source_id: str | None = None,
    ) -> "ChunkFilter":
        """Normalize caller input (any collection, or one type name) into a filter."""
        if isinstance(source_types, str):
            source_types = (source_types,)
        return cls(
            source_types=frozenset(source_types) if source_types is not None else None,
            source_id=source_id,
        )

    def matches(self, chunk: Chunk) -> bool:
        """True if the chunk passes the filter."""
        if self.source_types is not None and chunk.source_type not in self.source_types:
            return False
        if self.source_id is not None and chunk.source_id != self.source_id:
            return False
        return True


NO_FILTER = ChunkFilter()


@dataclass(frozen=True)
class LaneCandidate:
    """
    A chunk ranked by a single lane.

    Attributes:
        chunk: The candidate chunk
        score: Lane-specific score (normalized BM25 in [0, 1], or cosine)
        raw_score: Score before normalization
        lane: Name of the lane that produced the candidate
    """

    chunk: Chunk
    score: float
    raw_score: float
    lane: str


@dataclass
class LaneResult:
    """
    Result from running a lane.

    Attributes:
        candidates: Ranked candidates, best first, after filtering
        lane: Name of the lane
        available: False if the lane could not run (e.g. no query embedding)
        seeds: Unfiltered lexical hits, used to seed sibling expansion
        processing_time_ms: Time taken by the lane
        query: The original query string
        metadata: Lane-level statistics
    """

    candidates: list[LaneCandidate]
    lane: str
    available: bool = True
    seeds: list[Chunk] = field(default_factory=list)
    processing_time_ms: float = 0.0
    query: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def skipped(cls, lane: str, query: str = "", reason: str = "") -> "LaneResult":
        """An empty result for a lane that did not run."""
        return cls(
            candidates=[],
            lane=lane,
            available=False,
            query=query,
            metadata={"skipped": reason} if reason else {},
        )

    def __len__(self) -> int:
        return len(self.candidates)


class BaseRetrievalLane(ABC):
    """
    Abstract base class for retrieval lanes.

    Class Attributes:
        name: Lane identifier (for logging and RetrievalResult.lanes)
        enabled: Whether this lane is active (can be toggled at runtime)
    """

    name: str = "BaseLane"
    enabled: bool = True

    @abstractmethod
    def retrieve(
        self,
        query: str,
        top_k: int,
        chunk_filter: ChunkFilter = NO_FILTER,
        **kwargs,
    ) -> LaneResult:
        """
        Rank candidates for a query.

        Args:
            query: The search query string
            top_k: Number of results the caller will finally keep; lanes
                   size their candidate lists as multiples of it
            chunk_filter: Restriction applied to the candidates

        Returns:
            LaneResult with ranked candidates. Lanes never raise for "no
            results" or "collaborator unavailable".
        """
        pass

    def get_config(self) -> dict[str, Any]:
        """Return lane configuration for logging."""
        return {
            "name": self.name,
            "enabled": self.enabled,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, enabled={self.enabled})"

"""
Fusion Merger for multi-lane retrieval.

Merges lane rankings with Reciprocal Rank Fusion (RRF). Lane scores live on
incomparable scales (normalized BM25 vs cosine similarity), so only the
ranks are used:

    score(chunk) = sum over lanes of 1 / (K + rank + 1),   K = 60, rank from 0

A chunk ranked by both lanes collects both contributions, which is how
lexical/semantic agreement outranks a single-lane match. Heuristic bonuses
are then added, scaled by HEURISTIC_SCALE, to chunks already in the fused
set. Ties are broken by chunk id so the same corpus and query always
produce the same ordering.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from evidence_retrieval.config import DEBUG_MODE, HEURISTIC_SCALE, RRF_K
from evidence_retrieval.logging_config import debug_log
from evidence_retrieval.models import Chunk, RetrievalResult
from evidence_retrieval.retrieval.base import LaneResult


@dataclass
class FusedRanking:
    """
    Result of fusing lane rankings.

    Attributes:
        results: RetrievalResults sorted by fused score, truncated to top_k
        total_lanes: Number of lanes that contributed candidates
        processing_time_ms: Time spent merging
        query: The original query string
        metadata: Merge-level statistics
    """

    results: list[RetrievalResult]
    total_lanes: int
    processing_time_ms: float = 0.0
    query: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.results)


def rrf_contribution(rank: int, k: int = RRF_K) -> float:
    """RRF contribution of a zero-based rank."""
    return 1.0 / (k + rank + 1)


class FusionMerger:
    """
    Reciprocal Rank Fusion plus scaled heuristic bonuses.

    Example:
        merger = FusionMerger()
        fused = merger.merge([lexical, semantic], bonuses, top_k=10)
    """

    def __init__(self, rrf_k: int = RRF_K, heuristic_scale: float = HEURISTIC_SCALE):
        """
        Initialize merger.

        Args:
            rrf_k: RRF damping constant; larger values flatten rank differences
            heuristic_scale: Multiplier applied to heuristic bonuses
        """
        self.rrf_k = rrf_k
        self.heuristic_scale = heuristic_scale

    def merge(
        self,
        lane_results: list[LaneResult],
        heuristic_bonuses: Mapping[str, float] | None = None,
        top_k: int | None = None,
    ) -> FusedRanking:
        """
        Fuse lane rankings.

        Args:
            lane_results: Ranked lists, one per lane
            heuristic_bonuses: Unscaled bonus per chunk id
            top_k: Maximum number of results (None = return all)

        Returns:
            FusedRanking with results ordered by score desc, then chunk id
        """
        start_time = time.perf_counter()

        scores: dict[str, float] = {}
        chunks: dict[str, Chunk] = {}
        lanes: dict[str, list[str]] = {}

        for lane_result in lane_results:
            for rank, candidate in enumerate(lane_result.candidates):
                chunk_id = candidate.chunk.id
                scores[chunk_id] = scores.get(chunk_id, 0.0) + rrf_contribution(rank, self.rrf_k)
                chunks.setdefault(chunk_id, candidate.chunk)
                contributed = lanes.setdefault(chunk_id, [])
                if lane_result.lane not in contributed:
                    contributed.append(lane_result.lane)

        boosted = 0
        for chunk_id, bonus in (heuristic_bonuses or {}).items():
            if bonus and chunk_id in scores:
                scores[chunk_id] += bonus * self.heuristic_scale
                boosted += 1

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        if top_k is not None:
            ranked = ranked[:top_k]

        results = [
            RetrievalResult.from_chunk(chunks[chunk_id], score, lanes=tuple(lanes[chunk_id]))
            for chunk_id, score in ranked
        ]

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if DEBUG_MODE:
            debug_log(
                f"[Fusion] {len(scores)} unique chunks from {len(lane_results)} lanes, "
                f"{boosted} boosted, {len(results)} returned in {elapsed_ms:.1f}ms"
            )

        query = lane_results[0].query if lane_results else ""

        return FusedRanking(
            results=results,
            total_lanes=sum(1 for lane_result in lane_results if lane_result.candidates),
            processing_time_ms=elapsed_ms,
            query=query,
            metadata={
                "rrf_k": self.rrf_k,
                "heuristic_scale": self.heuristic_scale,
                "total_unique_chunks": len(scores),
                "boosted_chunks": boosted,
                "chunks_returned": len(results),
            },
        )

"""
Lexical Lane.

Issues the query against the evidence store's full-text index and
normalizes the raw relevance scores into [0, 1] by dividing by the best
score in the batch. Normalized scores have comparable shape across queries,
not comparable magnitude.

Failure policy:
- A malformed query (IndexQueryError) is retried once as a simplified
  keyword-only query
- If that also fails, the lane returns no candidates; this is never fatal
"""

import time
from typing import Any

from evidence_retrieval.config import DEBUG_MODE, LEXICAL_CANDIDATE_MULTIPLIER
from evidence_retrieval.logging_config import debug_log, warning
from evidence_retrieval.models import Chunk
from evidence_retrieval.retrieval.base import (
    NO_FILTER,
    BaseRetrievalLane,
    ChunkFilter,
    LaneCandidate,
    LaneResult,
)
from evidence_retrieval.store import EvidenceStore, IndexQueryError, simplify_query


def normalize_scores(hits: list[tuple[Chunk, float]]) -> list[tuple[Chunk, float, float]]:
    """
    Divide every raw score by the batch maximum.

    The divisor is 1 when the batch is empty or its maximum is <= 0.

    Returns:
        (chunk, normalized_score, raw_score) triples in input order
    """
    max_score = max((score for _, score in hits), default=1.0)
    if max_score <= 0:
        max_score = 1.0
    return [(chunk, score / max_score, score) for chunk, score in hits]


class LexicalLane(BaseRetrievalLane):
    """
    Keyword lane over the evidence store's text index.

    Example:
        lane = LexicalLane(store)
        result = lane.retrieve("quick fox", top_k=10)
        seeds = result.seeds        # unfiltered hits, for sibling expansion
    """

    name: str = "lexical"

    def __init__(self, store: EvidenceStore, candidate_multiplier: int = LEXICAL_CANDIDATE_MULTIPLIER):
        self.store = store
        self.candidate_multiplier = candidate_multiplier

    def _search(self, query: str, limit: int) -> tuple[list[tuple[Chunk, float]], str]:
        """Run the store search, falling back to a simplified query on syntax errors."""
        try:
            return self.store.lexical_search(query, limit), "original"
        except IndexQueryError as e:
            debug_log(f"[Lexical] Malformed query '{query[:50]}' ({e}); retrying as keywords")

        simplified = simplify_query(query)
        if not simplified:
            return [], "empty"

        try:
            return self.store.lexical_search(simplified, limit), "simplified"
        except IndexQueryError as e:
            warning(f"[Lexical] Simplified query also failed ({e}); lexical lane is empty")
            return [], "failed"

    def retrieve(
        self,
        query: str,
        top_k: int,
        chunk_filter: ChunkFilter = NO_FILTER,
        **kwargs,
    ) -> LaneResult:
        """
        Retrieve up to ``top_k * 4`` lexical hits, normalized and filtered.

        Args:
            query: The search query string
            top_k: Final result count requested by the caller
            chunk_filter: Applied after normalization

        Returns:
            LaneResult whose ``seeds`` hold every hit before filtering
        """
        start_time = time.perf_counter()

        limit = top_k * self.candidate_multiplier
        hits, query_form = self._search(query, limit)

        candidates = [
            LaneCandidate(chunk=chunk, score=score, raw_score=raw, lane=self.name)
            for chunk, score, raw in normalize_scores(hits)
            if chunk_filter.matches(chunk)
        ]

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if DEBUG_MODE:
            debug_log(
                f"[Lexical] {len(hits)} hits ({query_form} query), "
                f"{len(candidates)} after filter in {elapsed_ms:.1f}ms"
            )
            for i, candidate in enumerate(candidates[:3]):
                debug_log(f"  [{i + 1}] raw={candidate.raw_score:.2f} -> {candidate.score:.3f} | {candidate.chunk.id}")

        return LaneResult(
            candidates=candidates,
            lane=self.name,
            seeds=[chunk for chunk, _ in hits],
            processing_time_ms=elapsed_ms,
            query=query,
            metadata={
                "limit": limit,
                "query_form": query_form,
                "hits_before_filter": len(hits),
            },
        )

    def get_config(self) -> dict[str, Any]:
        config = super().get_config()
        config.update({
            "store": self.store.name,
            "candidate_multiplier": self.candidate_multiplier,
        })
        return config

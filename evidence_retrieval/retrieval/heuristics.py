"""
Heuristic Booster.

Computes an additive bonus per candidate chunk. The bonus is not a
replacement score: the fusion merger scales it down and adds it after the
lane ranks have been fused, so it mostly decides between near-ties.

Bonuses (summed, not capped):
- Exact phrase (+0.5): the whole query, case-insensitive, appears in the text
- Term density (+0.3 x fraction): share of query terms longer than three
  characters that appear in the text
- Lead chunk (+0.15): first chunk of its source, where titles and headers
  usually live
"""

from collections.abc import Iterable
from dataclasses import dataclass

from evidence_retrieval.config import (
    EXACT_PHRASE_BONUS,
    LEAD_CHUNK_BONUS,
    MIN_DENSITY_TERM_LENGTH,
    TERM_DENSITY_WEIGHT,
)
from evidence_retrieval.models import Chunk


@dataclass(frozen=True)
class HeuristicBreakdown:
    """Per-chunk bonus components, for debugging rankings."""

    exact_phrase: float = 0.0
    term_density: float = 0.0
    lead_chunk: float = 0.0

    @property
    def total(self) -> float:
        return self.exact_phrase + self.term_density + self.lead_chunk


class HeuristicBooster:
    """
    Scores candidates with query-independent and query-dependent nudges.

    Example:
        booster = HeuristicBooster()
        bonuses = booster.compute("quick fox", candidates)
        # {"c1": 0.45}
    """

    def __init__(
        self,
        exact_phrase_bonus: float = EXACT_PHRASE_BONUS,
        term_density_weight: float = TERM_DENSITY_WEIGHT,
        lead_chunk_bonus: float = LEAD_CHUNK_BONUS,
        min_term_length: int = MIN_DENSITY_TERM_LENGTH,
    ):
        self.exact_phrase_bonus = exact_phrase_bonus
        self.term_density_weight = term_density_weight
        self.lead_chunk_bonus = lead_chunk_bonus
        self.min_term_length = min_term_length

    def query_terms(self, query: str) -> frozenset[str]:
        """Lowercased whitespace-separated terms longer than min_term_length."""
        return frozenset(
            term for term in query.lower().split()
            if len(term) > self.min_term_length
        )

    def explain(self, query: str, chunk: Chunk, terms: frozenset[str] | None = None) -> HeuristicBreakdown:
        """
        Compute the bonus components for one chunk.

        Args:
            query: The search query string
            chunk: Candidate chunk
            terms: Pre-computed query_terms(query), to avoid recomputation

        Returns:
            HeuristicBreakdown
        """
        if terms is None:
            terms = self.query_terms(query)

        query_lower = query.lower()
        text_lower = chunk.text.lower()

        exact = self.exact_phrase_bonus if query_lower.strip() and query_lower in text_lower else 0.0

        density = 0.0
        if terms:
            hits = sum(1 for term in terms if term in text_lower)
            density = self.term_density_weight * (hits / len(terms))

        lead = self.lead_chunk_bonus if chunk.chunk_index == 0 else 0.0

        return HeuristicBreakdown(exact_phrase=exact, term_density=density, lead_chunk=lead)

    def compute(self, query: str, chunks: Iterable[Chunk]) -> dict[str, float]:
        """
        Bonus per chunk id for the union of lane candidates.

        Chunks are deduplicated by id; chunks with a zero bonus are omitted.
        """
        terms = self.query_terms(query)
        bonuses: dict[str, float] = {}
        for chunk in chunks:
            if chunk.id in bonuses:
                continue
            total = self.explain(query, chunk, terms).total
            if total > 0:
                bonuses[chunk.id] = total
        return bonuses

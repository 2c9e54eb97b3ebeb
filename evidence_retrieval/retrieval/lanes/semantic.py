"""
Semantic Lane.

Embeds the query and ranks candidate chunks by cosine similarity.

The lane deliberately avoids scoring the whole corpus. Candidates are built
in three steps:

1. Seeds: the lexical lane's hits (before source-type filtering)
2. Sibling expansion: every chunk sharing a source_id with a seed, which
   recovers context the keyword match missed
3. Small-corpus fallback: if fewer than top_k * 2 candidates remain, score
   every chunk matching the filter instead; exhaustiveness is only paid
   for when the corpus is small enough that it is cheap

Chunks without an embedding never enter this lane. If the query cannot be
embedded the lane is skipped and retrieval degrades to lexical + heuristics.
"""

import time
from collections.abc import Iterable
from typing import Any

import numpy as np

from evidence_retrieval.config import (
    DEBUG_MODE,
    SEMANTIC_FALLBACK_MULTIPLIER,
    SEMANTIC_KEEP_MULTIPLIER,
)
from evidence_retrieval.embeddings import EmbeddingProvider, cosine_similarity
from evidence_retrieval.logging_config import debug_log, warning
from evidence_retrieval.models import Chunk
from evidence_retrieval.retrieval.base import (
    NO_FILTER,
    BaseRetrievalLane,
    ChunkFilter,
    LaneCandidate,
    LaneResult,
)
from evidence_retrieval.store import EvidenceStore


class SemanticLane(BaseRetrievalLane):
    """
    Embedding lane with bounded candidate expansion.

    Example:
        lane = SemanticLane(store, provider)
        vector = lane.embed_query("quick fox")
        result = lane.rank(vector, seeds=lexical.seeds, top_k=10)
    """

    name: str = "semantic"

    def __init__(
        self,
        store: EvidenceStore,
        provider: EmbeddingProvider,
        fallback_multiplier: int = SEMANTIC_FALLBACK_MULTIPLIER,
        keep_multiplier: int = SEMANTIC_KEEP_MULTIPLIER,
    ):
        self.store = store
        self.provider = provider
        self.fallback_multiplier = fallback_multiplier
        self.keep_multiplier = keep_multiplier

    def embed_query(self, query: str) -> np.ndarray | None:
        """
        Embed the query; None if it is blank or the provider is unavailable.

        Provider exceptions are logged and treated as unavailability.
        """
        if not query or not query.strip():
            return None
        try:
            return self.provider.embed(query)
        except Exception as e:
            warning(f"[Semantic] {self.provider.name} raised while embedding query: {e}")
            return None

    def build_candidates(
        self,
        seeds: Iterable[Chunk],
        top_k: int,
        chunk_filter: ChunkFilter = NO_FILTER,
    ) -> tuple[list[Chunk], str]:
        """
        Seed, expand by source, and fall back to the full corpus if small.

        Returns:
            (candidates, strategy) where strategy is "expanded" or "exhaustive"
        """
        candidates: dict[str, Chunk] = {}
        for chunk in seeds:
            candidates.setdefault(chunk.id, chunk)

        source_ids = list(dict.fromkeys(chunk.source_id for chunk in candidates.values()))
        if source_ids:
            for sibling in self.store.chunks_by_source_ids(source_ids):
                candidates.setdefault(sibling.id, sibling)

        if len(candidates) < top_k * self.fallback_multiplier:
            corpus = self.store.all_chunks(chunk_filter.source_types)
            return [chunk for chunk in corpus if chunk_filter.matches(chunk)], "exhaustive"

        return list(candidates.values()), "expanded"

    def rank(
        self,
        query_vector: np.ndarray | None,
        seeds: Iterable[Chunk],
        top_k: int,
        chunk_filter: ChunkFilter = NO_FILTER,
        query: str = "",
    ) -> LaneResult:
        """
        Score candidates against an already-computed query vector.

        Args:
            query_vector: Query embedding, or None to skip the lane
            seeds: Lexical hits before filtering
            top_k: Final result count requested by the caller
            chunk_filter: Restriction applied to the candidates
            query: Original query (for logging)

        Returns:
            LaneResult with the best ``top_k * 3`` candidates
        """
        if query_vector is None:
            if DEBUG_MODE:
                debug_log("[Semantic] No query embedding; lane skipped")
            return LaneResult.skipped(self.name, query=query, reason="query embedding unavailable")

        start_time = time.perf_counter()

        pool, strategy = self.build_candidates(seeds, top_k, chunk_filter)

        scored = [
            (chunk, cosine_similarity(query_vector, chunk.embedding))
            for chunk in pool
            if chunk.has_embedding and chunk_filter.matches(chunk)
        ]
        scored.sort(key=lambda item: (-item[1], item[0].id))
        scored = scored[:top_k * self.keep_multiplier]

        candidates = [
            LaneCandidate(chunk=chunk, score=score, raw_score=score, lane=self.name)
            for chunk, score in scored
        ]

        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if DEBUG_MODE:
            debug_log(
                f"[Semantic] {strategy} pool of {len(pool)} chunks -> "
                f"{len(candidates)} ranked in {elapsed_ms:.1f}ms"
            )
            for i, candidate in enumerate(candidates[:3]):
                debug_log(f"  [{i + 1}] cos={candidate.score:.3f} | {candidate.chunk.id}")

        return LaneResult(
            candidates=candidates,
            lane=self.name,
            processing_time_ms=elapsed_ms,
            query=query,
            metadata={
                "candidate_strategy": strategy,
                "pool_size": len(pool),
                "embedding_provider": self.provider.name,
            },
        )

    def retrieve(
        self,
        query: str,
        top_k: int,
        chunk_filter: ChunkFilter = NO_FILTER,
        seeds: Iterable[Chunk] = (),
        **kwargs,
    ) -> LaneResult:
        """Embed the query and rank candidates seeded by ``seeds``."""
        return self.rank(self.embed_query(query), seeds, top_k, chunk_filter, query=query)

    def get_config(self) -> dict[str, Any]:
        config = super().get_config()
        config.update({
            "store": self.store.name,
            "embedding_provider": self.provider.name,
            "fallback_multiplier": self.fallback_multiplier,
            "keep_multiplier": self.keep_multiplier,
        })
        return config

"""
Hybrid Retriever.

Coordinates the lexical lane, the semantic lane, the heuristic booster and
the fusion merger over one evidence store. This is the entry point for
searching a single corpus.

Flow of one search:
1. Submit the lexical lane and the query embedding concurrently; both are
   independent I/O-bound calls, each awaited with LANE_TIMEOUT_SECONDS
2. Rank the semantic lane from the query vector, seeded with the lexical
   hits (skipped if there is no vector)
3. Compute heuristic bonuses for the union of lane candidates
4. Fuse with RRF, add scaled bonuses, truncate to top_k

Every failure (malformed query, provider down, timeout, store error)
degrades to a smaller but valid ranking. search() never raises for "no
results" or "lane unavailable".
"""

import time
from collections.abc import Collection
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from evidence_retrieval.config import DEBUG_MODE, DEFAULT_TOP_K, LANE_TIMEOUT_SECONDS
from evidence_retrieval.embeddings import EmbeddingProvider
from evidence_retrieval.logging_config import debug_log, warning
from evidence_retrieval.models import RetrievalResult
from evidence_retrieval.parallel import ExecutorStrategy, ThreadPoolStrategy
from evidence_retrieval.retrieval.base import ChunkFilter, LaneResult
from evidence_retrieval.retrieval.fusion import FusedRanking, FusionMerger
from evidence_retrieval.retrieval.heuristics import HeuristicBooster
from evidence_retrieval.retrieval.lanes import LexicalLane, SemanticLane, normalize_scores
from evidence_retrieval.store import EvidenceStore


class HybridRetriever:
    """
    Hybrid retrieval coordinator for one corpus.

    Attributes:
        store: Evidence store snapshot being searched
        lexical: LexicalLane instance
        semantic: SemanticLane instance (None without an embedding provider)
        booster: HeuristicBooster
        merger: FusionMerger

    Example:
        with HybridRetriever(store, provider) as retriever:
            for result in retriever.search("quick fox", top_k=5):
                print(f"[{result.score:.4f}] {result.chunk.text[:80]}")
    """

    def __init__(
        self,
        store: EvidenceStore,
        provider: EmbeddingProvider | None = None,
        strategy: ExecutorStrategy | None = None,
        default_top_k: int = DEFAULT_TOP_K,
        lane_timeout: float | None = LANE_TIMEOUT_SECONDS,
        booster: HeuristicBooster | None = None,
        merger: FusionMerger | None = None,
        enable_lexical: bool = True,
        enable_semantic: bool = True,
    ):
        """
        Initialize hybrid retriever.

        Args:
            store: Evidence store to search
            provider: Embedding provider for the semantic lane (None disables it)
            strategy: Execution strategy for concurrent lanes (default: 2 threads,
                      owned and shut down by close())
            default_top_k: Result count when search() gets no positive top_k
            lane_timeout: Seconds to wait for each lane call (None = no limit)
            booster: Custom heuristic booster
            merger: Custom fusion merger
            enable_lexical: Whether to run the lexical lane
            enable_semantic: Whether to run the semantic lane
        """
        self.store = store
        self.default_top_k = default_top_k if default_top_k > 0 else DEFAULT_TOP_K
        self.lane_timeout = lane_timeout

        self.lexical = LexicalLane(store)
        self.lexical.enabled = enable_lexical

        self.semantic: SemanticLane | None = None
        if provider is not None:
            self.semantic = SemanticLane(store, provider)
            self.semantic.enabled = enable_semantic

        self.booster = booster or HeuristicBooster()
        self.merger = merger or FusionMerger()

        self._owns_strategy = strategy is None
        self._strategy = strategy or ThreadPoolStrategy(max_workers=2)

        if DEBUG_MODE:
            debug_log(f"[HybridRetriever] Initialized over {store!r}: {self.get_lane_status()}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_top_k(self, top_k: int | None) -> int:
        if top_k is None or top_k <= 0:
            return self.default_top_k
        return top_k

    def _await(self, future: Future | None, what: str):
        """Wait for a lane call; None on timeout or error."""
        if future is None:
            return None
        try:
            return future.result(timeout=self.lane_timeout)
        except FutureTimeoutError:
            future.cancel()
            warning(f"[HybridRetriever] {what} timed out after {self.lane_timeout}s; lane treated as failed")
        except Exception as e:
            warning(f"[HybridRetriever] {what} failed: {e}")
        return None

    def _semantic_enabled(self) -> bool:
        return self.semantic is not None and self.semantic.enabled

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        source_types: Collection[str] | None = None,
        top_k: int | None = None,
        source_id: str | None = None,
    ) -> list[RetrievalResult]:
        """
        Fused hybrid search.

        Args:
            query: Free-text query
            source_types: Allowed source types (None = all)
            top_k: Maximum results (None or <= 0 = default_top_k)
            source_id: Restrict to one source document

        Returns:
            At most top_k RetrievalResults, best first (possibly empty)
        """
        return self.search_detailed(query, source_types, top_k, source_id).results

    def search_detailed(
        self,
        query: str,
        source_types: Collection[str] | None = None,
        top_k: int | None = None,
        source_id: str | None = None,
    ) -> FusedRanking:
        """Same as search(), returning the FusedRanking with merge metadata."""
        start_time = time.perf_counter()

        top_k = self._resolve_top_k(top_k)
        chunk_filter = ChunkFilter.build(source_types, source_id)

        if not query or not query.strip():
            return FusedRanking(results=[], total_lanes=0, query=query or "",
                                metadata={"skipped": "empty query"})

        if DEBUG_MODE:
            debug_log(f"[HybridRetriever] Query: '{query[:50]}' top_k={top_k} filter={chunk_filter}")

        # Lane calls that do not depend on each other run together
        lexical_future = None
        if self.lexical.enabled:
            lexical_future = self._strategy.submit(self.lexical.retrieve, query, top_k, chunk_filter)

        vector_future = None
        if self._semantic_enabled():
            vector_future = self._strategy.submit(self.semantic.embed_query, query)

        lexical_result = self._await(lexical_future, "Lexical lane")
        if lexical_result is None:
            lexical_result = LaneResult.skipped(self.lexical.name, query=query, reason="not run")

        query_vector = self._await(vector_future, "Query embedding")

        lane_results = [lexical_result]
        if self._semantic_enabled():
            try:
                semantic_result = self.semantic.rank(
                    query_vector, lexical_result.seeds, top_k, chunk_filter, query=query
                )
            except Exception as e:
                warning(f"[HybridRetriever] Semantic lane failed: {e}")
                semantic_result = LaneResult.skipped(self.semantic.name, query=query, reason=str(e))
            lane_results.append(semantic_result)

        candidates = [
            candidate.chunk
            for lane_result in lane_results
            for candidate in lane_result.candidates
        ]
        bonuses = self.booster.compute(query, candidates)

        fused = self.merger.merge(lane_results, bonuses, top_k=top_k)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        fused.processing_time_ms = elapsed_ms
        fused.metadata["lanes"] = {
            lane_result.lane: {
                "available": lane_result.available,
                "candidates": len(lane_result),
                **lane_result.metadata,
            }
            for lane_result in lane_results
        }

        if DEBUG_MODE:
            debug_log(f"[HybridRetriever] {len(fused)} results in {elapsed_ms:.1f}ms")
            for i, result in enumerate(fused.results[:3]):
                debug_log(f"  [{i + 1}] score={result.score:.4f} | lanes={result.lanes} | {result.chunk.id}")

        return fused

    def keyword_search(self, query: str, top_k: int | None = None) -> list[RetrievalResult]:
        """
        Lexical-only ranking with max-normalized scores.

        No simplified-query retry: any store error yields an empty list.
        """
        top_k = self._resolve_top_k(top_k)
        try:
            hits = self.store.lexical_search(query, top_k)
        except Exception as e:
            debug_log(f"[HybridRetriever] Keyword search failed for '{query[:50]}': {e}")
            return []

        return [
            RetrievalResult.from_chunk(chunk, score, lanes=(self.lexical.name,))
            for chunk, score, _ in normalize_scores(hits)
        ]

    # ------------------------------------------------------------------
    # Status / lifecycle
    # ------------------------------------------------------------------

    def get_lane_status(self) -> dict[str, dict[str, Any]]:
        """Status of all lanes."""
        lanes = [self.lexical] + ([self.semantic] if self.semantic is not None else [])
        return {lane.name: lane.get_config() for lane in lanes}

    def close(self) -> None:
        """Release the execution strategy if this retriever created it."""
        if self._owns_strategy:
            self._strategy.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

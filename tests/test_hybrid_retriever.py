"""
Tests for HybridRetriever coordination.

Tests cover:
- Ranking properties (exact match first, dual-lane reinforcement, top_k bound)
- Graceful degradation when the provider, the index or a lane fails
- Filtering and determinism
"""

import time

import pytest

from evidence_retrieval.config import HEURISTIC_SCALE
from evidence_retrieval.models import Chunk
from evidence_retrieval.parallel import ThreadPoolStrategy
from evidence_retrieval.retrieval import HybridRetriever
from evidence_retrieval.retrieval.fusion import rrf_contribution
from evidence_retrieval.retrieval.heuristics import HeuristicBooster
from evidence_retrieval.store import MemoryEvidenceStore

from conftest import RaisingEmbeddingProvider, TableEmbeddingProvider


class BrokenIndexStore(MemoryEvidenceStore):
    """Snapshot whose full-text index is down."""

    def lexical_search(self, query, limit):
        raise RuntimeError("index offline")


class SlowEmbeddingProvider(TableEmbeddingProvider):
    """Provider that takes longer than the lane timeout."""

    def embed(self, text):
        time.sleep(1.0)
        return super().embed(text)


class TestQuickFoxScenario:
    """A keyword match and a paraphrase of it."""

    def test_keyword_match_first_paraphrase_second(self, fox_store, provider, sequential):
        """The paraphrase is found by the semantic lane alone."""
        retriever = HybridRetriever(fox_store, provider, strategy=sequential)
        results = retriever.search("quick fox")

        assert [r.chunk.id for r in results] == ["c1", "c2"]
        assert results[0].lanes == ("lexical", "semantic")
        assert results[1].lanes == ("semantic",)

    def test_fused_scores(self, fox_store, provider, sequential):
        """Both lanes plus scaled heuristics make up the fused score."""
        results = HybridRetriever(fox_store, provider, strategy=sequential).search("quick fox")

        # c1: rank 0 in both lanes, density 0.3 + lead chunk 0.15
        assert results[0].score == pytest.approx(2 / 61 + 0.45 * HEURISTIC_SCALE)
        # c2: rank 1 in the semantic lane, lead chunk 0.15
        assert results[1].score == pytest.approx(1 / 62 + 0.15 * HEURISTIC_SCALE)

    def test_source_type_filter_excludes_everything(self, fox_store, provider, sequential):
        """A filter matching no chunk gives an empty result."""
        retriever = HybridRetriever(fox_store, provider, strategy=sequential)
        assert retriever.search("quick fox", source_types={"code"}) == []

    def test_exact_phrase_ranks_first(self, corpus_store, provider, sequential):
        """A chunk containing the whole query tops the ranking."""
        results = HybridRetriever(corpus_store, provider, strategy=sequential).search("quick brown fox")
        assert results[0].chunk.id == "c1"

    def test_verbatim_chunk_ranks_first(self, sequential):
        """A chunk whose text is the query beats a lead chunk with the same terms."""
        store = MemoryEvidenceStore([
            Chunk(id="a-lead", source_id="doc", source_type="code",
                  text="the parser mode default is strict unless overridden", chunk_index=0),
            Chunk(id="b-exact", source_id="doc", source_type="code",
                  text="Parser default mode", chunk_index=1),
        ])
        results = HybridRetriever(store, strategy=sequential).search("parser default mode")

        assert [r.chunk.id for r in results] == ["b-exact", "a-lead"]


class TestGracefulDegradation:
    """Failures shrink the ranking but never raise."""

    def _expected_lexical_only(self, store, query, top_k):
        hits = store.lexical_search(query, top_k * 4)
        bonuses = HeuristicBooster().compute(query, [chunk for chunk, _ in hits])
        expected = {
            chunk.id: rrf_contribution(rank) + bonuses.get(chunk.id, 0.0) * HEURISTIC_SCALE
            for rank, (chunk, _) in enumerate(hits)
        }
        return sorted(expected.items(), key=lambda item: (-item[1], item[0]))[:top_k]

    def test_unavailable_provider_equals_lexical_plus_heuristics(self, corpus_store, unavailable_provider, sequential):
        """Without a query vector, the ranking is lexical RRF plus heuristics exactly."""
        retriever = HybridRetriever(corpus_store, unavailable_provider, strategy=sequential)
        results = retriever.search("fox", top_k=10)

        expected = self._expected_lexical_only(corpus_store, "fox", 10)
        assert [r.chunk.id for r in results] == [chunk_id for chunk_id, _ in expected]
        for result, (_, score) in zip(results, expected):
            assert result.score == pytest.approx(score)
            assert result.lanes == ("lexical",)

    def test_no_provider_matches_unavailable_provider(self, corpus_store, unavailable_provider, sequential):
        """A retriever built without a provider ranks like one whose provider is down."""
        without = HybridRetriever(corpus_store, None, strategy=sequential).search("fox")
        down = HybridRetriever(corpus_store, unavailable_provider, strategy=sequential).search("fox")
        assert [(r.chunk.id, r.score) for r in without] == [(r.chunk.id, r.score) for r in down]

    def test_raising_provider(self, corpus_store, sequential):
        """A provider exception only disables the semantic lane."""
        results = HybridRetriever(corpus_store, RaisingEmbeddingProvider(), strategy=sequential).search("fox")
        assert [r.chunk.id for r in results][:1] == ["c1"]
        assert all(r.lanes == ("lexical",) for r in results)

    def test_index_failure_leaves_semantic_lane(self, quick_fox, swift_fox, provider, sequential):
        """If the lexical lane fails, the semantic lane still answers."""
        store = BrokenIndexStore([quick_fox, swift_fox])
        results = HybridRetriever(store, provider, strategy=sequential).search("quick fox")

        assert [r.chunk.id for r in results] == ["c1", "c2"]
        assert all(r.lanes == ("semantic",) for r in results)

    def test_lane_timeout(self, fox_store):
        """A lane slower than the timeout is treated as failed."""
        provider = SlowEmbeddingProvider({"quick fox": [1.0, 0.0, 0.0, 0.0]})
        strategy = ThreadPoolStrategy(max_workers=2)
        try:
            retriever = HybridRetriever(fox_store, provider, strategy=strategy, lane_timeout=0.2)
            fused = retriever.search_detailed("quick fox")
        finally:
            strategy.shutdown(wait=False)

        assert [r.chunk.id for r in fused.results] == ["c1"]
        assert fused.metadata["lanes"]["semantic"]["available"] is False

    def test_malformed_query_still_ranks(self, corpus_store, provider, sequential):
        """Queries the index rejects are retried as keywords."""
        fused = HybridRetriever(corpus_store, provider, strategy=sequential).search_detailed('"quick fox')

        assert len(fused.results) > 0
        assert fused.metadata["lanes"]["lexical"]["query_form"] == "simplified"

    def test_blank_query(self, corpus_store, provider, sequential):
        """Blank queries return nothing without touching the provider."""
        assert HybridRetriever(corpus_store, provider, strategy=sequential).search("   ") == []
        assert provider.calls == []


class TestRankingBounds:
    """Test top_k handling, filtering and determinism."""

    def test_top_k_bound(self, corpus_store, provider, sequential):
        """Never more than top_k results."""
        retriever = HybridRetriever(corpus_store, provider, strategy=sequential)
        assert len(retriever.search("fox", top_k=1)) == 1
        assert len(retriever.search("fox", top_k=2)) == 2

    def test_non_positive_top_k_uses_default(self, corpus_store, provider, sequential):
        """top_k <= 0 falls back to the retriever default."""
        retriever = HybridRetriever(corpus_store, provider, strategy=sequential, default_top_k=2)
        assert len(retriever.search("fox", top_k=0)) == 2
        assert len(retriever.search("fox")) == 2

    def test_empty_corpus(self, provider, sequential):
        """An empty snapshot returns an empty ranking."""
        retriever = HybridRetriever(MemoryEvidenceStore([]), provider, strategy=sequential)
        assert retriever.search("quick fox") == []

    def test_source_id_filter(self, corpus_store, provider, sequential):
        """Results can be restricted to one source document."""
        results = HybridRetriever(corpus_store, provider, strategy=sequential).search("fox", source_id="B")
        assert [r.chunk.id for r in results] == ["c2"]

    def test_source_type_filter(self, corpus_store, provider, sequential):
        """Only chunks of the allowed source types are returned."""
        results = HybridRetriever(corpus_store, provider, strategy=sequential).search(
            "quick", source_types=["document"]
        )
        assert [r.source_type for r in results] == ["document"]

    def test_source_type_as_string(self, corpus_store, provider, sequential):
        """A single type name filters like a one-element set."""
        retriever = HybridRetriever(corpus_store, provider, strategy=sequential)
        as_string = [r.chunk.id for r in retriever.search("quick OR fox", source_types="document")]
        as_set = [r.chunk.id for r in retriever.search("quick OR fox", source_types={"document"})]

        assert as_string == as_set == ["c3"]

    def test_deterministic(self, corpus_store, provider, sequential):
        """The same corpus and query always rank identically."""
        retriever = HybridRetriever(corpus_store, provider, strategy=sequential)
        first = [(r.chunk.id, r.score) for r in retriever.search("quick OR fox")]
        second = [(r.chunk.id, r.score) for r in retriever.search("quick OR fox")]
        assert first == second

    def test_semantic_lane_can_be_disabled(self, corpus_store, provider, sequential):
        """A disabled semantic lane never calls the provider."""
        retriever = HybridRetriever(corpus_store, provider, strategy=sequential, enable_semantic=False)
        results = retriever.search("fox")

        assert provider.calls == []
        assert all(r.lanes == ("lexical",) for r in results)


class TestKeywordSearch:
    """Test the lexical-only entry point."""

    def test_keyword_search(self, corpus_store, sequential):
        """Scores are max-normalized."""
        results = HybridRetriever(corpus_store, strategy=sequential).keyword_search("fox")
        assert results[0].chunk.id == "c1"
        assert results[0].score == 1.0

    def test_keyword_search_does_not_retry(self, corpus_store, sequential):
        """Malformed queries give an empty list."""
        assert HybridRetriever(corpus_store, strategy=sequential).keyword_search("fox?") == []

    def test_lane_status(self, corpus_store, provider, sequential):
        """Lane status lists configured lanes."""
        with HybridRetriever(corpus_store, provider, strategy=sequential) as retriever:
            status = retriever.get_lane_status()
        assert set(status) == {"lexical", "semantic"}
        assert status["semantic"]["embedding_provider"] == "TableEmbeddings"

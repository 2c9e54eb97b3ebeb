"""
Retrieval Package: hybrid lexical + semantic ranking over an evidence corpus.

Architecture:
- BaseRetrievalLane: ABC for all lanes
- LexicalLane: full-text search, max-normalized scores, simplified-query retry
- SemanticLane: cosine similarity over a seeded, sibling-expanded pool
- HeuristicBooster: exact-phrase, term-density and lead-chunk bonuses
- FusionMerger: Reciprocal Rank Fusion plus scaled heuristic bonuses
- HybridRetriever: coordinates the lanes over one evidence store
- CorpusRegistry / RetrievalService: scoped and global search entry points
- report_search: section ranking inside a generated report

Example:
    from evidence_retrieval.retrieval import HybridRetriever

    with HybridRetriever(store, provider) as retriever:
        for result in retriever.search("Who maintains the parser?", top_k=5):
            print(f"{result.chunk.text[:100]}... (score: {result.score:.4f})")
"""

from evidence_retrieval.retrieval.base import (
    NO_FILTER,
    BaseRetrievalLane,
    ChunkFilter,
    LaneCandidate,
    LaneResult,
)
from evidence_retrieval.retrieval.fusion import FusedRanking, FusionMerger, rrf_contribution
from evidence_retrieval.retrieval.heuristics import HeuristicBooster, HeuristicBreakdown
from evidence_retrieval.retrieval.hybrid_retriever import HybridRetriever
from evidence_retrieval.retrieval.lanes import LexicalLane, SemanticLane
from evidence_retrieval.retrieval.registry import GLOBAL_SCOPE, CorpusInfo, CorpusRegistry
from evidence_retrieval.retrieval.report_search import (
    ReportSection,
    search_report_content,
    split_report_into_sections,
)
from evidence_retrieval.retrieval.service import RetrievalService

__all__ = [
    # Base classes
    "BaseRetrievalLane",
    "ChunkFilter",
    "NO_FILTER",
    "LaneCandidate",
    "LaneResult",
    # Lanes
    "LexicalLane",
    "SemanticLane",
    # Scoring
    "HeuristicBooster",
    "HeuristicBreakdown",
    "FusionMerger",
    "FusedRanking",
    "rrf_contribution",
    # Entry points
    "HybridRetriever",
    "CorpusRegistry",
    "CorpusInfo",
    "GLOBAL_SCOPE",
    "RetrievalService",
    # Reports
    "ReportSection",
    "split_report_into_sections",
    "search_report_content",
]

"""
In-memory evidence store with a BM25+ full-text index.

BM25+ vs BM25:
- Standard BM25 has diminishing returns for term frequency (TF saturation)
- BM25+ adds a lower bound (delta) to the TF component, so long chunks that
  do contain a term are not scored below short chunks that barely do

The store is an immutable snapshot: the index is built once in the
constructor and never updated, which makes it safe to share between
concurrent queries without locks.

Reference:
    Lv, Y., & Zhai, C. (2011). "Lower-bounding term frequency normalization"
    CIKM '11.
"""

import bisect
import time
from collections.abc import Collection, Iterable
from typing import Any

from rank_bm25 import BM25Plus

from evidence_retrieval.config import DEBUG_MODE
from evidence_retrieval.logging_config import debug_log
from evidence_retrieval.models import Chunk
from evidence_retrieval.store.base import EvidenceStore
from evidence_retrieval.store.query_syntax import (
    MatchClause,
    MatchQuery,
    parse_match_query,
    tokenize,
)


class MemoryEvidenceStore(EvidenceStore):
    """
    Evidence store over a fixed list of chunks.

    Example:
        store = MemoryEvidenceStore(chunks)
        hits = store.lexical_search('"quick fox" OR vixen', limit=40)
        siblings = store.chunks_by_source_ids(["page-1"])
    """

    name: str = "memory"

    def __init__(self, chunks: Iterable[Chunk], name: str | None = None):
        """
        Build the snapshot and its BM25+ index.

        Args:
            chunks: Chunks to hold
            name: Optional store name for logging

        Raises:
            ValueError: If two chunks share an id
        """
        start_time = time.perf_counter()

        if name:
            self.name = name

        self._chunks: tuple[Chunk, ...] = tuple(chunks)

        seen_ids: set[str] = set()
        for chunk in self._chunks:
            if chunk.id in seen_ids:
                raise ValueError(f"Duplicate chunk id {chunk.id!r}")
            seen_ids.add(chunk.id)

        self._tokens: list[list[str]] = [tokenize(chunk.text) for chunk in self._chunks]
        self._token_sets: list[frozenset[str]] = [frozenset(t) for t in self._tokens]
        self._vocabulary: list[str] = sorted(set().union(*self._token_sets)) if self._chunks else []

        by_source: dict[str, list[Chunk]] = {}
        for chunk in self._chunks:
            by_source.setdefault(chunk.source_id, []).append(chunk)
        self._by_source: dict[str, tuple[Chunk, ...]] = {
            source_id: tuple(sorted(group, key=lambda c: (c.chunk_index, c.id)))
            for source_id, group in by_source.items()
        }

        # BM25Plus divides by the average chunk length, so an index over
        # chunks with no tokens at all is skipped
        self._index: BM25Plus | None = None
        if any(self._tokens):
            self._index = BM25Plus(self._tokens)

        self._domain_views: dict[str, "MemoryEvidenceStore"] = {}

        if DEBUG_MODE:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            debug_log(
                f"[MemoryStore:{self.name}] Indexed {len(self._chunks)} chunks "
                f"({len(self._by_source)} sources, {len(self._vocabulary)} terms) in {elapsed_ms:.1f}ms"
            )

    # ------------------------------------------------------------------
    # Lexical search
    # ------------------------------------------------------------------

    def _expand_prefix(self, prefix: str) -> list[str]:
        """Indexed tokens starting with ``prefix``."""
        start = bisect.bisect_left(self._vocabulary, prefix)
        expansions = []
        for token in self._vocabulary[start:]:
            if not token.startswith(prefix):
                break
            expansions.append(token)
        return expansions

    @staticmethod
    def _contains_phrase(tokens: list[str], phrase: tuple[str, ...]) -> bool:
        width = len(phrase)
        first = phrase[0]
        for i in range(len(tokens) - width + 1):
            if tokens[i] == first and tuple(tokens[i:i + width]) == phrase:
                return True
        return False

    def _clause_matches(self, clause: MatchClause, idx: int, prefix_map: dict[str, frozenset[str]]) -> bool:
        token_set = self._token_sets[idx]
        if any(term in token_set for term in clause.excluded):
            return False
        if not all(term in token_set for term in clause.terms):
            return False
        if not all(prefix_map[prefix] & token_set for prefix in clause.prefixes):
            return False
        return all(self._contains_phrase(self._tokens[idx], phrase) for phrase in clause.phrases)

    def lexical_search(self, query: str, limit: int) -> list[tuple[Chunk, float]]:
        """
        Ranked BM25+ search.

        Raises:
            IndexQueryError: If the query syntax is malformed
        """
        match: MatchQuery = parse_match_query(query)
        if match.is_empty or self._index is None or limit <= 0:
            return []

        prefix_map = {prefix: frozenset(self._expand_prefix(prefix)) for prefix in match.prefixes()}

        scoring_tokens = match.positive_terms()
        for expansions in prefix_map.values():
            scoring_tokens.extend(sorted(expansions))

        raw_scores = self._index.get_scores(scoring_tokens)

        hits = [
            (chunk, float(raw_scores[idx]))
            for idx, chunk in enumerate(self._chunks)
            if any(self._clause_matches(clause, idx, prefix_map) for clause in match.clauses)
        ]
        hits.sort(key=lambda hit: (-hit[1], hit[0].id))

        if DEBUG_MODE:
            debug_log(f"[MemoryStore:{self.name}] '{query[:50]}' -> {len(hits)} hits (limit {limit})")

        return hits[:limit]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def chunks_by_source_ids(self, source_ids: Iterable[str]) -> list[Chunk]:
        """Chunks of the given sources, grouped by source in chunk_index order."""
        chunks: list[Chunk] = []
        for source_id in dict.fromkeys(source_ids):
            chunks.extend(self._by_source.get(source_id, ()))
        return chunks

    def all_chunks(self, source_types: Collection[str] | None = None) -> list[Chunk]:
        """The whole snapshot, optionally restricted to some source types."""
        if source_types is None:
            return list(self._chunks)
        return [chunk for chunk in self._chunks if chunk.source_type in source_types]

    def for_domain(self, domain: str) -> "MemoryEvidenceStore":
        """Snapshot of the chunks tagged with ``domain`` (built once, then reused)."""
        view = self._domain_views.get(domain)
        if view is None:
            view = MemoryEvidenceStore(
                (chunk for chunk in self._chunks if chunk.domain == domain),
                name=f"{self.name}/{domain}",
            )
            self._domain_views[domain] = view
        return view

    def chunk_count(self) -> int:
        return len(self._chunks)

    def get_config(self) -> dict[str, Any]:
        """Return store statistics for logging."""
        return {
            "name": self.name,
            "chunks": len(self._chunks),
            "sources": len(self._by_source),
            "vocabulary": len(self._vocabulary),
            "algorithm_variant": "BM25Plus",
        }

"""
Retrieval Service: the Retrieval API over registered corpora.

search() resolves a corpus scope to its evidence store snapshot and runs
the hybrid pipeline; search_global() does the same over the global store,
optionally narrowed to one domain tag. The fusion algorithm is identical
in both cases; only the backing store changes.
"""

from collections.abc import Collection

from evidence_retrieval.config import get_corpus_config
from evidence_retrieval.embeddings import EmbeddingProvider
from evidence_retrieval.logging_config import debug_log, warning
from evidence_retrieval.models import RetrievalResult
from evidence_retrieval.parallel import ExecutorStrategy, ThreadPoolStrategy
from evidence_retrieval.retrieval.hybrid_retriever import HybridRetriever
from evidence_retrieval.retrieval.registry import GLOBAL_SCOPE, CorpusRegistry
from evidence_retrieval.store import EvidenceStore


class RetrievalService:
    """
    Entry point for searching any registered corpus.

    One execution strategy is shared by every search, so concurrent queries
    reuse the same worker threads.

    Example:
        service = RetrievalService(registry, HashingEmbeddingProvider())
        results = service.search("session-42", "quick fox", {"snapshot"}, top_k=5)
        shared = service.search_global("quick fox", domain="biology")
    """

    def __init__(
        self,
        registry: CorpusRegistry,
        provider: EmbeddingProvider | None = None,
        strategy: ExecutorStrategy | None = None,
    ):
        self.registry = registry
        self.provider = provider
        self._owns_strategy = strategy is None
        # Two lane calls per query, a few queries in flight
        self._strategy = strategy or ThreadPoolStrategy(max_workers=4)

    def _retriever(self, store: EvidenceStore, scope: str) -> HybridRetriever:
        return HybridRetriever(
            store,
            self.provider,
            strategy=self._strategy,
            default_top_k=int(get_corpus_config(scope)["top_k"]),
        )

    def search(
        self,
        scope: str,
        query: str,
        source_types: Collection[str] | None = None,
        top_k: int | None = None,
        source_id: str | None = None,
    ) -> list[RetrievalResult]:
        """
        Hybrid search within one corpus scope.

        Args:
            scope: Registered corpus scope (GLOBAL_SCOPE searches the global store)
            query: Free-text query
            source_types: Allowed source types (None = all)
            top_k: Maximum results (None or <= 0 = corpus default)
            source_id: Restrict to one source document

        Returns:
            Ranked results; empty for an unknown scope
        """
        store = self.registry.get_store(scope)
        if store is None:
            warning(f"[RetrievalService] Unknown corpus scope '{scope}'; returning no results")
            return []

        return self._retriever(store, scope).search(query, source_types, top_k, source_id)

    def search_global(
        self,
        query: str,
        domain: str | None = None,
        source_types: Collection[str] | None = None,
        top_k: int | None = None,
    ) -> list[RetrievalResult]:
        """
        Hybrid search over the cross-session store.

        Args:
            query: Free-text query
            domain: Keep only chunks tagged with this domain (None = all)
            source_types: Allowed source types (None = all)
            top_k: Maximum results (None or <= 0 = global default)

        Returns:
            Ranked results; empty if no global store is set
        """
        store = self.registry.global_store
        if store is None:
            debug_log("[RetrievalService] No global store registered")
            return []

        if domain is not None:
            store = store.for_domain(domain)

        return self._retriever(store, GLOBAL_SCOPE).search(query, source_types, top_k)

    def keyword_search(self, scope: str, query: str, top_k: int | None = None) -> list[RetrievalResult]:
        """Lexical-only search within one corpus scope."""
        store = self.registry.get_store(scope)
        if store is None:
            warning(f"[RetrievalService] Unknown corpus scope '{scope}'; returning no results")
            return []
        return self._retriever(store, scope).keyword_search(query, top_k)

    def close(self) -> None:
        """Release the shared execution strategy if this service created it."""
        if self._owns_strategy:
            self._strategy.shutdown(wait=False, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

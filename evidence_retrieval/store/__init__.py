"""
Evidence stores: read-only corpus snapshots queried by the retrieval lanes.

Architecture:
- EvidenceStore: ABC (lexical search, lookup by source id, full listing)
- IndexQueryError: raised on malformed lexical query syntax
- MemoryEvidenceStore: in-memory snapshot with a BM25+ index
- parse_match_query / simplify_query: the lexical query syntax

Example:
    from evidence_retrieval.store import MemoryEvidenceStore

    store = MemoryEvidenceStore(chunks)
    hits = store.lexical_search("quick fox", limit=40)
"""

from evidence_retrieval.store.base import EvidenceStore, IndexQueryError
from evidence_retrieval.store.memory_store import MemoryEvidenceStore
from evidence_retrieval.store.query_syntax import (
    MatchClause,
    MatchQuery,
    parse_match_query,
    simplify_query,
    tokenize,
)

__all__ = [
    "EvidenceStore",
    "IndexQueryError",
    "MemoryEvidenceStore",
    "MatchClause",
    "MatchQuery",
    "parse_match_query",
    "simplify_query",
    "tokenize",
]

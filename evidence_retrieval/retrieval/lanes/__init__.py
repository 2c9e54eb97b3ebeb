"""
Retrieval lanes.

- LexicalLane: full-text search with max-normalized scores
- SemanticLane: cosine similarity over a seeded, sibling-expanded pool
"""

from evidence_retrieval.retrieval.lanes.lexical import LexicalLane, normalize_scores
from evidence_retrieval.retrieval.lanes.semantic import SemanticLane

__all__ = [
    "LexicalLane",
    "SemanticLane",
    "normalize_scores",
]

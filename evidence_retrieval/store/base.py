"""
Base class for evidence stores.

An evidence store is a read-only snapshot of a corpus of chunks. The
retrieval engine uses it for three things:

- a ranked lexical (full-text) search,
- a lookup of chunks by source id (sibling expansion),
- an exhaustive listing (semantic fallback on small corpora).

Stores never change while a query runs, so concurrent queries need no
locking.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable

from evidence_retrieval.models import Chunk


class IndexQueryError(Exception):
    """
    Raised by an evidence store when a lexical query is malformed.

    Attributes:
        query: The query text that failed to parse
    """

    def __init__(self, message: str, query: str = ""):
        super().__init__(message)
        self.query = query


class EvidenceStore(ABC):
    """
    Abstract read-only corpus snapshot.

    Class Attributes:
        name: Human-readable store name (for logging)
    """

    name: str = "BaseEvidenceStore"

    @abstractmethod
    def lexical_search(self, query: str, limit: int) -> list[tuple[Chunk, float]]:
        """
        Run a ranked full-text search.

        Args:
            query: Match query text
            limit: Maximum number of hits

        Returns:
            (chunk, raw_score) pairs, best first; higher raw scores are better

        Raises:
            IndexQueryError: If the query syntax is malformed
        """
        pass

    @abstractmethod
    def chunks_by_source_ids(self, source_ids: Iterable[str]) -> list[Chunk]:
        """
        Get every chunk whose source_id is in ``source_ids``.

        Args:
            source_ids: Source identifiers (duplicates are ignored)

        Returns:
            Matching chunks, grouped by source in chunk_index order
        """
        pass

    @abstractmethod
    def all_chunks(self, source_types: Collection[str] | None = None) -> list[Chunk]:
        """
        List the corpus, optionally restricted to some source types.

        Args:
            source_types: Allowed source types, or None for all

        Returns:
            Matching chunks
        """
        pass

    @abstractmethod
    def for_domain(self, domain: str) -> "EvidenceStore":
        """
        Get a snapshot restricted to chunks tagged with ``domain``.

        Args:
            domain: Domain tag to keep

        Returns:
            Evidence store over the matching chunks only
        """
        pass

    def chunk_count(self) -> int:
        """Number of chunks in the snapshot."""
        return len(self.all_chunks())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

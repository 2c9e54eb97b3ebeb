"""
Search inside a generated report.

Reports are markdown documents, not corpus chunks, so they are searched on
the fly: the report is split on ``## `` headings and the sections are ranked
by embedding similarity to the query. When the query cannot be embedded the
sections are ranked by the share of query terms they contain instead.
"""

from dataclasses import dataclass

from evidence_retrieval.config import MIN_DENSITY_TERM_LENGTH
from evidence_retrieval.embeddings import EmbeddingProvider, cosine_similarity
from evidence_retrieval.logging_config import debug_log
from evidence_retrieval.models import Chunk, RetrievalResult

REPORT_SOURCE_TYPE = "report"
DEFAULT_SECTION_HEADING = "Introduction"
MIN_SECTION_CHARS = 20
DEFAULT_REPORT_TOP_K = 5


@dataclass(frozen=True)
class ReportSection:
    """A heading and the text under it."""

    heading: str
    text: str


def split_report_into_sections(markdown: str) -> list[ReportSection]:
    """
    Split markdown into sections at level-2 headings.

    Text before the first heading belongs to an "Introduction" section.
    Sections with 20 characters or less of text are dropped.

    Args:
        markdown: Report content

    Returns:
        Sections in document order
    """
    sections: list[ReportSection] = []
    heading = DEFAULT_SECTION_HEADING
    lines: list[str] = []

    def flush():
        text = "\n".join(lines).strip()
        if len(text) > MIN_SECTION_CHARS:
            sections.append(ReportSection(heading=heading, text=text))

    for line in markdown.split("\n"):
        stripped = line.lstrip()
        if stripped.startswith("## "):
            flush()
            heading = stripped[3:].strip()
            lines = []
        else:
            lines.append(line)

    flush()
    return sections


def _section_result(section: ReportSection, score: float) -> RetrievalResult:
    chunk = Chunk(
        id=section.heading or DEFAULT_SECTION_HEADING,
        source_id="",
        source_type=REPORT_SOURCE_TYPE,
        text=section.text,
        end_offset=len(section.text),
    )
    return RetrievalResult.from_chunk(chunk, score)


def search_report_content(
    report: str,
    query: str,
    provider: EmbeddingProvider | None,
    top_k: int | None = DEFAULT_REPORT_TOP_K,
) -> list[RetrievalResult]:
    """
    Rank the sections of a report against a query.

    Args:
        report: Markdown report content
        query: Free-text query
        provider: Embedding provider for query and sections (None = keywords only)
        top_k: Maximum sections to return (None or <= 0 = DEFAULT_REPORT_TOP_K)

    Returns:
        Synthetic RetrievalResults (source_type "report", chunk id = heading)
    """
    if not report or not report.strip() or not query or not query.strip():
        return []
    if top_k is None or top_k <= 0:
        top_k = DEFAULT_REPORT_TOP_K

    sections = split_report_into_sections(report)
    if not sections:
        return []

    query_vector = None
    if provider is not None:
        try:
            query_vector = provider.embed(query)
        except Exception as e:
            debug_log(f"[ReportSearch] Query embedding failed: {e}")

    if query_vector is None:
        debug_log("[ReportSearch] Query embedding unavailable; ranking sections by keyword overlap")
        terms = {t for t in query.lower().split() if len(t) > MIN_DENSITY_TERM_LENGTH}
        scored = []
        for section in sections:
            lower = section.text.lower()
            hits = sum(1 for term in terms if term in lower)
            scored.append((section, hits / len(terms) if terms else 0.0))
    else:
        section_vectors = provider.embed_many([section.text for section in sections])
        scored = [
            (section, cosine_similarity(query_vector, vector))
            for section, vector in zip(sections, section_vectors)
            if vector is not None
        ]

    # Stable sort keeps document order among equal scores
    scored.sort(key=lambda item: -item[1])
    return [_section_result(section, score) for section, score in scored[:top_k]]

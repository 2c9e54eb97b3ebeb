"""
Match-query syntax for the lexical index.

A query is a sequence of clauses separated by ``OR``; items inside a clause
are implicitly ANDed. Items are:

- bare terms:     ``parser``      (word characters, inner hyphens allowed)
- prefix terms:   ``pars*``       (any indexed token starting with ``pars``)
- phrases:        ``"quick fox"`` (tokens must appear contiguously)
- exclusions:     ``-legacy``     (clause fails if the term is present)

Anything else (stray punctuation, unbalanced quotes, empty phrases, a
dangling ``OR``, a clause made only of exclusions) is rejected with
IndexQueryError. Natural-language questions therefore often fail to parse;
``simplify_query`` turns them into a keyword-only ``OR`` query that always
parses.
"""

import re
from dataclasses import dataclass

from evidence_retrieval.store.base import IndexQueryError

_BAREWORD = re.compile(r"^\w+(?:-\w+)*$")
_QUERY_TOKEN = re.compile(r'"[^"]*"|[^\s"]+')
_KEYWORD = re.compile(r"\w+")

OR_OPERATOR = "OR"


def tokenize(text: str) -> list[str]:
    """
    Tokenizer shared by indexing and query parsing.

    Lowercases, replaces punctuation other than hyphens with spaces and
    splits on whitespace, so hyphenated terms such as ``e-mail`` survive.

    Args:
        text: Input text to tokenize

    Returns:
        List of tokens
    """
    text = text.lower()
    text = re.sub(r"[^\w\s\-]", " ", text)
    return [token for token in text.split() if token]


@dataclass(frozen=True)
class MatchClause:
    """One AND-group of a match query."""

    terms: tuple[str, ...] = ()
    phrases: tuple[tuple[str, ...], ...] = ()
    prefixes: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchQuery:
    """A parsed match query: the OR of its clauses."""

    clauses: tuple[MatchClause, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.clauses

    def positive_terms(self) -> list[str]:
        """Bare terms and phrase tokens across all clauses, deduplicated in order."""
        seen: dict[str, None] = {}
        for clause in self.clauses:
            for term in clause.terms:
                seen.setdefault(term)
            for phrase in clause.phrases:
                for token in phrase:
                    seen.setdefault(token)
        return list(seen)

    def prefixes(self) -> list[str]:
        """Prefix stems across all clauses, deduplicated in order."""
        seen: dict[str, None] = {}
        for clause in self.clauses:
            for prefix in clause.prefixes:
                seen.setdefault(prefix)
        return list(seen)


def _bareword(word: str, query: str) -> str:
    if not _BAREWORD.match(word):
        raise IndexQueryError(f"syntax error near {word!r}", query=query)
    return word.lower()


def _close_clause(items: dict[str, list], query: str) -> MatchClause:
    if not (items["terms"] or items["phrases"] or items["prefixes"]):
        if items["excluded"]:
            raise IndexQueryError("exclusion needs at least one positive term", query=query)
        raise IndexQueryError(f"{OR_OPERATOR} needs a term on both sides", query=query)
    return MatchClause(
        terms=tuple(items["terms"]),
        phrases=tuple(items["phrases"]),
        prefixes=tuple(items["prefixes"]),
        excluded=tuple(items["excluded"]),
    )


def parse_match_query(query: str) -> MatchQuery:
    """
    Parse a match query.

    Args:
        query: Raw query text

    Returns:
        Parsed query; empty for blank input

    Raises:
        IndexQueryError: If the query is malformed
    """
    if not query or not query.strip():
        return MatchQuery()

    if query.count('"') % 2:
        raise IndexQueryError("unterminated phrase (unbalanced double quote)", query=query)

    clauses: list[MatchClause] = []
    items: dict[str, list] = {"terms": [], "phrases": [], "prefixes": [], "excluded": []}

    for token in _QUERY_TOKEN.findall(query):
        if token == OR_OPERATOR:
            clauses.append(_close_clause(items, query))
            items = {"terms": [], "phrases": [], "prefixes": [], "excluded": []}
        elif token.startswith('"'):
            words = tokenize(token[1:-1])
            if not words:
                raise IndexQueryError("empty phrase", query=query)
            items["phrases"].append(tuple(words))
        elif token.startswith("-"):
            items["excluded"].append(_bareword(token[1:], query))
        elif token.endswith("*"):
            items["prefixes"].append(_bareword(token[:-1], query))
        else:
            items["terms"].append(_bareword(token, query))

    clauses.append(_close_clause(items, query))
    return MatchQuery(clauses=tuple(clauses))


def simplify_query(query: str) -> str:
    """
    Reduce free text to a keyword-only query that always parses.

    Keeps word characters only, drops duplicates, and joins the keywords
    with OR so any one of them can match.

    Example:
        >>> simplify_query("What's the C# parser's (default) mode?")
        'what OR s OR the OR c OR parser OR default OR mode'
    """
    keywords: dict[str, None] = {}
    for word in _KEYWORD.findall(query.lower()):
        keywords.setdefault(word)
    return f" {OR_OPERATOR} ".join(keywords)

"""Substring search over a loaded documentation index."""

import html
import logging
import re

from docs_search.index import IndexLoader, SearchIndex
from docs_search.models import QueryResponse, QueryStatus, ResultKind, SearchResult

logger = logging.getLogger(__name__)


class SearchEngine:
    """Ranks documents and sections against a free-text query.

    Matching is a case-insensitive literal substring test over titles and
    content, scored by where the match landed.
    """

    MIN_QUERY_LENGTH = 2
    MAX_RESULTS = 15

    DOCUMENT_TITLE_SCORE = 10
    SECTION_TITLE_SCORE = 8
    DOCUMENT_CONTENT_SCORE = 5
    SECTION_CONTENT_SCORE = 3

    EXCERPT_RADIUS = 80
    FALLBACK_EXCERPT_LENGTH = 150
    ELLIPSIS = "..."
    HIGHLIGHT_OPEN = "<mark>"
    HIGHLIGHT_CLOSE = "</mark>"

    def __init__(self, max_results: int | None = None, excerpt_radius: int | None = None) -> None:
        """Initialise engine, optionally overriding the result cap and excerpt window.

        Args:
            max_results: Maximum number of results returned.
            excerpt_radius: Characters kept either side of the first match.
        """
        self.max_results = self.MAX_RESULTS if max_results is None else max_results
        self.excerpt_radius = self.EXCERPT_RADIUS if excerpt_radius is None else excerpt_radius

    def is_searchable(self, query_text: object) -> bool:
        """Return whether the query is text long enough to run."""
        return isinstance(query_text, str) and len(query_text.strip()) >= self.MIN_QUERY_LENGTH

    def search(self, index: SearchIndex, query_text: str | None) -> list[SearchResult]:
        """Search the index for the query.

        Args:
            index: Loaded search index.
            query_text: Raw text typed by the user.

        Returns:
            Results sorted by descending score, encounter order kept on ties.
        """
        if not isinstance(query_text, str) or not self.is_searchable(query_text):
            return []

        needle = query_text.lower()
        results: list[SearchResult] = []

        for doc in index:
            if needle in doc.title.lower():
                score = self.DOCUMENT_TITLE_SCORE
            elif needle in doc.content.lower():
                score = self.DOCUMENT_CONTENT_SCORE
            else:
                score = 0

            if score:
                results.append(
                    SearchResult(
                        title=doc.title,
                        url=doc.url,
                        excerpt=self.extract_excerpt(doc.content, query_text),
                        score=score,
                        kind=ResultKind.DOCUMENT,
                    )
                )

            for section in doc.sections:
                if needle in section.title.lower():
                    score = self.SECTION_TITLE_SCORE
                elif needle in section.content.lower():
                    score = self.SECTION_CONTENT_SCORE
                else:
                    continue

                results.append(
                    SearchResult(
                        title=doc.title,
                        section=section.title,
                        url=f"{doc.url}#{section.id}",
                        excerpt=self.extract_excerpt(section.content, query_text),
                        score=score,
                        kind=ResultKind.SECTION,
                    )
                )

        results.sort(key=lambda result: result.score, reverse=True)
        logger.debug("Query %r matched %d entries", query_text, len(results))
        return results[: self.max_results]

    def extract_excerpt(self, text: str, query_text: str) -> str:
        """Cut a highlighted snippet around the first occurrence of the query.

        Text outside the highlight markers is HTML-escaped, so the excerpt
        can be inserted into a page as is.

        Args:
            text: Text the query matched in.
            query_text: Raw query text.

        Returns:
            Excerpt with every occurrence of the query inside the window highlighted.
        """
        if not text:
            return ""

        match = None
        if isinstance(query_text, str) and query_text:
            match = re.search(re.escape(query_text), text, re.IGNORECASE)
        if match is None:
            return html.escape(text[: self.FALLBACK_EXCERPT_LENGTH]) + self.ELLIPSIS

        start = max(0, match.start() - self.excerpt_radius)
        end = min(len(text), match.end() + self.excerpt_radius)

        excerpt = self.highlight(text[start:end], query_text)
        if start > 0:
            excerpt = self.ELLIPSIS + excerpt
        if end < len(text):
            excerpt = excerpt + self.ELLIPSIS
        return excerpt

    def highlight(self, text: str, query_text: str) -> str:
        """Wrap every case-insensitive occurrence of the query in highlight markers.

        The query is matched literally, never as a pattern.
        """
        pattern = re.compile(re.escape(query_text), re.IGNORECASE)
        parts = []
        cursor = 0
        for match in pattern.finditer(text):
            parts.append(html.escape(text[cursor : match.start()]))
            parts.append(f"{self.HIGHLIGHT_OPEN}{html.escape(match.group())}{self.HIGHLIGHT_CLOSE}")
            cursor = match.end()
        parts.append(html.escape(text[cursor:]))
        return "".join(parts)


_default_engine = SearchEngine()


def query(
    index: SearchIndex | IndexLoader | None,
    query_text: str | None,
    engine: SearchEngine | None = None,
) -> QueryResponse:
    """Run a query and report the state the results panel should show.

    Args:
        index: Loaded index, a loader that may still be loading, or None.
        query_text: Raw text typed by the user.
        engine: Engine to rank with; the default engine when omitted.

    Returns:
        QueryResponse. Never raises for malformed input.
    """
    engine = engine or _default_engine

    if not engine.is_searchable(query_text):
        return QueryResponse(status=QueryStatus.NO_QUERY)

    if isinstance(index, IndexLoader):
        index = index.index if index.ready else None
    if index is None:
        return QueryResponse(status=QueryStatus.NOT_READY)

    results = engine.search(index, query_text)
    status = QueryStatus.RESULTS if results else QueryStatus.NO_RESULTS
    return QueryResponse(status=status, results=results)

"""HTML rendering of query responses for the search results panel."""

from html import escape

from docs_search.models import QueryResponse, QueryStatus, ResultKind, SearchResult

LOADING_HTML = '<div class="search-loading">Loading search index...</div>'
BREADCRUMB_SEPARATOR = " › "


def render_result(result: SearchResult, path_prefix: str = "") -> str:
    """Render a single result as a clickable entry.

    Args:
        result: Search result to render.
        path_prefix: Site base path prepended to the result URL.

    Returns:
        HTML for one result entry.
    """
    breadcrumb = ""
    badge = ""
    title = escape(result.title)
    if result.kind is ResultKind.SECTION:
        section = escape(result.section or "")
        breadcrumb = f'<div class="search-result-breadcrumb">{title}{BREADCRUMB_SEPARATOR}{section}</div>'
        badge = f'<span class="search-result-section">→ {section}</span>'
        title = ""

    excerpt = f'<div class="search-result-excerpt">{result.excerpt}</div>' if result.excerpt else ""
    href = escape(f"{path_prefix}{result.url}", quote=True)

    return (
        f'<a href="{href}" class="search-result-item">'
        f"{breadcrumb}"
        f'<div class="search-result-header"><div class="search-result-title">{title}{badge}</div></div>'
        f"{excerpt}"
        "</a>"
    )


def render_results(response: QueryResponse, query_text: str, path_prefix: str = "") -> str:
    """Render a query response for the results panel.

    An empty string means the panel should be hidden.

    Args:
        response: Response returned by ``query``.
        query_text: Raw text typed by the user, echoed in the no-results message.
        path_prefix: Site base path prepended to result URLs.

    Returns:
        HTML fragment for the results panel.
    """
    if response.status is QueryStatus.NO_QUERY:
        return ""
    if response.status is QueryStatus.NOT_READY:
        return LOADING_HTML
    if response.status is QueryStatus.NO_RESULTS or not response.results:
        return f'<div class="search-no-results">No results for "{escape(query_text)}"</div>'

    return "".join(render_result(result, path_prefix) for result in response.results)

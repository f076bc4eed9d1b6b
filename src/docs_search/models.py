"""Data models for documentation search."""

from dataclasses import dataclass, field
from enum import Enum


class ResultKind(str, Enum):
    """Kind of match a search result points at."""

    DOCUMENT = "document"
    SECTION = "section"


class QueryStatus(str, Enum):
    """Outcome of a query, as the results panel needs to know it."""

    NOT_READY = "not-ready"
    NO_QUERY = "no-query"
    RESULTS = "results"
    NO_RESULTS = "no-results"


@dataclass
class Section:
    """A headed sub-region of a documentation page."""

    id: str
    title: str
    content: str


@dataclass
class Document:
    """Represents a documentation page."""

    url: str
    title: str
    content: str
    sections: list[Section] = field(default_factory=list)


@dataclass
class SearchResult:
    """Represents a search result."""

    title: str
    url: str
    excerpt: str
    score: int
    kind: ResultKind
    section: str | None = None


@dataclass
class QueryResponse:
    """Results of a query together with the state they were produced in."""

    status: QueryStatus
    results: list[SearchResult] = field(default_factory=list)

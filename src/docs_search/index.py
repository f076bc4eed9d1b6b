"""Search index artifact: validation, (de)serialisation and one-shot loading."""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import requests

from docs_search.models import Document, Section

logger = logging.getLogger(__name__)

INDEX_FILENAME = "search-index.json"


class IndexValidationError(ValueError):
    """Raised when index content breaks its uniqueness or shape rules."""


class IndexState(str, Enum):
    """Lifecycle of the loaded index."""

    NOT_LOADED = "not-loaded"
    LOADING = "loading"
    READY = "ready"


class SearchIndex:
    """Immutable, ordered collection of documents consulted by every query."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        """Initialise index from documents, checking uniqueness rules.

        Args:
            documents: Documents in index order.

        Raises:
            IndexValidationError: If a URL repeats, or a section id repeats
                within one document.
        """
        self._documents = tuple(documents)
        seen_urls: set[str] = set()
        for doc in self._documents:
            if doc.url in seen_urls:
                msg = f"Duplicate document URL in index: {doc.url}"
                raise IndexValidationError(msg)
            seen_urls.add(doc.url)

            seen_ids: set[str] = set()
            for section in doc.sections:
                if section.id in seen_ids:
                    msg = f"Duplicate section id {section.id!r} in {doc.url}"
                    raise IndexValidationError(msg)
                seen_ids.add(section.id)

    @classmethod
    def empty(cls) -> "SearchIndex":
        """Return an index with no documents."""
        return cls()

    @classmethod
    def from_dict(cls, payload: Any) -> "SearchIndex":
        """Build an index from the deserialised artifact.

        Missing titles, content and sections are tolerated. Documents
        without a url and sections without an id are skipped.

        Args:
            payload: Decoded ``{"documents": [...]}`` mapping.

        Returns:
            SearchIndex instance.

        Raises:
            IndexValidationError: If the payload does not have the artifact shape.
        """
        if not isinstance(payload, Mapping):
            msg = "Index payload must be a mapping"
            raise IndexValidationError(msg)

        raw_documents = payload.get("documents") or []
        if not isinstance(raw_documents, list):
            msg = "Index 'documents' must be a list"
            raise IndexValidationError(msg)

        documents = (_document_from_dict(raw) for raw in raw_documents)
        return cls(doc for doc in documents if doc is not None)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the index to the artifact shape.

        Returns:
            Mapping ready for ``json.dumps``.
        """
        return {
            "documents": [
                {
                    "title": doc.title,
                    "url": doc.url,
                    "content": doc.content,
                    "sections": [
                        {"id": section.id, "title": section.title, "content": section.content}
                        for section in doc.sections
                    ],
                }
                for doc in self._documents
            ]
        }

    @property
    def documents(self) -> tuple[Document, ...]:
        """Documents in index order."""
        return self._documents

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        return f"SearchIndex(documents={len(self._documents)})"


def _document_from_dict(raw: Any) -> Document | None:
    if not isinstance(raw, Mapping) or not raw.get("url"):
        logger.warning("Skipping index document without a url: %.80r", raw)
        return None

    sections = []
    for raw_section in raw.get("sections") or []:
        if not isinstance(raw_section, Mapping) or not raw_section.get("id"):
            logger.warning("Skipping section without an id in %s", raw["url"])
            continue
        sections.append(
            Section(
                id=str(raw_section["id"]),
                title=str(raw_section.get("title") or ""),
                content=str(raw_section.get("content") or ""),
            )
        )

    return Document(
        url=str(raw["url"]),
        title=str(raw.get("title") or ""),
        content=str(raw.get("content") or ""),
        sections=sections,
    )


def _is_url(base: str | Path) -> bool:
    return isinstance(base, str) and base.startswith(("http://", "https://"))


def fetch_index_payload(base: str | Path, timeout: float = 30) -> Any:
    """Fetch and decode the index artifact relative to the site base.

    Args:
        base: Site base, either a local output directory or an http(s) URL.
        timeout: Request timeout in seconds for remote bases.

    Returns:
        Decoded JSON payload.

    Raises:
        OSError: If the local artifact cannot be read.
        requests.RequestException: If the remote artifact cannot be fetched.
        ValueError: If the artifact is not valid JSON.
    """
    if _is_url(base):
        url = f"{str(base).rstrip('/')}/{INDEX_FILENAME}"
        logger.debug("Fetching search index from %s", url)
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()

    path = Path(base) / INDEX_FILENAME
    logger.debug("Reading search index from %s", path)
    return json.loads(path.read_text(encoding="utf-8"))


class IndexLoader:
    """Loads the index artifact once and holds it for querying.

    Loading never raises: a failed fetch leaves the loader ready with an
    empty index, so queries simply find nothing.
    """

    def __init__(self, base: str | Path, timeout: float = 30) -> None:
        """Initialise loader for the given site base.

        Args:
            base: Site base, either a local output directory or an http(s) URL.
            timeout: Request timeout in seconds for remote bases.
        """
        self.base = base
        self.timeout = timeout
        self._state = IndexState.NOT_LOADED
        self._index: SearchIndex | None = None

    @property
    def state(self) -> IndexState:
        """Current lifecycle state."""
        return self._state

    @property
    def index(self) -> SearchIndex | None:
        """Loaded index, or None until the loader is ready."""
        return self._index

    @property
    def ready(self) -> bool:
        """Whether queries can run against the loaded index."""
        return self._state is IndexState.READY

    def load(self) -> SearchIndex:
        """Load the index if that has not happened yet.

        Returns:
            The loaded index, empty when loading failed.
        """
        if self._index is not None:
            return self._index

        self._state = IndexState.LOADING
        try:
            index = SearchIndex.from_dict(fetch_index_payload(self.base, self.timeout))
        except (OSError, requests.RequestException, ValueError):
            logger.warning("Failed to load search index from %s", self.base, exc_info=True)
            index = SearchIndex.empty()
        else:
            logger.info("Loaded search index with %d documents", len(index))

        self._index = index
        self._state = IndexState.READY
        return index

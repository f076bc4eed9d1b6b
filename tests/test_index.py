"""Tests for the search index and its loader."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import requests

from docs_search.engine import query
from docs_search.index import (
    INDEX_FILENAME,
    IndexLoader,
    IndexState,
    IndexValidationError,
    SearchIndex,
    fetch_index_payload,
)
from docs_search.models import Document, QueryStatus, Section


@pytest.fixture
def payload() -> dict:
    """Create a decoded index artifact.

    Returns:
        Mapping in the artifact shape.
    """
    return {
        "documents": [
            {
                "title": "Installation",
                "url": "/docs/install/",
                "content": "Install the package with pip.",
                "sections": [
                    {"id": "requirements", "title": "Requirements", "content": "Python 3.10 or newer."},
                ],
            },
            {"title": "Changelog", "url": "/docs/changelog/", "content": "Release notes."},
        ]
    }


@pytest.fixture
def site_dir(tmp_path: Path, payload: dict) -> Path:
    """Create a site output directory holding the artifact.

    Args:
        tmp_path: Pytest temporary directory fixture.
        payload: Index artifact fixture.

    Returns:
        Path to the site directory.
    """
    (tmp_path / INDEX_FILENAME).write_text(json.dumps(payload), encoding="utf-8")
    return tmp_path


def test_from_dict(payload: dict) -> None:
    """Test deserialising the artifact."""
    index = SearchIndex.from_dict(payload)

    assert len(index) == 2
    install, changelog = index.documents
    assert install.sections == [Section(id="requirements", title="Requirements", content="Python 3.10 or newer.")]
    assert changelog.sections == []


def test_from_dict_tolerates_missing_fields() -> None:
    """Test that absent titles, content and sections default to empty."""
    index = SearchIndex.from_dict({"documents": [{"url": "/docs/bare/", "sections": None}]})

    assert index.documents[0] == Document(url="/docs/bare/", title="", content="", sections=[])


def test_from_dict_without_documents() -> None:
    """Test that a payload with no documents gives an empty index."""
    assert len(SearchIndex.from_dict({})) == 0


@pytest.mark.parametrize("bad_payload", [[], {"documents": "nope"}])
def test_from_dict_rejects_malformed_payload(bad_payload: object) -> None:
    """Test that payloads without the artifact shape are rejected."""
    with pytest.raises(IndexValidationError):
        SearchIndex.from_dict(bad_payload)


def test_from_dict_skips_document_without_url(payload: dict) -> None:
    """Test that a document without a url is dropped and the rest kept."""
    payload["documents"].insert(1, {"title": "No URL", "content": "Orphan page."})
    payload["documents"].append("not a document")

    index = SearchIndex.from_dict(payload)

    assert [doc.url for doc in index] == ["/docs/install/", "/docs/changelog/"]


def test_from_dict_skips_section_without_id(payload: dict) -> None:
    """Test that a section without an id is dropped and its document kept."""
    payload["documents"][0]["sections"].insert(0, {"title": "No id", "content": "Lost."})

    index = SearchIndex.from_dict(payload)

    assert len(index) == 2
    assert [section.id for section in index.documents[0].sections] == ["requirements"]


def test_loader_keeps_good_documents(tmp_path: Path, payload: dict) -> None:
    """Test that one malformed entry does not empty the loaded index."""
    payload["documents"].append({"url": "/docs/broken/", "sections": [{"title": "No id"}]})
    (tmp_path / INDEX_FILENAME).write_text(json.dumps(payload), encoding="utf-8")
    loader = IndexLoader(tmp_path)

    index = loader.load()

    assert [doc.url for doc in index] == ["/docs/install/", "/docs/changelog/", "/docs/broken/"]
    response = query(loader, "install")
    assert response.status is QueryStatus.RESULTS
    assert response.results[0].url == "/docs/install/"


def test_duplicate_urls_rejected() -> None:
    """Test that document URLs must be unique."""
    docs = [Document(url="/a/", title="A", content=""), Document(url="/a/", title="B", content="")]

    with pytest.raises(IndexValidationError, match="Duplicate document URL"):
        SearchIndex(docs)


def test_duplicate_section_ids_rejected() -> None:
    """Test that section ids must be unique within a document."""
    sections = [Section(id="intro", title="Intro", content=""), Section(id="intro", title="Again", content="")]

    with pytest.raises(IndexValidationError, match="Duplicate section id"):
        SearchIndex([Document(url="/a/", title="A", content="", sections=sections)])


def test_same_section_id_in_different_documents() -> None:
    """Test that section ids only need to be unique per document."""
    docs = [
        Document(url="/a/", title="A", content="", sections=[Section(id="intro", title="Intro", content="")]),
        Document(url="/b/", title="B", content="", sections=[Section(id="intro", title="Intro", content="")]),
    ]

    assert len(SearchIndex(docs)) == 2


def test_to_dict_matches_artifact(payload: dict) -> None:
    """Test serialising back to the artifact shape."""
    data = SearchIndex.from_dict(payload).to_dict()

    assert data["documents"][0] == payload["documents"][0]
    assert data["documents"][1]["sections"] == []


def test_fetch_index_payload_from_directory(site_dir: Path, payload: dict) -> None:
    """Test reading the artifact from a site directory."""
    assert fetch_index_payload(site_dir) == payload


@patch("docs_search.index.requests.get")
def test_fetch_index_payload_from_url(mock_get: Mock, payload: dict) -> None:
    """Test fetching the artifact relative to a site URL."""
    mock_get.return_value.json.return_value = payload

    result = fetch_index_payload("https://example.org/site/", timeout=5)

    assert result == payload
    mock_get.assert_called_once_with("https://example.org/site/search-index.json", timeout=5)
    mock_get.return_value.raise_for_status.assert_called_once()


def test_loader_states(site_dir: Path) -> None:
    """Test that the loader goes from not loaded to ready."""
    loader = IndexLoader(site_dir)

    assert loader.state is IndexState.NOT_LOADED
    assert loader.index is None
    assert not loader.ready

    index = loader.load()

    assert loader.state is IndexState.READY
    assert loader.ready
    assert loader.index is index
    assert len(index) == 2


def test_loader_loads_once(site_dir: Path) -> None:
    """Test that later loads return the first index without fetching again."""
    loader = IndexLoader(site_dir)
    first = loader.load()

    with patch("docs_search.index.fetch_index_payload") as mock_fetch:
        second = loader.load()

    assert second is first
    mock_fetch.assert_not_called()


def test_loader_missing_artifact(tmp_path: Path) -> None:
    """Test that a missing artifact leaves the loader ready and empty."""
    loader = IndexLoader(tmp_path)

    index = loader.load()

    assert loader.state is IndexState.READY
    assert len(index) == 0


def test_loader_malformed_artifact(tmp_path: Path) -> None:
    """Test that invalid JSON leaves the loader ready and empty."""
    (tmp_path / INDEX_FILENAME).write_text("{not json", encoding="utf-8")
    loader = IndexLoader(tmp_path)

    assert len(loader.load()) == 0
    assert loader.ready


def test_loader_invalid_shape(tmp_path: Path) -> None:
    """Test that an artifact breaking the index rules leaves the loader empty."""
    duplicate = {"documents": [{"url": "/a/"}, {"url": "/a/"}]}
    (tmp_path / INDEX_FILENAME).write_text(json.dumps(duplicate), encoding="utf-8")

    assert len(IndexLoader(tmp_path).load()) == 0


@patch("docs_search.index.requests.get")
def test_loader_network_error(mock_get: Mock) -> None:
    """Test that a failed fetch leaves the loader ready and empty."""
    mock_get.side_effect = requests.ConnectionError("unreachable")
    loader = IndexLoader("https://example.org")

    index = loader.load()

    assert loader.state is IndexState.READY
    assert len(index) == 0

"""Builds the search index artifact from a folder of RST documentation."""

import json
import logging
from pathlib import Path

from docs_search.index import INDEX_FILENAME, SearchIndex
from docs_search.parser import DocumentParser

logger = logging.getLogger(__name__)


class DocsIndexer:
    """Indexes a documentation folder into a ``search-index.json`` artifact."""

    def __init__(self, parser: DocumentParser | None = None) -> None:
        """Initialise indexer.

        Args:
            parser: Parser used for each page; a default DocumentParser when omitted.
        """
        self.parser = parser or DocumentParser()

    def build_index(self, docs_path: Path) -> SearchIndex:
        """Parse every RST file below the documentation directory.

        Args:
            docs_path: Path to the documentation directory.

        Returns:
            SearchIndex with one document per parsed file, in path order.

        Raises:
            ValueError: If the documentation path does not exist.
        """
        if not docs_path.exists():
            msg = f"Documentation path does not exist: {docs_path}"
            raise ValueError(msg)

        rst_files = sorted(
            path for path in docs_path.rglob("*") if path.is_file() and path.suffix in self.parser.RST_SUFFIXES
        )
        logger.info("Found %d RST files to index", len(rst_files))

        documents = []
        for file_path in rst_files:
            document = self.parser.parse_file(file_path, docs_path)
            if document:
                documents.append(document)
                logger.debug("Indexed: %s (%d sections)", document.url, len(document.sections))
            else:
                logger.warning("Failed to parse: %s", file_path)

        index = SearchIndex(documents)
        logger.info("Successfully indexed %d documents", len(index))
        return index

    def write_index(self, index: SearchIndex, output_dir: Path) -> Path:
        """Write the index artifact into the site output directory.

        Args:
            index: Index to serialise.
            output_dir: Site output directory; created if missing.

        Returns:
            Path of the written artifact.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / INDEX_FILENAME
        output_path.write_text(json.dumps(index.to_dict(), ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote search index to %s", output_path)
        return output_path

    def build_and_write(self, docs_path: Path, output_dir: Path) -> int:
        """Build the index from a documentation folder and write the artifact.

        Args:
            docs_path: Path to the documentation directory.
            output_dir: Site output directory.

        Returns:
            Number of documents written.
        """
        index = self.build_index(docs_path)
        self.write_index(index, output_dir)
        return len(index)

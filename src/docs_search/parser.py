"""Parser turning reStructuredText documentation pages into index documents."""

import re
from pathlib import Path

import docutils.frontend  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
import docutils.parsers.rst  # type: ignore[import-untyped]
import docutils.utils  # type: ignore[import-untyped]

from docs_search.models import Document, Section


class TextContentVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to extract searchable text content from RST document tree."""

    def __init__(self, document: docutils.nodes.document, skip_sections: bool = False) -> None:
        """Initialise text content visitor.

        Args:
            document: Docutils document tree.
            skip_sections: Whether to leave nested sections out of the text.
        """
        super().__init__(document)
        self._text_parts: list[str] = []
        self._skip_sections = skip_sections

    def visit_section(self, node: docutils.nodes.section) -> None:
        """Skip nested sections when collecting a single section's own text.

        Args:
            node: Section node.

        Raises:
            docutils.nodes.SkipNode: When nested sections are skipped.
        """
        if self._skip_sections:
            raise docutils.nodes.SkipNode

    def visit_literal_block(self, node: docutils.nodes.literal_block) -> None:
        """Skip code blocks.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip code blocks.
        """
        raise docutils.nodes.SkipNode

    def visit_comment(self, node: docutils.nodes.comment) -> None:
        """Skip comments.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip comments.
        """
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics embedded in the tree.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip diagnostics.
        """
        raise docutils.nodes.SkipNode

    def visit_Text(self, node: docutils.nodes.Text) -> None:  # noqa: N802
        """Visit text node and collect content.

        Args:
            node: Text node.
        """
        text = node.astext().strip()
        if text:
            self._text_parts.append(text)

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op)."""

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op)."""

    def get_text(self) -> str:
        """Get collected text content.

        Returns:
            Concatenated text content.
        """
        return " ".join(self._text_parts)


class DocumentParser:
    """Parses RST documentation pages into documents with sections."""

    DOCS_URL_PREFIX = "/docs"
    RST_SUFFIXES = (".rst", ".rest")

    def __init__(self, url_prefix: str | None = None) -> None:
        """Initialise parser.

        Args:
            url_prefix: Path every page URL starts with.
        """
        prefix = self.DOCS_URL_PREFIX if url_prefix is None else url_prefix
        self.url_prefix = prefix.rstrip("/")

    def parse_file(self, file_path: Path, base_path: Path) -> Document | None:
        """Parse an RST file into a document.

        Args:
            file_path: Path to the RST file.
            base_path: Base path of the documentation directory.

        Returns:
            Document instance or None if parsing fails.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
            doctree = self._parse_rst(source, file_path)
            relative_path = file_path.relative_to(base_path)

            return Document(
                url=self._compute_url(relative_path),
                title=self._extract_title(doctree, file_path),
                content=self._clean_content(self._extract_text(doctree, doctree)),
                sections=self._extract_sections(doctree),
            )
        except Exception:
            return None

    def _parse_rst(self, source: str, file_path: Path) -> docutils.nodes.document:
        """Parse RST source into docutils document tree.

        Args:
            source: RST source text.
            file_path: Path to the file (for error reporting).

        Returns:
            Docutils document tree.
        """
        parser = docutils.parsers.rst.Parser()
        settings = docutils.frontend.get_default_settings(docutils.parsers.rst.Parser)
        settings.report_level = 5  # Suppress warnings
        settings.file_insertion_enabled = False
        settings.raw_enabled = False
        document = docutils.utils.new_document(str(file_path), settings)
        parser.parse(source, document)
        return document

    def _title_node(self, doctree: docutils.nodes.document) -> docutils.nodes.title | None:
        """Return the first heading of the page, which holds its title."""
        return next(iter(doctree.findall(docutils.nodes.title)), None)

    def _extract_title(self, doctree: docutils.nodes.document, file_path: Path) -> str:
        """Return the page title, falling back to the file name.

        Args:
            doctree: Docutils document tree.
            file_path: Path to the file for fallback title extraction.

        Returns:
            Page title.
        """
        title = self._title_node(doctree)
        if title is not None:
            return str(title.astext())
        return file_path.stem.replace("-", " ").replace("_", " ").title()

    def _extract_sections(self, doctree: docutils.nodes.document) -> list[Section]:
        """Extract every headed section in document order.

        A section's content is its own text up to the next heading; nested
        sections become sections of their own. A lone top-level section is
        the page itself and is left out.

        Args:
            doctree: Docutils document tree.

        Returns:
            Sections of the page.
        """
        top_level = [child for child in doctree.children if isinstance(child, docutils.nodes.section)]
        page_section = top_level[0] if len(top_level) == 1 else None
        sections = []
        for node in doctree.findall(docutils.nodes.section):
            if not node["ids"] or not isinstance(node[0], docutils.nodes.title) or node is page_section:
                continue
            body = "".join(
                self._extract_text(doctree, child, skip_sections=True) + " " for child in node.children[1:]
            )
            sections.append(
                Section(
                    id=node["ids"][0],
                    title=node[0].astext(),
                    content=self._clean_content(body),
                )
            )
        return sections

    def _extract_text(
        self,
        doctree: docutils.nodes.document,
        node: docutils.nodes.Node,
        skip_sections: bool = False,
    ) -> str:
        """Extract searchable text content below a node.

        Args:
            doctree: Docutils document tree the node belongs to.
            node: Node to collect text from.
            skip_sections: Whether to leave nested sections out.

        Returns:
            Extracted text content.
        """
        visitor = TextContentVisitor(doctree, skip_sections=skip_sections)
        node.walk(visitor)
        return visitor.get_text()

    def _compute_url(self, relative_path: Path) -> str:
        """Compute the site URL of a page.

        Args:
            relative_path: Path relative to docs directory.

        Returns:
            URL path ending in a slash, e.g. ``/docs/aws/s3/``.
        """
        return f"{self.url_prefix}/{relative_path.with_suffix('').as_posix()}/"

    def _clean_content(self, content: str) -> str:
        """Clean RST content for indexing.

        Removes RST directives, roles, and other markup artifacts.

        Args:
            content: Raw RST content.

        Returns:
            Cleaned content suitable for indexing.
        """
        # Remove RST directives (.. directive::)
        content = re.sub(r"\.\.\s+\w+::[^\n]*\n(?:\s+[^\n]+\n)*", "", content)
        # Clean RST roles (:role:`text` -> text)
        content = re.sub(r":\w+:`([^`]+)`", r"\1", content)
        content = re.sub(r"\s+", " ", content)
        return content.strip()

"""
PDF document loading and per-page token extraction.
"""
import logging
from typing import Optional, Tuple

import fitz  # PyMuPDF

from ..page.token_layer import PageTokenLayer

logger = logging.getLogger(__name__)


class PDFDocumentReader:
    """Handles PDF document loading and text access for the render surface."""

    def __init__(self):
        self.doc: Optional[fitz.Document] = None
        self.total_pages: int = 0
        self.current_file_path: Optional[str] = None

    def load_pdf(self, file_path: str) -> Tuple[bool, int]:
        """
        Load a PDF document.

        Args:
            file_path: Path to the PDF file

        Returns:
            Tuple of (success flag, number of pages)
        """
        try:
            # Close existing document if any
            if self.doc:
                self.close_document()

            self.doc = fitz.open(file_path)
            self.total_pages = self.doc.page_count
            self.current_file_path = file_path

            return True, self.total_pages

        except (RuntimeError, ValueError, OSError) as e:
            logger.error("Error loading PDF %s: %s", file_path, e)
            self.doc = None
            self.total_pages = 0
            self.current_file_path = None
            return False, 0

    def close_document(self) -> None:
        """Close the current PDF document and clear all state."""
        if self.doc:
            self.doc.close()
            self.doc = None

        self.total_pages = 0
        self.current_file_path = None

    def get_page(self, page_number: int) -> Optional[fitz.Page]:
        """
        Get a page object for direct operations.

        Args:
            page_number: 1-based page number

        Returns:
            PyMuPDF page object, or None if invalid
        """
        if not self.doc or not (1 <= page_number <= self.total_pages):
            return None

        try:
            return self.doc.load_page(page_number - 1)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to load page %d: %s", page_number, e)
            return None

    def extract_tokens(self, page_number: int, zoom: float = 1.0,
                       generation: int = 0) -> Optional[PageTokenLayer]:
        """
        Produce a fresh token layer for a page.

        Args:
            page_number: 1-based page number
            zoom: Zoom factor applied to token geometry
            generation: Render pass counter stamped on the tokens

        Returns:
            PageTokenLayer, or None if the page does not exist
        """
        page = self.get_page(page_number)
        if page is None:
            return None
        return PageTokenLayer.from_page(page, page_number, zoom, generation)

    def extract_text(self, page_number: int) -> str:
        """Extract plain text from a page."""
        page = self.get_page(page_number)
        if page:
            return page.get_text()
        return ""

    def content_sample(self, length: int = 2000) -> str:
        """
        Leading text of the document, used to derive its storage namespace.

        Args:
            length: Maximum number of characters to return
        """
        parts = []
        collected = 0
        for page_number in range(1, self.total_pages + 1):
            if collected >= length:
                break
            text = self.extract_text(page_number)
            parts.append(text)
            collected += len(text)
        return "".join(parts)[:length]

    def is_loaded(self) -> bool:
        """Check if a document is currently loaded."""
        return self.doc is not None

    def get_file_path(self) -> Optional[str]:
        """Get the path of the currently loaded file."""
        return self.current_file_path

    def get_page_count(self) -> int:
        """Get the total number of pages."""
        return self.total_pages

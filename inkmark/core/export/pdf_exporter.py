"""
Writing annotations into a PDF as native markup annotations.
"""
import logging
from typing import Dict, List, Tuple

import fitz  # PyMuPDF
from PyQt5.QtCore import QObject, pyqtSignal

from ..anchoring.matcher import locate
from ..anchoring.styles import StyleResolver
from ..annotations.models import Annotation, AnnotationType
from ..colors import hex_to_rgb
from ..errors import DocumentError
from ..page.token_layer import PageTokenLayer

logger = logging.getLogger(__name__)


class PDFExporter(QObject):
    """
    Exports annotations to a copy of the source PDF.

    Every annotation is re-anchored against the page's unscaled words, the
    same way the reconciliation loop anchors on screen. Annotations whose
    signature is no longer found are skipped.
    """

    progress_signal = pyqtSignal(int, int)  # current page, total pages

    def __init__(self, styles: StyleResolver, parent=None):
        super().__init__(parent)
        self.styles = styles

    def export_annotations_to_pdf(self, source_pdf_path: str, output_pdf_path: str,
                                  annotations: List[Annotation]) -> Tuple[int, int]:
        """
        Export annotations to a PDF file.

        Args:
            source_pdf_path: Path to the source PDF
            output_pdf_path: Path where the annotated PDF should be saved
            annotations: Annotations to write

        Returns:
            Tuple of (annotations written, annotations skipped)

        Raises:
            DocumentError: If the source cannot be opened or the output saved
        """
        try:
            doc = fitz.open(source_pdf_path)
        except (RuntimeError, ValueError, OSError) as e:
            raise DocumentError(f"Cannot open {source_pdf_path}: {e}") from e

        # Group annotations by page
        by_page: Dict[int, List[Annotation]] = {}
        for ann in annotations:
            by_page.setdefault(ann.page_number, []).append(ann)

        written = 0
        skipped = 0
        try:
            total = len(by_page)
            for current, page_number in enumerate(sorted(by_page), start=1):
                page_annotations = by_page[page_number]
                if not (1 <= page_number <= doc.page_count):
                    logger.warning("Skipping %d annotations on missing page %d",
                                   len(page_annotations), page_number)
                    skipped += len(page_annotations)
                    self.progress_signal.emit(current, total)
                    continue

                page = doc[page_number - 1]
                layer = PageTokenLayer.from_page(page, page_number)
                for ann in page_annotations:
                    if self._add_annotation_to_page(page, layer, ann):
                        written += 1
                    else:
                        skipped += 1

                self.progress_signal.emit(current, total)

            doc.save(output_pdf_path, garbage=4, deflate=True)
        except (RuntimeError, ValueError, OSError) as e:
            raise DocumentError(f"Failed to export annotations to {output_pdf_path}: {e}") from e
        finally:
            doc.close()

        logger.info("Exported %d annotations to %s (%d skipped)",
                    written, output_pdf_path, skipped)
        return written, skipped

    def _add_annotation_to_page(self, page: fitz.Page, layer: PageTokenLayer,
                                annotation: Annotation) -> bool:
        """Add a single annotation to a PDF page."""
        match = locate(annotation.signature, layer.texts)
        if match is None:
            logger.debug("Annotation %s not found on page %d for export",
                         annotation.id, annotation.page_number)
            return False

        rects = [fitz.Rect(r) for r in layer.range_rects(match.start, match.stop)]

        if annotation.annotation_type == AnnotationType.HIGHLIGHT:
            annot = page.add_highlight_annot(rects)
        elif annotation.annotation_type == AnnotationType.UNDERLINE:
            annot = page.add_underline_annot(rects)
        else:
            annot = page.add_strikeout_annot(rects)

        # PyMuPDF uses 0-1 range
        r, g, b = hex_to_rgb(self.styles.resolve_color(annotation))
        annot.set_colors(stroke=[r / 255.0, g / 255.0, b / 255.0])
        if annotation.note:
            annot.set_info(content=annotation.note)
        annot.update()
        return True

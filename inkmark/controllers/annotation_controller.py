"""
Controller for managing annotation operations.
"""
import logging
from typing import Dict, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from ..config import EngineConfig
from ..core.anchoring import AnchorMatcher, Reconciler, StyleResolver, TagTable, TokenStyle
from ..core.annotations import (
    Annotation,
    AnnotationManager,
    AnnotationPersistence,
    AnnotationType,
)
from ..core.categories import CategoryManager, CategoryPersistence
from ..core.colors import is_valid_hex
from ..core.document import PDFDocumentReader
from ..core.errors import DocumentError
from ..core.export import PDFExporter, to_json, to_markdown
from ..core.page import RenderSurface, TokenHandle
from ..core.scheduler import QtScheduler
from ..core.selection import AnnotationSelection, TextSelection

logger = logging.getLogger(__name__)


class AnnotationController(QObject):
    """
    Entry point for everything the UI does with annotations.

    Owns the engine pieces and keeps their order of operations: records are
    created before they are anchored, visual traces are removed before a
    record is deleted, and category color edits are applied to the store in
    one batch before the anchored ranges are restyled.
    """

    # Signals
    annotations_changed = pyqtSignal()  # Emitted when annotations change
    annotation_selected = pyqtSignal(object)  # Annotation or None

    def __init__(self, config: Optional[EngineConfig] = None,
                 reader: Optional[PDFDocumentReader] = None,
                 surface=None, scheduler=None,
                 annotation_persistence: Optional[AnnotationPersistence] = None,
                 category_persistence: Optional[CategoryPersistence] = None,
                 parent=None):
        super().__init__(parent)
        self.config = config or EngineConfig()
        self.scheduler = scheduler or QtScheduler(self)
        self.reader = reader or PDFDocumentReader()
        self.surface = surface or RenderSurface(self.reader, self.scheduler,
                                                zoom=self.config.base_zoom)

        self.annotation_manager = AnnotationManager(
            annotation_persistence,
            content_sample_length=self.config.content_sample_length,
        )
        self.category_manager = CategoryManager(category_persistence)

        self.styles = StyleResolver(
            self.category_manager,
            highlight_opacity=self.config.highlight_opacity,
            overlay_color=self.config.overlay_color,
            overlay_width=self.config.overlay_width,
        )
        self.tag_table = TagTable(self.config.overlay_color, self.config.overlay_width)
        self.matcher = AnchorMatcher(self.tag_table, self.styles)

        self.reconciler = Reconciler(
            self.surface, self.annotation_manager, self.tag_table, self.matcher,
            self.scheduler,
            max_attempts=self.config.anchor_retry_attempts,
            delay_ms=self.config.anchor_retry_delay_ms,
        )
        self.selection = AnnotationSelection(
            self.tag_table, self.annotation_manager, self.surface, self.matcher,
            self.scheduler,
            max_attempts=self.config.anchor_retry_attempts,
            delay_ms=self.config.anchor_retry_delay_ms,
        )
        self.reconciler.set_selection(self.selection)

        self.text_selection = TextSelection(self.surface)

        self.category_manager.category_recolored.connect(self._on_category_recolored)
        self.selection.selection_changed.connect(self._on_selection_changed)

    # Document lifecycle

    def open_document(self, file_path: str) -> bool:
        """
        Open a PDF and load its annotations.

        Returns:
            True if the document was opened
        """
        self.close_document()

        success, page_count = self.reader.load_pdf(file_path)
        if not success:
            return False

        sample = self.reader.content_sample(self.config.content_sample_length)
        self.annotation_manager.init_for_document(file_path, sample)
        logger.info("Opened %s with %d pages", file_path, page_count)

        if page_count:
            self.surface.scroll_to_page(1)
        self.annotations_changed.emit()
        return True

    def close_document(self) -> None:
        """Drop every piece of per-document state."""
        self.reconciler.cancel_all()
        self.selection.reset()
        self.tag_table.clear()
        self.text_selection.clear()
        self.surface.reset()
        self.annotation_manager.clear_all()
        self.reader.close_document()

    # Mutations

    def create_annotation(self, annotation_type: AnnotationType,
                          category_id: Optional[str] = None,
                          color: Optional[str] = None,
                          note: Optional[str] = None) -> Optional[Annotation]:
        """
        Create an annotation from the current text selection.

        The annotation is anchored against the tokens already on screen and
        selected right away.

        Args:
            annotation_type: Highlight, underline or strikethrough
            category_id: Category to file the annotation under
            color: Flat hex color, used when no category is given
            note: Optional note

        Returns:
            The new annotation, or None if nothing was selected or the
            category/color is invalid
        """
        capture = self.text_selection.capture()
        if capture is None:
            logger.info("No text selected, nothing to annotate")
            return None

        if category_id is None and color is None:
            category_id = self._default_category_id()

        if category_id is not None:
            category = self.category_manager.get_category_by_id(category_id)
            if category is None:
                logger.warning("Cannot annotate with unknown category %s", category_id)
                return None
            color = category.color
        elif not is_valid_hex(color):
            logger.warning("Cannot annotate with invalid color %r", color)
            return None

        annotation = Annotation(
            page_number=capture.page_number,
            annotation_type=annotation_type,
            color=color,
            text=capture.text,
            signature=capture.signature,
            category_id=category_id,
            note=note or None,
        )
        self.annotation_manager.add_annotation(annotation)

        # Tokens are already on screen, no need to wait for a render
        tokens = self.surface.tokens_for(annotation.page_number)
        if self.matcher.anchor(annotation, tokens) is None:
            self.reconciler.reconcile_annotation(annotation.id)

        self.selection.select(annotation.id)
        if category_id is not None:
            self.category_manager.mark_category_used(category_id)
        self.text_selection.clear()

        self.annotations_changed.emit()
        return annotation

    def update_note(self, annotation_id: str, note: Optional[str]) -> bool:
        if not self.annotation_manager.update_note(annotation_id, note):
            return False
        self.annotations_changed.emit()
        return True

    def update_color(self, annotation_id: str, color: str) -> bool:
        """Give an annotation a flat color, detaching it from its category."""
        if not is_valid_hex(color):
            logger.warning("Rejected invalid color %r", color)
            return False
        if not self.annotation_manager.update_color(annotation_id, color):
            return False

        self.reconciler.restyle([annotation_id])
        self.annotations_changed.emit()
        return True

    def set_category(self, annotation_id: str, category_id: str) -> bool:
        """File an annotation under a category."""
        category = self.category_manager.get_category_by_id(category_id)
        if category is None:
            logger.warning("Cannot assign unknown category %s", category_id)
            return False
        if not self.annotation_manager.set_category(annotation_id, category_id,
                                                    category.color):
            return False

        self.reconciler.restyle([annotation_id])
        self.category_manager.mark_category_used(category_id)
        self.annotations_changed.emit()
        return True

    def recolor_category(self, category_id: str, color: str) -> bool:
        """
        Change a category's color.

        Every annotation in the category follows through the
        ``category_recolored`` notification.
        """
        return self.category_manager.update_category(category_id, color=color)

    def delete_annotation(self, annotation_id: str) -> bool:
        """
        Delete an annotation.

        Its overlay and tags are gone before the record is removed.

        Returns:
            True if the annotation existed
        """
        if not self.annotation_manager.has_annotation(annotation_id):
            return False

        self.selection.handle_deleted(annotation_id)
        self.tag_table.clear_tag(annotation_id)
        self.reconciler.cancel(annotation_id)
        self.annotation_manager.remove_annotation(annotation_id)

        self.annotations_changed.emit()
        return True

    def delete_category(self, category_id: str) -> bool:
        """Delete a custom category; its annotations keep their last color."""
        return self.category_manager.delete_category(category_id)

    # Navigation and hit testing

    def jump_to(self, annotation_id: str) -> bool:
        return self.selection.jump_to(annotation_id)

    def handle_click(self, page_number: int, x: float, y: float) -> Optional[str]:
        """
        Select the annotation under a screen point, or deselect.

        Returns:
            Id of the selected annotation, if any
        """
        layer = self.surface.layer_for(page_number)
        token = layer.token_at_point(x, y) if layer else None
        return self.selection.handle_click(token.handle if token else None)

    def style_for(self, handle: TokenHandle) -> Optional[TokenStyle]:
        return self.tag_table.style_for(handle)

    def category_counts(self) -> Dict[str, int]:
        return self.annotation_manager.category_counts()

    # Export

    def export_markdown(self) -> str:
        return to_markdown(self.annotation_manager.annotations, self.category_manager)

    def export_json(self) -> str:
        return to_json(self.annotation_manager.annotations)

    def export_pdf(self, output_path: str) -> Optional[Tuple[int, int]]:
        """
        Write the annotations into a copy of the open PDF.

        Returns:
            Tuple of (written, skipped), or None if the export failed
        """
        source = self.reader.get_file_path()
        if source is None:
            logger.warning("No document open, nothing to export")
            return None

        exporter = PDFExporter(self.styles)
        try:
            return exporter.export_annotations_to_pdf(
                source, output_path, self.annotation_manager.annotations)
        except DocumentError as e:
            logger.error("PDF export failed: %s", e)
            return None

    # Internals

    def _default_category_id(self) -> Optional[str]:
        if self.category_manager.recent_category_ids:
            return self.category_manager.recent_category_ids[0]
        categories = self.category_manager.categories
        return categories[0].id if categories else None

    def _on_category_recolored(self, category_id: str, color: str) -> None:
        changed = self.annotation_manager.recolor_category(category_id, color)
        self.reconciler.restyle(changed)
        if changed:
            self.annotations_changed.emit()

    def _on_selection_changed(self, annotation_id: Optional[str]) -> None:
        annotation = (self.annotation_manager.get_annotation(annotation_id)
                      if annotation_id else None)
        self.annotation_selected.emit(annotation)

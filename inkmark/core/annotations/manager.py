"""
Annotation store for the open document.

Holds annotation records in memory and writes the whole namespace to disk on
every mutation. A failed write is logged and the in-memory state is kept as
the source of truth until the next successful write.
"""
import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from ..errors import PersistenceError
from .models import Annotation, migrate_annotation
from .persistence import CONTENT_SAMPLE_LENGTH, AnnotationPersistence, namespace_key

logger = logging.getLogger(__name__)


class AnnotationManager(QObject):
    """Manages all annotations for a document namespace."""

    # Signals
    annotation_added = pyqtSignal(object)  # Annotation
    annotation_updated = pyqtSignal(object)  # Annotation
    annotation_removed = pyqtSignal(object)  # Annotation
    category_recolored = pyqtSignal(str, list)  # category_id, annotation ids
    annotations_loaded = pyqtSignal()

    def __init__(self, persistence: Optional[AnnotationPersistence] = None,
                 content_sample_length: int = CONTENT_SAMPLE_LENGTH, parent=None):
        super().__init__(parent)
        self.annotations: List[Annotation] = []
        self.namespace: Optional[str] = None
        self.persistence = persistence or AnnotationPersistence()
        self.content_sample_length = content_sample_length
        self.last_save_failed: bool = False

    def init_for_document(self, file_path: str, content_sample: str) -> int:
        """
        Switch to the namespace of a newly opened document and load it.

        Legacy records that only carry a flat color name are migrated to a
        category reference here, once.

        Args:
            file_path: Path the document was opened from
            content_sample: Leading text of the document

        Returns:
            Number of annotations loaded
        """
        self.namespace = namespace_key(file_path, content_sample,
                                       self.content_sample_length)
        self.annotations = [migrate_annotation(ann)
                            for ann in self.persistence.load(self.namespace)]
        logger.info("Loaded %d annotations for namespace %s",
                    len(self.annotations), self.namespace)
        self.annotations_loaded.emit()
        return len(self.annotations)

    def add_annotation(self, annotation: Annotation) -> None:
        """
        Add a new annotation and persist.

        Args:
            annotation: Annotation to add
        """
        if self.get_annotation(annotation.id) is not None:
            raise ValueError(f"Duplicate annotation id {annotation.id}")

        self.annotations.append(annotation)
        self._auto_save()
        self.annotation_added.emit(annotation)

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        """Find an annotation by id."""
        for ann in self.annotations:
            if ann.id == annotation_id:
                return ann
        return None

    def has_annotation(self, annotation_id: str) -> bool:
        return self.get_annotation(annotation_id) is not None

    def get_annotations_for_page(self, page_number: int) -> List[Annotation]:
        """
        Get all annotations for a specific page.

        Args:
            page_number: 1-based page number

        Returns:
            List of annotations on the specified page, in creation order
        """
        return [ann for ann in self.annotations if ann.page_number == page_number]

    def update_note(self, annotation_id: str, note: Optional[str]) -> bool:
        """
        Attach, replace or clear (None/empty) the note of an annotation.

        Returns:
            True if the annotation was found and updated
        """
        annotation = self.get_annotation(annotation_id)
        if annotation is None:
            return False

        annotation.note = note or None
        self._auto_save()
        self.annotation_updated.emit(annotation)
        return True

    def update_color(self, annotation_id: str, color: str) -> bool:
        """
        Set a flat color on an annotation, detaching it from its category.

        Returns:
            True if the annotation was found and updated
        """
        annotation = self.get_annotation(annotation_id)
        if annotation is None:
            return False

        annotation.color = color
        annotation.category_id = None
        self._auto_save()
        self.annotation_updated.emit(annotation)
        return True

    def set_category(self, annotation_id: str, category_id: str, color: str) -> bool:
        """
        Point an annotation at a category, caching the category's color.

        Returns:
            True if the annotation was found and updated
        """
        annotation = self.get_annotation(annotation_id)
        if annotation is None:
            return False

        annotation.category_id = category_id
        annotation.color = color
        self._auto_save()
        self.annotation_updated.emit(annotation)
        return True

    def recolor_category(self, category_id: str, new_color: str) -> List[str]:
        """
        Update the cached color of every annotation in a category.

        All matching records change in one batch followed by a single write.

        Args:
            category_id: Category whose color changed
            new_color: New hex color

        Returns:
            Ids of the annotations that were updated
        """
        changed = []
        for ann in self.annotations:
            if ann.category_id == category_id:
                ann.color = new_color
                changed.append(ann.id)

        if changed:
            self._auto_save()
        self.category_recolored.emit(category_id, changed)
        return changed

    def remove_annotation(self, annotation_id: str) -> Optional[Annotation]:
        """
        Remove an annotation.

        Args:
            annotation_id: Id of the annotation to remove

        Returns:
            The removed annotation, or None if it was not found
        """
        annotation = self.get_annotation(annotation_id)
        if annotation is None:
            return None

        self.annotations.remove(annotation)
        self._auto_save()
        self.annotation_removed.emit(annotation)
        return annotation

    def category_counts(self) -> Dict[str, int]:
        """Count annotations per category, for the legend."""
        counts: Dict[str, int] = {}
        for ann in self.annotations:
            if ann.category_id:
                counts[ann.category_id] = counts.get(ann.category_id, 0) + 1
        return counts

    def clear_all(self) -> None:
        """Forget the current document without touching stored data."""
        self.annotations = []
        self.namespace = None
        self.last_save_failed = False

    def get_annotation_count(self) -> int:
        """Get total number of annotations."""
        return len(self.annotations)

    def save(self) -> bool:
        """
        Write the current namespace.

        Returns:
            True if the write completed
        """
        if self.namespace is None:
            return False

        try:
            self.persistence.save(self.namespace, self.annotations)
        except PersistenceError as e:
            self.last_save_failed = True
            logger.error("Annotation save failed, keeping in-memory state: %s", e)
            return False

        self.last_save_failed = False
        return True

    def _auto_save(self) -> None:
        """Persist after a mutation when a document is open."""
        if self.namespace is not None:
            self.save()

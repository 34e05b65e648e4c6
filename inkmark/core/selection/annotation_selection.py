"""
Exclusive annotation selection.

Two states: idle, or one selected annotation. The selected annotation's
anchored range carries an overlay on top of its base style. Whenever the
selection moves, every other overlay is removed before the new one is
applied, so at most one annotation shows the overlay at any time.
"""
import logging
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from ..anchoring.matcher import AnchorMatcher
from ..anchoring.retry import GenerationCounter, RetryTask
from ..anchoring.tag_table import TagTable
from ..annotations.manager import AnnotationManager
from ..page.models import TokenHandle

logger = logging.getLogger(__name__)


class AnnotationSelection(QObject):
    """Selection state machine for annotations."""

    # Signals
    selection_changed = pyqtSignal(object)  # Optional[str]
    overlay_removed = pyqtSignal(str)
    overlay_applied = pyqtSignal(str)
    jump_finished = pyqtSignal(str, bool)  # annotation_id, anchored

    def __init__(self, tag_table: TagTable, annotations: AnnotationManager,
                 surface, matcher: AnchorMatcher, scheduler,
                 max_attempts: int = 5, delay_ms: int = 200, parent=None):
        super().__init__(parent)
        self.tag_table = tag_table
        self.annotations = annotations
        self.surface = surface
        self.matcher = matcher
        self.scheduler = scheduler
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms

        self.selected_id: Optional[str] = None

        self._jumps = GenerationCounter()
        self._jump_task: Optional[RetryTask] = None
        self._jump_target: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.selected_id is None

    def select(self, annotation_id: str) -> bool:
        """
        Select an annotation, superseding any pending jump.

        Returns:
            True if the annotation exists and is now selected
        """
        if not self.annotations.has_annotation(annotation_id):
            logger.warning("Cannot select unknown annotation %s", annotation_id)
            return False

        self._supersede_jump()
        self._set_selected(annotation_id)
        return True

    def deselect(self) -> None:
        """Return to idle, superseding any pending jump."""
        self._supersede_jump()
        self._set_selected(None)

    def handle_click(self, handle: Optional[TokenHandle]) -> Optional[str]:
        """
        React to a click on a rendered token, or on empty space (None).

        Returns:
            Id of the annotation selected by the click, if any
        """
        annotation_id = self.tag_table.annotation_at(handle) if handle else None
        if annotation_id is None:
            self.deselect()
            return None

        self.select(annotation_id)
        return annotation_id

    def jump_to(self, annotation_id: str) -> bool:
        """
        Scroll to an annotation and select it once it is anchored.

        The current selection is dropped immediately, whatever the target.
        Anchoring is retried while the target page renders; a later jump,
        click or deletion supersedes this one and its late result is
        discarded.

        Returns:
            False if the annotation does not exist
        """
        annotation = self.annotations.get_annotation(annotation_id)
        if annotation is None:
            logger.warning("Cannot jump to unknown annotation %s", annotation_id)
            return False

        self._supersede_jump()
        generation = self._jumps.value
        self._set_selected(None)

        self._jump_target = annotation_id
        self.surface.scroll_to_page(annotation.page_number)

        task = RetryTask(
            self.scheduler,
            attempt=lambda: self._try_jump(annotation_id, generation),
            max_attempts=self.max_attempts,
            delay_ms=self.delay_ms,
            is_current=lambda: (self._jumps.is_current(generation)
                                and self.annotations.has_annotation(annotation_id)),
            on_exhausted=lambda: self._jump_failed(annotation_id, generation),
            name=f"jump {generation} to {annotation_id}",
        )
        self._jump_task = task
        task.start()
        return True

    def reapply_overlay(self, annotation_id: str) -> None:
        """Restore the overlay after the selected annotation was re-anchored."""
        if annotation_id != self.selected_id:
            return
        self._strip_overlays(keep=annotation_id)
        if self.tag_table.set_overlay(annotation_id, True):
            self.overlay_applied.emit(annotation_id)

    def handle_deleted(self, annotation_id: str) -> None:
        """
        Forget an annotation that is about to be removed.

        Cancels a jump targeting it and clears the selection if it was
        selected; any other selection is left alone.
        """
        if self._jump_target == annotation_id:
            self._supersede_jump()
        if self.selected_id == annotation_id:
            self._set_selected(None)

    def reset(self) -> None:
        """Drop all state, e.g. when the document closes."""
        self._supersede_jump()
        self._set_selected(None)

    def _set_selected(self, annotation_id: Optional[str]) -> None:
        self._strip_overlays(keep=annotation_id)

        if annotation_id is not None and self.tag_table.set_overlay(annotation_id, True):
            self.overlay_applied.emit(annotation_id)

        if annotation_id != self.selected_id:
            self.selected_id = annotation_id
            self.selection_changed.emit(annotation_id)

    def _strip_overlays(self, keep: Optional[str] = None) -> None:
        for holder in self.tag_table.overlay_holders():
            if holder == keep:
                continue
            self.tag_table.set_overlay(holder, False)
            self.overlay_removed.emit(holder)

    def _supersede_jump(self) -> None:
        self._jumps.next()
        if self._jump_task is not None:
            self._jump_task.cancel()
        self._jump_task = None
        self._jump_target = None

    def _try_jump(self, annotation_id: str, generation: int) -> bool:
        annotation = self.annotations.get_annotation(annotation_id)
        tokens = self.surface.tokens_for(annotation.page_number)
        if self.matcher.anchor(annotation, tokens) is None:
            return False

        self._jump_task = None
        self._jump_target = None
        self._set_selected(annotation_id)
        logger.debug("Jump %d anchored %s", generation, annotation_id)
        self.jump_finished.emit(annotation_id, True)
        return True

    def _jump_failed(self, annotation_id: str, generation: int) -> None:
        self._jump_task = None
        self._jump_target = None
        logger.debug("Jump %d could not anchor %s", generation, annotation_id)
        self.jump_finished.emit(annotation_id, False)

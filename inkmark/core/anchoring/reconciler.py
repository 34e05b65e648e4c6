"""
Reconciliation loop: re-anchors annotations whenever a page is rendered.
"""
import logging
from typing import Dict, Iterable, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from ..annotations.manager import AnnotationManager
from .matcher import AnchorMatcher
from .retry import RetryTask
from .tag_table import TagTable

logger = logging.getLogger(__name__)


class Reconciler(QObject):
    """
    Drives the anchor matcher for every annotation on a freshly rendered page.

    Misses are retried on the scheduler with a bounded, fixed-delay policy and
    then given up on silently; the annotation stays in the store and is tried
    again on the next render of its page.
    """

    # Signals
    anchored = pyqtSignal(str, int)  # annotation_id, page_number
    anchor_failed = pyqtSignal(str, int)  # annotation_id, page_number

    def __init__(self, surface, annotations: AnnotationManager, tag_table: TagTable,
                 matcher: AnchorMatcher, scheduler, max_attempts: int = 5,
                 delay_ms: int = 200, parent=None):
        super().__init__(parent)
        self.surface = surface
        self.annotations = annotations
        self.tag_table = tag_table
        self.matcher = matcher
        self.scheduler = scheduler
        self.max_attempts = max_attempts
        self.delay_ms = delay_ms

        # Set once the selection state machine exists
        self.selection = None

        self._tasks: Dict[str, RetryTask] = {}

        self.surface.page_rendered.connect(self.on_page_rendered)
        self.surface.page_released.connect(self.on_page_released)

    def set_selection(self, selection) -> None:
        self.selection = selection

    def on_page_rendered(self, page_number: int, tokens: List) -> None:
        """
        Run one reconciliation pass for a page.

        Args:
            page_number: Page whose tokens were regenerated
            tokens: The new tokens, in reading order
        """
        self._cancel_page(page_number)

        generation = tokens[0].generation if tokens else None
        self.tag_table.drop_page(page_number, keep_generation=generation)

        for annotation in self.annotations.get_annotations_for_page(page_number):
            self.reconcile_annotation(annotation.id)

    def on_page_released(self, page_number: int) -> None:
        self._cancel_page(page_number)
        self.tag_table.drop_page(page_number)

    def reconcile_annotation(self, annotation_id: str) -> Optional[RetryTask]:
        """
        Anchor one annotation, retrying while its page has not caught up.

        Any retry chain already running for the annotation is replaced.

        Returns:
            The retry task, or None if the annotation anchored at once or
            does not exist
        """
        self.cancel(annotation_id)

        annotation = self.annotations.get_annotation(annotation_id)
        if annotation is None:
            return None
        page_number = annotation.page_number

        task = RetryTask(
            self.scheduler,
            attempt=lambda: self._try_anchor(annotation_id),
            max_attempts=self.max_attempts,
            delay_ms=self.delay_ms,
            is_current=lambda: (self._tasks.get(annotation_id) is task
                                and self.annotations.has_annotation(annotation_id)),
            on_exhausted=lambda: self._give_up(annotation_id, page_number),
            name=f"anchor {annotation_id}",
        )
        self._tasks[annotation_id] = task
        task.start()

        if not task.active:
            if self._tasks.get(annotation_id) is task:
                del self._tasks[annotation_id]
            return None
        return task

    def restyle(self, annotation_ids: Iterable[str]) -> int:
        """
        Swap base styles of already anchored ranges without re-matching.

        Unanchored annotations pick up their new style on the next pass.

        Returns:
            Number of anchored ranges restyled
        """
        count = 0
        for annotation_id in annotation_ids:
            annotation = self.annotations.get_annotation(annotation_id)
            if annotation is None:
                continue
            if self.tag_table.restyle(annotation_id,
                                      self.matcher.styles.base_style(annotation)):
                count += 1
        return count

    def cancel(self, annotation_id: str) -> None:
        task = self._tasks.pop(annotation_id, None)
        if task is not None:
            task.cancel()

    def cancel_all(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()

    def pending_ids(self) -> List[str]:
        return [aid for aid, task in self._tasks.items() if task.active]

    def _cancel_page(self, page_number: int) -> None:
        for annotation_id in list(self._tasks):
            annotation = self.annotations.get_annotation(annotation_id)
            if annotation is None or annotation.page_number == page_number:
                self.cancel(annotation_id)

    def _try_anchor(self, annotation_id: str) -> bool:
        annotation = self.annotations.get_annotation(annotation_id)
        if annotation is None:
            return True

        tokens = self.surface.tokens_for(annotation.page_number)
        if self.matcher.anchor(annotation, tokens) is None:
            return False

        self._tasks.pop(annotation_id, None)
        if self.selection is not None:
            self.selection.reapply_overlay(annotation_id)
        self.anchored.emit(annotation_id, annotation.page_number)
        return True

    def _give_up(self, annotation_id: str, page_number: int) -> None:
        self._tasks.pop(annotation_id, None)
        logger.debug("Annotation %s not found on page %d", annotation_id, page_number)
        self.anchor_failed.emit(annotation_id, page_number)

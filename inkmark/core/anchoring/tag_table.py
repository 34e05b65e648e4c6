"""
Engine-owned table of which rendered tokens carry which annotation.

The render surface never stores annotation state. Views ask the table what
to paint for a token handle and repaint a page when ``tags_changed`` fires.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from PyQt5.QtCore import QObject, pyqtSignal

from ..annotations.models import AnnotationType
from ..page.models import TokenHandle, TokenInfo
from .styles import TokenStyle

logger = logging.getLogger(__name__)


@dataclass
class Anchor:
    """Annotation X occupies tokens [start, stop) of page P in render G."""
    annotation_id: str
    annotation_type: AnnotationType
    page_number: int
    generation: int
    start: int
    stop: int
    base_style: TokenStyle
    selected: bool = False

    @property
    def token_range(self) -> range:
        return range(self.start, self.stop)

    @property
    def handles(self) -> List[TokenHandle]:
        return [TokenHandle(self.page_number, self.generation, i)
                for i in self.token_range]


class TagTable(QObject):
    """
    Maps token handles to the annotations anchored on them.

    All operations are idempotent: tagging the same range with the same
    style again, or clearing an absent tag, changes nothing and emits
    nothing.
    """

    # Signals
    tags_changed = pyqtSignal(int)  # page_number

    def __init__(self, overlay_color: str = "#6366F1", overlay_width: float = 2.0,
                 parent=None):
        super().__init__(parent)
        self.overlay_color = overlay_color
        self.overlay_width = overlay_width

        self._anchors: Dict[str, Anchor] = {}
        # handle -> annotation ids, oldest first; the last one is on top
        self._by_handle: Dict[TokenHandle, List[str]] = {}

    def tag_range(self, annotation_id: str, annotation_type: AnnotationType,
                  tokens: Sequence[TokenInfo], base_style: TokenStyle) -> Anchor:
        """
        Tag a contiguous token range with an annotation.

        Any previous anchor of the same annotation is replaced.

        Args:
            annotation_id: Annotation identity
            annotation_type: Type, kept for painting and hit testing
            tokens: The matched tokens, contiguous and from one render
            base_style: Style without the selection overlay
        """
        if not tokens:
            raise ValueError("Cannot tag an empty token range")

        first = tokens[0]
        anchor = Anchor(
            annotation_id=annotation_id,
            annotation_type=annotation_type,
            page_number=first.page_number,
            generation=first.generation,
            start=first.index,
            stop=tokens[-1].index + 1,
            base_style=base_style,
        )

        existing = self._anchors.get(annotation_id)
        if existing is not None:
            anchor.selected = (existing.selected
                               and existing.page_number == anchor.page_number
                               and existing.generation == anchor.generation)
            if existing == anchor:
                return existing
            self._remove(existing)

        self._add(anchor)
        self.tags_changed.emit(anchor.page_number)
        return anchor

    def clear_tag(self, annotation_id: str) -> bool:
        """
        Remove every tag of an annotation.

        Returns:
            True if the annotation was anchored
        """
        anchor = self._anchors.get(annotation_id)
        if anchor is None:
            return False

        self._remove(anchor)
        self.tags_changed.emit(anchor.page_number)
        return True

    def set_overlay(self, annotation_id: str, selected: bool) -> bool:
        """
        Add or remove the selection overlay of an anchored annotation.

        Returns:
            True if the annotation is anchored and now carries the overlay
            state requested
        """
        anchor = self._anchors.get(annotation_id)
        if anchor is None:
            return False

        if anchor.selected != selected:
            anchor.selected = selected
            self.tags_changed.emit(anchor.page_number)
        return True

    def restyle(self, annotation_id: str, base_style: TokenStyle) -> bool:
        """
        Swap the base style of an already anchored range in place.

        Returns:
            True if the annotation is anchored
        """
        anchor = self._anchors.get(annotation_id)
        if anchor is None:
            return False

        if anchor.base_style != base_style:
            anchor.base_style = base_style
            self.tags_changed.emit(anchor.page_number)
        return True

    def drop_page(self, page_number: int, keep_generation: Optional[int] = None) -> List[str]:
        """
        Forget anchors on a page, except those from keep_generation.

        Called when a page is re-rendered or released, since token handles
        of older renders no longer exist.

        Returns:
            Ids of the annotations whose anchors were dropped
        """
        dropped = [anchor for anchor in self._anchors.values()
                   if anchor.page_number == page_number
                   and anchor.generation != keep_generation]
        for anchor in dropped:
            self._remove(anchor)
        if dropped:
            logger.debug("Dropped %d stale anchors on page %d", len(dropped), page_number)
            self.tags_changed.emit(page_number)
        return [anchor.annotation_id for anchor in dropped]

    def clear(self) -> None:
        pages = {anchor.page_number for anchor in self._anchors.values()}
        self._anchors.clear()
        self._by_handle.clear()
        for page_number in sorted(pages):
            self.tags_changed.emit(page_number)

    def anchor_for(self, annotation_id: str) -> Optional[Anchor]:
        return self._anchors.get(annotation_id)

    def is_anchored(self, annotation_id: str) -> bool:
        return annotation_id in self._anchors

    def annotation_at(self, handle: TokenHandle) -> Optional[str]:
        """Topmost annotation tagged on a token, if any."""
        ids = self._by_handle.get(handle)
        return ids[-1] if ids else None

    def annotations_at(self, handle: TokenHandle) -> List[str]:
        return list(self._by_handle.get(handle, []))

    def style_for(self, handle: TokenHandle) -> Optional[TokenStyle]:
        """Effective style of the topmost annotation on a token."""
        annotation_id = self.annotation_at(handle)
        if annotation_id is None:
            return None
        return self.effective_style(self._anchors[annotation_id])

    def effective_style(self, anchor: Anchor) -> TokenStyle:
        if anchor.selected:
            return anchor.base_style.with_overlay(self.overlay_color, self.overlay_width)
        return anchor.base_style

    def overlay_holders(self) -> List[str]:
        """Ids of anchored annotations currently carrying the overlay."""
        return [a.annotation_id for a in self._anchors.values() if a.selected]

    def _add(self, anchor: Anchor) -> None:
        self._anchors[anchor.annotation_id] = anchor
        for handle in anchor.handles:
            self._by_handle.setdefault(handle, []).append(anchor.annotation_id)

    def _remove(self, anchor: Anchor) -> None:
        self._anchors.pop(anchor.annotation_id, None)
        for handle in anchor.handles:
            ids = self._by_handle.get(handle)
            if not ids:
                continue
            if anchor.annotation_id in ids:
                ids.remove(anchor.annotation_id)
            if not ids:
                del self._by_handle[handle]

    def __len__(self) -> int:
        return len(self._anchors)

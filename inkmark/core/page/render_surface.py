"""
Render surface: regenerates page tokens on every paint, zoom or scroll.
"""
import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from ..scheduler import QtScheduler
from .models import TokenInfo
from .token_layer import PageTokenLayer

if TYPE_CHECKING:
    from ..document.pdf_reader import PDFDocumentReader

logger = logging.getLogger(__name__)


class RenderSurface(QObject):
    """
    Produces ordered, geometry-bearing tokens for the pages in view.

    Every render of a page builds a brand new token layer with a bumped
    generation, so token handles from an earlier render never survive a
    repaint. ``page_rendered`` may fire any number of times for a page.
    """

    # Signals
    page_rendered = pyqtSignal(int, object)  # page_number, List[TokenInfo]
    page_released = pyqtSignal(int)
    zoom_changed = pyqtSignal(float)

    def __init__(self, reader: "PDFDocumentReader", scheduler=None,
                 zoom: float = 1.0, parent=None):
        super().__init__(parent)
        self.reader = reader
        self.scheduler = scheduler or QtScheduler(self)
        self.zoom = zoom
        self.current_page: int = 1

        self._layers: Dict[int, PageTokenLayer] = {}
        self._generations: Dict[int, int] = {}

    def render_page(self, page_number: int) -> Optional[PageTokenLayer]:
        """
        Regenerate the tokens of a page and announce them.

        Args:
            page_number: 1-based page number

        Returns:
            The new token layer, or None if the page does not exist
        """
        generation = self._generations.get(page_number, 0) + 1
        layer = self.reader.extract_tokens(page_number, self.zoom, generation)
        if layer is None:
            logger.debug("Page %d is not available for rendering", page_number)
            return None

        self._generations[page_number] = generation
        self._layers[page_number] = layer
        self.page_rendered.emit(page_number, layer.tokens)
        return layer

    def request_render(self, page_number: int, delay_ms: int = 0) -> None:
        """Render a page on a later turn of the event loop."""
        self.scheduler.call_later(delay_ms, lambda: self.render_page(page_number))

    def scroll_to_page(self, page_number: int) -> None:
        """
        Bring a page into view.

        The page's tokens are regenerated asynchronously; callers must not
        assume they are available on return.
        """
        if not (1 <= page_number <= self.reader.get_page_count()):
            logger.warning("Cannot scroll to page %d", page_number)
            return
        self.current_page = page_number
        self.request_render(page_number)

    def set_zoom(self, zoom: float) -> None:
        """Change zoom and re-render every page currently in view."""
        if zoom == self.zoom:
            return
        self.zoom = zoom
        self.zoom_changed.emit(zoom)
        for page_number in sorted(self._layers):
            self.render_page(page_number)

    def release_page(self, page_number: int) -> None:
        """Drop a page that scrolled out of view."""
        if self._layers.pop(page_number, None) is not None:
            self.page_released.emit(page_number)

    def layer_for(self, page_number: int) -> Optional[PageTokenLayer]:
        return self._layers.get(page_number)

    def tokens_for(self, page_number: int) -> List[TokenInfo]:
        """Current tokens of a page, empty if it has not been rendered."""
        layer = self._layers.get(page_number)
        return layer.tokens if layer else []

    def reset(self) -> None:
        """Forget all rendered pages, e.g. when another document opens."""
        for page_number in list(self._layers):
            self.release_page(page_number)
        self._generations.clear()
        self.current_page = 1

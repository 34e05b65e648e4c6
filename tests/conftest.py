import os

os.environ.setdefault("QT_QPA_PLATFORM", "minimal")

import pytest
from PyQt5.QtCore import QCoreApplication, QObject, pyqtSignal

from inkmark.core.anchoring import AnchorMatcher, Reconciler, StyleResolver, TagTable
from inkmark.core.annotations import (
    Annotation,
    AnnotationManager,
    AnnotationPersistence,
    AnnotationType,
)
from inkmark.core.categories import CategoryManager, CategoryPersistence
from inkmark.core.page import PageTokenLayer
from inkmark.core.selection import AnnotationSelection


_QAPP = None


def _ensure_qapp():
    global _QAPP
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    _QAPP = app
    return _QAPP


class _ManualCall:
    def __init__(self, due, seq, callback):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.done = False

    @property
    def pending(self):
        return not self.done

    def cancel(self):
        self.done = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test advances it."""

    def __init__(self):
        self.now = 0
        self._seq = 0
        self._calls = []

    def call_later(self, delay_ms, callback):
        self._seq += 1
        call = _ManualCall(self.now + max(0, int(delay_ms)), self._seq, callback)
        self._calls.append(call)
        return call

    def pending(self):
        return [c for c in self._calls if not c.done]

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [c for c in self.pending() if c.due <= target]
            if not due:
                break
            call = min(due, key=lambda c: (c.due, c.seq))
            self.now = call.due
            call.done = True
            call.callback()
        self.now = target

    def run_all(self, limit=100):
        for _ in range(limit):
            pending = self.pending()
            if not pending:
                return
            self.advance(min(c.due for c in pending) - self.now)
        raise AssertionError("scheduler did not settle")


class FakeSurface(QObject):
    """Render surface stand-in driven by token text lists."""

    page_rendered = pyqtSignal(int, object)
    page_released = pyqtSignal(int)

    def __init__(self):
        super().__init__()
        self._layers = {}
        self._generations = {}
        self.scrolled = []

    def render(self, page_number, texts):
        generation = self._generations.get(page_number, 0) + 1
        self._generations[page_number] = generation
        layer = PageTokenLayer.from_texts(texts, page_number, generation)
        self._layers[page_number] = layer
        self.page_rendered.emit(page_number, layer.tokens)
        return layer

    def put_tokens(self, page_number, texts):
        """Replace a page's tokens without announcing a render."""
        generation = self._generations.get(page_number, 0) + 1
        self._generations[page_number] = generation
        layer = PageTokenLayer.from_texts(texts, page_number, generation)
        self._layers[page_number] = layer
        return layer

    def release(self, page_number):
        self._layers.pop(page_number, None)
        self.page_released.emit(page_number)

    def layer_for(self, page_number):
        return self._layers.get(page_number)

    def tokens_for(self, page_number):
        layer = self._layers.get(page_number)
        return layer.tokens if layer else []

    def scroll_to_page(self, page_number):
        self.scrolled.append(page_number)


class CountingPersistence(AnnotationPersistence):
    """Annotation persistence that counts writes."""

    def __init__(self, base_dir):
        super().__init__(base_dir)
        self.writes = 0

    def save(self, namespace, annotations):
        self.writes += 1
        super().save(namespace, annotations)


class Engine:
    """The engine pieces wired the way the controller wires them."""

    def __init__(self, tmp_path, max_attempts=5, delay_ms=200):
        self.scheduler = ManualScheduler()
        self.surface = FakeSurface()
        self.persistence = CountingPersistence(tmp_path / "annotations")
        self.annotations = AnnotationManager(self.persistence)
        self.annotations.init_for_document("/docs/paper.pdf", "sample text")
        self.categories = CategoryManager(CategoryPersistence(tmp_path / "config"))
        self.styles = StyleResolver(self.categories)
        self.tag_table = TagTable()
        self.matcher = AnchorMatcher(self.tag_table, self.styles)
        self.reconciler = Reconciler(self.surface, self.annotations, self.tag_table,
                                     self.matcher, self.scheduler,
                                     max_attempts=max_attempts, delay_ms=delay_ms)
        self.selection = AnnotationSelection(self.tag_table, self.annotations,
                                             self.surface, self.matcher, self.scheduler,
                                             max_attempts=max_attempts, delay_ms=delay_ms)
        self.reconciler.set_selection(self.selection)

    def add(self, page_number, signature, annotation_type=AnnotationType.HIGHLIGHT,
            category_id="general"):
        category = self.categories.get_category_by_id(category_id)
        annotation = Annotation(
            page_number=page_number,
            annotation_type=annotation_type,
            color=category.color if category else "#FDE047",
            text=" ".join(signature),
            signature=tuple(signature),
            category_id=category_id,
        )
        self.annotations.add_annotation(annotation)
        return annotation


@pytest.fixture
def qapp():
    return _ensure_qapp()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface(qapp):
    return FakeSurface()


@pytest.fixture
def engine(qapp, tmp_path):
    return Engine(tmp_path)


def make_pdf(path, lines_by_page):
    """Write a PDF with one text line per entry, one list per page."""
    import fitz

    doc = fitz.open()
    for lines in lines_by_page:
        page = doc.new_page()
        for i, line in enumerate(lines):
            page.insert_text((72, 72 + i * 20), line, fontsize=11)
    doc.save(str(path))
    doc.close()
    return str(path)

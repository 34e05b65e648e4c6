import pytest

from inkmark.config import EngineConfig
from inkmark.controllers import AnnotationController
from inkmark.core.annotations import AnnotationPersistence, AnnotationType
from inkmark.core.categories import CategoryPersistence

from conftest import ManualScheduler, make_pdf


LINES = ["Introduction. The attention mechanism", "allows models to focus."]


@pytest.fixture
def pdf_path(tmp_path):
    return make_pdf(tmp_path / "paper.pdf", [LINES, ["Second page with attention mechanism"]])


def _controller(tmp_path, scheduler):
    return AnnotationController(
        EngineConfig(),
        scheduler=scheduler,
        annotation_persistence=AnnotationPersistence(tmp_path / "annotations"),
        category_persistence=CategoryPersistence(tmp_path / "config"),
    )


@pytest.fixture
def controller(qapp, tmp_path, pdf_path):
    scheduler = ManualScheduler()
    controller = _controller(tmp_path, scheduler)
    assert controller.open_document(pdf_path)
    scheduler.run_all()
    yield controller
    controller.close_document()


def _select_words(controller, page_number, first, last):
    tokens = controller.surface.tokens_for(page_number)
    controller.text_selection.start(tokens[first])
    controller.text_selection.extend(tokens[last])
    controller.text_selection.finish()


def test_create_annotation_anchors_and_selects(controller):
    _select_words(controller, 1, 1, 3)
    selected = []
    controller.annotation_selected.connect(selected.append)

    ann = controller.create_annotation(AnnotationType.HIGHLIGHT, category_id="definition")

    assert ann.signature == ("The", "attention", "mechanism")
    assert ann.color == "#60A5FA"
    assert controller.tag_table.anchor_for(ann.id).token_range == range(1, 4)
    assert controller.selection.selected_id == ann.id
    assert selected == [ann]
    assert controller.category_manager.recent_category_ids[0] == "definition"
    assert not controller.text_selection.has_selection()

    handle = controller.surface.tokens_for(1)[2].handle
    assert controller.style_for(handle).has_overlay


def test_create_without_selection_does_nothing(controller):
    assert controller.create_annotation(AnnotationType.HIGHLIGHT) is None
    assert controller.annotation_manager.get_annotation_count() == 0


def test_create_with_unknown_category_or_bad_color_is_rejected(controller):
    _select_words(controller, 1, 1, 2)
    assert controller.create_annotation(AnnotationType.HIGHLIGHT, category_id="nope") is None
    assert controller.create_annotation(AnnotationType.HIGHLIGHT, color="teal") is None
    assert controller.annotation_manager.get_annotation_count() == 0


def test_multi_line_selection_keeps_line_breaks_in_text(controller):
    _select_words(controller, 1, 3, 4)
    ann = controller.create_annotation(AnnotationType.UNDERLINE, color="#112233")

    assert ann.signature == ("mechanism", "allows")
    assert ann.text == "mechanism\nallows"
    assert ann.category_id is None


def test_annotations_survive_zoom(controller):
    _select_words(controller, 1, 1, 3)
    ann = controller.create_annotation(AnnotationType.HIGHLIGHT)

    controller.surface.set_zoom(2.0)

    anchor = controller.tag_table.anchor_for(ann.id)
    assert anchor.generation == 2
    assert anchor.token_range == range(1, 4)
    assert controller.tag_table.overlay_holders() == [ann.id]


def test_recolor_category_restyles_members_only(controller):
    _select_words(controller, 1, 1, 2)
    member = controller.create_annotation(AnnotationType.HIGHLIGHT, category_id="example")
    _select_words(controller, 1, 5, 6)
    other = controller.create_annotation(AnnotationType.HIGHLIGHT, category_id="general")

    assert controller.recolor_category("example", "#000000")

    assert member.color == "#000000"
    assert other.color == "#FDE047"
    assert controller.tag_table.anchor_for(member.id).base_style.background == \
        "rgba(0, 0, 0, 0.35)"
    assert controller.tag_table.anchor_for(other.id).base_style.background == \
        "rgba(253, 224, 71, 0.35)"


def test_update_color_and_set_category(controller):
    _select_words(controller, 1, 1, 2)
    ann = controller.create_annotation(AnnotationType.STRIKETHROUGH)

    assert controller.update_color(ann.id, "#123456")
    assert controller.tag_table.anchor_for(ann.id).base_style.strike == "#123456"
    assert not controller.update_color(ann.id, "bad")

    assert controller.set_category(ann.id, "important")
    assert controller.tag_table.anchor_for(ann.id).base_style.strike == "#F87171"
    assert not controller.set_category(ann.id, "missing")

    assert controller.update_note(ann.id, "check")
    assert controller.annotation_manager.get_annotation(ann.id).note == "check"


def test_delete_selected_annotation_clears_everything(controller):
    _select_words(controller, 1, 1, 2)
    ann = controller.create_annotation(AnnotationType.HIGHLIGHT)
    removed = []
    controller.selection.overlay_removed.connect(removed.append)

    assert controller.delete_annotation(ann.id)

    assert removed == [ann.id]
    assert controller.selection.is_idle
    assert not controller.tag_table.is_anchored(ann.id)
    assert controller.annotation_manager.get_annotation(ann.id) is None
    assert not controller.delete_annotation(ann.id)


def test_delete_other_annotation_keeps_selection(controller):
    _select_words(controller, 1, 1, 2)
    first = controller.create_annotation(AnnotationType.HIGHLIGHT)
    _select_words(controller, 1, 5, 6)
    second = controller.create_annotation(AnnotationType.HIGHLIGHT)
    controller.selection.select(first.id)

    controller.delete_annotation(second.id)

    assert controller.selection.selected_id == first.id


def test_click_selects_and_clears(controller):
    _select_words(controller, 1, 1, 2)
    ann = controller.create_annotation(AnnotationType.HIGHLIGHT)
    controller.selection.deselect()
    token = controller.surface.tokens_for(1)[1]
    x = (token.bbox[0] + token.bbox[2]) / 2
    y = (token.bbox[1] + token.bbox[3]) / 2

    assert controller.handle_click(1, x, y) == ann.id
    assert controller.handle_click(1, 1.0, 1.0) is None
    assert controller.selection.is_idle


def test_jump_to_annotation_on_other_page(controller):
    controller.surface.scroll_to_page(2)
    controller.scheduler.run_all()
    _select_words(controller, 2, 3, 4)
    target = controller.create_annotation(AnnotationType.HIGHLIGHT)
    controller.surface.release_page(2)
    controller.surface.scroll_to_page(1)
    controller.scheduler.run_all()
    controller.selection.deselect()

    assert controller.jump_to(target.id)
    assert controller.selection.is_idle
    controller.scheduler.run_all()

    assert controller.selection.selected_id == target.id
    assert controller.surface.current_page == 2


def test_reopen_restores_annotations(qapp, tmp_path, pdf_path):
    scheduler = ManualScheduler()
    controller = _controller(tmp_path, scheduler)
    controller.open_document(pdf_path)
    scheduler.run_all()
    _select_words(controller, 1, 1, 3)
    ann = controller.create_annotation(AnnotationType.HIGHLIGHT, note="why")
    controller.close_document()

    assert controller.annotation_manager.get_annotation_count() == 0
    assert len(controller.tag_table) == 0

    controller.open_document(pdf_path)
    scheduler.run_all()

    assert controller.annotation_manager.get_annotation(ann.id).note == "why"
    assert controller.tag_table.anchor_for(ann.id).token_range == range(1, 4)
    assert controller.selection.is_idle
    controller.close_document()


def test_close_document_reports_no_selection(controller):
    _select_words(controller, 1, 1, 2)
    controller.create_annotation(AnnotationType.HIGHLIGHT)
    selected = []
    controller.annotation_selected.connect(selected.append)

    controller.close_document()

    assert selected == [None]


def test_exports(controller, tmp_path):
    _select_words(controller, 1, 1, 3)
    controller.create_annotation(AnnotationType.HIGHLIGHT, category_id="important",
                                 note="core")

    assert "> **[Important]** \"The attention mechanism\"" in controller.export_markdown()
    assert "\"categoryId\": \"important\"" in controller.export_json()
    assert controller.export_pdf(str(tmp_path / "out.pdf")) == (1, 0)
    assert controller.category_counts() == {"important": 1}


def test_open_missing_document_fails(qapp, tmp_path):
    controller = _controller(tmp_path, ManualScheduler())
    assert not controller.open_document(str(tmp_path / "missing.pdf"))
    assert controller.export_pdf(str(tmp_path / "out.pdf")) is None

from inkmark.core.document import PDFDocumentReader
from inkmark.core.page import RenderSurface
from inkmark.core.selection import TextSelection

from conftest import ManualScheduler, make_pdf


WORDS = ["alpha", "beta", "gamma", "delta", "epsilon"]


def _texts(selection):
    return [token.text for token in selection.selected_tokens()]


def test_select_token_selects_a_single_word(surface):
    tokens = surface.render(1, WORDS).tokens
    selection = TextSelection(surface)
    changes = []
    selection.selection_changed.connect(lambda: changes.append(True))

    selection.select_token(tokens[2])

    assert _texts(selection) == ["gamma"]
    assert selection.capture().signature == ("gamma",)
    assert not selection.is_selecting
    assert changes == [True]


def test_select_all_covers_the_page(surface):
    surface.render(1, WORDS)
    selection = TextSelection(surface)

    selection.select_all(1)
    assert _texts(selection) == WORDS

    selection.clear()
    selection.select_all(2)
    assert not selection.has_selection()


def test_select_rect_spans_first_to_last_hit(surface):
    surface.render(1, WORDS)
    selection = TextSelection(surface)

    selection.select_rect(1, (12.0, 0.0, 35.0, 10.0))
    assert _texts(selection) == ["beta", "gamma", "delta"]

    cleared = []
    selection.selection_cleared.connect(lambda: cleared.append(True))
    selection.select_rect(1, (500.0, 500.0, 600.0, 600.0))
    assert not selection.has_selection()
    assert cleared == [True]


def test_selection_survives_a_repaint(surface):
    surface.render(1, WORDS)
    selection = TextSelection(surface)
    selection.select_rect(1, (12.0, 0.0, 25.0, 10.0))

    surface.render(1, WORDS)

    assert [t.generation for t in selection.selected_tokens()] == [2, 2]
    assert _texts(selection) == ["beta", "gamma"]


def test_select_line_at_picks_only_that_line(qapp, tmp_path):
    path = make_pdf(tmp_path / "doc.pdf", [["Introduction. The attention mechanism",
                                            "allows models to focus."]])
    reader = PDFDocumentReader()
    reader.load_pdf(path)
    scheduler = ManualScheduler()
    surface = RenderSurface(reader, scheduler)
    surface.scroll_to_page(1)
    scheduler.run_all()
    selection = TextSelection(surface)

    selection.select_line_at(surface.tokens_for(1)[5])

    assert _texts(selection) == ["allows", "models", "to", "focus."]
    assert selection.capture().text == "allows models to focus."
    reader.close_document()


def test_extend_onto_another_page_is_ignored(surface):
    first = surface.render(1, WORDS).tokens
    other = surface.render(2, ["zeta", "eta"]).tokens
    selection = TextSelection(surface)

    selection.start(first[0])
    selection.extend(other[1])
    selection.extend(first[1])
    selection.finish()

    assert _texts(selection) == ["alpha", "beta"]

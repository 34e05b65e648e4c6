from inkmark.core.page import TokenHandle


PAGE = ["Introduction", ".", "The", "attention", "mechanism", "allows", "models",
        "to", "focus", "."]


def _record_overlay_events(selection):
    events = []
    selection.overlay_removed.connect(lambda aid: events.append(("removed", aid)))
    selection.overlay_applied.connect(lambda aid: events.append(("applied", aid)))
    return events


def test_click_on_annotation_selects_it(engine):
    ann = engine.add(1, ["The", "attention"])
    engine.surface.render(1, PAGE)

    assert engine.selection.handle_click(TokenHandle(1, 1, 3)) == ann.id
    assert engine.selection.selected_id == ann.id
    assert engine.tag_table.overlay_holders() == [ann.id]


def test_selecting_b_strips_a_before_applying_b(engine):
    a = engine.add(1, ["The", "attention"])
    b = engine.add(1, ["allows", "models"])
    engine.surface.render(1, PAGE)
    engine.selection.select(a.id)
    events = _record_overlay_events(engine.selection)

    engine.selection.handle_click(TokenHandle(1, 1, 5))

    assert events == [("removed", a.id), ("applied", b.id)]
    assert engine.tag_table.overlay_holders() == [b.id]
    assert engine.selection.selected_id == b.id


def test_click_on_empty_area_returns_to_idle(engine):
    ann = engine.add(1, ["The", "attention"])
    engine.surface.render(1, PAGE)
    engine.selection.select(ann.id)
    changes = []
    engine.selection.selection_changed.connect(changes.append)

    assert engine.selection.handle_click(TokenHandle(1, 1, 0)) is None
    engine.selection.handle_click(None)

    assert engine.selection.is_idle
    assert engine.tag_table.overlay_holders() == []
    assert changes == [None]


def test_overlay_keeps_base_style_of_each_type(engine):
    ann = engine.add(1, ["allows", "models"])
    engine.surface.render(1, PAGE)
    base = engine.tag_table.style_for(TokenHandle(1, 1, 5))

    engine.selection.select(ann.id)
    selected = engine.tag_table.style_for(TokenHandle(1, 1, 5))

    assert selected.background == base.background
    assert selected.has_overlay
    assert selected.without_overlay() == base


def test_select_unknown_annotation_is_rejected(engine):
    assert engine.selection.select("missing") is False
    assert engine.selection.is_idle


def test_at_most_one_overlay_after_mixed_operations(engine):
    a = engine.add(1, ["The", "attention"])
    b = engine.add(1, ["allows", "models"])
    c = engine.add(2, ["to", "focus"])
    engine.surface.render(1, PAGE)
    engine.surface.render(2, PAGE)

    engine.selection.select(a.id)
    engine.selection.jump_to(c.id)
    engine.selection.handle_click(TokenHandle(1, 1, 6))
    engine.surface.render(1, PAGE)
    engine.selection.jump_to(a.id)
    engine.scheduler.run_all()

    assert len(engine.tag_table.overlay_holders()) <= 1
    assert engine.selection.selected_id == a.id
    assert engine.tag_table.overlay_holders() == [a.id]
    assert b.id != engine.selection.selected_id


def test_jump_strips_current_selection_and_scrolls(engine):
    a = engine.add(1, ["The", "attention"])
    b = engine.add(2, ["allows", "models"])
    engine.surface.render(1, PAGE)
    engine.selection.select(a.id)

    engine.selection.jump_to(b.id)

    assert engine.surface.scrolled == [2]
    assert engine.selection.is_idle
    assert engine.tag_table.overlay_holders() == []


def test_jump_selects_once_page_renders(engine):
    ann = engine.add(2, ["allows", "models"])
    finished = []
    engine.selection.jump_finished.connect(lambda aid, ok: finished.append((aid, ok)))

    engine.selection.jump_to(ann.id)
    assert engine.selection.is_idle

    engine.surface.render(2, PAGE)
    engine.scheduler.advance(200)

    assert engine.selection.selected_id == ann.id
    assert engine.tag_table.overlay_holders() == [ann.id]
    assert finished == [(ann.id, True)]


def test_jump_gives_up_when_page_never_renders(engine):
    ann = engine.add(3, ["allows", "models"])
    finished = []
    engine.selection.jump_finished.connect(lambda aid, ok: finished.append((aid, ok)))

    engine.selection.jump_to(ann.id)
    engine.scheduler.run_all()

    assert finished == [(ann.id, False)]
    assert engine.selection.is_idle


def test_superseded_jump_never_overrides_newer_one(engine):
    a = engine.add(2, ["The", "attention"])
    b = engine.add(3, ["allows", "models"])

    engine.selection.jump_to(a.id)
    engine.selection.jump_to(b.id)

    # Both pages become available only after both requests were issued
    engine.surface.put_tokens(2, PAGE)
    engine.surface.put_tokens(3, PAGE)
    engine.scheduler.run_all()

    assert engine.selection.selected_id == b.id
    assert engine.tag_table.overlay_holders() == [b.id]
    assert not engine.tag_table.is_anchored(a.id)


def test_click_supersedes_pending_jump(engine):
    a = engine.add(1, ["The", "attention"])
    b = engine.add(2, ["allows", "models"])
    engine.surface.render(1, PAGE)

    engine.selection.jump_to(b.id)
    engine.selection.handle_click(TokenHandle(1, 1, 2))
    engine.surface.put_tokens(2, PAGE)
    engine.scheduler.run_all()

    assert engine.selection.selected_id == a.id
    assert engine.tag_table.overlay_holders() == [a.id]


def test_deleting_selected_annotation_returns_to_idle(engine):
    a = engine.add(1, ["The", "attention"])
    engine.surface.render(1, PAGE)
    engine.selection.select(a.id)

    engine.selection.handle_deleted(a.id)

    assert engine.selection.is_idle
    assert engine.tag_table.overlay_holders() == []


def test_deleting_other_annotation_keeps_selection(engine):
    a = engine.add(1, ["The", "attention"])
    b = engine.add(1, ["allows", "models"])
    engine.surface.render(1, PAGE)
    engine.selection.select(a.id)

    engine.selection.handle_deleted(b.id)

    assert engine.selection.selected_id == a.id
    assert engine.tag_table.overlay_holders() == [a.id]


def test_deleting_jump_target_cancels_jump(engine):
    ann = engine.add(2, ["allows", "models"])
    engine.selection.jump_to(ann.id)

    engine.selection.handle_deleted(ann.id)
    engine.annotations.remove_annotation(ann.id)
    engine.surface.put_tokens(2, PAGE)
    engine.scheduler.run_all()

    assert engine.selection.is_idle
    assert len(engine.tag_table) == 0


def test_reset_reports_the_cleared_selection(engine):
    ann = engine.add(1, ["The", "attention"])
    engine.surface.render(1, PAGE)
    engine.selection.select(ann.id)
    changes = []
    engine.selection.selection_changed.connect(changes.append)

    engine.selection.reset()

    assert changes == [None]
    assert engine.selection.is_idle
    assert engine.tag_table.overlay_holders() == []

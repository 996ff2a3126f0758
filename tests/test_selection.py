from __future__ import annotations

import random

from ezview.bounds import drawing_bounds
from ezview.entity import Entity
from ezview.geometry import Box, segments_intersect
from ezview.selection import (
    SelectionMode,
    SelectionSet,
    drag_rect,
    entities_in_rect,
    select_in_rect,
    selection_mode,
)
from ezview.transform import ViewState
from tests._dxf_helpers import circle, drawing, insert, line, polyline


def _screen_rect(view: ViewState, x1: float, y1: float, x2: float, y2: float) -> Box:
    return drag_rect(view.world_to_screen(x1, y1), view.world_to_screen(x2, y2))


def test_selection_mode_follows_drag_direction() -> None:
    assert selection_mode(10.0, 20.0) is SelectionMode.WINDOW
    assert selection_mode(20.0, 10.0) is SelectionMode.CROSSING
    assert selection_mode(10.0, 10.0) is SelectionMode.CROSSING


def test_circle_window_versus_crossing_scenario() -> None:
    d = drawing(circle(1, (0.0, 0.0), 5.0))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, -4.0, -6.0, 4.0, 6.0)

    assert entities_in_rect(d, view, rect, SelectionMode.WINDOW) == []
    assert entities_in_rect(d, view, rect, SelectionMode.CROSSING) == d.entities


def test_window_requires_full_containment() -> None:
    d = drawing(line(1, (0.0, 0.0), (10.0, 0.0)), line(2, (0.0, 5.0), (3.0, 5.0)))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, -1.0, 4.0, 4.0, 6.0)
    assert [e.handle for e in entities_in_rect(d, view, rect, SelectionMode.WINDOW)] == [2]


def test_crossing_catches_segment_passing_through_rect() -> None:
    d = drawing(line(1, (0.0, 0.0), (10.0, 10.0)), line(2, (0.0, 10.0), (1.0, 9.0)))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, 4.0, 4.5, 6.0, 5.5)
    hits = entities_in_rect(d, view, rect, SelectionMode.CROSSING)
    assert [e.handle for e in hits] == [1]


def test_crossing_rejects_segment_inside_bounding_box_but_outside_rect() -> None:
    d = drawing(line(1, (0.0, 0.0), (10.0, 10.0)))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, 7.0, 1.0, 9.0, 3.0)
    assert entities_in_rect(d, view, rect, SelectionMode.CROSSING) == []


def test_crossing_counts_closing_segment_of_closed_polyline() -> None:
    square_u = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
    d = drawing(polyline(1, square_u, closed=True), polyline(2, square_u, closed=False))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    # Only the implicit (0, 10) -> (0, 0) edge passes through this rectangle.
    rect = _screen_rect(view, -1.0, 4.0, 1.0, 6.0)

    hits = entities_in_rect(d, view, rect, SelectionMode.CROSSING)

    assert [e.handle for e in hits] == [1]


def test_crossing_open_polyline_needs_a_segment_in_rect() -> None:
    d = drawing(polyline(1, [(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)]))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)

    through = _screen_rect(view, 4.0, 4.5, 6.0, 5.5)
    under_apex = _screen_rect(view, 9.5, 4.0, 10.5, 6.0)

    assert entities_in_rect(d, view, through, SelectionMode.CROSSING) == d.entities
    assert entities_in_rect(d, view, under_apex, SelectionMode.CROSSING) == []
    assert entities_in_rect(d, view, through, SelectionMode.WINDOW) == []


def test_crossing_treats_circle_as_filled_disk() -> None:
    d = drawing(circle(1, (0.0, 0.0), 5.0))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, -1.0, -1.0, 1.0, 1.0)
    assert entities_in_rect(d, view, rect, SelectionMode.CROSSING) == d.entities


def test_insert_crosses_when_any_block_entity_crosses() -> None:
    ref = insert(10, "B", (10.0, 10.0), rotation=90.0, xscale=2.0)
    d = drawing(
        ref,
        line(11, (0.0, 0.0), (1.0, 1.0)),
        blocks={"B": (line(1, (0.0, 0.0), (1.0, 0.0)),)},
    )
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = _screen_rect(view, 9.5, 10.5, 10.5, 11.5)
    assert entities_in_rect(d, view, rect, SelectionMode.CROSSING) == [ref]


def test_hidden_layers_are_not_selected() -> None:
    d = drawing(line(1, (0.0, 0.0), (1.0, 0.0), layer="hidden"), line(2, (0.0, 1.0), (1.0, 1.0)))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    rect = Box(-1e6, -1e6, 1e6, 1e6)
    hits = entities_in_rect(d, view, rect, SelectionMode.WINDOW, is_visible=lambda n: n != "hidden")
    assert [e.handle for e in hits] == [2]


def test_select_in_rect_replaces_or_accumulates() -> None:
    d = drawing(line(1, (0.0, 0.0), (1.0, 0.0)), line(2, (5.0, 5.0), (6.0, 5.0)))
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)
    selection = SelectionSet([99])

    select_in_rect(selection, d, view, _screen_rect(view, -1.0, -1.0, 2.0, 1.0), SelectionMode.WINDOW)
    assert selection.handles == {1}

    select_in_rect(
        selection,
        d,
        view,
        _screen_rect(view, 4.0, 4.0, 7.0, 6.0),
        SelectionMode.WINDOW,
        additive=True,
    )
    assert selection.handles == {1, 2}

    # An additive operation that hits nothing never removes.
    select_in_rect(selection, d, view, Box(0.0, 0.0, 1.0, 1.0), SelectionMode.CROSSING, additive=True)
    assert selection.handles == {1, 2}


def test_selection_set_toggle_and_membership() -> None:
    entity = line(7, (0.0, 0.0), (1.0, 0.0))
    selection = SelectionSet()
    assert selection.toggle(entity) is True
    assert entity in selection
    assert 7 in selection
    assert selection.toggle(7) is False
    assert len(selection) == 0


def test_selection_entities_follow_storage_order() -> None:
    d = drawing(line(3, (0.0, 0.0), (1.0, 0.0)), line(1, (0.0, 1.0), (1.0, 1.0)))
    selection = SelectionSet([1, 3])
    assert [e.handle for e in selection.entities(d)] == [3, 1]


def test_segments_intersect_is_strict() -> None:
    assert segments_intersect((0.0, 0.0), (2.0, 2.0), (0.0, 2.0), (2.0, 0.0))
    # Touching at an endpoint is not a straddle.
    assert not segments_intersect((0.0, 0.0), (1.0, 1.0), (1.0, 1.0), (2.0, 0.0))


def test_window_selection_is_subset_of_crossing() -> None:
    rng = random.Random(1234)
    entities: list[Entity] = []
    for handle in range(1, 41):
        x, y = rng.uniform(-50.0, 50.0), rng.uniform(-50.0, 50.0)
        kind = handle % 4
        if kind == 0:
            entities.append(line(handle, (x, y), (x + rng.uniform(-20, 20), y + rng.uniform(-20, 20))))
        elif kind == 1:
            entities.append(circle(handle, (x, y), rng.uniform(0.5, 10.0)))
        elif kind == 2:
            points = [(x + rng.uniform(-15, 15), y + rng.uniform(-15, 15)) for _ in range(4)]
            entities.append(polyline(handle, points, closed=bool(handle % 3)))
        else:
            entities.append(insert(handle, "B", (x, y), rotation=rng.uniform(0, 360), xscale=2.0))
    d = drawing(
        *entities,
        Entity("LWPOLYLINE", 100, {"points": [(3.0, 3.0)]}),
        blocks={"B": (line(1000, (0.0, 0.0), (3.0, 1.0)), circle(1001, (1.0, 1.0), 1.0))},
    )
    view = ViewState.fitted(drawing_bounds(d), 800.0, 600.0)

    for _ in range(60):
        rect = drag_rect(
            (rng.uniform(-50.0, 850.0), rng.uniform(-50.0, 650.0)),
            (rng.uniform(-50.0, 850.0), rng.uniform(-50.0, 650.0)),
        )
        window = {e.handle for e in entities_in_rect(d, view, rect, SelectionMode.WINDOW)}
        crossing = {e.handle for e in entities_in_rect(d, view, rect, SelectionMode.CROSSING)}
        assert window <= crossing

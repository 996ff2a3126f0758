from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

from .blocks import entity_shapes
from .bounds import shape_bounds, to_screen_box
from .entity import Entity
from .geometry import Box, Point2D, circle_intersects_box, segment_intersects_box, union_boxes
from .hittest import LayerFilter
from .shapes import PathShape, Shape
from .transform import ViewState


class SelectionMode(str, Enum):
    WINDOW = "window"
    CROSSING = "crossing"


def selection_mode(start_x: float, end_x: float) -> SelectionMode:
    """Left-to-right drags select by window, right-to-left by crossing."""
    return SelectionMode.WINDOW if end_x > start_x else SelectionMode.CROSSING


def drag_rect(start: Point2D, end: Point2D) -> Box:
    return Box.from_corners(start, end)


class SelectionSet:
    def __init__(self, handles: Iterable[int] = ()) -> None:
        self._handles: set[int] = set(handles)

    def __contains__(self, item: object) -> bool:
        return _handle_of(item) in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[int]:
        return iter(self._handles)

    def __repr__(self) -> str:
        return f"SelectionSet({sorted(self._handles)!r})"

    @property
    def handles(self) -> frozenset[int]:
        return frozenset(self._handles)

    def add(self, item: Entity | int) -> None:
        self._handles.add(_handle_of(item))

    def update(self, items: Iterable[Entity | int]) -> None:
        for item in items:
            self.add(item)

    def discard(self, item: Entity | int) -> None:
        self._handles.discard(_handle_of(item))

    def toggle(self, item: Entity | int) -> bool:
        """Flip membership; returns True when the item is now selected."""
        handle = _handle_of(item)
        if handle in self._handles:
            self._handles.remove(handle)
            return False
        self._handles.add(handle)
        return True

    def clear(self) -> None:
        self._handles.clear()

    def entities(self, drawing) -> list[Entity]:
        """Selected entities in drawing storage order."""
        return [entity for entity in drawing.entities if entity.handle in self._handles]


def _handle_of(item: object) -> int:
    if isinstance(item, Entity):
        return item.handle
    return int(item)  # type: ignore[arg-type]


def shape_crosses_rect(shape: Shape, view: ViewState, rect: Box) -> bool:
    if isinstance(shape, PathShape):
        points = [view.world_to_screen(x, y) for x, y in shape.points]
        if len(points) == 1:
            return rect.contains_point(*points[0])
        screen_path = PathShape(tuple(points), shape.closed)
        return any(segment_intersects_box(a, b, rect) for a, b in screen_path.segments())
    center = view.world_to_screen(*shape.center)
    radius = view.world_length_to_screen(abs(shape.radius))
    return circle_intersects_box(center, radius, rect)


def _entity_qualifies(
    shapes: list[Shape],
    view: ViewState,
    rect: Box,
    mode: SelectionMode,
) -> bool:
    world_box = union_boxes(shape_bounds(shape) for shape in shapes)
    if world_box is None:
        return False
    screen_box = to_screen_box(world_box, view)
    if mode is SelectionMode.WINDOW:
        return rect.contains(screen_box)
    if rect.is_disjoint(screen_box):
        return False
    return any(shape_crosses_rect(shape, view, rect) for shape in shapes)


def entities_in_rect(
    drawing,
    view: ViewState,
    rect: Box,
    mode: SelectionMode,
    *,
    is_visible: LayerFilter | None = None,
) -> list[Entity]:
    out: list[Entity] = []
    blocks: Mapping[str, Any] = drawing.blocks
    for entity in drawing.entities:
        if is_visible is not None and not is_visible(entity.layer):
            continue
        if _entity_qualifies(entity_shapes(entity, blocks), view, rect, mode):
            out.append(entity)
    return out


def select_in_rect(
    selection: SelectionSet,
    drawing,
    view: ViewState,
    rect: Box,
    mode: SelectionMode,
    *,
    additive: bool = False,
    is_visible: LayerFilter | None = None,
) -> list[Entity]:
    if not additive:
        selection.clear()
    hits = entities_in_rect(drawing, view, rect, mode, is_visible=is_visible)
    selection.update(hits)
    return hits

from __future__ import annotations

from typing import Any, Mapping

from .blocks import entity_shapes
from .entity import Entity
from .geometry import Box, union_boxes
from .shapes import PathShape, Shape
from .transform import ViewState


def shape_bounds(shape: Shape) -> Box | None:
    if isinstance(shape, PathShape):
        return Box.from_points(shape.points)
    # Arcs are bounded by their full circle.
    cx, cy = shape.center
    r = abs(shape.radius)
    return Box(cx - r, cy - r, cx + r, cy + r)


def entity_bounds(entity: Entity, blocks: Mapping[str, Any]) -> Box | None:
    return union_boxes(shape_bounds(shape) for shape in entity_shapes(entity, blocks))


def drawing_bounds(drawing) -> Box | None:
    return union_boxes(entity_bounds(entity, drawing.blocks) for entity in drawing.entities)


def to_screen_box(box: Box, view: ViewState) -> Box:
    return Box.from_corners(
        view.world_to_screen(box.min_x, box.min_y),
        view.world_to_screen(box.max_x, box.max_y),
    )


def screen_bounds(entity: Entity, blocks: Mapping[str, Any], view: ViewState) -> Box | None:
    box = entity_bounds(entity, blocks)
    if box is None:
        return None
    return to_screen_box(box, view)

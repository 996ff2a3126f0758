from __future__ import annotations

import math
from typing import Any, Callable, Mapping

from .blocks import entity_shapes
from .entity import Entity
from .geometry import point_segment_distance
from .shapes import PathShape, Shape
from .transform import ViewState

PICK_TOLERANCE_PX = 5.0

LayerFilter = Callable[[str], bool]


def shape_hit(shape: Shape, x: float, y: float, tolerance: float) -> bool:
    if isinstance(shape, PathShape):
        return any(
            point_segment_distance(x, y, a, b) < tolerance for a, b in shape.segments()
        )
    # Circles and arcs test the full ring; arc angles are not checked.
    distance = math.hypot(x - shape.center[0], y - shape.center[1])
    return abs(distance - shape.radius) < tolerance


def entity_hit(
    entity: Entity,
    blocks: Mapping[str, Any],
    x: float,
    y: float,
    tolerance: float,
) -> bool:
    return any(shape_hit(shape, x, y, tolerance) for shape in entity_shapes(entity, blocks))


def pick_world(
    drawing,
    x: float,
    y: float,
    tolerance: float,
    *,
    is_visible: LayerFilter | None = None,
) -> Entity | None:
    """First entity in storage order within ``tolerance`` of the world point."""
    for entity in drawing.entities:
        if is_visible is not None and not is_visible(entity.layer):
            continue
        if entity_hit(entity, drawing.blocks, x, y, tolerance):
            return entity
    return None


def pick(
    drawing,
    view: ViewState,
    sx: float,
    sy: float,
    *,
    is_visible: LayerFilter | None = None,
    tolerance_px: float = PICK_TOLERANCE_PX,
) -> Entity | None:
    x, y = view.screen_to_world(sx, sy)
    return pick_world(
        drawing,
        x,
        y,
        tolerance_px / view.effective_scale,
        is_visible=is_visible,
    )

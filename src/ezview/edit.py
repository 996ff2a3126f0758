from __future__ import annotations

import logging
from typing import Any, Iterable

from .entity import Entity

logger = logging.getLogger(__name__)

POINT_FIELDS = ("center", "start", "end", "insert", "start_point", "end_point")
POINT_LIST_FIELDS = ("points", "control_points", "fit_points")


def translate(entity: Entity, dx: float, dy: float) -> Entity:
    """Shift every coordinate field present on ``entity`` in place.

    Works on field presence, not on ``dxftype``, so any entity carrying the
    usual coordinate keys is handled.
    """
    dxf = entity.dxf
    for key in POINT_FIELDS:
        value = dxf.get(key)
        if value is not None:
            dxf[key] = _shift(value, dx, dy)
    for key in POINT_LIST_FIELDS:
        values = dxf.get(key)
        if isinstance(values, list):
            for i, value in enumerate(values):
                values[i] = _shift(value, dx, dy)
        elif isinstance(values, tuple):
            dxf[key] = [_shift(value, dx, dy) for value in values]
    return entity


def _shift(point: Any, dx: float, dy: float) -> tuple[float, ...]:
    return (float(point[0]) + dx, float(point[1]) + dy, *(float(v) for v in point[2:]))


def move_entities(entities: Iterable[Entity], dx: float, dy: float) -> list[Entity]:
    moved = [translate(entity, dx, dy) for entity in entities]
    logger.debug("moved %d entities by (%s, %s)", len(moved), dx, dy)
    return moved


def copy_entities(drawing, entities: Iterable[Entity], dx: float, dy: float) -> list[Entity]:
    """Append translated duplicates of ``entities``; the originals are untouched."""
    copies: list[Entity] = []
    for entity in list(entities):
        duplicate = entity.clone(drawing.new_handle())
        translate(duplicate, dx, dy)
        copies.append(duplicate)
    for duplicate in copies:
        drawing.add(duplicate)
    logger.debug("copied %d entities by (%s, %s)", len(copies), dx, dy)
    return copies

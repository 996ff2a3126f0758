from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from .entity import Entity, Point2D, _xy
from .shapes import ArcShape, CircleShape, PathShape, Shape, local_shapes

logger = logging.getLogger(__name__)

MAX_BLOCK_DEPTH = 32


class UnresolvableBlockError(ValueError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"unresolvable block reference {name!r}: {reason}")
        self.name = name
        self.reason = reason


@dataclass(frozen=True)
class Placement:
    """INSERT placement: scale, then rotate, then translate."""

    x: float = 0.0
    y: float = 0.0
    xscale: float = 1.0
    yscale: float = 1.0
    rotation: float = 0.0

    @classmethod
    def from_insert(cls, insert: Entity | Mapping[str, Any]) -> "Placement":
        dxf = insert.dxf if isinstance(insert, Entity) else insert
        position = dxf.get("insert")
        x, y = _xy(position) if position is not None else (0.0, 0.0)
        # Zero or missing scale means unscaled.
        return cls(
            x=x,
            y=y,
            xscale=float(dxf.get("xscale") or 1.0),
            yscale=float(dxf.get("yscale") or 1.0),
            rotation=float(dxf.get("rotation") or 0.0),
        )

    def apply(self, x: float, y: float) -> Point2D:
        sx = x * self.xscale
        sy = y * self.yscale
        rot = math.radians(self.rotation)
        cos_r = math.cos(rot)
        sin_r = math.sin(rot)
        rx = sx * cos_r - sy * sin_r
        ry = sx * sin_r + sy * cos_r
        return (rx + self.x, ry + self.y)

    def apply_shape(self, shape: Shape) -> Shape:
        if isinstance(shape, PathShape):
            return PathShape(tuple(self.apply(x, y) for x, y in shape.points), shape.closed)
        if isinstance(shape, CircleShape):
            # Radius follows xscale only; non-uniform scale does not make ellipses.
            return CircleShape(self.apply(*shape.center), shape.radius * abs(self.xscale))
        return ArcShape(
            self.apply(*shape.center),
            shape.radius * abs(self.xscale),
            shape.start_angle + self.rotation,
            shape.end_angle + self.rotation,
        )


def transform_point(x: float, y: float, insert: Entity | Mapping[str, Any]) -> Point2D:
    return Placement.from_insert(insert).apply(x, y)


def transform_angle(angle: float, insert: Entity | Mapping[str, Any]) -> float:
    return angle + Placement.from_insert(insert).rotation


def transform_radius(radius: float, insert: Entity | Mapping[str, Any]) -> float:
    return radius * abs(Placement.from_insert(insert).xscale)


def resolve_insert(
    insert: Entity,
    blocks: Mapping[str, Any],
    *,
    _chain: tuple[str, ...] = (),
) -> list[Shape]:
    """World-space shapes of an INSERT, recursing through nested INSERTs.

    Raises :class:`UnresolvableBlockError` on a cyclic reference or when
    nesting exceeds ``MAX_BLOCK_DEPTH``. An unknown block name resolves to
    no shapes.
    """
    name = insert.dxf.get("name")
    if not name:
        return []
    name = str(name)
    if name in _chain:
        raise UnresolvableBlockError(name, "cyclic block reference " + " -> ".join(_chain + (name,)))
    if len(_chain) >= MAX_BLOCK_DEPTH:
        raise UnresolvableBlockError(name, f"block nesting deeper than {MAX_BLOCK_DEPTH}")
    block = blocks.get(name)
    if block is None:
        logger.debug("INSERT %s references unknown block %r", insert.handle, name)
        return []

    placement = Placement.from_insert(insert)
    chain = _chain + (name,)
    out: list[Shape] = []
    for inner in block.entities:
        if inner.dxftype == "INSERT":
            inner_shapes = resolve_insert(inner, blocks, _chain=chain)
        else:
            inner_shapes = local_shapes(inner)
        out.extend(placement.apply_shape(shape) for shape in inner_shapes)
    return out


def entity_shapes(entity: Entity, blocks: Mapping[str, Any]) -> list[Shape]:
    if entity.dxftype == "INSERT":
        try:
            return resolve_insert(entity, blocks)
        except UnresolvableBlockError as exc:
            logger.debug("skipping INSERT %s: %s", entity.handle, exc)
            return []
    return local_shapes(entity)


def find_unresolved_inserts(entities, blocks: Mapping[str, Any]) -> list[tuple[Entity, UnresolvableBlockError]]:
    out: list[tuple[Entity, UnresolvableBlockError]] = []
    for entity in entities:
        if entity.dxftype != "INSERT":
            continue
        try:
            resolve_insert(entity, blocks)
        except UnresolvableBlockError as exc:
            out.append((entity, exc))
    return out

"""World-space shapes: the common geometry every engine works on.

An entity resolves to zero or more shapes. LINE and polylines become paths,
CIRCLE and ARC keep their curves. INSERT entities are resolved through
:mod:`ezview.blocks`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .entity import POLYLINE_TYPES, Entity, Point2D, _xy


@dataclass(frozen=True)
class PathShape:
    points: tuple[Point2D, ...]
    closed: bool = False

    def segments(self) -> list[tuple[Point2D, Point2D]]:
        pts = self.points
        out = [(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
        if self.closed and len(pts) > 1:
            out.append((pts[-1], pts[0]))
        return out


@dataclass(frozen=True)
class CircleShape:
    center: Point2D
    radius: float


@dataclass(frozen=True)
class ArcShape:
    center: Point2D
    radius: float
    start_angle: float
    end_angle: float


Shape = Union[PathShape, CircleShape, ArcShape]


def local_shapes(entity: Entity) -> list[Shape]:
    """Shapes of a non-INSERT entity; empty when required geometry is missing."""
    dxf = entity.dxf
    dxftype = entity.dxftype
    try:
        if dxftype == "LINE":
            if dxf.get("start") is None or dxf.get("end") is None:
                return []
            return [PathShape((_xy(dxf["start"]), _xy(dxf["end"])))]
        if dxftype == "CIRCLE":
            radius = _radius(dxf)
            if dxf.get("center") is None or radius is None:
                return []
            return [CircleShape(_xy(dxf["center"]), radius)]
        if dxftype == "ARC":
            radius = _radius(dxf)
            if dxf.get("center") is None or radius is None:
                return []
            return [
                ArcShape(
                    _xy(dxf["center"]),
                    radius,
                    float(dxf.get("start_angle", 0.0)),
                    float(dxf.get("end_angle", 360.0)),
                )
            ]
        if dxftype in POLYLINE_TYPES:
            points = dxf.get("points")
            if not points:
                return []
            return [PathShape(tuple(_xy(p) for p in points), bool(dxf.get("closed", False)))]
    except ValueError:
        return []
    return []


def _radius(dxf: dict[str, Any]) -> float | None:
    value = dxf.get("radius")
    if value is None:
        return None
    return float(value)

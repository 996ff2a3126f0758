from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

Point2D = tuple[float, float]


@dataclass(frozen=True)
class Box:
    """Axis-aligned box. Used for world-space bounds and screen rectangles."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_points(cls, points: Iterable[Point2D]) -> "Box | None":
        xs: list[float] = []
        ys: list[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        if not xs:
            return None
        return cls(min(xs), min(ys), max(xs), max(ys))

    @classmethod
    def from_corners(cls, a: Point2D, b: Point2D) -> "Box":
        return cls(min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point2D:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def corners(self) -> tuple[Point2D, Point2D, Point2D, Point2D]:
        return (
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        )

    def edges(self) -> list[tuple[Point2D, Point2D]]:
        a, b, c, d = self.corners()
        return [(a, b), (b, c), (c, d), (d, a)]

    def union(self, other: "Box | None") -> "Box":
        if other is None:
            return self
        return Box(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def contains(self, other: "Box") -> bool:
        return (
            other.min_x >= self.min_x
            and other.max_x <= self.max_x
            and other.min_y >= self.min_y
            and other.max_y <= self.max_y
        )

    def is_disjoint(self, other: "Box") -> bool:
        return (
            other.max_x < self.min_x
            or other.min_x > self.max_x
            or other.max_y < self.min_y
            or other.min_y > self.max_y
        )


def union_boxes(boxes: Iterable[Box | None]) -> Box | None:
    out: Box | None = None
    for box in boxes:
        if box is None:
            continue
        out = box if out is None else out.union(box)
    return out


def point_segment_distance(px: float, py: float, a: Point2D, b: Point2D) -> float:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length2 = dx * dx + dy * dy
    if length2 == 0.0:
        return math.hypot(px - a[0], py - a[1])
    t = ((px - a[0]) * dx + (py - a[1]) * dy) / length2
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (a[0] + t * dx), py - (a[1] + t * dy))


def direction(p1: Point2D, p2: Point2D, p3: Point2D) -> float:
    """Cross product of (p3 - p1) and (p2 - p1)."""
    return (p3[0] - p1[0]) * (p2[1] - p1[1]) - (p2[0] - p1[0]) * (p3[1] - p1[1])


def segments_intersect(a1: Point2D, a2: Point2D, b1: Point2D, b2: Point2D) -> bool:
    # Strict straddle test; touching or collinear segments do not count.
    d1 = direction(b1, b2, a1)
    d2 = direction(b1, b2, a2)
    d3 = direction(a1, a2, b1)
    d4 = direction(a1, a2, b2)
    return ((d1 > 0 > d2) or (d1 < 0 < d2)) and ((d3 > 0 > d4) or (d3 < 0 < d4))


def segment_intersects_box(a: Point2D, b: Point2D, box: Box) -> bool:
    if box.contains_point(*a) or box.contains_point(*b):
        return True
    return any(segments_intersect(a, b, e1, e2) for e1, e2 in box.edges())


def circle_intersects_box(center: Point2D, radius: float, box: Box) -> bool:
    """Filled-disk test: true when the disk touches or overlaps the box."""
    closest_x = max(box.min_x, min(center[0], box.max_x))
    closest_y = max(box.min_y, min(center[1], box.max_y))
    dx = center[0] - closest_x
    dy = center[1] - closest_y
    return dx * dx + dy * dy <= radius * radius

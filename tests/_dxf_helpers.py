from __future__ import annotations

from pathlib import Path
from typing import Iterator

from ezview.document import Block, Drawing
from ezview.entity import Entity


def iter_dxf_records(path: Path, section: str = "ENTITIES") -> Iterator[dict[str, object]]:
    """Yield ``{"type", "groups"}`` records of one DXF section from raw group codes."""
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    section_name: str | None = None
    expect_section_name = False
    current: dict[str, object] | None = None

    for i in range(0, len(lines) - 1, 2):
        code = lines[i].strip()
        value = lines[i + 1].strip()

        if code == "0":
            if current is not None:
                yield current
                current = None
            if value == "SECTION":
                expect_section_name = True
            elif value == "ENDSEC":
                section_name = None
            elif section_name == section:
                current = {"type": value, "groups": []}
            continue

        if expect_section_name and code == "2":
            section_name = value
            expect_section_name = False
            continue

        if current is not None:
            groups = current["groups"]
            assert isinstance(groups, list)
            groups.append((code, value))

    if current is not None:
        yield current


def dxf_entities_of_type(path: Path, entity_type: str) -> list[dict[str, object]]:
    return [record for record in iter_dxf_records(path) if record["type"] == entity_type]


def group_value(record: dict[str, object], code: str, default: str | None = None) -> str | None:
    groups = record["groups"]
    assert isinstance(groups, list)
    for group_code, raw_value in groups:
        if group_code == code:
            return raw_value
    return default


def group_float(record: dict[str, object], code: str, default: float = 0.0) -> float:
    value = group_value(record, code)
    return default if value is None else float(value)


def dxf_polyline_points(record: dict[str, object]) -> list[tuple[float, float]]:
    groups = record["groups"]
    assert isinstance(groups, list)

    points: list[tuple[float, float]] = []
    pending_x: float | None = None
    for group_code, raw_value in groups:
        if group_code == "10":
            pending_x = float(raw_value)
            continue
        if group_code == "20" and pending_x is not None:
            points.append((pending_x, float(raw_value)))
            pending_x = None
    return points


def line(handle: int, start, end, **extra) -> Entity:
    return Entity("LINE", handle, {"start": start, "end": end, **extra})


def circle(handle: int, center, radius: float, **extra) -> Entity:
    return Entity("CIRCLE", handle, {"center": center, "radius": radius, **extra})


def polyline(handle: int, points, closed: bool = False, **extra) -> Entity:
    return Entity("LWPOLYLINE", handle, {"points": list(points), "closed": closed, **extra})


def insert(handle: int, name: str, position=(0.0, 0.0), **extra) -> Entity:
    return Entity("INSERT", handle, {"name": name, "insert": position, **extra})


def drawing(*entities: Entity, blocks: dict[str, tuple[Entity, ...]] | None = None, **kwargs) -> Drawing:
    block_map = {
        name: Block(name=name, entities=tuple(members))
        for name, members in (blocks or {}).items()
    }
    return Drawing(entities=list(entities), blocks=block_map, **kwargs)


def close(actual, expected, eps: float = 1e-9) -> bool:
    return all(abs(a - b) < eps for a, b in zip(actual, expected)) and len(actual) == len(expected)

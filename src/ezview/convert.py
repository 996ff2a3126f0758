from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import ezdxf

from .colors import aci_to_rgb
from .document import Drawing
from .entity import DEFAULT_LAYER, Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]


def to_dxf(
    drawing: Drawing,
    output_path: str,
    *,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> ConvertResult:
    """Write ``drawing`` (including any edits) to a DXF file.

    Layers are written with their table colors and block definitions are
    written before the modelspace so INSERTs keep resolving. Entities that
    cannot be written are counted per type in ``skipped_by_type``; with
    ``strict=True`` any skip raises ``ValueError`` and nothing is saved.
    """
    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    _write_layers(dxf_doc, drawing)

    block_skips: dict[str, int] = {}
    for block in drawing.blocks.values():
        if block.name not in dxf_doc.blocks:
            dxf_doc.blocks.new(name=block.name)
    for block in drawing.blocks.values():
        layout = dxf_doc.blocks.get(block.name)
        for entity in block.entities:
            if not _write_entity(layout, entity):
                block_skips[entity.dxftype] = block_skips.get(entity.dxftype, 0) + 1
    if block_skips:
        logger.debug("skipped block entities: %s", dict(sorted(block_skips.items())))

    modelspace = dxf_doc.modelspace()
    total = 0
    written = 0
    skipped_by_type: dict[str, int] = {}

    for entity in drawing.entities:
        total += 1
        if _write_entity(modelspace, entity):
            written += 1
            continue
        skipped_by_type[entity.dxftype] = skipped_by_type.get(entity.dxftype, 0) + 1

    skipped = total - written
    if strict and skipped > 0:
        summary = ", ".join(
            f"{dxftype}:{count}" for dxftype, count in sorted(skipped_by_type.items())
        )
        raise ValueError(f"failed to convert {skipped} entities ({summary})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))
    logger.debug("wrote %d of %d entities to %s", written, total, out_path)

    return ConvertResult(
        source_path=drawing.path or "",
        output_path=str(out_path),
        total_entities=total,
        written_entities=written,
        skipped_entities=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
    )


def _write_layers(dxf_doc: Any, drawing: Drawing) -> None:
    names = dict.fromkeys(entity.layer for entity in drawing.entities)
    for block in drawing.blocks.values():
        names.update(dict.fromkeys(entity.layer for entity in block.entities))
    names.update(dict.fromkeys(drawing.layer_colors))

    for name in names:
        if name in dxf_doc.layers:
            layer = dxf_doc.layers.get(name)
        else:
            layer = dxf_doc.layers.add(name)
        color = drawing.layer_colors.get(name)
        if color is not None:
            layer.rgb = _to_rgb(color)


def _write_entity(layout: Any, entity: Entity) -> bool:
    try:
        return _write_entity_unsafe(layout, entity)
    except (TypeError, ValueError, KeyError) as exc:
        logger.debug("cannot write %s %s: %s", entity.dxftype, entity.handle, exc)
        return False


def _write_entity_unsafe(layout: Any, entity: Entity) -> bool:
    dxftype = entity.dxftype
    dxf = entity.dxf
    dxfattribs = _entity_dxfattribs(dxf)

    if dxftype == "LINE":
        layout.add_line(_point3(dxf.get("start")), _point3(dxf.get("end")), dxfattribs=dxfattribs)
        return True

    if dxftype == "CIRCLE":
        layout.add_circle(
            _point3(dxf.get("center")),
            _radius(dxf),
            dxfattribs=dxfattribs,
        )
        return True

    if dxftype == "ARC":
        layout.add_arc(
            _point3(dxf.get("center")),
            _radius(dxf),
            float(dxf.get("start_angle", 0.0)),
            float(dxf.get("end_angle", 360.0)),
            dxfattribs=dxfattribs,
        )
        return True

    if dxftype in {"LWPOLYLINE", "POLYLINE"}:
        points = [_point2(point) for point in dxf.get("points") or []]
        if not points:
            return False
        layout.add_lwpolyline(
            points,
            format="xy",
            close=bool(dxf.get("closed", False)),
            dxfattribs=dxfattribs,
        )
        return True

    if dxftype == "INSERT":
        name = dxf.get("name")
        if not name:
            return False
        dxfattribs["xscale"] = float(dxf.get("xscale", 1.0))
        dxfattribs["yscale"] = float(dxf.get("yscale", 1.0))
        dxfattribs["rotation"] = float(dxf.get("rotation", 0.0))
        insert = dxf.get("insert")
        layout.add_blockref(
            str(name),
            _point3(insert) if insert is not None else (0.0, 0.0, 0.0),
            dxfattribs=dxfattribs,
        )
        return True

    return False


def _entity_dxfattribs(dxf: dict[str, Any]) -> dict[str, Any]:
    attribs: dict[str, Any] = {"layer": str(dxf.get("layer") or DEFAULT_LAYER)}
    color = _to_valid_aci(dxf.get("color"))
    if color is not None:
        attribs["color"] = color
    true_color = dxf.get("true_color")
    if true_color is not None:
        attribs["true_color"] = int(true_color) & 0xFFFFFF
    return attribs


def _to_valid_aci(value: Any) -> int | None:
    if value is None:
        return None
    try:
        aci = int(value)
    except (TypeError, ValueError):
        return None
    if aci_to_rgb(aci) is None:
        return None
    return aci


def _to_rgb(color: int) -> tuple[int, int, int]:
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)


def _radius(dxf: dict[str, Any]) -> float:
    radius = dxf.get("radius")
    if radius is None:
        raise ValueError("missing radius")
    return float(radius)


def _point3(value: Any) -> tuple[float, float, float]:
    if isinstance(value, (list, tuple)):
        if len(value) >= 3:
            return (float(value[0]), float(value[1]), float(value[2]))
        if len(value) >= 2:
            return (float(value[0]), float(value[1]), 0.0)
    raise ValueError(f"invalid point value: {value!r}")


def _point2(value: Any) -> tuple[float, float]:
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return (float(value[0]), float(value[1]))
    raise ValueError(f"invalid point value: {value!r}")

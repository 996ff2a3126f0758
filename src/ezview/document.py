from __future__ import annotations

import hashlib
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

import ezdxf

from .colors import DEFAULT_COLOR, aci_to_rgb, rgb_to_int
from .entity import DEFAULT_LAYER, SUPPORTED_ENTITY_TYPES, Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Block:
    name: str
    entities: tuple[Entity, ...] = ()


@dataclass
class Drawing:
    """Entities in storage order plus the block and layer tables.

    Entities are addressed by ``handle``. A loaded drawing is replaced
    wholesale; only the edit operations mutate it.
    """

    entities: list[Entity] = field(default_factory=list)
    blocks: dict[str, Block] = field(default_factory=dict)
    layer_colors: dict[str, int] = field(default_factory=dict)
    path: str | None = None
    file_id: str | None = None

    def __post_init__(self) -> None:
        self.entities = list(self.entities)
        self._index: dict[int, Entity] = {}
        for entity in self.entities:
            if entity.handle in self._index:
                raise ValueError(f"duplicate entity handle: {entity.handle}")
            self._index[entity.handle] = entity
        block_handles = [e.handle for block in self.blocks.values() for e in block.entities]
        self._next_handle = max([0, *self._index, *block_handles]) + 1

    def __len__(self) -> int:
        return len(self.entities)

    def get(self, handle: int) -> Entity | None:
        return self._index.get(handle)

    def new_handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def add(self, entity: Entity) -> None:
        if entity.handle in self._index:
            raise ValueError(f"duplicate entity handle: {entity.handle}")
        self.entities.append(entity)
        self._index[entity.handle] = entity
        self._next_handle = max(self._next_handle, entity.handle + 1)

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        type_set = _normalize_types(types)
        for entity in self.entities:
            if type_set is None or entity.dxftype in type_set:
                yield entity

    def layer_summary(self) -> list[tuple[str, int, int]]:
        """(name, entity count, table color) of used layers, most used first."""
        counts = Counter(entity.layer for entity in self.entities)
        return [
            (name, count, self.layer_colors.get(name, DEFAULT_COLOR))
            for name, count in counts.most_common()
        ]


def _normalize_types(types: str | Iterable[str] | None) -> set[str] | None:
    if types is None:
        return None
    if isinstance(types, str):
        tokens = types.replace(",", " ").split()
    else:
        tokens = list(types)
    return {str(token).strip().upper() for token in tokens if str(token).strip()}


def file_id(data: bytes | str) -> str:
    """Content-derived identifier used to key persisted view state."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha1(data).hexdigest()[:16]


def read(path: str) -> Drawing:
    file_path = Path(path)
    data = file_path.read_bytes()
    doc = ezdxf.readfile(str(file_path))
    drawing = from_ezdxf(doc)
    drawing.path = str(file_path)
    drawing.file_id = file_id(data)
    logger.debug(
        "read %s: %d entities, %d blocks, %d layers",
        file_path,
        len(drawing.entities),
        len(drawing.blocks),
        len(drawing.layer_colors),
    )
    return drawing


def from_ezdxf(doc: Any) -> Drawing:
    counter = iter(range(1, 1 << 62))

    entities = _convert_entities(doc.modelspace(), counter)
    blocks: dict[str, Block] = {}
    for block_layout in doc.blocks:
        if block_layout.is_any_layout:
            continue
        blocks[block_layout.name] = Block(
            name=block_layout.name,
            entities=tuple(_convert_entities(block_layout, counter)),
        )

    layer_colors: dict[str, int] = {}
    for layer in doc.layers:
        color = _layer_color(layer)
        if color is not None:
            layer_colors[layer.dxf.name] = color

    return Drawing(entities=entities, blocks=blocks, layer_colors=layer_colors)


def _convert_entities(layout: Iterable[Any], counter: Iterator[int]) -> list[Entity]:
    out: list[Entity] = []
    skipped: Counter[str] = Counter()
    for dxf_entity in layout:
        dxftype = dxf_entity.dxftype()
        if dxftype not in SUPPORTED_ENTITY_TYPES:
            skipped[dxftype] += 1
            continue
        dxf = _entity_dxf(dxf_entity, dxftype)
        if dxf is None:
            skipped[dxftype] += 1
            continue
        out.append(Entity(dxftype=dxftype, handle=next(counter), dxf=dxf))
    if skipped:
        logger.debug("skipped entities: %s", dict(sorted(skipped.items())))
    return out


def _entity_dxf(dxf_entity: Any, dxftype: str) -> dict[str, Any] | None:
    attribs = dxf_entity.dxf
    dxf: dict[str, Any] = {
        "layer": attribs.get("layer", DEFAULT_LAYER) or DEFAULT_LAYER,
        "color": attribs.get("color", 256),
    }
    if attribs.hasattr("true_color"):
        dxf["true_color"] = int(attribs.true_color) & 0xFFFFFF

    if dxftype == "LINE":
        dxf["start"] = _xy(attribs.start)
        dxf["end"] = _xy(attribs.end)
        return dxf

    if dxftype in {"CIRCLE", "ARC"}:
        dxf["center"] = _xy(attribs.center)
        dxf["radius"] = float(attribs.radius)
        if dxftype == "ARC":
            dxf["start_angle"] = float(attribs.start_angle)
            dxf["end_angle"] = float(attribs.end_angle)
        return dxf

    if dxftype == "LWPOLYLINE":
        dxf["points"] = [(float(x), float(y)) for x, y in dxf_entity.get_points(format="xy")]
        dxf["closed"] = bool(dxf_entity.closed)
        return dxf

    if dxftype == "POLYLINE":
        if not (dxf_entity.is_2d_polyline or dxf_entity.is_3d_polyline):
            return None
        dxf["points"] = [_xy(point) for point in dxf_entity.points()]
        dxf["closed"] = bool(dxf_entity.is_closed)
        return dxf

    if dxftype == "INSERT":
        dxf["name"] = str(attribs.name)
        dxf["insert"] = _xy(attribs.insert)
        dxf["xscale"] = float(attribs.get("xscale", 1.0))
        dxf["yscale"] = float(attribs.get("yscale", 1.0))
        dxf["rotation"] = float(attribs.get("rotation", 0.0))
        return dxf

    return None


def _layer_color(layer: Any) -> int | None:
    rgb = layer.rgb
    if rgb is not None:
        return rgb_to_int(rgb)
    # A negative ACI marks a layer that is switched off; the hue is abs().
    return aci_to_rgb(abs(int(layer.color)))


def _xy(value: Any) -> tuple[float, float]:
    return (float(value[0]), float(value[1]))

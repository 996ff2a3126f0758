from __future__ import annotations

from dataclasses import dataclass
from typing import Any

Point2D = tuple[float, float]

SUPPORTED_ENTITY_TYPES = (
    "LINE",
    "CIRCLE",
    "ARC",
    "LWPOLYLINE",
    "POLYLINE",
    "INSERT",
)
POLYLINE_TYPES = frozenset({"LWPOLYLINE", "POLYLINE"})

DEFAULT_LAYER = "0"
BYLAYER = 256


@dataclass(frozen=True)
class Entity:
    dxftype: str
    handle: int
    dxf: dict[str, Any]

    @property
    def layer(self) -> str:
        layer = self.dxf.get("layer")
        if layer is None or layer == "":
            return DEFAULT_LAYER
        return str(layer)

    @property
    def color(self) -> int | None:
        """Explicit ACI color, or None when the entity inherits from its layer."""
        color = self.dxf.get("color")
        if color is None:
            return None
        try:
            value = int(color)
        except (TypeError, ValueError):
            return None
        if value == BYLAYER:
            return None
        return value

    def clone(self, handle: int) -> "Entity":
        return Entity(dxftype=self.dxftype, handle=handle, dxf=_clone_value(self.dxf))


def _clone_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _clone_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_clone_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_clone_value(item) for item in value)
    return value


def _xy(value: Any) -> Point2D:
    if value is None:
        raise ValueError("invalid point value: None")
    try:
        return (float(value[0]), float(value[1]))
    except (TypeError, IndexError, ValueError) as exc:
        raise ValueError(f"invalid point value: {value!r}") from exc

from __future__ import annotations

from typing import Any, Mapping

from ezdxf import colors as ezdxf_colors

from .entity import Entity

DEFAULT_COLOR = 0x00FFFF
HIGHLIGHT_COLOR = 0x00FF00


def aci_to_rgb(aci: Any) -> int | None:
    """24-bit RGB for an ACI index in 1..255; None for BYBLOCK, BYLAYER or junk."""
    try:
        index = int(aci)
    except (TypeError, ValueError):
        return None
    if not 1 <= index <= 255:
        return None
    return rgb_to_int(ezdxf_colors.aci2rgb(index))


def rgb_to_int(rgb: Any) -> int:
    r, g, b = (int(v) for v in rgb[:3])
    return ezdxf_colors.rgb2int((r, g, b))


def resolve_entity_color(
    entity: Entity,
    layer_colors: Mapping[str, int] | None = None,
    overrides: Mapping[str, int] | None = None,
) -> int:
    layer = entity.layer
    if overrides and layer in overrides:
        return int(overrides[layer])

    true_color = entity.dxf.get("true_color")
    if true_color is not None:
        try:
            return int(true_color) & 0xFFFFFF
        except (TypeError, ValueError):
            pass

    rgb = aci_to_rgb(entity.color)
    if rgb is not None:
        return rgb

    if layer_colors and layer in layer_colors:
        return int(layer_colors[layer])
    return DEFAULT_COLOR


def to_hex(color: int) -> str:
    return f"#{int(color) & 0xFFFFFF:06x}"


def parse_hex(text: str) -> int:
    value = text.strip()
    if value.startswith("#"):
        value = value[1:]
    elif value.lower().startswith("0x"):
        value = value[2:]
    if len(value) != 6:
        raise ValueError(f"invalid color: {text!r}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise ValueError(f"invalid color: {text!r}") from exc

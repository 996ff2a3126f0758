from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from .blocks import entity_shapes
from .colors import HIGHLIGHT_COLOR, resolve_entity_color, to_hex
from .entity import Entity
from .hittest import LayerFilter
from .shapes import CircleShape, PathShape, Shape
from .transform import ViewState

LINE_WIDTH = 1.5
SELECTED_LINE_WIDTH = 3.0
CURVE_SEGMENTS = 64

Command = tuple[Any, ...]


@dataclass(frozen=True)
class Drawable:
    """Screen-space drawing commands for one top-level entity."""

    handle: int
    layer: str
    color: int
    width: float
    commands: tuple[Command, ...]


def shape_commands(shape: Shape, view: ViewState) -> list[Command]:
    if isinstance(shape, PathShape):
        points = [view.world_to_screen(x, y) for x, y in shape.points]
        if not points:
            return []
        commands: list[Command] = [("move_to", *points[0])]
        commands.extend(("line_to", *point) for point in points[1:])
        if shape.closed:
            commands.append(("close",))
        return commands

    cx, cy = view.world_to_screen(*shape.center)
    radius = view.world_length_to_screen(abs(shape.radius))
    if isinstance(shape, CircleShape):
        return [("circle", cx, cy, radius)]
    # The y flip mirrors angles; sweeping -end..-start keeps the arc's direction.
    return [
        (
            "arc",
            cx,
            cy,
            radius,
            -math.radians(shape.end_angle),
            -math.radians(shape.start_angle),
        )
    ]


def build_drawables(
    drawing,
    view: ViewState,
    *,
    selection=None,
    is_visible: LayerFilter | None = None,
    layer_color_overrides: Mapping[str, int] | None = None,
) -> list[Drawable]:
    """Drawables grouped by layer in order of first appearance.

    Hidden layers are skipped. Shapes produced by an INSERT are drawn with
    the INSERT's own color and selection state.
    """
    by_layer: dict[str, list[Entity]] = {}
    for entity in drawing.entities:
        by_layer.setdefault(entity.layer, []).append(entity)

    out: list[Drawable] = []
    for layer, entities in by_layer.items():
        if is_visible is not None and not is_visible(layer):
            continue
        for entity in entities:
            commands: list[Command] = []
            for shape in entity_shapes(entity, drawing.blocks):
                commands.extend(shape_commands(shape, view))
            if not commands:
                continue
            if selection is not None and entity in selection:
                color = HIGHLIGHT_COLOR
                width = SELECTED_LINE_WIDTH
            else:
                color = resolve_entity_color(entity, drawing.layer_colors, layer_color_overrides)
                width = LINE_WIDTH
            out.append(
                Drawable(
                    handle=entity.handle,
                    layer=layer,
                    color=color,
                    width=width,
                    commands=tuple(commands),
                )
            )
    return out


def plot(
    session,
    *,
    ax: Any | None = None,
    show: bool = True,
    title: str | None = None,
    background: str = "black",
):
    plt = _require_matplotlib()
    if ax is None:
        _fig, ax = plt.subplots()

    for drawable in session.drawables():
        _draw_drawable(ax, drawable)

    view = session.view
    ax.set_xlim(0.0, view.viewport_width)
    ax.set_ylim(view.viewport_height, 0.0)
    ax.set_aspect("equal", adjustable="box")
    ax.set_facecolor(background)
    if title:
        ax.set_title(title)
    if show:
        plt.show()
    return ax


def _draw_drawable(ax: Any, drawable: Drawable) -> None:
    color = to_hex(drawable.color)
    current: list[tuple[float, float]] = []
    for command in drawable.commands:
        op = command[0]
        if op == "move_to":
            if len(current) > 1:
                _draw_polyline(ax, current, drawable.width, color=color)
            current = [(command[1], command[2])]
        elif op == "line_to":
            current.append((command[1], command[2]))
        elif op == "close":
            if current:
                current.append(current[0])
        elif op == "circle":
            _draw_polyline(
                ax,
                _arc_points(command[1], command[2], command[3], 0.0, 2.0 * math.pi),
                drawable.width,
                color=color,
            )
        elif op == "arc":
            _draw_polyline(
                ax,
                _arc_points(*command[1:6]),
                drawable.width,
                color=color,
            )
    if len(current) > 1:
        _draw_polyline(ax, current, drawable.width, color=color)


def _arc_points(
    cx: float,
    cy: float,
    radius: float,
    start: float,
    end: float,
) -> list[tuple[float, float]]:
    while end <= start:
        end += 2.0 * math.pi
    steps = max(2, int(CURVE_SEGMENTS * (end - start) / (2.0 * math.pi)) + 1)
    return [
        (
            cx + radius * math.cos(start + (end - start) * i / steps),
            cy + radius * math.sin(start + (end - start) * i / steps),
        )
        for i in range(steps + 1)
    ]


def _draw_polyline(
    ax: Any,
    points: list[tuple[float, float]],
    line_width: float,
    color: str | None = None,
) -> None:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    ax.plot(xs, ys, linewidth=line_width, color=color)


def _require_matplotlib():
    try:
        import matplotlib.pyplot as plt
    except Exception as exc:
        raise ImportError(
            "matplotlib is required for plotting. Install it with `pip install ezview[plot]`."
        ) from exc
    return plt

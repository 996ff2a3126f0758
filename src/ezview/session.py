"""Viewer session: one drawing, its view and the current selection.

A :class:`Session` owns everything the interactive operations share, so
there is no module-level state. It mirrors what a viewer front end does with
pointer input: clicks pick, drags select by rectangle, the wheel zooms
about the cursor, and the move/copy tools take two points.

View state (zoom, pan, layer colors and visibility) can be saved per file
with :func:`save_view_state` and restored with :func:`load_view_state`.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Mapping

from .blocks import find_unresolved_inserts
from .bounds import drawing_bounds
from .document import Drawing
from .edit import copy_entities, move_entities
from .entity import Entity, Point2D
from .geometry import Box
from .hittest import PICK_TOLERANCE_PX, pick as pick_entity
from .render import Drawable, build_drawables
from .selection import SelectionMode, SelectionSet, drag_rect, selection_mode
from .selection import select_in_rect as select_entities_in_rect
from .transform import ViewState, wheel_factor

logger = logging.getLogger(__name__)

CLICK_DRAG_THRESHOLD_PX = 5.0
VIEW_STATE_PREFIX = "ezview-view-"

TOOLS = ("select", "pan", "move", "copy")


class Session:
    def __init__(
        self,
        drawing: Drawing | None = None,
        viewport_width: float = 800.0,
        viewport_height: float = 600.0,
        *,
        pick_tolerance_px: float = PICK_TOLERANCE_PX,
    ) -> None:
        self.drawing = drawing if drawing is not None else Drawing()
        self.view = ViewState(viewport_width=viewport_width, viewport_height=viewport_height)
        self.selection = SelectionSet()
        self.layer_visibility: dict[str, bool] = {}
        self.layer_colors: dict[str, int] = {}
        self.pick_tolerance_px = pick_tolerance_px
        self.tool = "select"
        self.base_point: Point2D | None = None
        self.view.refit(drawing_bounds(self.drawing))

    def load(self, drawing: Drawing, view_state: Mapping[str, Any] | None = None) -> None:
        self.drawing = drawing
        self.selection.clear()
        self.layer_visibility.clear()
        self.layer_colors.clear()
        self.tool = "select"
        self.base_point = None
        self.view.reset()
        self.view.refit(drawing_bounds(drawing))
        for entity, exc in find_unresolved_inserts(drawing.entities, drawing.blocks):
            logger.warning("INSERT %s is not drawn: %s", entity.handle, exc)
        if view_state is not None:
            self.apply_view_state(view_state)
        logger.debug("loaded drawing with %d entities", len(drawing.entities))

    def resize(self, width: float, height: float) -> None:
        self.view.refit(self.view.bounds, width, height)

    # Layers

    def layer_visible(self, name: str) -> bool:
        return self.layer_visibility.get(name, True)

    def set_layer_visible(self, name: str, visible: bool) -> None:
        self.layer_visibility[name] = bool(visible)

    def set_all_layers_visible(self, visible: bool) -> None:
        for name, _count, _color in self.drawing.layer_summary():
            self.layer_visibility[name] = bool(visible)

    def set_layer_color(self, name: str, color: int) -> None:
        self.layer_colors[name] = int(color) & 0xFFFFFF

    # Core operations

    def pick(self, sx: float, sy: float) -> Entity | None:
        return pick_entity(
            self.drawing,
            self.view,
            sx,
            sy,
            is_visible=self.layer_visible,
            tolerance_px=self.pick_tolerance_px,
        )

    def select_in_rect(
        self,
        rect: Box,
        mode: SelectionMode,
        additive: bool = False,
    ) -> list[Entity]:
        return select_entities_in_rect(
            self.selection,
            self.drawing,
            self.view,
            rect,
            mode,
            additive=additive,
            is_visible=self.layer_visible,
        )

    def translate_selection(self, dx: float, dy: float) -> list[Entity]:
        return move_entities(self.selection.entities(self.drawing), dx, dy)

    def duplicate_selection(self, dx: float, dy: float) -> list[Entity]:
        return copy_entities(self.drawing, self.selection.entities(self.drawing), dx, dy)

    # Pointer input

    def click(self, sx: float, sy: float, additive: bool = False) -> Entity | None:
        hit = self.pick(sx, sy)
        if additive:
            if hit is not None:
                self.selection.toggle(hit)
            return hit
        self.selection.clear()
        if hit is not None:
            self.selection.add(hit)
        return hit

    def finish_drag(self, start: Point2D, end: Point2D, additive: bool = False) -> list[Entity]:
        """Complete a pointer drag under the current tool.

        The pan tool moves the view by the pointer delta. The move and copy
        tools treat the release as a tool click at ``end``. In select mode a
        drag shorter than ``CLICK_DRAG_THRESHOLD_PX`` counts as a click at
        ``end``; otherwise the rectangle selects by window when dragged to
        the right and by crossing when dragged to the left.
        """
        if self.tool == "pan":
            self.view.pan_by(end[0] - start[0], end[1] - start[1])
            return []
        if self.tool in ("move", "copy"):
            return self.tool_click(end[0], end[1])
        if math.hypot(end[0] - start[0], end[1] - start[1]) < CLICK_DRAG_THRESHOLD_PX:
            hit = self.click(end[0], end[1], additive=additive)
            return [hit] if hit is not None else []
        mode = selection_mode(start[0], end[0])
        return self.select_in_rect(drag_rect(start, end), mode, additive=additive)

    def zoom_at(self, sx: float, sy: float, factor: float) -> None:
        self.view.zoom_at(sx, sy, factor)

    def zoom_wheel(self, sx: float, sy: float, delta_y: float) -> None:
        self.view.zoom_at(sx, sy, wheel_factor(delta_y))

    def pan_by(self, dx: float, dy: float) -> None:
        self.view.pan_by(dx, dy)

    # Tools

    def set_tool(self, tool: str) -> None:
        if tool not in TOOLS:
            raise ValueError(f"unknown tool: {tool!r}")
        self.tool = tool
        self.base_point = None

    def tool_click(self, sx: float, sy: float) -> list[Entity]:
        """Feed a click to the move or copy tool.

        The first click stores the base point. The next click moves the
        selection by the screen delta and returns to the select tool; with
        the copy tool every further click places one more copy set measured
        from the same base point.
        """
        if self.tool not in ("move", "copy") or len(self.selection) == 0:
            return []
        if self.base_point is None:
            self.base_point = (sx, sy)
            return []
        dx, dy = self.view.screen_delta_to_world(sx - self.base_point[0], sy - self.base_point[1])
        if self.tool == "move":
            moved = self.translate_selection(dx, dy)
            self.set_tool("select")
            return moved
        return self.duplicate_selection(dx, dy)

    def cancel(self) -> None:
        self.selection.clear()
        self.base_point = None
        if self.tool in ("move", "copy"):
            self.tool = "select"

    def drawables(self) -> list[Drawable]:
        return build_drawables(
            self.drawing,
            self.view,
            selection=self.selection,
            is_visible=self.layer_visible,
            layer_color_overrides=self.layer_colors,
        )

    # View state

    def view_state_key(self) -> str | None:
        if self.drawing.file_id is None:
            return None
        return VIEW_STATE_PREFIX + self.drawing.file_id

    def export_view_state(self) -> dict[str, Any]:
        return {
            "zoom": self.view.zoom,
            "pan": {"x": self.view.pan_x, "y": self.view.pan_y},
            "colors": dict(self.layer_colors),
            "visibility": dict(self.layer_visibility),
        }

    def apply_view_state(self, state: Mapping[str, Any]) -> None:
        zoom = _as_float(state.get("zoom"), 1.0)
        self.view.zoom = zoom if zoom > 0.0 else 1.0
        pan = state.get("pan")
        if not isinstance(pan, Mapping):
            pan = {}
        self.view.pan_x = _as_float(pan.get("x"), 0.0)
        self.view.pan_y = _as_float(pan.get("y"), 0.0)

        colors = state.get("colors")
        if isinstance(colors, Mapping):
            for name, color in colors.items():
                try:
                    self.set_layer_color(str(name), int(color))
                except (TypeError, ValueError):
                    logger.warning("ignoring invalid color for layer %r: %r", name, color)

        visibility = state.get("visibility")
        if isinstance(visibility, Mapping):
            for name, visible in visibility.items():
                self.set_layer_visible(str(name), bool(visible))


def _as_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    return result


def _state_path(directory: str | Path, file_id: str) -> Path:
    return Path(directory) / f"{VIEW_STATE_PREFIX}{file_id}.json"


def save_view_state(session: Session, directory: str | Path) -> Path:
    file_id = session.drawing.file_id
    if file_id is None:
        raise ValueError("drawing has no file id; view state cannot be keyed")
    path = _state_path(directory, file_id)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(session.export_view_state(), indent=2, sort_keys=True), encoding="utf-8")
    logger.debug("saved view state to %s", path)
    return path


def load_view_state(directory: str | Path, file_id: str) -> dict[str, Any] | None:
    path = _state_path(directory, file_id)
    if not path.exists():
        return None
    try:
        state = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable view state %s: %s", path, exc)
        return None
    if not isinstance(state, dict):
        logger.warning("ignoring malformed view state %s", path)
        return None
    return state

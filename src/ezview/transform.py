from __future__ import annotations

import logging
from dataclasses import dataclass

from .geometry import Box, Point2D

logger = logging.getLogger(__name__)

FIT_MARGIN_PX = 50.0
FIT_FILL = 0.9
WHEEL_ZOOM_OUT = 0.9
WHEEL_ZOOM_IN = 1.1


def fit_scale(bounds: Box | None, viewport_width: float, viewport_height: float) -> float:
    """World-to-pixel factor that fits ``bounds`` into the viewport at zoom 1."""
    if bounds is None or (bounds.width == 0.0 and bounds.height == 0.0):
        return 1.0
    width = bounds.width or 1.0
    height = bounds.height or 1.0
    scale = min(
        (viewport_width - FIT_MARGIN_PX) / width,
        (viewport_height - FIT_MARGIN_PX) / height,
    ) * FIT_FILL
    if not scale > 0.0:
        return 1.0
    return scale


def wheel_factor(delta_y: float) -> float:
    return WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN


@dataclass
class ViewState:
    viewport_width: float = 800.0
    viewport_height: float = 600.0
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    bounds: Box | None = None
    base_scale: float = 1.0

    @classmethod
    def fitted(
        cls,
        bounds: Box | None,
        viewport_width: float = 800.0,
        viewport_height: float = 600.0,
    ) -> "ViewState":
        view = cls(viewport_width=viewport_width, viewport_height=viewport_height)
        view.refit(bounds)
        return view

    @property
    def effective_scale(self) -> float:
        return self.base_scale * self.zoom

    @property
    def world_center(self) -> Point2D:
        if self.bounds is None:
            return (0.0, 0.0)
        return self.bounds.center

    @property
    def viewport_center(self) -> Point2D:
        return (self.viewport_width / 2.0, self.viewport_height / 2.0)

    def refit(
        self,
        bounds: Box | None,
        viewport_width: float | None = None,
        viewport_height: float | None = None,
    ) -> None:
        if viewport_width is not None:
            self.viewport_width = float(viewport_width)
        if viewport_height is not None:
            self.viewport_height = float(viewport_height)
        self.bounds = bounds
        self.base_scale = fit_scale(bounds, self.viewport_width, self.viewport_height)
        logger.debug(
            "refit view: bounds=%s viewport=%sx%s base_scale=%s",
            bounds,
            self.viewport_width,
            self.viewport_height,
            self.base_scale,
        )

    def world_to_screen(self, wx: float, wy: float) -> Point2D:
        cx, cy = self.world_center
        vx, vy = self.viewport_center
        scale = self.effective_scale
        return (
            (wx - cx) * scale + vx + self.pan_x,
            -(wy - cy) * scale + vy + self.pan_y,
        )

    def screen_to_world(self, sx: float, sy: float) -> Point2D:
        cx, cy = self.world_center
        vx, vy = self.viewport_center
        scale = self.effective_scale
        return (
            (sx - vx - self.pan_x) / scale + cx,
            -((sy - vy - self.pan_y) / scale) + cy,
        )

    def screen_delta_to_world(self, dx: float, dy: float) -> Point2D:
        scale = self.effective_scale
        return (dx / scale, -dy / scale)

    def world_length_to_screen(self, length: float) -> float:
        return length * self.effective_scale

    def zoom_at(self, sx: float, sy: float, factor: float) -> None:
        """Zoom by ``factor`` keeping the world point under (sx, sy) in place."""
        if not factor > 0.0:
            raise ValueError(f"zoom factor must be positive: {factor!r}")
        vx, vy = self.viewport_center
        # Cursor offset from the viewport center, in zoom-1 pixels.
        rel_x = (sx - vx - self.pan_x) / self.zoom
        rel_y = (sy - vy - self.pan_y) / self.zoom
        self.zoom *= factor
        self.pan_x = sx - rel_x * self.zoom - vx
        self.pan_y = sy - rel_y * self.zoom - vy

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

"""
Gaussian density accumulation and color encoding of gaze points.

The intensity grid is rebuilt from the full point log on every render.
Renders are user-triggered and rare while points arrive continuously, so
nothing is maintained incrementally and a render is a pure function of the
log and the output size.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..configs import HeatmapSettings
from ..models import HeatmapPoint

logger = logging.getLogger(__name__)

# Upper bound of each ramp segment: blue->cyan, cyan->green, green->yellow, yellow->red.
_SEGMENT = 0.25


@dataclass(slots=True, frozen=True, eq=False)
class HeatmapImage:
    """
    Color-encoded density image.

    `rgba` is a row-major (height, width, 4) uint8 array. An empty image
    (`is_empty`) is fully transparent and means no points were logged yet.
    """
    rgba: np.ndarray
    point_count: int
    max_value: float

    @property
    def is_empty(self) -> bool:
        return self.point_count == 0

    @property
    def width(self) -> int:
        return self.rgba.shape[1]

    @property
    def height(self) -> int:
        return self.rgba.shape[0]

    def tobytes(self) -> bytes:
        return self.rgba.tobytes()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def apply_color_ramp(normalized: np.ndarray, alpha_ceiling: int = 180, visual_floor: float = 0.02) -> np.ndarray:
    """
    Map normalized intensities in [0, 1] to RGBA.

    Cells at or below `visual_floor` stay fully transparent. Alpha grows with
    intensity up to `alpha_ceiling`, so the overlay never fully hides the
    surface underneath.
    """
    n = np.asarray(normalized, dtype=np.float64)

    seg1 = n < _SEGMENT
    seg2 = (n >= _SEGMENT) & (n < 2 * _SEGMENT)
    seg3 = (n >= 2 * _SEGMENT) & (n < 3 * _SEGMENT)
    seg4 = n >= 3 * _SEGMENT

    red = np.select([seg3, seg4], [(n - 2 * _SEGMENT) / _SEGMENT * 255, 255.0], 0.0)
    green = np.select(
        [seg1, seg2 | seg3, seg4],
        [n / _SEGMENT * 255, 255.0, 255 * (1 - (n - 3 * _SEGMENT) / _SEGMENT)],
        0.0,
    )
    blue = np.select([seg1, seg2], [255.0, 255 * (1 - (n - _SEGMENT) / _SEGMENT)], 0.0)
    alpha = n * alpha_ceiling

    rgba = np.stack([red, green, blue, alpha], axis=-1)
    rgba = np.clip(np.floor(rgba + 0.5), 0, 255).astype(np.uint8)
    rgba[n <= visual_floor] = 0
    return rgba


class HeatmapAccumulator:
    """Splats Gaussian kernels for logged points and colorizes the result."""

    def __init__(self, settings: HeatmapSettings):
        self.settings = settings

    def accumulate(self, points: Sequence[HeatmapPoint], width: int, height: int) -> np.ndarray:
        """
        Build the (height, width) intensity grid.

        Each point only touches its bounding box of +/- radius, clipped to the
        grid, so the cost per point does not depend on the image size.
        """
        radius = self.settings.radius_px
        radius_sq = float(radius * radius)
        two_radius_sq = 2.0 * radius_sq
        peak = self.settings.max_intensity

        grid = np.zeros((height, width), dtype=np.float64)

        for point in points:
            if not (math.isfinite(point.x) and math.isfinite(point.y)):
                continue

            x0 = max(0, _round_half_up(point.x - radius))
            x1 = min(width, _round_half_up(point.x + radius))
            y0 = max(0, _round_half_up(point.y - radius))
            y1 = min(height, _round_half_up(point.y + radius))
            if x0 >= x1 or y0 >= y1:
                continue

            dx = np.arange(x0, x1, dtype=np.float64) - point.x
            dy = np.arange(y0, y1, dtype=np.float64) - point.y
            dist_sq = dy[:, None] ** 2 + dx[None, :] ** 2

            kernel = np.where(dist_sq < radius_sq, peak * np.exp(-dist_sq / two_radius_sq), 0.0)
            grid[y0:y1, x0:x1] += kernel

        # All contributions are non-negative, so one clamp equals clamping every addition.
        np.minimum(grid, self.settings.cell_ceiling, out=grid)
        return grid

    def render(self, points: Sequence[HeatmapPoint], width: int, height: int) -> HeatmapImage:
        if width <= 0 or height <= 0:
            raise ValueError(f"Heatmap size must be positive, got {width}x{height}.")

        if not points:
            logger.info("No gaze data yet for heatmap.")
            return HeatmapImage(
                rgba=np.zeros((height, width, 4), dtype=np.uint8),
                point_count=0,
                max_value=0.0,
            )

        grid = self.accumulate(points, width, height)

        max_value = float(grid.max())
        # An all-zero grid (every point off the raster) still normalizes cleanly.
        normalized = grid / (max_value if max_value > 0 else 1.0)

        rgba = apply_color_ramp(
            normalized,
            alpha_ceiling=self.settings.alpha_ceiling,
            visual_floor=self.settings.visual_floor,
        )
        logger.debug("Rendered heatmap %dx%d from %d points (max %.1f).", width, height, len(points), max_value)
        return HeatmapImage(rgba=rgba, point_count=len(points), max_value=max_value)

import logging
import math
from typing import Optional

from ..configs import StabilitySettings
from ..models import MapResult, RejectReason, StabilizedPoint, SurfaceGeometry, Viewport, is_finite_point

logger = logging.getLogger(__name__)


class StabilityMapper:
    """
    Maps smoothed screen coordinates onto the viewed surface.

    Gross tracker failures (low confidence, NaN, far outside the viewport)
    and off-surface looks are dropped. Accepted points are stabilized against
    the previous accepted point: sub-deadband motion snaps back to it, and
    displacements larger than the time-scaled step limit are shortened along
    their direction rather than discarded.
    """

    def __init__(self, settings: StabilitySettings, viewport: Viewport):
        self.settings = settings
        self.viewport = viewport

        self._last_point: Optional[StabilizedPoint] = None
        self._last_timestamp: Optional[float] = None

    @property
    def last_point(self) -> Optional[StabilizedPoint]:
        return self._last_point

    def check_sample(self, x: float, y: float, confidence: float) -> Optional[RejectReason]:
        """
        Screen-level plausibility test. Returns the reject reason, or None if
        the sample may be used. Never mutates state.
        """
        if not confidence >= self.settings.confidence_threshold:
            return RejectReason.LOW_CONFIDENCE
        if not is_finite_point(x, y):
            return RejectReason.NON_FINITE
        if not self.viewport.contains(x, y, margin=self.settings.viewport_margin_px):
            return RejectReason.OUTSIDE_VIEWPORT
        return None

    def max_step(self, dt_s: float) -> float:
        return self.settings.base_step_px + self.settings.speed_factor_px_per_s * dt_s

    def map(
        self,
        x: float,
        y: float,
        confidence: float,
        timestamp_s: Optional[float],
        surface: SurfaceGeometry,
    ) -> MapResult:
        """
        Args:
            x, y: Smoothed screen coordinates.
            confidence: Predictor confidence in [0, 1].
            timestamp_s: Sample time in seconds, or None if unknown.
            surface: Current on-screen geometry of the target surface.
        """
        reason = self.check_sample(x, y, confidence)
        if reason is not None:
            return MapResult.rejected(reason)

        local_x, local_y = surface.to_local(x, y)
        if not surface.contains_local(local_x, local_y):
            # The next on-surface sample must not be clamped against a stale point.
            self._last_point = None
            return MapResult.rejected(RejectReason.OFF_SURFACE)

        dt = self._elapsed(timestamp_s)
        if timestamp_s is not None and math.isfinite(timestamp_s):
            self._last_timestamp = timestamp_s

        if self._last_point is not None:
            local_x, local_y = self._stabilize(local_x, local_y, dt)

        point = StabilizedPoint(local_x, local_y)
        self._last_point = point
        return MapResult(point=point, accepted=True)

    def reset(self) -> None:
        self._last_point = None
        self._last_timestamp = None

    def _elapsed(self, timestamp_s: Optional[float]) -> float:
        if self._last_timestamp is None or timestamp_s is None or not math.isfinite(timestamp_s):
            return self.settings.default_dt_s
        return max(self.settings.min_dt_s, timestamp_s - self._last_timestamp)

    def _stabilize(self, x: float, y: float, dt: float) -> tuple[float, float]:
        last = self._last_point
        dx = x - last.x
        dy = y - last.y
        distance = math.hypot(dx, dy)

        if distance < self.settings.deadband_px:
            return last.x, last.y

        max_step = self.max_step(dt)
        if distance > max_step:
            scale = max_step / distance
            logger.debug("Clamped %.1fpx jump to %.1fpx (dt=%.3fs).", distance, max_step, dt)
            return last.x + dx * scale, last.y + dy * scale

        return x, y

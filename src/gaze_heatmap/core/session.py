import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from ..configs import AppSettings
from ..heatmap import HeatmapAccumulator, HeatmapImage
from ..models import (
    GazeFrame,
    GazeSample,
    HeatmapPoint,
    MapResult,
    RejectReason,
    StabilizedPoint,
    SurfaceGeometry,
    Viewport,
)
from ..processing import AxisFilters, StabilityMapper
from ..utils.logging import ThrottledLogger
from .state import SessionState, ViewMode

logger = logging.getLogger(__name__)


@dataclass
class ProcessingStats:
    """Counters for one tracking run."""
    total_samples: int = 0
    accepted_samples: int = 0
    heatmap_points: int = 0
    rejected: Counter = field(default_factory=Counter)

    @property
    def rejected_samples(self) -> int:
        return sum(self.rejected.values())

    def summary(self) -> str:
        reasons = ", ".join(f"{r.value}={n}" for r, n in sorted(self.rejected.items(), key=lambda i: i[0].value))
        return (
            f"{self.total_samples} samples, {self.accepted_samples} accepted, "
            f"{self.heatmap_points} logged for heatmap, rejected: {reasons or 'none'}"
        )


class GazeSession:
    """
    All mutable state of one viewing session.

    Owns the per-axis smoothing filters, the stability mapper, the latest
    live point and the append-only heatmap log. Lifecycle:
      - `start()` begins tracking from a clean filter/mapper state;
      - `stop()` ends tracking and resets the filters and mapper;
      - `change_surface()` is called when a new surface (image) is shown and
        discards everything recorded for the previous one.
    """

    def __init__(self, settings: AppSettings, viewport: Viewport):
        self.settings = settings
        self.viewport = viewport

        self.filters = AxisFilters.from_settings(settings.filter)
        self.mapper = StabilityMapper(settings.stability, viewport)
        self.accumulator = HeatmapAccumulator(settings.heatmap)

        self.state = SessionState.IDLE
        self.view_mode = ViewMode.LIVE_POINT
        self.stats = ProcessingStats()

        self._live_point: Optional[StabilizedPoint] = None
        self._heatmap_log: list[HeatmapPoint] = []
        self._accepted_since_surface = 0
        self._reject_logger = ThrottledLogger(logger, interval_sec=settings.logging.rejection_log_interval_s)

    # --- Lifecycle ---

    @property
    def is_tracking(self) -> bool:
        return self.state is SessionState.TRACKING

    def start(self) -> None:
        if self.is_tracking:
            logger.warning("Session is already tracking.")
            return
        self._reset_continuity()
        self.stats = ProcessingStats()
        self.state = SessionState.TRACKING
        logger.info("Tracking started.")

    def stop(self) -> None:
        if not self.is_tracking:
            return
        self.state = SessionState.IDLE
        self._reset_continuity()
        logger.info(f"Tracking stopped: {self.stats.summary()}")

    def change_surface(self) -> None:
        """Drop the heatmap log and all continuity state. Tracking state is kept."""
        logger.info(f"Surface changed, discarding {len(self._heatmap_log)} heatmap points.")
        self._heatmap_log = []
        self._accepted_since_surface = 0
        self.stats.heatmap_points = 0
        self._reset_continuity()

    def toggle_view(self) -> ViewMode:
        self.view_mode = self.view_mode.toggled()
        logger.info(f"View mode: {self.view_mode.name}")
        return self.view_mode

    def _reset_continuity(self) -> None:
        self.filters.reset()
        self.mapper.reset()
        self._live_point = None

    # --- Outputs ---

    @property
    def live_point(self) -> Optional[StabilizedPoint]:
        return self._live_point

    @property
    def visible_point(self) -> Optional[StabilizedPoint]:
        """The live point, or None while the heatmap is being shown."""
        return self._live_point if self.view_mode is ViewMode.LIVE_POINT else None

    @property
    def heatmap_points(self) -> tuple[HeatmapPoint, ...]:
        return tuple(self._heatmap_log)

    def render_heatmap(self, width: int, height: int) -> HeatmapImage:
        return self.accumulator.render(self._heatmap_log, width, height)

    # --- Processing ---

    def process(self, sample: GazeSample, surface: SurfaceGeometry) -> GazeFrame:
        """
        Run one raw sample through smoothing and mapping.

        Never raises for bad input: the returned frame carries the reject
        reason instead.
        """
        self.stats.total_samples += 1

        if not self.is_tracking:
            return self._rejected(sample, MapResult.rejected(RejectReason.NOT_TRACKING))

        # Gate before smoothing so a bad sample never enters the filter state.
        reason = self.mapper.check_sample(sample.x, sample.y, sample.confidence)
        if reason is not None:
            return self._rejected(sample, MapResult.rejected(reason))

        smoothed_x, smoothed_y = self.filters.filter(sample.x, sample.y, sample.timestamp_s)
        result = self.mapper.map(smoothed_x, smoothed_y, sample.confidence, sample.timestamp_s, surface)

        if not result.accepted:
            if result.reason is RejectReason.OFF_SURFACE:
                self._live_point = None
            return self._rejected(sample, result, smoothed_x, smoothed_y)

        self.stats.accepted_samples += 1
        self._live_point = result.point

        if self._accepted_since_surface % self.settings.heatmap.sample_every == 0:
            self._heatmap_log.append(HeatmapPoint(result.point.x, result.point.y))
            self.stats.heatmap_points += 1
        self._accepted_since_surface += 1

        return GazeFrame(sample=sample, smoothed_x=smoothed_x, smoothed_y=smoothed_y, result=result)

    def _rejected(
        self,
        sample: GazeSample,
        result: MapResult,
        smoothed_x: Optional[float] = None,
        smoothed_y: Optional[float] = None,
    ) -> GazeFrame:
        self.stats.rejected[result.reason] += 1
        self._reject_logger.debug("Dropped gaze sample (%s).", result.reason.value)
        return GazeFrame(sample=sample, smoothed_x=smoothed_x, smoothed_y=smoothed_y, result=result)

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(slots=True, frozen=True)
class GazeSample:
    """
    A single prediction from the external gaze estimator.

    Coordinates are in the screen space of the rendering surface. Samples
    arrive at an irregular rate; `timestamp_s` is None when the predictor
    did not report one.
    """
    x: float
    y: float
    confidence: float = 1.0
    timestamp_s: Optional[float] = None


@dataclass(slots=True, frozen=True)
class StabilizedPoint:
    """Smoothed, clamped gaze location in surface-local pixels."""
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class HeatmapPoint:
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class Viewport:
    width: float
    height: float

    def contains(self, x: float, y: float, margin: float = 0.0) -> bool:
        return -margin <= x <= self.width + margin and -margin <= y <= self.height + margin


@dataclass(slots=True, frozen=True)
class SurfaceGeometry:
    """
    On-screen placement of the viewed surface (e.g. a stimulus image).

    The presentation layer may move or resize the surface at any time, so a
    fresh geometry is expected for every mapped sample.
    """
    left: float
    top: float
    width: float
    height: float

    def to_local(self, x: float, y: float) -> tuple[float, float]:
        return x - self.left, y - self.top

    def contains_local(self, x: float, y: float) -> bool:
        # Inclusive on both edges.
        return 0.0 <= x <= self.width and 0.0 <= y <= self.height

    @property
    def pixel_size(self) -> tuple[int, int]:
        """Integer (width, height) of the raster covering the surface."""
        return int(round(self.width)), int(round(self.height))


class RejectReason(Enum):
    """Why a sample did not produce a live point update."""
    NOT_TRACKING = "not_tracking"
    LOW_CONFIDENCE = "low_confidence"
    NON_FINITE = "non_finite"
    OUTSIDE_VIEWPORT = "outside_viewport"
    OFF_SURFACE = "off_surface"


@dataclass(slots=True, frozen=True)
class MapResult:
    """
    Outcome of mapping one sample.

    `point` is the stabilized location when `accepted` is True, otherwise
    None and `reason` says why the sample was dropped.
    """
    point: Optional[StabilizedPoint]
    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def rejected(cls, reason: RejectReason) -> "MapResult":
        return cls(point=None, accepted=False, reason=reason)


@dataclass(slots=True, frozen=True)
class GazeFrame:
    """
    Everything the pipeline knows about one processed sample.

    This is what sinks receive: the raw sample, the smoothed screen
    coordinates (None when the sample was gated before smoothing) and the
    mapping result.
    """
    sample: GazeSample
    smoothed_x: Optional[float]
    smoothed_y: Optional[float]
    result: MapResult

    @property
    def accepted(self) -> bool:
        return self.result.accepted

    @property
    def point(self) -> Optional[StabilizedPoint]:
        return self.result.point


def is_finite_point(x: float, y: float) -> bool:
    try:
        return math.isfinite(x) and math.isfinite(y)
    except TypeError:
        return False

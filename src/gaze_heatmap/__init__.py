"""
Gaze stabilization and attention heatmaps for webcam eye tracking.

Raw predictions from an external gaze estimator are smoothed with an
adaptive filter, mapped onto the viewed surface with outlier rejection and
jump clamping, and logged for on-demand heatmap rendering.
"""
from importlib.metadata import version

from .core import GazeSession, SessionManager
from .heatmap import HeatmapAccumulator, HeatmapImage
from .models import GazeSample, HeatmapPoint, MapResult, StabilizedPoint, SurfaceGeometry, Viewport
from .processing import AxisFilters, OneEuroFilter, StabilityMapper

__version__ = version("gaze-heatmap")

__all__ = [
    "AxisFilters",
    "GazeSample",
    "GazeSession",
    "HeatmapAccumulator",
    "HeatmapImage",
    "HeatmapPoint",
    "MapResult",
    "OneEuroFilter",
    "SessionManager",
    "StabilityMapper",
    "StabilizedPoint",
    "SurfaceGeometry",
    "Viewport",
]

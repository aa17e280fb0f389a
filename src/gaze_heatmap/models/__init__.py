from .gaze import (
    GazeFrame,
    GazeSample,
    HeatmapPoint,
    MapResult,
    RejectReason,
    StabilizedPoint,
    SurfaceGeometry,
    Viewport,
    is_finite_point,
)

__all__ = [
    "GazeFrame",
    "GazeSample",
    "HeatmapPoint",
    "MapResult",
    "RejectReason",
    "StabilizedPoint",
    "SurfaceGeometry",
    "Viewport",
    "is_finite_point",
]

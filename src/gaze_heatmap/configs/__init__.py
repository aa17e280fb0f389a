from .app import (
    AppSettings,
    DummySourceConfig,
    FilterSettings,
    HeatmapSettings,
    ParquetSinkConfig,
    StabilitySettings,
    SurfaceSettings,
    ViewportSettings,
    ZmqSinkConfig,
)
from .utils import LoggingConfig

__all__ = [
    "AppSettings",
    "DummySourceConfig",
    "FilterSettings",
    "HeatmapSettings",
    "LoggingConfig",
    "ParquetSinkConfig",
    "StabilitySettings",
    "SurfaceSettings",
    "ViewportSettings",
    "ZmqSinkConfig",
]

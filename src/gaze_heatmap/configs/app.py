import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, PositiveInt, PositiveFloat, NonNegativeFloat, model_validator, Field

from .utils import LoggingConfig

logger = logging.getLogger(__name__)

class FilterSettings(BaseModel):
    """
    Adaptive (One Euro) smoothing parameters, shared by both axis filters.
    """
    min_cutoff: PositiveFloat = Field(1.1, description="Cutoff frequency (Hz) while the gaze is still.")
    beta: NonNegativeFloat = Field(0.01, description="Cutoff increase per unit of smoothed speed (px/s).")
    d_cutoff: PositiveFloat = Field(1.0, description="Fixed cutoff (Hz) of the derivative low-pass stage.")
    initial_frequency_hz: PositiveFloat = Field(60.0, description="Sampling rate assumed until two timestamps are seen.")
    min_dt_s: PositiveFloat = Field(1e-3, description="Floor on the interval between samples.")

class StabilitySettings(BaseModel):
    """Outlier rejection and jump clamping. Distances are in pixels."""
    confidence_threshold: float = Field(0.55, ge=0.0, le=1.0)
    viewport_margin_px: NonNegativeFloat = Field(100.0, description="Tolerance beyond the viewport before a sample is a tracker failure.")
    base_step_px: NonNegativeFloat = Field(120.0, description="Largest displacement allowed between two back-to-back samples.")
    speed_factor_px_per_s: NonNegativeFloat = Field(550.0, description="Extra displacement allowed per second of gap.")
    deadband_px: NonNegativeFloat = Field(1.5, description="Displacements below this snap to the last point.")
    min_dt_s: PositiveFloat = 0.008
    default_dt_s: PositiveFloat = 0.016

class HeatmapSettings(BaseModel):
    radius_px: PositiveInt = 40
    max_intensity: PositiveFloat = 100.0
    cell_ceiling: PositiveFloat = 255.0
    visual_floor: float = Field(0.02, ge=0.0, lt=1.0, description="Normalized intensity at or below which cells stay transparent.")
    alpha_ceiling: int = Field(180, ge=0, le=255)
    sample_every: PositiveInt = Field(1, description="Log every n-th accepted sample into the heatmap.")

class ViewportSettings(BaseModel):
    """Screen size used for gross outlier rejection. Detected from the primary monitor when unset."""
    width_px: Optional[PositiveInt] = None
    height_px: Optional[PositiveInt] = None

class SurfaceSettings(BaseModel):
    """
    Placement of the viewed surface on screen, for headless runs where no
    presentation layer reports a live geometry.
    """
    left: float = 0.0
    top: float = 0.0
    width: PositiveFloat = 1280.0
    height: PositiveFloat = 720.0

class DummySourceConfig(BaseModel):
    frequency_hz: PositiveFloat = 30.0
    jitter_s: NonNegativeFloat = Field(0.004, description="Random deviation applied to every sample interval.")
    noise_px: NonNegativeFloat = 12.0
    fixation_s: PositiveFloat = 0.6
    low_confidence_rate: float = Field(0.05, ge=0.0, le=1.0)
    dropout_rate: float = Field(0.01, ge=0.0, le=1.0)
    seed: Optional[int] = None

class ParquetSinkConfig(BaseModel):
    enabled: bool = True
    output_dir: Path = Path("./recordings")
    drop_when_full: bool = True
    max_buffer_size: PositiveInt = 60 * 5 # Flushes every 5 seconds at 60 Hz
    queue_size: PositiveInt = 60 * 5 * 60 # Holds 5 minutes of data at 60 Hz

    @model_validator(mode='after')
    def validate_buffer_sizes(self) -> "ParquetSinkConfig":
        if self.queue_size <= self.max_buffer_size:
            raise ValueError('Queue must be bigger than buffer.')
        return self

class ZmqSinkConfig(BaseModel):
    enabled: bool = False
    host: str = "tcp://*:5556"

class AppSettings(BaseSettings):
    """
    Main application settings, loaded from environment variables and defaults.
    """
    # Processing
    filter: FilterSettings = Field(default_factory=FilterSettings)
    stability: StabilitySettings = Field(default_factory=StabilitySettings)
    heatmap: HeatmapSettings = Field(default_factory=HeatmapSettings)

    # Geometry
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    surface: SurfaceSettings = Field(default_factory=SurfaceSettings)

    # Sources
    dummy: DummySourceConfig = Field(default_factory=DummySourceConfig)

    # Sinks
    parquet: ParquetSinkConfig = Field(default_factory=ParquetSinkConfig)
    zmq: ZmqSinkConfig = Field(default_factory=ZmqSinkConfig)

    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="GAZE__",
        env_file=".env",
        env_nested_delimiter='__',
        case_sensitive=False
    )

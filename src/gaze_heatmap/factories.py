import logging
from pathlib import Path
from typing import List, Optional

from screeninfo import ScreenInfoError, get_monitors

from .acquisition import DummySource, GazeSource, ParquetReplaySource
from .configs import AppSettings
from .models import SurfaceGeometry, Viewport
from .sinks import GazeSink, ParquetSink, ZMQSink

logger = logging.getLogger(__name__)

_FALLBACK_VIEWPORT = Viewport(1920, 1080)


def resolve_viewport(settings: AppSettings) -> Viewport:
    """
    Viewport from settings, or the primary monitor's resolution when the
    settings leave it unset.
    """
    cfg = settings.viewport
    if cfg.width_px is not None and cfg.height_px is not None:
        return Viewport(cfg.width_px, cfg.height_px)

    try:
        monitors = get_monitors()
    except ScreenInfoError as e:
        logger.warning(f"Could not query monitors ({e}), assuming {_FALLBACK_VIEWPORT.width}x{_FALLBACK_VIEWPORT.height}.")
        return _FALLBACK_VIEWPORT

    if not monitors:
        logger.warning("No monitor found, assuming %dx%d.", _FALLBACK_VIEWPORT.width, _FALLBACK_VIEWPORT.height)
        return _FALLBACK_VIEWPORT

    primary = next((m for m in monitors if m.is_primary), monitors[0])
    logger.info(f"Viewport detected from monitor '{primary.name}': {primary.width}x{primary.height}")
    return Viewport(cfg.width_px or primary.width, cfg.height_px or primary.height)


def surface_from_settings(settings: AppSettings) -> SurfaceGeometry:
    s = settings.surface
    return SurfaceGeometry(left=s.left, top=s.top, width=s.width, height=s.height)


def create_source(
    settings: AppSettings,
    surface: SurfaceGeometry,
    viewport: Viewport,
    replay_path: Optional[Path] = None,
    max_samples: Optional[int] = None,
    realtime: bool = True,
) -> GazeSource:
    """
    Creates a fresh source for a tracking run: a replay when a session log is
    given, the simulated predictor otherwise.
    """
    if replay_path is not None:
        return ParquetReplaySource(replay_path, realtime=realtime)

    return DummySource(
        surface=surface,
        viewport=viewport,
        config=settings.dummy,
        max_samples=max_samples,
        realtime=realtime,
    )


def create_session_sinks(
    settings: AppSettings,
    output_dir: Optional[Path] = None
) -> List[GazeSink]:
    """
    Creates fresh sink instances for a new tracking run.
    """
    sinks = []

    # ZMQ
    if settings.zmq.enabled:
        sinks.append(ZMQSink(host=settings.zmq.host))

    # Parquet
    if settings.parquet.enabled:
        sinks.append(
            ParquetSink(
                output_dir=output_dir or settings.parquet.output_dir,
                drop_when_full=settings.parquet.drop_when_full,
                max_buffer_size=settings.parquet.max_buffer_size,
                queue_size=settings.parquet.queue_size
            )
        )

    return sinks

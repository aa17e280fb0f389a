import logging
from pathlib import Path
from typing import Optional

from ..configs import AppSettings
from ..factories import create_session_sinks, create_source, surface_from_settings
from ..heatmap import HeatmapImage, save_overlay, save_png
from ..models import Viewport
from .protocols import StaticSurface, SurfaceProvider
from .runner import GazeRunner
from .session import GazeSession
from .state import ViewMode

logger = logging.getLogger(__name__)

class SessionManager:
    """
    The headless core of the application.

    Owns the GazeSession and the runner of the current tracking run, so a
    presentation layer (Qt, web, CLI) only forwards user actions and draws
    `visible_point` or the rendered heatmap.
    """
    def __init__(
        self,
        settings: AppSettings,
        viewport: Viewport,
        surface: Optional[SurfaceProvider] = None,
    ):
        self.settings = settings
        self.viewport = viewport
        self.surface: SurfaceProvider = surface or StaticSurface(surface_from_settings(settings))
        self.session = GazeSession(settings, viewport)
        self.runner: Optional[GazeRunner] = None

    @property
    def is_tracking(self) -> bool:
        return self.runner is not None

    # --- Actions ---

    async def start_tracking(
        self,
        replay_path: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        max_samples: Optional[int] = None,
        realtime: bool = True,
    ) -> bool:
        """
        Prepares source, sinks and runner, then starts the tracking run.
        Returns: True if tracking started successfully.
        """
        if self.runner:
            logger.warning("Tracking already in progress.")
            return True

        try:
            # 1. Create run components via factories
            source = create_source(
                self.settings,
                surface=self.surface.geometry(),
                viewport=self.viewport,
                replay_path=replay_path,
                max_samples=max_samples,
                realtime=realtime,
            )
            sinks = create_session_sinks(self.settings, output_dir)

            # 2. Instantiate and start Runner
            self.runner = GazeRunner(source, self.session, self.surface, sinks)
            await self.runner.start()

            logger.info("Tracking started.")
            return True

        except Exception:
            logger.exception("Failed to initialize tracking run")
            self.runner = None
            return False

    async def wait_for_source(self) -> None:
        """Returns once the current source has no more samples."""
        if self.runner:
            await self.runner.wait()

    async def stop_tracking(self) -> None:
        """
        Stops the active runner. The session keeps its heatmap log.
        A failure of the run is re-raised, but the manager is ready for a
        new run either way.
        """
        if self.runner:
            logger.info("Stopping tracking run...")
            try:
                await self.runner.stop()
            finally:
                self.runner = None
            logger.info("Tracking stopped.")

    def change_surface(self, surface: Optional[SurfaceProvider] = None) -> None:
        """A new image is shown: forget the heatmap recorded for the old one."""
        if surface is not None:
            self.surface = surface
            if self.runner:
                self.runner.surface = surface
        self.session.change_surface()

    def toggle_view(self) -> ViewMode:
        return self.session.toggle_view()

    def render_heatmap(self) -> HeatmapImage:
        width, height = self.surface.geometry().pixel_size
        return self.session.render_heatmap(width, height)

    def export_heatmap(self, path: Path, stimulus: Optional[Path] = None) -> HeatmapImage:
        """
        Renders the heatmap at surface size and writes it as PNG, composited
        over the stimulus image when one is given.
        """
        image = self.render_heatmap()
        if image.is_empty:
            logger.warning("No gaze data yet for heatmap, writing an empty image.")

        if stimulus is not None:
            save_overlay(stimulus, image, path)
        else:
            save_png(image, path)
        return image

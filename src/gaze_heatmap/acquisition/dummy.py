import asyncio
import logging
import math
from typing import Optional

import numpy as np

from ..configs import DummySourceConfig
from ..models import GazeSample, SurfaceGeometry, Viewport
from .base import GazeSource

logger = logging.getLogger(__name__)


class DummySource(GazeSource):
    """
    A GazeSource that simulates a webcam gaze predictor for development and
    testing.

    The simulated viewer fixates random targets on the surface for
    exponentially distributed durations, occasionally looks away from the
    surface, and jumps between targets instantly (saccades). Every sample
    carries Gaussian noise, intervals are jittered, and a fraction of
    samples come back with low confidence or as NaN, like a real predictor
    losing the face.
    """

    _LOOK_AWAY_RATE = 0.1

    def __init__(
        self,
        surface: SurfaceGeometry,
        viewport: Viewport,
        config: DummySourceConfig,
        max_samples: Optional[int] = None,
        realtime: bool = True,
        queue_size: int = 0,
    ):
        """
        Initializes the DummySource.

        Args:
            surface: Where the simulated viewer's targets are placed.
            viewport: Screen bounds for off-surface glances.
            config: Rate, noise and dropout parameters.
            max_samples: Stop after this many samples (None runs until stopped).
            realtime: Pace samples on the wall clock. When False, samples are
                      produced as fast as the consumer takes them while their
                      timestamps still follow the simulated rate.
        """
        super().__init__(queue_size=queue_size)
        self._surface = surface
        self._viewport = viewport
        self._config = config
        self._max_samples = max_samples
        self._realtime = realtime
        self._interval_s = 1.0 / config.frequency_hz

        logger.info(
            f"DummySource initialized to run at {config.frequency_hz} Hz "
            f"({'realtime' if realtime else 'accelerated'})."
        )

    def _pick_target(self, rng: np.random.Generator) -> tuple[float, float]:
        if rng.random() < self._LOOK_AWAY_RATE:
            return (
                float(rng.uniform(0, self._viewport.width)),
                float(rng.uniform(0, self._viewport.height)),
            )
        s = self._surface
        return (
            float(s.left + rng.uniform(0.1, 0.9) * s.width),
            float(s.top + rng.uniform(0.1, 0.9) * s.height),
        )

    def _make_sample(self, rng: np.random.Generator, target: tuple[float, float], t: float) -> GazeSample:
        cfg = self._config
        x = target[0] + float(rng.normal(0.0, cfg.noise_px))
        y = target[1] + float(rng.normal(0.0, cfg.noise_px))
        confidence = float(rng.uniform(0.6, 1.0))

        roll = rng.random()
        if roll < cfg.dropout_rate:
            x = y = math.nan
        elif roll < cfg.dropout_rate + cfg.low_confidence_rate:
            confidence = float(rng.uniform(0.0, 0.5))

        return GazeSample(x=x, y=y, confidence=confidence, timestamp_s=t)

    async def _produce(self) -> None:
        rng = np.random.default_rng(self._config.seed)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        t = 0.0
        count = 0
        target = self._pick_target(rng)
        fixation_end = float(rng.exponential(self._config.fixation_s))

        logger.info("Starting simulated gaze stream...")
        try:
            while not self._stop_event.is_set():
                if self._max_samples is not None and count >= self._max_samples:
                    break

                if t >= fixation_end:
                    target = self._pick_target(rng)
                    fixation_end = t + float(rng.exponential(self._config.fixation_s))

                await self._output_queue.put(self._make_sample(rng, target, t))
                count += 1

                t += max(1e-4, self._interval_s + float(rng.normal(0.0, self._config.jitter_s)))

                if self._realtime:
                    sleep_duration = start_time + t - loop.time()
                    if sleep_duration > 0:
                        await asyncio.sleep(sleep_duration)
                else:
                    await asyncio.sleep(0)

        except asyncio.CancelledError:
            logger.info("Dummy source run task was cancelled.")
        finally:
            logger.info(f"DummySource has stopped after {count} samples.")

import asyncio
import logging
from typing import Sequence

from ..acquisition import GazeSource
from ..models import GazeFrame
from ..sinks import GazeSink
from ..utils.types import _END
from .protocols import SurfaceProvider
from .session import GazeSession

logger = logging.getLogger(__name__)

class GazeRunner:
    """
    Moves samples from a source through the session and fans the resulting
    frames out to the sinks. One runner per tracking run.
    """
    def __init__(
        self,
        source: GazeSource,
        session: GazeSession,
        surface: SurfaceProvider,
        sinks: Sequence[GazeSink],
    ):
        self.source = source
        self.session = session
        self.surface = surface
        self.sinks = sinks
        self.frames_processed = 0

        self._active = False
        self._source_task: asyncio.Task | None = None
        self._consumer_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._active

    async def start(self) -> None:
        if self._active:
            return
        self._active = True

        # Sinks first, so no frame is produced before they can take it.
        await asyncio.gather(*(sink.start() for sink in self.sinks))
        self.session.start()

        self._source_task = asyncio.create_task(self.source.run())
        self._consumer_task = asyncio.create_task(self._consume())
        logger.info(f"Runner started with {len(self.sinks)} sink(s).")

    async def wait(self) -> None:
        """Block until the source has drained, e.g. at the end of a replay."""
        if self._consumer_task:
            await asyncio.shield(self._consumer_task)

    async def stop(self) -> None:
        """
        Ends the run. The session is stopped and every sink is closed even
        when the source or the consumer failed; that failure is re-raised
        afterwards.
        """
        if not self._active:
            return
        self._active = False

        # The source ends its stream with _END, which also ends the consumer.
        await self.source.stop()
        tasks = [task for task in (self._source_task, self._consumer_task) if task]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self.session.stop()
            await self._close_sinks()
            logger.info(f"Runner stopped after {self.frames_processed:,} frames.")

        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _close_sinks(self) -> None:
        results = await asyncio.gather(*(sink.close() for sink in self.sinks), return_exceptions=True)
        for sink, result in zip(self.sinks, results):
            if isinstance(result, Exception):
                logger.error(f"Closing {type(sink).__name__} failed: {result}")

    async def _dispatch(self, frame: GazeFrame) -> None:
        if self.sinks:
            await asyncio.gather(*(sink.send(frame) for sink in self.sinks))

    async def _consume(self) -> None:
        queue = self.source.output_queue
        session = self.session

        try:
            while True:
                sample = await queue.get()
                if sample is _END:
                    break
                # Geometry is read per sample, layout may change at any time.
                frame = session.process(sample, self.surface.geometry())
                self.frames_processed += 1
                await self._dispatch(frame)
        except asyncio.CancelledError:
            logger.info("Runner consumer cancelled.")
            raise
        except Exception:
            logger.exception(f"Frame processing failed after {self.frames_processed:,} frames.")
            raise

import asyncio
from abc import ABC, abstractmethod
from typing import final

from ..models import GazeSample
from ..utils.types import EndToken, _END


class GazeSource(ABC):
    """
    Abstract Base Class for all gaze data sources.

    A GazeSource wraps a gaze predictor (live, simulated or recorded) and
    puts `GazeSample` objects into its output queue. The stream always ends
    with the `_END` sentinel, whether the source ran dry or was stopped.
    """

    def __init__(self, queue_size: int = 0):
        self._output_queue: asyncio.Queue[GazeSample | EndToken] = asyncio.Queue(maxsize=queue_size)
        self._stop_event = asyncio.Event()

    @property
    def output_queue(self) -> "asyncio.Queue[GazeSample | EndToken]":
        return self._output_queue

    @property
    def is_stopping(self) -> bool:
        return self._stop_event.is_set()

    @final
    async def run(self) -> None:
        """
        Runs the acquisition until the source is exhausted or stopped, then
        terminates the stream.
        """
        try:
            await self._produce()
        finally:
            await self._output_queue.put(_END)

    @abstractmethod
    async def _produce(self) -> None:
        """
        Acquire samples and put them into the output queue until the stop
        event is set or no data is left. Must be implemented by all concrete
        subclasses.
        """
        raise NotImplementedError

    @final
    async def stop(self) -> None:
        """
        Signals the source to stop acquiring data.

        This is a final method and should not be overridden. Subclasses can
        perform cleanup in their '_produce' method's finally block.
        """
        self._stop_event.set()

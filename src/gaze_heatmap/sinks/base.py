from abc import ABC, abstractmethod

from ..models import GazeFrame


class GazeSink(ABC):
    """
    Abstract Base Class for all frame sinks.

    A sink receives every processed `GazeFrame` from the runner and forwards
    it to a destination (a file, a socket, a renderer). `send` is on the hot
    path and must not block: slow work belongs in a worker started by
    `start` and drained by `close`.
    """

    async def start(self) -> None:
        """Acquire resources before the first frame. Optional."""

    @abstractmethod
    async def send(self, frame: GazeFrame) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Flush and release resources after the last frame. Optional."""

from .base import GazeSource
from .dummy import DummySource
from .replay import ParquetReplaySource

__all__ = ["GazeSource", "DummySource", "ParquetReplaySource"]

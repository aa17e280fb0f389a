from .manager import SessionManager
from .protocols import StaticSurface, SurfaceProvider
from .runner import GazeRunner
from .session import GazeSession, ProcessingStats
from .state import SessionState, ViewMode

__all__ = [
    "GazeRunner",
    "GazeSession",
    "ProcessingStats",
    "SessionManager",
    "SessionState",
    "StaticSurface",
    "SurfaceProvider",
    "ViewMode",
]

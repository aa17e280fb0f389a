from typing import Protocol, runtime_checkable

from ..models import SurfaceGeometry


@runtime_checkable
class SurfaceProvider(Protocol):
    """
    Reports where the viewed surface currently sits on screen.

    Whatever draws the surface (a Qt widget, a browser canvas, a pygame
    window) implements this. It is queried once per sample because layout
    can change between samples.
    """
    def geometry(self) -> SurfaceGeometry: ...


class StaticSurface:
    """A surface that never moves, for headless runs and replays."""

    def __init__(self, geometry: SurfaceGeometry):
        self._geometry = geometry

    def geometry(self) -> SurfaceGeometry:
        return self._geometry

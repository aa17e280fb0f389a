from enum import Enum, auto


class SessionState(Enum):
    """
    Lifecycle of a viewing session.

    Samples are only processed while TRACKING. Leaving TRACKING resets the
    filters and the mapper so a later restart does not treat the first new
    sample as continuous with the last old one.
    """
    IDLE = auto() # Created or stopped, samples are ignored.
    TRACKING = auto() # Samples are smoothed, mapped and logged.


class ViewMode(Enum):
    """What the presentation layer should draw over the surface."""
    LIVE_POINT = auto() # The current stabilized point.
    HEATMAP = auto() # The rendered density image.

    def toggled(self) -> "ViewMode":
        return ViewMode.HEATMAP if self is ViewMode.LIVE_POINT else ViewMode.LIVE_POINT

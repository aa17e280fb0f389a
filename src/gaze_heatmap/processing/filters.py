"""
Adaptive smoothing for irregularly sampled gaze coordinates.

A fixed-coefficient low-pass either lags behind saccades or lets fixation
jitter through. The One Euro filter couples its cutoff frequency to the
estimated speed of the signal: still signals are damped hard, fast ones are
passed through with little lag.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..configs import FilterSettings


def alpha_for_cutoff(cutoff_hz: float, dt_s: float) -> float:
    """Single-pole smoothing coefficient for a cutoff frequency and sample interval."""
    tau = 1.0 / (2.0 * math.pi * cutoff_hz)
    return 1.0 / (1.0 + tau / dt_s)


@dataclass(slots=True, frozen=True)
class FilterState:
    """Read-only snapshot of one axis filter."""
    value_estimate: Optional[float]
    derivative_estimate: Optional[float]
    last_timestamp_s: Optional[float]
    has_value: bool


class LowPassFilter:
    """Exponential smoothing stage. The first value passes through unchanged."""
    __slots__ = ("alpha", "last")

    def __init__(self, alpha: float = 1.0) -> None:
        self.alpha = alpha
        self.last: Optional[float] = None

    @property
    def has_value(self) -> bool:
        return self.last is not None

    def filter(self, value: float) -> float:
        if self.last is None:
            self.last = value
            return value
        filtered = self.alpha * value + (1.0 - self.alpha) * self.last
        self.last = filtered
        return filtered

    def reset(self) -> None:
        self.last = None


class OneEuroFilter:
    """
    Speed-adaptive low-pass filter for a single scalar stream.

    Each call derives the sampling frequency from the timestamp delta, smooths
    the signal derivative through a fixed-cutoff stage, and raises the main
    cutoff in proportion to the smoothed speed before filtering the value.
    """

    def __init__(
        self,
        min_cutoff: float = 1.0,
        beta: float = 0.007,
        d_cutoff: float = 1.0,
        frequency_hz: float = 60.0,
        min_dt_s: float = 1e-3,
    ) -> None:
        """
        Args:
            min_cutoff: Cutoff (Hz) applied when the signal is stationary.
            beta: Cutoff increase per unit of smoothed speed.
            d_cutoff: Cutoff (Hz) of the derivative smoothing stage.
            frequency_hz: Sampling rate assumed until two timestamps are seen.
            min_dt_s: Floor on the timestamp delta, protects against duplicate
                      or out-of-order timestamps.
        """
        if min_cutoff <= 0 or d_cutoff <= 0:
            raise ValueError("Cutoff frequencies must be positive.")
        if frequency_hz <= 0:
            raise ValueError("Frequency must be positive.")

        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff
        self.min_dt_s = min_dt_s
        self._initial_frequency = frequency_hz

        self.frequency = frequency_hz
        self._x = LowPassFilter()
        self._dx = LowPassFilter()
        self._last_time: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: FilterSettings) -> "OneEuroFilter":
        return cls(
            min_cutoff=settings.min_cutoff,
            beta=settings.beta,
            d_cutoff=settings.d_cutoff,
            frequency_hz=settings.initial_frequency_hz,
            min_dt_s=settings.min_dt_s,
        )

    @property
    def state(self) -> FilterState:
        return FilterState(
            value_estimate=self._x.last,
            derivative_estimate=self._dx.last,
            last_timestamp_s=self._last_time,
            has_value=self._x.has_value,
        )

    def filter(self, value: float, timestamp_s: Optional[float] = None) -> float:
        # Without a usable timestamp the previous frequency estimate is kept.
        if timestamp_s is not None and math.isfinite(timestamp_s):
            if self._last_time is not None:
                dt = max(self.min_dt_s, timestamp_s - self._last_time)
                self.frequency = 1.0 / dt
            self._last_time = timestamp_s

        dt = 1.0 / self.frequency

        d_value = (value - self._x.last) * self.frequency if self._x.has_value else 0.0
        self._dx.alpha = alpha_for_cutoff(self.d_cutoff, dt)
        smoothed_derivative = self._dx.filter(d_value)

        cutoff = self.min_cutoff + self.beta * abs(smoothed_derivative)
        self._x.alpha = alpha_for_cutoff(cutoff, dt)
        return self._x.filter(value)

    def reset(self) -> None:
        """Forget everything; the next sample is treated as the first."""
        self._x.reset()
        self._dx.reset()
        self._last_time = None
        self.frequency = self._initial_frequency


class AxisFilters:
    """Two independent filters, one per screen axis."""

    def __init__(self, x: OneEuroFilter, y: OneEuroFilter) -> None:
        if x is y:
            raise ValueError("Each axis needs its own filter instance.")
        self.x = x
        self.y = y

    @classmethod
    def from_settings(cls, settings: FilterSettings) -> "AxisFilters":
        return cls(OneEuroFilter.from_settings(settings), OneEuroFilter.from_settings(settings))

    def filter(self, x: float, y: float, timestamp_s: Optional[float] = None) -> tuple[float, float]:
        return self.x.filter(x, timestamp_s), self.y.filter(y, timestamp_s)

    def reset(self) -> None:
        self.x.reset()
        self.y.reset()

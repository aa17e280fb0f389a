from .filters import AxisFilters, FilterState, LowPassFilter, OneEuroFilter, alpha_for_cutoff
from .mapper import StabilityMapper

__all__ = [
    "AxisFilters",
    "FilterState",
    "LowPassFilter",
    "OneEuroFilter",
    "StabilityMapper",
    "alpha_for_cutoff",
]

from .accumulator import HeatmapAccumulator, HeatmapImage, apply_color_ramp
from .export import compose_overlay, save_overlay, save_png, to_pil

__all__ = [
    "HeatmapAccumulator",
    "HeatmapImage",
    "apply_color_ramp",
    "compose_overlay",
    "save_overlay",
    "save_png",
    "to_pil",
]

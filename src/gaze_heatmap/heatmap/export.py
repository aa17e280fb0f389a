import logging
from pathlib import Path

from PIL import Image

from .accumulator import HeatmapImage

logger = logging.getLogger(__name__)


def to_pil(image: HeatmapImage) -> Image.Image:
    # (height, width, 4) uint8 is read as RGBA.
    return Image.fromarray(image.rgba)


def save_png(image: HeatmapImage, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    to_pil(image).save(path, format="PNG")
    logger.info(f"Heatmap saved to {path} ({image.point_count} points)")
    return path


def compose_overlay(stimulus_path: Path, image: HeatmapImage) -> Image.Image:
    """
    Draw the heatmap over the viewed image.

    The stimulus is resized to the heatmap raster, which is the size of the
    surface the points were mapped onto.
    """
    with Image.open(stimulus_path) as stimulus:
        base = stimulus.convert("RGBA").resize((image.width, image.height))
    return Image.alpha_composite(base, to_pil(image))


def save_overlay(stimulus_path: Path, image: HeatmapImage, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    compose_overlay(stimulus_path, image).save(path, format="PNG")
    logger.info(f"Heatmap overlay saved to {path}")
    return path

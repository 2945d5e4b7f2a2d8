"""Elevation tile conversion: raster sample -> height grid in metres."""

from typing import Any

import numpy as np

from ..constants import FEET_TO_METRES, ElevationUnit
from .raster_io import FloatArray


def elevation_scale_factor(unit: str | None) -> float:
    """Multiplier converting ``unit`` heights to metres (feet or identity)."""
    if unit == ElevationUnit.FEET:
        return FEET_TO_METRES
    return 1.0


def image_to_heightfield(image: Any | None, scale_factor: float = 1.0) -> FloatArray | None:
    """
    Convert a decoded raster sample into a float32 height grid.

    The first band is used for multi-band images. Rows keep the image
    orientation (first row = north edge). A missing sample yields None.
    """
    if image is None:
        return None

    heights = np.array(image, dtype=np.float32)
    if heights.ndim == 3:
        heights = heights[..., 0]
    elif heights.ndim != 2:
        raise ValueError(f"Cannot build a heightfield from a {heights.ndim}-D sample")

    if scale_factor != 1.0:
        heights = heights * np.float32(scale_factor)
    return heights

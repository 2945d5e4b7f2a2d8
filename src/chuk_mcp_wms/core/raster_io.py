"""
Raster I/O for fetched WMS tiles.

All functions are synchronous; callers wrap them in asyncio.to_thread().
Handles image decoding (Pillow) and output conversion to PNG and GeoTIFF
(rasterio).
"""

import io
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_image(data: bytes) -> Image.Image:
    """
    Decode image bytes into a fully loaded Pillow image.

    Raises:
        ValueError: if the payload is not a readable image (for example an
            XML service exception returned with a 200 status)
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Unreadable image payload ({len(data)} bytes): {e}") from e
    return img


# ---------------------------------------------------------------------------
# Output conversion
# ---------------------------------------------------------------------------


def image_to_png(image: Image.Image) -> bytes:
    """Encode a Pillow image as PNG bytes."""
    if image.mode == "F":
        image = image.convert("I")
    elif image.mode not in ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"):
        image = image.convert("RGBA")
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def heightfield_to_geotiff(
    heights: FloatArray,
    crs: Any,
    bounds: Sequence[float],
    nodata: float | None = None,
) -> bytes:
    """
    Convert a 2D height grid to GeoTIFF bytes.

    Args:
        heights: 2D float array, first row is the north edge
        crs: Anything rasterio accepts as a CRS (pyproj CRS, WKT, "EPSG:4326")
        bounds: (minx, miny, maxx, maxy) of the grid in ``crs``
        nodata: Nodata value

    Returns:
        GeoTIFF bytes
    """
    from rasterio.crs import CRS as RioCRS
    from rasterio.io import MemoryFile
    from rasterio.transform import from_bounds

    height, width = heights.shape
    transform = from_bounds(*bounds, width, height)

    if hasattr(crs, "to_wkt"):
        crs = RioCRS.from_wkt(crs.to_wkt())

    memfile = MemoryFile()
    with memfile.open(
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype="float32",
        crs=crs,
        transform=transform,
        nodata=nodata,
    ) as dst:
        dst.write(heights.astype(np.float32)[np.newaxis, :])

    return memfile.read()


def heightfield_to_preview_png(heights: FloatArray) -> bytes:
    """Greyscale PNG of a height grid, stretched to its own range."""
    valid = heights[~np.isnan(heights)]
    if len(valid) == 0:
        img = Image.new("L", (heights.shape[1], heights.shape[0]), 0)
    else:
        vmin, vmax = float(np.min(valid)), float(np.max(valid))
        if vmax == vmin:
            vmax = vmin + 1.0
        norm = np.clip(np.nan_to_num((heights - vmin) / (vmax - vmin), nan=0.0), 0.0, 1.0)
        img = Image.fromarray((norm * 255).astype(np.uint8))

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

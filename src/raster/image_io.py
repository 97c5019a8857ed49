"""
Image decode / encode adapters.

Reading the water-body PNG and writing overlay PNGs are the only places that
touch image files; everything else works on numpy arrays.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from src.raster.coast import CoastRaster
from src.raster.grid import InvalidInputFormat

logger = logging.getLogger(__name__)

# PNG modes with 8 bits per channel that carry the water colour
_RGB_MODES = ("RGB", "RGBA")


def read_rgba_image(image_path) -> np.ndarray:
    """
    Decode an image into an (height, width, 4) uint8 array.

    Args:
        image_path: Path to a PNG (or any format Pillow reads)

    Returns:
        RGBA array, row 0 at the top

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputFormat: If the file is not an 8-bit RGB(A) image
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Can't open file '{image_path}'")

    try:
        with Image.open(image_path) as img:
            logger.info(f"Decoding '{image_path.name}': {img.width}x{img.height}, mode {img.mode}")
            if img.mode not in _RGB_MODES:
                raise InvalidInputFormat(f"Expected 8 bit RGB(A) image, got mode '{img.mode}'")
            rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    except (OSError, Image.DecompressionBombError) as e:
        # UnidentifiedImageError and truncated pixel data are both OSError
        raise InvalidInputFormat(f"Can't decode '{image_path}': {e}") from e

    return rgba


def write_rgba_png(rgba: np.ndarray, png_path) -> Path:
    """
    Encode an (height, width, 4) uint8 array as PNG.

    Returns:
        Path of the written file
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.dtype != np.uint8:
        raise InvalidInputFormat(f"Expected (h, w, 4) uint8 array, got {rgba.shape} {rgba.dtype}")

    png_path = Path(png_path)
    png_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(rgba).save(png_path)
    logger.info(f"PNG '{png_path}' created ({png_path.stat().st_size / 1024:.0f} KB)")
    return png_path


def load_coast_raster(image_path, cache=None) -> Optional[CoastRaster]:
    """
    Load the coastline image and build the coast raster.

    Failures are logged and yield None: without a coast raster coastal
    extension and nearest-land blending are simply unavailable.

    Args:
        image_path: Path to the water-body PNG
        cache: Optional CoastRasterCache to load from / save to

    Returns:
        CoastRaster or None
    """
    image_path = Path(image_path)
    source_hash = None
    try:
        if cache is not None:
            source_hash = cache.compute_source_hash(image_path)
            cached = cache.load_cache(source_hash)
            if cached is not None:
                return cached

        start_time = time.time()
        rgba = read_rgba_image(image_path)
        coast = CoastRaster.from_rgba(rgba)
        logger.info(f"Coast raster from '{image_path.name}' ready ({time.time() - start_time:.1f}s)")
    except (FileNotFoundError, InvalidInputFormat) as e:
        logger.error(f"Invalid coast map: {e}")
        return None

    if cache is not None:
        cache.save_cache(coast, source_hash)
    return coast

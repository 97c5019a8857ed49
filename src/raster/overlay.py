"""
Presentation rasters for the snow map.

Produces (height, width, 4) uint8 RGBA arrays, north-up. Encoding to PNG is
left to ``src.raster.image_io.write_rgba_png``.

Palettes:
- land: grey
- measured snow: cyan, alpha/intensity ramp with depth up to 25 cm
- extended snow: magenta, same ramp
- coast cells (debug): green, or coloured by normal direction
"""

import logging
from typing import Optional, Tuple

import matplotlib
import numpy as np

from src.config import DEBUG_COLORS

logger = logging.getLogger(__name__)

SD_MAX = 0.25           # depth (m) that maps to full intensity
LAND_RGB = (80, 80, 80)
COAST_RGB = (0, 255, 0)

WORLD_STEP = 0.1
WORLD_MIN_DEPTH = 0.01
WORLD_RAMP_OFFSET = 70

REGION_STEP = 0.005
REGION_MIN_DEPTH = 0.015
REGION_RAMP_OFFSET = 50
REGION_ALPHA = 150


def depth_ramp(sd: np.ndarray, offset: int) -> np.ndarray:
    """Map depth to an intensity in [offset, 255]."""
    scaled = np.clip(sd, 0.0, SD_MAX) / SD_MAX
    return (offset + scaled * (255 - offset)).astype(np.uint8)


def _paint(img: np.ndarray, mask: np.ndarray, rgb, alpha: int):
    img[mask, 0] = rgb[0]
    img[mask, 1] = rgb[1]
    img[mask, 2] = rgb[2]
    img[mask, 3] = alpha


def _paint_snow(img, sd, extended, min_depth, offset, alpha, show_extended):
    snow = sd > min_depth
    a = depth_ramp(sd, offset)
    ext = snow & extended if show_extended else np.zeros_like(snow)
    plain = snow & ~ext

    img[plain, 0] = 0
    img[plain, 1] = a[plain]
    img[plain, 2] = a[plain]
    img[plain, 3] = alpha

    img[ext, 0] = a[ext]
    img[ext, 1] = 0
    img[ext, 2] = a[ext]
    img[ext, 3] = alpha
    return snow


def render_world_overlay(depth_raster, coast=None, step: float = WORLD_STEP) -> np.ndarray:
    """
    Global snow map, longitude 0 in the center.

    Land is grey (if a coast raster is given), snow above 1 cm is cyan, or
    magenta where extended.

    Args:
        depth_raster: DepthRaster
        coast: CoastRaster or None
        step: Degrees per output pixel

    Returns:
        (180/step, 360/step, 4) uint8 RGBA array
    """
    width = int(round(360.0 / step))
    height = int(round(180.0 / step))
    lons, lats = np.meshgrid(np.arange(width) * step, np.arange(height) * step - 90.0)

    img = np.zeros((height, width, 4), dtype=np.uint8)
    if coast is not None:
        _paint(img, coast.is_land(lons, lats), LAND_RGB, 255)

    sd = depth_raster.get(lons, lats)
    extended = depth_raster.is_extended_snow(lons, lats)
    snow = _paint_snow(img, sd, extended, WORLD_MIN_DEPTH, WORLD_RAMP_OFFSET, 255, True)
    logger.info(f"World overlay {width}x{height}: {int(snow.sum())} snow pixels")

    # south-up, 0 deg at left  ->  north-up, 0 deg in the center
    return np.roll(np.flipud(img), width // 2, axis=1)


def render_region_overlay(
    depth_raster,
    coast,
    bounds: Tuple[float, float, float, float],
    step: float = REGION_STEP,
    debug_colors: bool = DEBUG_COLORS,
) -> np.ndarray:
    """
    Semi-transparent snow texture for a map view.

    Args:
        depth_raster: DepthRaster
        coast: CoastRaster or None (needed for debug colours only)
        bounds: (left_lon, bottom_lat, right_lon, top_lat). A right edge west
                of the left edge crosses the antimeridian.
        step: Degrees per output pixel
        debug_colors: Show coast cells green and extended snow magenta

    Returns:
        (height, width, 4) uint8 RGBA array, north-up

    Raises:
        ValueError: For empty bounds
    """
    left, bottom, right, top = bounds
    if right < left:
        right += 360.0  # dateline

    width = int((right - left) / step)
    height = int((top - bottom) / step)
    if width <= 0 or height <= 0:
        raise ValueError(f"Empty map bounds: {bounds}")

    lons, lats = np.meshgrid(left + np.arange(width) * step, bottom + np.arange(height) * step)
    img = np.zeros((height, width, 4), dtype=np.uint8)

    is_coast = np.zeros((height, width), dtype=np.bool_)
    if debug_colors and coast is not None:
        is_coast = coast.coast_directions(lons, lats) >= 0
        _paint(img, is_coast, COAST_RGB, REGION_ALPHA)

    sd = depth_raster.get(lons, lats)
    extended = depth_raster.is_extended_snow(lons, lats)
    snow = _paint_snow(img, sd, extended, REGION_MIN_DEPTH, REGION_RAMP_OFFSET, REGION_ALPHA, debug_colors)
    _paint(img, snow & is_coast, COAST_RGB, REGION_ALPHA)

    logger.info(f"texture created, width: {width}, height: {height}")
    return np.flipud(img)


def render_coast_directions(coast, cmap_name: str = "twilight") -> np.ndarray:
    """
    Coast cells coloured by coastline normal on a cyclic colormap.

    Normals are converted to true heading (0 = north, clockwise) before
    colouring. Land is grey, water transparent.

    Returns:
        RGBA array in the coast raster's resolution, north-up, 0 deg centered
    """
    cmap = matplotlib.colormaps[cmap_name]
    height, width = coast.grid.shape
    img = np.zeros((height, width, 4), dtype=np.uint8)
    _paint(img, coast.kind == 1, LAND_RGB, 255)

    mask = coast.normal >= 0
    heading = np.mod(90.0 - coast.normal[mask].astype(np.float64) * 45.0, 360.0)
    img[mask] = (cmap(heading / 360.0) * 255).astype(np.uint8)
    logger.info(f"Coast direction overlay: {int(mask.sum())} coast cells")
    return np.roll(np.flipud(img), width // 2, axis=1)


class RegionOverlayCache:
    """
    Keeps the last region overlay until the bounds or the raster change.

    The depth raster's sequence number is compared on each request, so a
    newly published raster triggers a re-render.
    """

    def __init__(self, step: float = REGION_STEP, debug_colors: bool = DEBUG_COLORS):
        self.step = step
        self.debug_colors = debug_colors
        self.bounds: Optional[Tuple[float, float, float, float]] = None
        self.image: Optional[np.ndarray] = None
        self._seqno: Optional[int] = None

    def set_bounds(self, bounds):
        bounds = tuple(bounds)
        if bounds != self.bounds:
            logger.debug(f"map_bounds: {bounds}")
            self.bounds = bounds
            self.image = None

    def get(self, depth_raster, coast=None) -> Optional[np.ndarray]:
        """Current overlay, re-rendered if stale. None without raster or bounds."""
        if depth_raster is None or self.bounds is None:
            return None

        if self._seqno != depth_raster.sequence_number():
            self.image = None

        if self.image is None:
            self.image = render_region_overlay(
                depth_raster, coast, self.bounds, step=self.step, debug_colors=self.debug_colors
            )
            self._seqno = depth_raster.sequence_number()
        return self.image

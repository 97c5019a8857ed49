"""
Global snow map rasters.

Core functionality:
- GridSpec for wrap/clamp index conversion on a global lat/lon grid
- CoastRaster: land / water / coast classification with coastline normals
  and nearest-land vectors
- DepthRaster: bilinear snow depth with coastal snow extension
- Presentation overlays, image I/O, GeoTIFF export and caching
"""

from .grid import GridSpec, InvalidInputFormat, OutOfRangeError
from .coast import CellKind, CoastCell, CoastNormal, CoastRaster, NearestLand
from .depth import DepthRaster, ExtensionConfig
from .image_io import load_coast_raster, read_rgba_image, write_rgba_png
from .overlay import (
    RegionOverlayCache,
    render_coast_directions,
    render_region_overlay,
    render_world_overlay,
)

__all__ = [
    "GridSpec",
    "InvalidInputFormat",
    "OutOfRangeError",
    "CellKind",
    "CoastCell",
    "CoastNormal",
    "CoastRaster",
    "NearestLand",
    "DepthRaster",
    "ExtensionConfig",
    "load_coast_raster",
    "read_rgba_image",
    "write_rgba_png",
    "RegionOverlayCache",
    "render_coast_directions",
    "render_region_overlay",
    "render_world_overlay",
]

"""
GeoTIFF export of the global rasters for inspection in GIS tools.

Rasters are stored south-up internally; they are written north-up in
EPSG:4326 with longitudes starting at 0. Grid indices are sample positions
(nearest-neighbor lookups round to them), so pixel centers sit on them.
"""

import logging
from pathlib import Path

import numpy as np
import rasterio
from rasterio.transform import Affine

from src.raster.grid import GridSpec

logger = logging.getLogger(__name__)


def grid_transform(grid: GridSpec) -> Affine:
    """Affine transform mapping north-up pixel (col, row) to lon/lat."""
    top = -90.0 + grid.lat_step * (grid.height - 1) + grid.lat_step / 2
    left = -grid.lon_step / 2
    return Affine(grid.lon_step, 0.0, left, 0.0, -grid.lat_step, top)


def write_geotiff(array: np.ndarray, grid: GridSpec, path, nodata=None) -> Path:
    """
    Write a (height, width) grid-oriented array as a single band GeoTIFF.

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = np.flipud(np.asarray(array))
    if data.dtype == np.bool_:
        data = data.astype(np.uint8)

    profile = {
        "driver": "GTiff",
        "height": grid.height,
        "width": grid.width,
        "count": 1,
        "dtype": data.dtype.name,
        "crs": "EPSG:4326",
        "transform": grid_transform(grid),
        "compress": "deflate",
    }
    if nodata is not None:
        profile["nodata"] = nodata

    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)

    logger.info(f"Wrote {path.name} ({grid.width}x{grid.height})")
    return path


def export_depth_raster(depth_raster, path) -> Path:
    """Snow depth (m) as float32 GeoTIFF."""
    return write_geotiff(depth_raster.values, depth_raster.grid, path)


def export_coast_raster(coast, path) -> Path:
    """Cell classification (0 water, 1 land, 2 coast) as uint8 GeoTIFF."""
    return write_geotiff(coast.kind, coast.grid, path)

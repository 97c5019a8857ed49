#!/usr/bin/env python3
"""
Snow Map Rendering

Builds the coast raster from the ESA CCI water-body map, loads a snow depth
CSV, runs coastal extension and writes the global snow map.

Output:
    - PNG of the global snow map (land grey, measured snow cyan,
      extended snow magenta)
    - Optional GeoTIFF of the depth raster
    - Optional coast direction PNG

Usage:
    python examples/render_snow_map.py --samples snod.csv --output output/snow_depth.png
    python examples/render_snow_map.py --samples snod.csv --probe 54.40 11.31 --probe 60.30 4.68
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config import COAST_CACHE, COAST_IMAGE, DEPTH_RESOLUTION, OUTPUT_DIR, ensure_cache_dirs
from src.raster.cache import CoastRasterCache
from src.raster.depth import DepthRaster
from src.raster.geotiff import export_depth_raster
from src.raster.image_io import load_coast_raster, write_rgba_png
from src.raster.overlay import render_coast_directions, render_world_overlay
from src.snow.publisher import build_depth_raster
from src.snow.query import snow_depth_at
from src.utils.helpers import setup_logging

logger = setup_logging("src")


def probe_nearest_land(coast, depth_raster, lat, lon):
    """Log nearest land and effective depth (lat first, as copied from a web map)."""
    nl = coast.nearest_land(lon, lat)
    result = snow_depth_at(lon, lat, depth_raster, coast)
    logger.info(
        f"probe_nl: ll {lat:10.5f},{lon:10.5f}, is_water: {nl.is_water}, "
        f"have_nl: {nl.has_result}, nl_ll: {nl.lat:10.5f},{nl.lon:10.5f}, "
        f"depth: {result.depth:.3f}"
    )


def main():
    parser = argparse.ArgumentParser(description="Render the global snow depth map")
    parser.add_argument("--coast-image", type=Path, default=COAST_IMAGE, help="Water-body PNG")
    parser.add_argument("--samples", type=Path, help="Snow depth CSV (lon,lat,depth)")
    parser.add_argument("--resolution", type=float, default=DEPTH_RESOLUTION, help="Degrees per cell")
    parser.add_argument("--output", type=Path, default=OUTPUT_DIR / "snow_depth.png")
    parser.add_argument("--geotiff", type=Path, help="Also write the depth raster as GeoTIFF")
    parser.add_argument("--coast-directions", type=Path, help="Also write coast normals as PNG")
    parser.add_argument(
        "--probe",
        type=float,
        nargs=2,
        action="append",
        default=[],
        metavar=("LAT", "LON"),
        help="Log nearest land and depth for a position (repeatable)",
    )
    parser.add_argument("--no-cache", action="store_true", help="Rebuild the coast raster")
    args = parser.parse_args()

    ensure_cache_dirs()
    cache = CoastRasterCache(COAST_CACHE, enabled=not args.no_cache)
    coast = load_coast_raster(args.coast_image, cache=cache)
    if coast is None:
        logger.warning("No coast raster, continuing without coastal extension")

    if args.samples is not None:
        depth_raster = build_depth_raster(args.samples, coast, resolution=args.resolution)
    else:
        depth_raster = DepthRaster(args.resolution, coast=coast).freeze()

    for lat, lon in args.probe:
        if coast is not None:
            probe_nearest_land(coast, depth_raster, lat, lon)

    write_rgba_png(render_world_overlay(depth_raster, coast), args.output)

    if args.geotiff is not None:
        export_depth_raster(depth_raster, args.geotiff)

    if args.coast_directions is not None and coast is not None:
        write_rgba_png(render_coast_directions(coast), args.coast_directions)

    return 0


if __name__ == "__main__":
    sys.exit(main())

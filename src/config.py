"""Configuration module for snow-depth-map project.

Centralizes data paths and default settings.
"""
import os
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = PROJECT_ROOT / "output"

# ESA CCI water bodies map, 0.1 degree, RGBA
COAST_IMAGE_NAME = "ESACCI-LC-L4-WB-Ocean-Map-150m-P13Y-2000-v4.0.png"
COAST_IMAGE = DATA_DIR / COAST_IMAGE_NAME

# Cache directories (created as needed)
CACHE_DIR = DATA_DIR / "cache"
COAST_CACHE = CACHE_DIR / "coast"

# Raster defaults
DEPTH_RESOLUTION = 0.1      # degrees per cell
EXTENSION_PASSES = 3        # fjords and small islands need more than one sweep
NOISE_FLOOR = 0.001         # m, samples below are dropped
GUARD_BAND_DEG = 1.0        # no classification this close to the poles
QUERY_LAT_LIMIT = 85.0      # point queries are clamped to +/- this latitude
NEAREST_LAND_MAX_STEPS = 9

# Presentation
DEBUG_COLORS = os.environ.get("DEBUG_COLORS") is not None

DEFAULT_LOG_LEVEL = "INFO"


def ensure_cache_dirs():
    """Create cache directories if they don't exist yet."""
    for cache_dir in [CACHE_DIR, COAST_CACHE]:
        cache_dir.mkdir(parents=True, exist_ok=True)

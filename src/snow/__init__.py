"""
Snow depth queries and data flow.

This module provides the consumer side of the rasters:
- Measurement CSV reading
- Point queries with nearest-land blending over water
- Legacy airport depth limiting
- Background rebuild and publishing of depth rasters
"""

from .samples import SampleBatch, read_samples_csv
from .airport import Airport, LegacyAirportPolicy
from .query import SnowDepthResult, coastal_depth, nearest_land_depth, snow_depth_at
from .publisher import DepthRasterSlot, SnowMapUpdater, build_depth_raster

__all__ = [
    "SampleBatch",
    "read_samples_csv",
    "Airport",
    "LegacyAirportPolicy",
    "SnowDepthResult",
    "coastal_depth",
    "nearest_land_depth",
    "snow_depth_at",
    "DepthRasterSlot",
    "SnowMapUpdater",
    "build_depth_raster",
]

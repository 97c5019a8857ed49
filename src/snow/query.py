"""
Point queries combining the depth and coast rasters.

These are the functions a host application calls per position update. Both
rasters are passed in explicitly; a missing raster degrades the result
instead of failing.
"""

import logging
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)


class SnowDepthResult(NamedTuple):
    depth: float
    """Effective snow depth in m."""

    legacy_airport: bool
    """True if a legacy airport adjustment applied."""

    nearest_land_used: bool
    """True if the over-water depth was raised from the nearest land cell."""


def nearest_land_depth(depth_raster, coast, lon: float, lat: float) -> Optional[float]:
    """
    Depth at the nearest land cell for a water position.

    Returns:
        Depth in m, or None if the position is land, has no recorded nearest
        land, or no coast raster is available
    """
    if coast is None:
        return None
    nl = coast.nearest_land(lon, lat)
    if not (nl.is_water and nl.has_result):
        return None
    return depth_raster.get(nl.lon, nl.lat)


def coastal_depth(depth_raster, coast, lon: float, lat: float) -> float:
    """Depth at lon/lat, raised to the nearest land depth over water."""
    depth = depth_raster.get(lon, lat)
    land_depth = nearest_land_depth(depth_raster, coast, lon, lat)
    if land_depth is not None:
        depth = max(depth, land_depth)
    return depth


def snow_depth_at(
    lon: float,
    lat: float,
    depth_raster,
    coast=None,
    airport_policy=None,
    aircraft_elevation: float = 0.0,
) -> SnowDepthResult:
    """
    Effective snow depth for a position.

    The legacy airport policy runs first. Only outside its range are water
    positions blended with their nearest land cell, so that snowy coastlines
    have no bare strip offshore.

    Args:
        lon, lat: Position in degrees
        depth_raster: Current DepthRaster, or None while none is published
        coast: CoastRaster, or None if it failed to load
        airport_policy: LegacyAirportPolicy, or None to disable
        aircraft_elevation: Elevation MSL in m, for the airport policy

    Returns:
        SnowDepthResult
    """
    if depth_raster is None:
        logger.debug("... waiting for snow map")
        return SnowDepthResult(0.0, False, False)

    depth = depth_raster.get(lon, lat)

    in_range = False
    if airport_policy is not None:
        depth, in_range = airport_policy.adjust(lon, lat, depth, aircraft_elevation)

    nearest_land_used = False
    if not in_range:
        land_depth = nearest_land_depth(depth_raster, coast, lon, lat)
        if land_depth is not None and land_depth > depth:
            depth = land_depth
            nearest_land_used = True

    return SnowDepthResult(depth, in_range, nearest_land_used)

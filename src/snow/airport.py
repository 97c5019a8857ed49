"""
Snow depth limiting near legacy airports.

Airports with legacy textures look wrong under deep snow, so close to them
the reported depth is softened: at the airport center (the MEC, minimum
enclosing circle of the runways) it drops to the airport's cap, and it
blends progressively back to the raw depth towards ``ARPT_LIMIT``.

Terrain elevation is not known here. Callers supply an elevation probe,
``probe(lon, lat) -> meters or None``, which is asked once per airport.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

ARPT_LIMIT = 18000.0        # m, ~10 nm
MEC_SLOPE = 0.087           # 5 deg slope towards the MEC
MAX_LEGACY_DEPTH = 0.25     # m
LAT_TO_M = 111120.0         # 1 deg latitude in m
FT_TO_M = 0.3048

ElevationProbe = Callable[[float, float], Optional[float]]


@dataclass
class Airport:
    """A legacy airport reference."""

    name: str
    mec_lon: float
    mec_lat: float
    mec_radius: float
    """Radius (m) of the circle enclosing all runways."""

    runway_lon: float
    runway_lat: float
    """A runway end, used to probe the field elevation."""

    max_snow_depth: float = MAX_LEGACY_DEPTH
    elevation: Optional[float] = None
    """Field elevation in m, None until probed."""


def distance_m(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Flat-earth distance in meters, fine for the ~20 km range used here."""
    dlon = lon2 - lon1
    if dlon > 180.0:
        dlon -= 360.0
    elif dlon < -180.0:
        dlon += 360.0
    dx = dlon * LAT_TO_M * math.cos(math.radians(0.5 * (lat1 + lat2)))
    dy = (lat2 - lat1) * LAT_TO_M
    return math.hypot(dx, dy)


class LegacyAirportPolicy:
    """Depth adjustment around a list of legacy airports."""

    def __init__(self, airports: Iterable[Airport], elevation_probe: Optional[ElevationProbe] = None):
        self.airports = list(airports)
        self.elevation_probe = elevation_probe
        self._elevations: Dict[str, float] = {}

    def _field_elevation(self, arpt: Airport) -> float:
        if arpt.elevation is not None:
            return arpt.elevation
        if arpt.name in self._elevations:
            return self._elevations[arpt.name]

        elev = None
        if self.elevation_probe is not None:
            elev = self.elevation_probe(arpt.runway_lon, arpt.runway_lat)
        if elev is None:
            logger.warning(f"terrain probe failed for '{arpt.name}', assuming sea level")
            elev = 0.0
        else:
            logger.info(f"elevation of '{arpt.name}', {elev / FT_TO_M:.1f} ft")
        self._elevations[arpt.name] = elev
        return elev

    def adjust(
        self, lon: float, lat: float, snow_depth: float, aircraft_elevation: float = 0.0
    ) -> Tuple[float, bool]:
        """
        Adjust ``snow_depth`` for the first airport within range.

        Args:
            lon, lat: Query position in degrees
            snow_depth: Raw depth in m
            aircraft_elevation: Aircraft elevation MSL in m. Height above the
                                field beyond the approach slope counts as
                                extra distance.

        Returns:
            Tuple of (adjusted_depth, in_range)
        """
        for arpt in self.airports:
            dist = distance_m(lon, lat, arpt.mec_lon, arpt.mec_lat)
            if dist >= ARPT_LIMIT:
                continue

            max_depth = min(arpt.max_snow_depth, MAX_LEGACY_DEPTH)
            if snow_depth <= max_depth:
                return snow_depth, True

            haa = aircraft_elevation - self._field_elevation(arpt)
            ref_haa = dist * MEC_SLOPE
            dh = max(0.0, haa - ref_haa)
            ref_dist = dist + 10.0 * dh

            a = (ref_dist - arpt.mec_radius) / (ARPT_LIMIT - arpt.mec_radius)
            a = max(0.0, min(a, 1.0)) ** 1.5
            adjusted = max_depth + a * (min(snow_depth, MAX_LEGACY_DEPTH) - max_depth)
            return adjusted, True

        return snow_depth, False

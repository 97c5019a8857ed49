"""
Global lat/lon grid geometry shared by the coast and depth rasters.

Longitude is stored in [0, 360) and wraps toroidally. Latitude is stored as
``lat + 90`` in [0, 180] and is clamped at the raster edge, never wrapped.
Arrays are laid out ``(rows, cols) == (lat index, lon index)`` with row 0 at
the south pole.

Compass directions use the grid convention 0 = +lon, 2 = +lat, 4 = -lon,
6 = -lat, odd values are the diagonals in between (counter-clockwise).
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


# 8-direction compass, 45 degree steps, standard math orientation
DIR_X = np.array([1, 1, 0, -1, -1, -1, 0, 1], dtype=np.int64)
DIR_Y = np.array([0, 1, 1, 1, 0, -1, -1, -1], dtype=np.int64)

DIAGONAL_WEIGHT = 0.7071  # 1/sqrt(2)


class InvalidInputFormat(ValueError):
    """Raised when an input image or data file has an unusable format."""

    pass


class OutOfRangeError(IndexError):
    """Raised when coordinates cannot be mapped onto the grid."""

    pass


def direction_vector(direction: int) -> Tuple[int, int]:
    """Return the (dx, dy) grid step for a compass direction 0..7."""
    return int(DIR_X[direction]), int(DIR_Y[direction])


def _round_half_up(x):
    return np.floor(np.asarray(x, dtype=np.float64) + 0.5).astype(np.int64)


def _check_finite(lon, lat):
    if not (np.all(np.isfinite(lon)) and np.all(np.isfinite(lat))):
        raise OutOfRangeError(f"Non-finite coordinates: lon={lon}, lat={lat}")


@dataclass(frozen=True)
class GridSpec:
    """Shape and angular step of a global raster."""

    width: int
    """Number of longitude cells covering 360 degrees."""

    height: int
    """Number of latitude cells."""

    lon_step: float
    """Degrees of longitude per cell."""

    lat_step: float
    """Degrees of latitude per cell."""

    @classmethod
    def for_cells(cls, width: int, height: int) -> "GridSpec":
        """Cell-based grid (coast raster): ``height`` rows span 180 degrees."""
        return cls(width, height, 360.0 / width, 180.0 / height)

    @classmethod
    def for_nodes(cls, resolution: float) -> "GridSpec":
        """Node-based grid (depth raster): both poles are rows, lon wraps."""
        width = int(round(360.0 / resolution))
        height = int(round(180.0 / resolution)) + 1
        return cls(width, height, resolution, resolution)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)

    def wrap_i(self, i):
        """Wrap longitude indices into [0, width)."""
        return np.mod(i, self.width)

    def clamp_j(self, j):
        """Clamp latitude indices into [0, height)."""
        return np.clip(j, 0, self.height - 1)

    def fractional_index(self, lon, lat):
        """
        Convert lon/lat to fractional grid coordinates.

        Longitude is reduced into [0, 360) first, latitude is shifted by 90.
        No clamping is applied.
        """
        _check_finite(lon, lat)
        lon = np.mod(np.asarray(lon, dtype=np.float64), 360.0)
        lat = np.asarray(lat, dtype=np.float64) + 90.0
        return lon / self.lon_step, lat / self.lat_step

    def nearest_index(self, lon, lat, lat_limit=None):
        """
        Nearest-neighbor cell index for lon/lat.

        Rounds to nearest, then wraps longitude and clamps latitude (wrap after
        round, so 359.96 at 0.1 degrees lands on column 0).

        Args:
            lon: Longitude(s) in degrees, any range
            lat: Latitude(s) in degrees
            lat_limit: If given, clamp latitude to +/- this value first

        Returns:
            Tuple of (i, j) integer arrays (0-d for scalar input)

        Raises:
            OutOfRangeError: For NaN or infinite coordinates
        """
        if lat_limit is not None:
            lat = np.clip(lat, -lat_limit, lat_limit)
        fi, fj = self.fractional_index(lon, lat)
        i = self.wrap_i(_round_half_up(fi))
        j = self.clamp_j(_round_half_up(fj))
        return i, j

    def floor_index(self, lon, lat):
        """
        Lower-left cell index plus fractional offsets for bilinear sampling.

        Returns:
            Tuple of (i0, j0, s, t) where s, t in [0, 1) are the offsets
            within the cell. Indices are not wrapped or clamped yet.
        """
        fi, fj = self.fractional_index(lon, lat)
        i0 = np.floor(fi).astype(np.int64)
        j0 = np.floor(fj).astype(np.int64)
        return i0, j0, fi - i0, fj - j0

    def cell_lonlat(self, i, j):
        """Grid index to (lon, lat) with lon in [0, 360)."""
        lon = np.asarray(i, dtype=np.float64) * self.lon_step
        lat = np.asarray(j, dtype=np.float64) * self.lat_step - 90.0
        return lon, lat

    def axis_lonlat(self):
        """1-D lon and lat coordinates of all columns and rows."""
        return self.cell_lonlat(np.arange(self.width), np.arange(self.height))

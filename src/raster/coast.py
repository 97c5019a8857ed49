"""
Land / water / coastline classification raster.

Built once from a global water-body image and read-only afterwards. Every
cell is one of:

- WATER: open water. Carries the nearest-land vector (direction, steps) when
  land lies within ``NEAREST_LAND_MAX_STEPS`` cells along one of the 8
  compass directions.
- LAND: no auxiliary data.
- COAST: a water cell that sees land within 3 cells while the 2 cells behind
  it are water. Carries the coastline normal (the quantized mean direction
  towards land) in addition to the nearest-land vector.

COAST is a refinement of WATER: ``is_water`` is true for both.
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple, Optional, Tuple

import numpy as np
from numba import jit, prange

from src.config import GUARD_BAND_DEG, NEAREST_LAND_MAX_STEPS, QUERY_LAT_LIMIT
from src.raster.grid import (
    DIAGONAL_WEIGHT,
    DIR_X,
    DIR_Y,
    GridSpec,
    InvalidInputFormat,
)

logger = logging.getLogger(__name__)


class CellKind(IntEnum):
    WATER = 0
    LAND = 1
    COAST = 2


# Longitude axis first: away from the equator a step in longitude is the
# shortest one, then latitude axis, then the diagonals.
NEAREST_LAND_ORDER = np.array([0, 4, 2, 6, 1, 3, 5, 7], dtype=np.int64)

NO_DIRECTION = -1


class CoastNormal(NamedTuple):
    """Result of ``CoastRaster.is_coast``."""

    is_coast: bool
    dx: int
    dy: int
    direction: int


class NearestLand(NamedTuple):
    """Result of ``CoastRaster.nearest_land``; lon in [-180, 180)."""

    is_water: bool
    has_result: bool
    lon: float
    lat: float


@dataclass(frozen=True)
class CoastCell:
    """Decoded view of a single cell."""

    kind: CellKind
    normal: Optional[int] = None
    """Coastline normal direction (COAST only)."""

    nearest_land: Optional[Tuple[int, int]] = None
    """(direction, steps) to the nearest land cell (WATER and COAST only)."""


# =============================================================================
# Classification kernels
# =============================================================================


@jit(nopython=True, cache=True)
def _water_px(water, i, j):
    """Water test with longitude wrap and latitude clamp."""
    height, width = water.shape
    i = i % width
    if j < 0:
        j = 0
    elif j >= height:
        j = height - 1
    return water[j, i]


@jit(nopython=True, cache=True)
def _find_nearest_land(water, i, j, max_steps):
    """
    First (direction, steps) at which land shows up, nearest step first.

    If the cell one step further is land too the step is advanced by one,
    which prefers solid land over a single-cell islet.
    """
    for step in range(1, max_steps + 1):
        for p in range(8):
            d = NEAREST_LAND_ORDER[p]
            dx = DIR_X[d]
            dy = DIR_Y[d]
            if not _water_px(water, i + step * dx, j + step * dy):
                if step < max_steps and not _water_px(
                    water, i + (step + 1) * dx, j + (step + 1) * dy
                ):
                    return d, step + 1
                return d, step
    return -1, 0


@jit(nopython=True, parallel=True, cache=True)
def _classify_jit(water, guard_rows, max_steps, kind, normal, land_dir, land_dist):
    """
    Classify all cells outside the polar guard band (row-parallel).

    Each row is written by exactly one worker; only ``water`` is read.
    """
    height, width = water.shape

    for j in prange(guard_rows, height - guard_rows):
        for i in range(width):
            if not water[j, i]:
                kind[j, i] = 1  # LAND
                continue

            # Land ahead within 3 steps while the 2 steps behind are water
            # marks a coastline-facing direction. Their unit vectors are summed.
            sum_x = 0.0
            sum_y = 0.0
            is_coast = False
            for d in range(8):
                di = DIR_X[d]
                dj = DIR_Y[d]
                if (
                    _water_px(water, i - 2 * di, j - 2 * dj)
                    and _water_px(water, i - di, j - dj)
                    and (
                        not _water_px(water, i + di, j + dj)
                        or not _water_px(water, i + 2 * di, j + 2 * dj)
                        or not _water_px(water, i + 3 * di, j + 3 * dj)
                    )
                ):
                    f = DIAGONAL_WEIGHT if d & 1 else 1.0
                    sum_x += f * di
                    sum_y += f * dj
                    is_coast = True

            if is_coast:
                ang = math.degrees(math.atan2(sum_y, sum_x))
                if ang < 0.0:
                    ang += 360.0
                dir_land = int(math.floor(ang / 45.0 + 0.5))
                if dir_land == 8:
                    dir_land = 0
                kind[j, i] = 2  # COAST
                normal[j, i] = dir_land
            else:
                kind[j, i] = 0  # WATER

            d, steps = _find_nearest_land(water, i, j, max_steps)
            land_dir[j, i] = d
            land_dist[j, i] = steps


# =============================================================================
# CoastRaster
# =============================================================================


class CoastRaster:
    """
    Immutable land / water / coast classification of the globe.

    Attributes:
        grid: GridSpec of the raster (cell based, ``height`` rows span 180 deg)
        kind: (height, width) uint8 array of CellKind values
        normal: (height, width) int8 coastline normal, -1 where not COAST
        land_dir: (height, width) int8 nearest-land direction, -1 if none
        land_dist: (height, width) uint8 nearest-land steps, 0 if none
    """

    def __init__(self, grid: GridSpec, kind, normal, land_dir, land_dist):
        self.grid = grid
        self.kind = kind
        self.normal = normal
        self.land_dir = land_dir
        self.land_dist = land_dist
        for arr in (self.kind, self.normal, self.land_dir, self.land_dist):
            if arr.shape != grid.shape:
                raise ValueError(f"Array shape {arr.shape} does not match grid {grid.shape}")
            arr.flags.writeable = False

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_water_mask(
        cls,
        water: np.ndarray,
        guard_band_deg: float = GUARD_BAND_DEG,
        max_steps: int = NEAREST_LAND_MAX_STEPS,
    ) -> "CoastRaster":
        """
        Build the raster from a boolean water mask in grid orientation.

        Args:
            water: (height, width) bool array, True = water. Row 0 is the
                   southernmost row, column 0 is longitude 0.
            guard_band_deg: Latitude margin at each pole left unclassified
                           (cells there stay WATER without nearest-land data)
            max_steps: Nearest-land search radius in cells

        Returns:
            CoastRaster

        Raises:
            InvalidInputFormat: If the mask is not 2-D
        """
        water = np.asarray(water)
        if water.ndim != 2:
            raise InvalidInputFormat(f"Water mask must be 2D, got shape {water.shape}")
        water = np.ascontiguousarray(water, dtype=np.bool_)

        height, width = water.shape
        grid = GridSpec.for_cells(width, height)
        guard_rows = min(int(round(guard_band_deg / grid.lat_step)), height // 2)

        logger.info(
            f"Building coast raster {width}x{height} "
            f"({grid.lon_step:.3f} deg/cell, guard rows: {guard_rows})"
        )
        start_time = time.time()

        kind = np.zeros((height, width), dtype=np.uint8)
        normal = np.full((height, width), NO_DIRECTION, dtype=np.int8)
        land_dir = np.full((height, width), NO_DIRECTION, dtype=np.int8)
        land_dist = np.zeros((height, width), dtype=np.uint8)

        _classify_jit(water, guard_rows, max_steps, kind, normal, land_dir, land_dist)

        elapsed = time.time() - start_time
        logger.info(
            f"Coast raster built in {elapsed:.2f}s: "
            f"{np.sum(kind == CellKind.LAND)} land, "
            f"{np.sum(kind == CellKind.WATER)} water, "
            f"{np.sum(kind == CellKind.COAST)} coast cells"
        )
        return cls(grid, kind, normal, land_dir, land_dist)

    @classmethod
    def from_rgba(cls, image: np.ndarray, **kwargs) -> "CoastRaster":
        """
        Build from a decoded global water-body image.

        The image is north-up with column 0 at longitude -180. A pixel whose
        RGB channels are all zero is water regardless of alpha.

        Args:
            image: (height, width, 4) or (height, width, 3) uint8 array
            **kwargs: Passed to ``from_water_mask``

        Raises:
            InvalidInputFormat: On wrong bit depth, channel count, or an
                               aspect ratio that is not exactly 2:1
        """
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise InvalidInputFormat(f"Expected RGB(A) image, got shape {image.shape}")
        if image.dtype != np.uint8:
            raise InvalidInputFormat(f"Expected 8 bit channels, got {image.dtype}")

        height, width = image.shape[:2]
        logger.info(f"w: {width}, h: {height}, channels: {image.shape[2]}")
        if width == 0 or width != 2 * height:
            raise InvalidInputFormat(
                f"Image {width}x{height} does not have equal lon/lat resolution"
            )

        water_img = np.all(image[:, :, :3] == 0, axis=2)
        # north-up, -180 at left  ->  south-up, 0 at left
        water = np.roll(np.flipud(water_img), -(width // 2), axis=1)
        return cls.from_water_mask(water, **kwargs)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _index(self, lon, lat):
        return self.grid.nearest_index(lon, lat, lat_limit=QUERY_LAT_LIMIT)

    def kind_at(self, lon, lat):
        """CellKind value(s) of the nearest cell."""
        i, j = self._index(lon, lat)
        return self.kind[j, i]

    def is_water(self, lon, lat):
        """True for WATER and COAST cells."""
        result = self.kind_at(lon, lat) != CellKind.LAND
        return bool(result) if np.ndim(result) == 0 else result

    def is_land(self, lon, lat):
        result = self.kind_at(lon, lat) == CellKind.LAND
        return bool(result) if np.ndim(result) == 0 else result

    def is_coast(self, lon: float, lat: float) -> CoastNormal:
        """
        Coast test with the coastline normal.

        Returns:
            CoastNormal(is_coast, dx, dy, direction). For non-coast cells
            dx = dy = 0 and direction = -1.
        """
        i, j = self._index(lon, lat)
        if self.kind[j, i] != CellKind.COAST:
            return CoastNormal(False, 0, 0, NO_DIRECTION)
        d = int(self.normal[j, i])
        return CoastNormal(True, int(DIR_X[d]), int(DIR_Y[d]), d)

    def coast_directions(self, lon, lat):
        """Vectorized normal direction lookup, -1 where not coast."""
        i, j = self._index(lon, lat)
        return self.normal[j, i]

    def nearest_land(self, lon: float, lat: float) -> NearestLand:
        """
        Nearest land cell along the recorded direction.

        Returns:
            NearestLand(is_water, has_result, lon, lat). ``lon`` is in
            [-180, 180) and ``lat`` is clamped to the query range. Without a
            result the query coordinates are returned unchanged.
        """
        i, j = self._index(lon, lat)
        if self.kind[j, i] == CellKind.LAND:
            return NearestLand(False, False, lon, lat)

        steps = int(self.land_dist[j, i])
        if steps == 0:
            return NearestLand(True, False, lon, lat)

        d = int(self.land_dir[j, i])
        li = self.grid.wrap_i(int(i) + steps * int(DIR_X[d]))
        lj = self.grid.clamp_j(int(j) + steps * int(DIR_Y[d]))
        nl_lon, nl_lat = self.grid.cell_lonlat(li, lj)
        nl_lon = float(nl_lon)
        if nl_lon >= 180.0:
            nl_lon -= 360.0
        nl_lat = float(np.clip(nl_lat, -QUERY_LAT_LIMIT, QUERY_LAT_LIMIT))
        return NearestLand(True, True, nl_lon, nl_lat)

    def cell(self, lon: float, lat: float) -> CoastCell:
        """Decoded cell at lon/lat."""
        i, j = self._index(lon, lat)
        kind = CellKind(int(self.kind[j, i]))
        if kind == CellKind.LAND:
            return CoastCell(kind)

        nearest = None
        if self.land_dist[j, i] > 0:
            nearest = (int(self.land_dir[j, i]), int(self.land_dist[j, i]))
        normal = int(self.normal[j, i]) if kind == CellKind.COAST else None
        return CoastCell(kind, normal, nearest)

    def project_onto(self, grid: GridSpec):
        """
        Resample classification onto another grid by nearest neighbor.

        Used by the depth raster, whose nodes do not coincide with coast cells.
        No query latitude limit is applied here; rows beyond the raster edge
        are clamped.

        Returns:
            Tuple of (normal, water) arrays with ``grid.shape``: the coastline
            normal (-1 where not coast) and a bool water mask
        """
        lons, lats = grid.axis_lonlat()
        ci, _ = self.grid.nearest_index(lons, np.zeros_like(lons))
        _, cj = self.grid.nearest_index(np.zeros_like(lats), lats)
        rows = np.ix_(cj, ci)
        normal = np.ascontiguousarray(self.normal[rows])
        water = np.ascontiguousarray(self.kind[rows] != CellKind.LAND)
        return normal, water

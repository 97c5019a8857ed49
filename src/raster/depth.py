"""
Global snow depth raster with coastal snow extension.

A DepthRaster is built per measurement batch and treated as immutable once
built: a refresh creates a new instance (see ``src.snow.publisher``). Each
instance gets the next value of a process-wide sequence number so that
consumers can detect a stale rendering without inspecting the data.

Measurement grids are coarse and coastal cells often sit on water where the
measurement is zero, which produces bare strips along snowy coasts. The
extension pass walks from such a coast cell inland along the coastline
normal, and when it finds snow it carries an exponentially decaying value
back to the coast.
"""

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numba import jit
from tqdm.auto import tqdm

from src.config import DEPTH_RESOLUTION, EXTENSION_PASSES, NOISE_FLOOR
from src.raster.grid import DIR_X, DIR_Y, GridSpec

logger = logging.getLogger(__name__)


def _default_max_step(resolution: float) -> int:
    # ~5 to 10 km per step at 0.1 deg
    return 3 if resolution <= 0.1 + 1e-9 else 2


@dataclass
class ExtensionConfig:
    """Parameters of the coastal snow extension."""

    min_depth: float = 0.02
    """Coast cells at or below this depth (m) look for inland snow; also the decay floor."""

    decay: float = 0.8
    """Depth factor per step when walking back from inland snow to the coast."""

    max_step: Optional[int] = None
    """Inland search distance in cells (default: 3 at <= 0.1 deg, else 2)."""

    passes: int = EXTENSION_PASSES
    """Number of full sweeps run after ingestion."""

    def steps_for(self, resolution: float) -> int:
        if self.max_step is not None:
            return self.max_step
        return _default_max_step(resolution)


@jit(nopython=True, cache=True)
def _extend_coastal_snow_jit(values, extended, coast_normal, water, min_depth, decay, max_step):
    """
    Single sweep of coastal extension in raster order (lon outer, lat inner).

    Modifies ``values`` and ``extended`` in place. Values are only ever raised.

    Returns:
        Number of cells written
    """
    height, width = values.shape
    n_extend = 0

    for i in range(width):
        for j in range(height):
            d = coast_normal[j, i]
            if d < 0:
                continue
            sd = values[j, i]
            if sd > min_depth:
                continue

            dx = DIR_X[d]
            dy = DIR_Y[d]

            # look for inland snow, skipping water (fjords) except on the last step
            inland_dist = 0
            inland_sd = 0.0
            for k in range(1, max_step + 1):
                ii = (i + k * dx) % width
                jj = min(max(j + k * dy, 0), height - 1)
                if k < max_step and water[jj, ii]:
                    continue
                tmp = values[jj, ii]
                if tmp > sd and tmp > min_depth:
                    inland_dist = k
                    inland_sd = tmp
                    break

            # exponential decay from the inland point back to the coast
            for k in range(inland_dist - 1, -1, -1):
                inland_sd *= decay
                if inland_sd < min_depth:
                    inland_sd = min_depth
                x = (i + k * dx) % width
                y = min(max(j + k * dy, 0), height - 1)
                if inland_sd > values[y, x]:
                    values[y, x] = inland_sd
                extended[y, x] = True
                n_extend += 1

    return n_extend


class DepthRaster:
    """
    Snow depth in meters on a global node grid.

    Longitude nodes are ``0, res, ..., 360 - res``, latitude nodes
    ``-90, -90 + res, ..., 90``.

    Attributes:
        grid: GridSpec of the node grid
        values: (height, width) float32 depth array
        extended: (height, width) bool, True where the value was synthesized
        coast: CoastRaster used for extension, or None
        config: ExtensionConfig
    """

    _seqno_counter = itertools.count(1)

    def __init__(
        self,
        resolution: float = DEPTH_RESOLUTION,
        coast=None,
        config: Optional[ExtensionConfig] = None,
    ):
        """
        Allocate a zero-filled raster.

        Args:
            resolution: Degrees per cell, e.g. 0.1 or 0.25
            coast: CoastRaster driving the extension (None disables it)
            config: ExtensionConfig (uses defaults if None)
        """
        self.resolution = resolution
        self.grid = GridSpec.for_nodes(resolution)
        self.values = np.zeros(self.grid.shape, dtype=np.float32)
        self.extended = np.zeros(self.grid.shape, dtype=np.bool_)
        self.coast = coast
        self.config = config or ExtensionConfig()
        self._seqno = next(DepthRaster._seqno_counter)
        self._frozen = False
        logger.debug(f"DepthRaster created: {self._seqno} ({self.grid.width}x{self.grid.height})")

    def sequence_number(self) -> int:
        return self._seqno

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "DepthRaster":
        """Make the raster read-only. Called once the build is complete."""
        self.values.flags.writeable = False
        self.extended.flags.writeable = False
        self._frozen = True
        return self

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError(f"DepthRaster {self._seqno} is frozen, build a new one instead")

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    @classmethod
    def from_samples(
        cls,
        lons,
        lats,
        depths,
        coast=None,
        resolution: float = DEPTH_RESOLUTION,
        config: Optional[ExtensionConfig] = None,
    ) -> "DepthRaster":
        """Allocate, ingest, extend and freeze in one go."""
        raster = cls(resolution, coast=coast, config=config)
        raster.ingest(lons, lats, depths)
        return raster.freeze()

    def ingest(self, lons, lats, depths, passes: Optional[int] = None) -> int:
        """
        Write point samples into the grid, then run the extension passes.

        Samples below the noise floor are dropped. The remaining ones are
        rounded to the nearest node (longitude wraps); a latitude that rounds
        outside the grid is rejected and logged, not clamped. Later samples
        overwrite earlier ones on the same node.

        Args:
            lons, lats, depths: Equal length sequences of samples
            passes: Extension sweeps (default: ``config.passes``)

        Returns:
            Number of samples written
        """
        self._check_mutable()
        lons = np.asarray(lons, dtype=np.float64).ravel()
        lats = np.asarray(lats, dtype=np.float64).ravel()
        depths = np.asarray(depths, dtype=np.float64).ravel()
        if not (lons.shape == lats.shape == depths.shape):
            raise ValueError(
                f"Sample arrays differ in length: {lons.shape}, {lats.shape}, {depths.shape}"
            )

        finite = np.isfinite(lons) & np.isfinite(lats) & np.isfinite(depths)
        if not np.all(finite):
            logger.warning(f"Dropping {np.sum(~finite)} non-finite samples")

        keep = finite & (depths >= NOISE_FLOOR)
        lons, lats, depths = lons[keep], lats[keep], depths[keep]

        fi, fj = self.grid.fractional_index(lons, lats)
        i = self.grid.wrap_i(np.floor(fi + 0.5).astype(np.int64))
        j = np.floor(fj + 0.5).astype(np.int64)

        valid = (j >= 0) & (j < self.grid.height)
        if not np.all(valid):
            for lon, lat, depth in zip(lons[~valid], lats[~valid], depths[~valid]):
                logger.warning(f"invalid sample: {lon},{lat},{depth}")

        # fancy assignment keeps the last of duplicate indices
        self.values[j[valid], i[valid]] = depths[valid]
        n_written = int(np.sum(valid))
        logger.info(f"Ingested {n_written} samples into DepthRaster {self._seqno}")

        if passes is None:
            passes = self.config.passes
        for _ in tqdm(range(passes), desc="Extending coastal snow", disable=passes < 2, leave=False):
            self.extend_coastal_snow()

        return n_written

    def load_csv(self, csv_path, passes: Optional[int] = None) -> int:
        """Ingest a measurement CSV (see ``src.snow.samples``)."""
        from src.snow.samples import read_samples_csv

        batch = read_samples_csv(csv_path)
        return self.ingest(batch.lons, batch.lats, batch.depths, passes=passes)

    def extend_coastal_snow(self) -> int:
        """
        Run one coastal extension sweep.

        Returns:
            Number of cells written (0 without a coast raster)
        """
        self._check_mutable()
        if self.coast is None:
            logger.warning("No coast raster, coastal snow extension skipped")
            return 0

        start_time = time.time()
        normal, water = self.coast.project_onto(self.grid)
        n_extend = _extend_coastal_snow_jit(
            self.values,
            self.extended,
            normal,
            water,
            np.float32(self.config.min_depth),
            np.float32(self.config.decay),
            self.config.steps_for(self.resolution),
        )
        elapsed = time.time() - start_time
        logger.info(f"Extended coastal snow on {n_extend} grid points ({elapsed:.2f}s)")
        return n_extend

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _corners(self, lon, lat) -> Tuple[np.ndarray, ...]:
        i0, j0, s, t = self.grid.floor_index(lon, lat)
        i1 = self.grid.wrap_i(i0 + 1)
        i0 = self.grid.wrap_i(i0)
        j1 = self.grid.clamp_j(j0 + 1)
        j0 = self.grid.clamp_j(j0)
        return i0, i1, j0, j1, s, t

    def get(self, lon, lat):
        """
        Bilinear snow depth at lon/lat (scalars or arrays).

        At a node the result equals the stored value.
        """
        i0, i1, j0, j1, s, t = self._corners(lon, lat)
        v = self.values
        result = (
            v[j0, i0] * (1 - s) * (1 - t)
            + v[j0, i1] * s * (1 - t)
            + v[j1, i0] * (1 - s) * t
            + v[j1, i1] * s * t
        )
        return float(result) if np.ndim(result) == 0 else result

    def is_extended_snow(self, lon, lat):
        """True if any of the 4 nodes around lon/lat holds extended snow."""
        i0, i1, j0, j1, _, _ = self._corners(lon, lat)
        e = self.extended
        result = e[j0, i0] | e[j0, i1] | e[j1, i0] | e[j1, i1]
        return bool(result) if np.ndim(result) == 0 else result

    def value_at_node(self, i: int, j: int) -> float:
        """Stored value at a node index (wrapped / clamped)."""
        return float(self.values[self.grid.clamp_j(j), self.grid.wrap_i(i)])

    def __repr__(self):
        return (
            f"DepthRaster(seqno={self._seqno}, resolution={self.resolution}, "
            f"max={float(self.values.max()):.3f}, extended={int(self.extended.sum())})"
        )

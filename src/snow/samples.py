"""
Snow depth measurement samples.

The download side (GRIB fetch and decode) is not part of this package; it
leaves a CSV with a header line followed by ``lon,lat,depth`` rows, depth in
meters. Malformed rows are counted and skipped.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class SampleBatch:
    """Parsed measurement samples."""

    lons: np.ndarray
    lats: np.ndarray
    depths: np.ndarray
    n_invalid: int = 0
    """Rows that could not be parsed."""

    def __len__(self):
        return len(self.depths)


def _parse_row(line: str):
    parts = line.strip().split(",")
    if len(parts) < 3:
        raise ValueError(f"expected 3 fields, got {len(parts)}")
    return float(parts[0]), float(parts[1]), float(parts[2])


def read_samples_csv(csv_path) -> SampleBatch:
    """
    Read a measurement CSV.

    Args:
        csv_path: Path to CSV file. First line is a header and is ignored.

    Returns:
        SampleBatch with one entry per well-formed row

    Raises:
        FileNotFoundError: If the file does not exist
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        logger.error(f"Error opening file: {csv_path}")
        raise FileNotFoundError(f"Sample file not found: {csv_path}")

    lons, lats, depths = [], [], []
    n_invalid = 0

    with open(csv_path, "r") as f:
        f.readline()  # header
        for line in f:
            if not line.strip():
                continue
            try:
                lon, lat, depth = _parse_row(line)
            except ValueError:
                logger.warning(f"invalid csv line: '{line.rstrip()}'")
                n_invalid += 1
                continue
            lons.append(lon)
            lats.append(lat)
            depths.append(depth)

    logger.info(f"Loaded {len(depths)} lines from CSV file '{csv_path}' ({n_invalid} invalid)")
    return SampleBatch(
        lons=np.array(lons, dtype=np.float64),
        lats=np.array(lats, dtype=np.float64),
        depths=np.array(depths, dtype=np.float64),
        n_invalid=n_invalid,
    )

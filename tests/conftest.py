"""Pytest configuration and fixtures for snow map tests."""
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import numpy as np

from src.raster.coast import CoastRaster
from src.raster.depth import DepthRaster, ExtensionConfig

# Land block of the 1 degree test world, grid indices (lon 100..139, lat 10..39)
ISLAND_COLS = slice(100, 140)
ISLAND_ROWS = slice(100, 130)


@pytest.fixture(scope="session")
def island_mask():
    """1 degree global water mask (grid orientation) with one rectangular continent."""
    water = np.ones((180, 360), dtype=bool)
    water[ISLAND_ROWS, ISLAND_COLS] = False
    return water


@pytest.fixture(scope="session")
def island_coast(island_mask):
    """CoastRaster of the island world. Read-only, shared across tests."""
    return CoastRaster.from_water_mask(island_mask)


@pytest.fixture(scope="session")
def corner_coast():
    """8x4 global grid (45 deg cells), water everywhere except cell (i=0, j=0)."""
    water = np.ones((4, 8), dtype=bool)
    water[0, 0] = False
    return CoastRaster.from_water_mask(water)


@pytest.fixture
def extension_config():
    """Extension with the 3 step inland search used at 0.1 degrees."""
    return ExtensionConfig(max_step=3)


@pytest.fixture
def extended_depth(island_coast, extension_config):
    """
    Depth raster with one 10 cm sample two cells inland of the island's west
    coast, after a single extension pass.
    """
    raster = DepthRaster(1.0, coast=island_coast, config=extension_config)
    raster.ingest([101.0], [25.0], [0.10], passes=1)
    return raster.freeze()


@pytest.fixture
def samples_csv(tmp_path):
    """Measurement CSV with a header, valid rows and two malformed rows."""
    path = tmp_path / "snod.csv"
    path.write_text(
        "lon,lat,snod\n"
        "101.0,25.0,0.10\n"
        "10.0,60.0,0.35\n"
        "garbage line\n"
        "12.0,abc,0.2\n"
        "20.0,61.0,0.0001\n"
    )
    return path


@pytest.fixture
def project_root():
    """Get the project root directory."""
    return Path(__file__).parent.parent

"""
Test suite for coast raster caching.

Tests the CoastRasterCache class for hash validation, save/load operations,
invalidation, and cache management.
"""

import unittest
import tempfile
import shutil
import os
from pathlib import Path
import numpy as np
from src.raster.cache import CoastRasterCache
from src.raster.coast import CellKind, CoastRaster


def _small_coast():
    water = np.ones((4, 8), dtype=bool)
    water[0, 0] = False
    return CoastRaster.from_water_mask(water)


class TestCoastCacheHashComputation(unittest.TestCase):
    """Test source image hash computation."""

    def setUp(self):
        """Create temporary directories with a test image file."""
        self.test_dir = tempfile.mkdtemp()
        self.cache_dir = tempfile.mkdtemp()
        self.image_path = Path(self.test_dir, "water.png")
        self.image_path.write_bytes(b"not really a png")

    def tearDown(self):
        """Clean up temporary directories."""
        shutil.rmtree(self.test_dir)
        shutil.rmtree(self.cache_dir)

    def test_compute_source_hash_returns_string(self):
        """Test that compute_source_hash returns a valid hash string."""
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir))
        hash_val = cache.compute_source_hash(self.image_path)

        self.assertIsInstance(hash_val, str)
        self.assertEqual(len(hash_val), 64)  # SHA256 hash is 64 hex chars

    def test_compute_source_hash_is_deterministic(self):
        """Test that the same file produces the same hash."""
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir))
        self.assertEqual(
            cache.compute_source_hash(self.image_path),
            cache.compute_source_hash(self.image_path),
        )

    def test_compute_source_hash_changes_with_modification(self):
        """Test that hash changes when the image is rewritten."""
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir))
        hash1 = cache.compute_source_hash(self.image_path)

        self.image_path.write_bytes(b"a different, longer image body")
        stat = self.image_path.stat()
        os.utime(self.image_path, (stat.st_atime, stat.st_mtime + 10))
        hash2 = cache.compute_source_hash(self.image_path)

        self.assertNotEqual(hash1, hash2)

    def test_compute_source_hash_raises_on_missing_file(self):
        """Test that a missing image raises FileNotFoundError."""
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir))

        with self.assertRaises(FileNotFoundError):
            cache.compute_source_hash(Path(self.test_dir, "missing.png"))


class TestCoastCacheSaveLoad(unittest.TestCase):
    """Test saving and loading coast rasters."""

    def setUp(self):
        self.cache_dir = tempfile.mkdtemp()
        self.cache = CoastRasterCache(cache_dir=Path(self.cache_dir))
        self.coast = _small_coast()
        self.source_hash = "a" * 64

    def tearDown(self):
        shutil.rmtree(self.cache_dir)

    def test_save_creates_files(self):
        """Test that save_cache writes the arrays and metadata."""
        cache_path, meta_path = self.cache.save_cache(self.coast, self.source_hash)

        self.assertTrue(cache_path.exists())
        self.assertTrue(meta_path.exists())
        self.assertEqual(cache_path.suffix, ".npz")

    def test_load_roundtrip(self):
        """Test that a loaded raster answers queries like the original."""
        self.cache.save_cache(self.coast, self.source_hash)
        loaded = self.cache.load_cache(self.source_hash)

        self.assertIsNotNone(loaded)
        self.assertEqual(loaded.grid, self.coast.grid)
        np.testing.assert_array_equal(loaded.kind, self.coast.kind)
        np.testing.assert_array_equal(loaded.land_dist, self.coast.land_dist)
        self.assertEqual(loaded.is_coast(45.0, -45.0), self.coast.is_coast(45.0, -45.0))
        self.assertEqual(loaded.nearest_land(45.0, -45.0), self.coast.nearest_land(45.0, -45.0))

    def test_loaded_arrays_are_read_only(self):
        self.cache.save_cache(self.coast, self.source_hash)
        loaded = self.cache.load_cache(self.source_hash)

        with self.assertRaises(ValueError):
            loaded.kind[0, 0] = CellKind.WATER

    def test_load_miss_returns_none(self):
        """Test that an unknown hash is a cache miss."""
        self.assertIsNone(self.cache.load_cache("b" * 64))

    def test_corrupt_cache_returns_none(self):
        """Test that an unreadable cache file is treated as a miss."""
        self.cache.get_cache_path(self.source_hash).write_bytes(b"garbage")
        self.assertIsNone(self.cache.load_cache(self.source_hash))

    def test_truncated_cache_returns_none(self):
        """Test that a cut-off .npz is treated as a miss."""
        cache_path, _ = self.cache.save_cache(self.coast, self.source_hash)
        data = cache_path.read_bytes()
        cache_path.write_bytes(data[: len(data) // 2])

        self.assertIsNone(self.cache.load_cache(self.source_hash))

    def test_save_leaves_no_temporary_file(self):
        """Test that the .npz is written under a temporary name and renamed."""
        self.cache.save_cache(self.coast, self.source_hash)

        self.assertEqual(list(Path(self.cache_dir).glob("*.tmp")), [])


class TestCoastCacheManagement(unittest.TestCase):
    """Test disabled caches and clearing."""

    def setUp(self):
        self.cache_dir = tempfile.mkdtemp()
        self.coast = _small_coast()

    def tearDown(self):
        shutil.rmtree(self.cache_dir)

    def test_disabled_cache_does_nothing(self):
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir), enabled=False)

        self.assertEqual(cache.save_cache(self.coast, "c" * 64), (None, None))
        self.assertIsNone(cache.load_cache("c" * 64))
        self.assertEqual(cache.clear_cache(), 0)

    def test_clear_cache(self):
        cache = CoastRasterCache(cache_dir=Path(self.cache_dir))
        cache.save_cache(self.coast, "d" * 64)
        cache.save_cache(self.coast, "e" * 64)

        self.assertEqual(cache.clear_cache(), 4)
        self.assertIsNone(cache.load_cache("d" * 64))


if __name__ == '__main__':
    unittest.main()

"""
Coast raster caching.

Classifying the global water map takes a while, so the built raster is stored
as .npz with hash validation against the source image.
"""

import hashlib
import json
import logging
import os
import time
import zipfile
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from src.raster.coast import CoastRaster
from src.raster.grid import GridSpec

logger = logging.getLogger(__name__)


class CoastRasterCache:
    """
    Manages caching of built coast rasters with hash validation.

    The cache stores:
    - Classification arrays as .npz file
    - Metadata including source hash, timestamp and cell counts

    Attributes:
        cache_dir: Directory where cache files are stored
        enabled: Whether caching is enabled
    """

    def __init__(self, cache_dir: Optional[Path] = None, enabled: bool = True):
        """
        Initialize coast raster cache.

        Args:
            cache_dir: Directory for cache files. If None, uses .coast_cache/ in cwd
            enabled: Whether caching is enabled (default: True)
        """
        if cache_dir is None:
            cache_dir = Path.cwd() / ".coast_cache"

        self.cache_dir = Path(cache_dir)
        self.enabled = enabled

        if self.enabled:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Coast cache initialized at: {self.cache_dir}")

    def compute_source_hash(self, image_path) -> str:
        """
        Hash of the source image based on path, size and modification time.

        Args:
            image_path: Path to the water-body image

        Returns:
            SHA256 hex digest

        Raises:
            FileNotFoundError: If the image does not exist
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Can't open file '{image_path}'")

        stat = image_path.stat()
        metadata_str = "|".join(
            [str(image_path.resolve()), str(stat.st_size), str(stat.st_mtime)]
        )
        return hashlib.sha256(metadata_str.encode()).hexdigest()

    def get_cache_path(self, source_hash: str, cache_name: str = "coast") -> Path:
        return self.cache_dir / f"{cache_name}_{source_hash}.npz"

    def get_metadata_path(self, source_hash: str, cache_name: str = "coast") -> Path:
        return self.cache_dir / f"{cache_name}_{source_hash}_meta.json"

    def save_cache(
        self, coast: CoastRaster, source_hash: str, cache_name: str = "coast"
    ) -> Tuple[Optional[Path], Optional[Path]]:
        """
        Save a coast raster.

        Returns:
            Tuple of (cache_file_path, metadata_file_path)
        """
        if not self.enabled:
            return None, None

        cache_path = self.get_cache_path(source_hash, cache_name)
        metadata_path = self.get_metadata_path(source_hash, cache_name)

        start_time = time.time()
        # write next to the target and rename, so an interrupted save never
        # leaves a partial .npz under the final name
        tmp_path = cache_path.with_name(cache_path.name + ".tmp")
        with open(tmp_path, "wb") as f:
            np.savez_compressed(
                f,
                kind=coast.kind,
                normal=coast.normal,
                land_dir=coast.land_dir,
                land_dist=coast.land_dist,
            )
        os.replace(tmp_path, cache_path)

        metadata = {
            "source_hash": source_hash,
            "shape": list(coast.grid.shape),
            "cell_counts": {
                str(k): int(np.sum(coast.kind == k)) for k in range(3)
            },
            "cache_time": time.time(),
        }
        with open(metadata_path, "w") as f:
            json.dump(metadata, f, indent=2)

        elapsed = time.time() - start_time
        logger.info(f"Cached coast raster to {cache_path.name} ({elapsed:.2f}s)")
        return cache_path, metadata_path

    def load_cache(self, source_hash: str, cache_name: str = "coast") -> Optional[CoastRaster]:
        """
        Load a cached coast raster.

        Returns:
            CoastRaster or None if the cache doesn't exist or is unreadable
        """
        if not self.enabled:
            return None

        cache_path = self.get_cache_path(source_hash, cache_name)
        if not cache_path.exists():
            logger.debug(f"Cache miss: {cache_path.name}")
            return None

        try:
            start_time = time.time()
            with np.load(cache_path) as data:
                kind = data["kind"]
                grid = GridSpec.for_cells(kind.shape[1], kind.shape[0])
                coast = CoastRaster(grid, kind, data["normal"], data["land_dir"], data["land_dist"])
            logger.info(f"Loaded coast raster from cache ({time.time() - start_time:.2f}s)")
            return coast
        except (OSError, KeyError, ValueError, zipfile.BadZipFile) as e:
            logger.warning(f"Failed to load cache {cache_path.name}: {e}")
            logger.debug("Cache will be regenerated")
            return None

    def clear_cache(self, cache_name: str = "coast") -> int:
        """
        Delete all cached files for a cache name.

        Returns:
            Number of files deleted
        """
        if not self.enabled:
            return 0

        deleted_count = 0
        for cache_file in self.cache_dir.glob(f"{cache_name}_*"):
            cache_file.unlink()
            deleted_count += 1
            logger.debug(f"Deleted: {cache_file.name}")

        logger.info(f"Cleared {deleted_count} cache files for '{cache_name}'")
        return deleted_count

"""
Publishing depth rasters to readers.

Readers never see a raster under construction: a build runs to completion
(ingest, extension passes, freeze) on a worker thread and the finished
raster replaces the published one with a single reference swap.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from src.config import DEPTH_RESOLUTION
from src.raster.depth import DepthRaster, ExtensionConfig

logger = logging.getLogger(__name__)


class DepthRasterSlot:
    """Holds the currently published DepthRaster."""

    def __init__(self, raster: Optional[DepthRaster] = None):
        self._lock = threading.Lock()
        self._raster = raster

    def current(self) -> Optional[DepthRaster]:
        return self._raster

    def publish(self, raster: DepthRaster) -> Optional[DepthRaster]:
        """
        Install ``raster`` and return the one it replaces.

        Raises:
            ValueError: If the raster is not frozen yet
        """
        if not raster.frozen:
            raise ValueError("Only completely built (frozen) rasters can be published")
        with self._lock:
            previous, self._raster = self._raster, raster
        if previous is not None:
            logger.info(
                f"DepthRaster {raster.sequence_number()} replaces {previous.sequence_number()}"
            )
        else:
            logger.info(f"DepthRaster {raster.sequence_number()} published")
        return previous


def build_depth_raster(
    csv_path, coast=None, resolution: float = DEPTH_RESOLUTION, config: Optional[ExtensionConfig] = None
) -> DepthRaster:
    """Build a frozen DepthRaster from a measurement CSV."""
    raster = DepthRaster(resolution, coast=coast, config=config)
    raster.load_csv(csv_path)
    return raster.freeze()


class SnowMapUpdater:
    """
    Background rebuilds of the depth raster.

    ``submit`` starts a build; the host calls ``poll`` from its update loop,
    which publishes a finished build and reports whether one is still running.
    A build that fails is logged and the published raster stays in place.
    """

    def __init__(
        self,
        slot: DepthRasterSlot,
        coast=None,
        resolution: float = DEPTH_RESOLUTION,
        config: Optional[ExtensionConfig] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.slot = slot
        self.coast = coast
        self.resolution = resolution
        self.config = config
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="snow-map")
        self._future: Optional[Future] = None

    @property
    def busy(self) -> bool:
        return self._future is not None

    def submit(self, csv_path) -> Future:
        """Start a build. A build already running is abandoned (not published)."""
        if self._future is not None:
            logger.info("Abandoning running snow map build")
            self._future.cancel()
        logger.info(f"Starting snow map build from {csv_path}")
        self._future = self._executor.submit(
            build_depth_raster, csv_path, self.coast, self.resolution, self.config
        )
        return self._future

    def poll(self) -> bool:
        """
        Publish a finished build.

        Returns:
            True while a build is still pending
        """
        if self._future is None:
            return False
        if not self._future.done():
            return True

        future, self._future = self._future, None
        if future.cancelled():
            return False
        try:
            raster = future.result()
        except Exception as e:
            logger.error(f"Snow map build failed: {e}")
            return False

        self.slot.publish(raster)
        return False

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)

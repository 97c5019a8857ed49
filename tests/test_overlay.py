"""
Tests for snow map overlay rendering.

World overlays are north-up with longitude 0 in the center, so at 1 degree
per pixel lon/lat maps to row ``89 - lat`` and column ``(lon + 180) % 360``.
"""

import numpy as np
import pytest

from src.raster.depth import DepthRaster
from src.raster.overlay import (
    COAST_RGB,
    LAND_RGB,
    REGION_ALPHA,
    RegionOverlayCache,
    depth_ramp,
    render_coast_directions,
    render_region_overlay,
    render_world_overlay,
)


def world_px(img, lon, lat):
    return tuple(int(v) for v in img[89 - int(lat), (int(lon) + 180) % 360])


class TestDepthRamp:
    def test_ramp_endpoints(self):
        ramp = depth_ramp(np.array([0.0, 0.25, 1.0]), 70)
        np.testing.assert_array_equal(ramp, [70, 255, 255])

    def test_ramp_monotonic(self):
        ramp = depth_ramp(np.linspace(0.0, 0.3, 20), 50)
        assert np.all(np.diff(ramp.astype(int)) >= 0)


class TestWorldOverlay:
    @pytest.fixture
    def world(self, extended_depth, island_coast):
        return render_world_overlay(extended_depth, island_coast, step=1.0)

    def test_shape(self, world):
        assert world.shape == (180, 360, 4)
        assert world.dtype == np.uint8

    def test_land_is_grey(self, world):
        assert world_px(world, 120, 25) == LAND_RGB + (255,)

    def test_measured_snow_is_cyan(self, world):
        r, g, b, a = world_px(world, 101, 25)
        assert r == 0
        assert g == b > 70
        assert a == 255

    def test_extended_snow_is_magenta(self, world):
        r, g, b, a = world_px(world, 99, 25)
        assert g == 0
        assert r == b > 70
        assert a == 255

    def test_open_water_transparent(self, world):
        assert world_px(world, 300, -20) == (0, 0, 0, 0)

    def test_without_coast(self, extended_depth):
        world = render_world_overlay(extended_depth, step=1.0)
        assert world_px(world, 120, 25) == (0, 0, 0, 0)


class TestRegionOverlay:
    BOUNDS = (95.0, 20.0, 105.0, 30.0)

    def test_shape_and_orientation(self, extended_depth, island_coast):
        img = render_region_overlay(extended_depth, island_coast, self.BOUNDS, step=0.5, debug_colors=False)
        assert img.shape == (20, 20, 4)
        # lon 101 -> column 12, lat 25 -> row 10 from the bottom
        r, g, b, a = img[9, 12]
        assert r == 0
        assert g == b > 50
        assert a == REGION_ALPHA

    def test_extended_not_highlighted_without_debug(self, extended_depth, island_coast):
        img = render_region_overlay(extended_depth, island_coast, self.BOUNDS, step=0.5, debug_colors=False)
        assert img[9, 8, 0] == 0

    def test_debug_marks_snowy_coast_green(self, extended_depth, island_coast):
        img = render_region_overlay(extended_depth, island_coast, self.BOUNDS, step=0.5, debug_colors=True)
        assert tuple(int(v) for v in img[9, 8]) == COAST_RGB + (REGION_ALPHA,)

    def test_dateline_crossing(self, extended_depth):
        img = render_region_overlay(extended_depth, None, (170.0, 0.0, -170.0, 10.0), step=1.0)
        assert img.shape == (10, 20, 4)

    def test_empty_bounds(self, extended_depth):
        with pytest.raises(ValueError):
            render_region_overlay(extended_depth, None, (10.0, 10.0, 10.0, 20.0))


class TestCoastDirections:
    def test_colors(self, island_coast):
        img = render_coast_directions(island_coast)
        assert img.shape == (180, 360, 4)
        assert world_px(img, 120, 25) == LAND_RGB + (255,)
        assert world_px(img, 99, 25)[3] == 255
        assert world_px(img, 99, 25)[:3] != LAND_RGB
        assert world_px(img, 300, -20)[3] == 0

    def test_opposite_coasts_differ(self, island_coast):
        img = render_coast_directions(island_coast)
        assert world_px(img, 99, 25) != world_px(img, 141, 25)


class TestRegionOverlayCache:
    BOUNDS = (95.0, 20.0, 105.0, 30.0)

    def test_nothing_without_raster_or_bounds(self, extended_depth):
        cache = RegionOverlayCache(step=0.5)
        assert cache.get(extended_depth) is None
        cache.set_bounds(self.BOUNDS)
        assert cache.get(None) is None

    def test_reuses_image(self, extended_depth, island_coast):
        cache = RegionOverlayCache(step=0.5)
        cache.set_bounds(self.BOUNDS)
        first = cache.get(extended_depth, island_coast)
        cache.set_bounds(list(self.BOUNDS))
        assert cache.get(extended_depth, island_coast) is first

    def test_new_raster_rerenders(self, extended_depth, island_coast):
        cache = RegionOverlayCache(step=0.5, debug_colors=False)
        cache.set_bounds(self.BOUNDS)
        first = cache.get(extended_depth, island_coast)
        replacement = DepthRaster(1.0, coast=island_coast).freeze()
        second = cache.get(replacement, island_coast)
        assert second is not first
        assert not np.any(second[:, :, 3])

    def test_new_bounds_rerender(self, extended_depth):
        cache = RegionOverlayCache(step=0.5)
        cache.set_bounds(self.BOUNDS)
        first = cache.get(extended_depth)
        cache.set_bounds((95.0, 20.0, 100.0, 30.0))
        second = cache.get(extended_depth)
        assert second.shape == (20, 10, 4)
        assert second is not first

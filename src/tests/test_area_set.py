"""
===============================================================================
PANOVIEW - Sphere Partition Test Suite
===============================================================================
Tests for the Area visibility test, the AreaSet partition layout, tile
queries, usage counters and the pandas export.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import logging
import threading

import numpy as np
import pytest
from numpy.testing import assert_allclose

from panoview.config import ViewportConfig
from panoview.core.frames import RotMat
from panoview.preprocessing.area_set import Area, AreaSet, fov_inward_normals


FOV_90 = np.pi / 2


def _ring_sizes(area_set):
    """Number of cells per ring, pole to pole."""
    sizes = {}
    for area in area_set.areas:
        sizes[area.phi] = sizes.get(area.phi, 0) + 1
    return [sizes[phi] for phi in sorted(sizes)]


def _midpoint_total(nb_v_pixels):
    """Closed form of the summed cell weights for nb_v_pixels rings."""
    return 2.0 * np.pi * (np.pi / nb_v_pixels) / np.sin(np.pi / (2 * nb_v_pixels))


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def small_set():
    """8x4 partition: rings of 4, 8, 8 and 4 cells."""
    return AreaSet(8, 4)


@pytest.fixture
def fine_set():
    return AreaSet(32, 16)


# =============================================================================
# Test: Field-of-view planes
# =============================================================================

class TestFovNormals:
    """Tests for the frustum plane normals."""

    def test_unit_normals(self):
        for n in fov_inward_normals(1.9, 1.5):
            assert_allclose(n.norm(), 1.0, atol=1e-14)

    def test_viewing_axis_is_inside(self):
        """The viewing direction +X lies strictly inside all four planes."""
        for n in fov_inward_normals(FOV_90, FOV_90):
            assert n.x > 0.0

    def test_right_angle_planes(self):
        """A 90x90 degree view is bounded by the 45-degree diagonal planes."""
        top, right, bottom, left = fov_inward_normals(FOV_90, FOV_90)
        s = 1.0 / np.sqrt(2.0)
        assert_allclose(top.components, [s, 0.0, -s], atol=1e-8)
        assert_allclose(right.components, [s, s, 0.0], atol=1e-8)
        assert_allclose(bottom.components, [s, 0.0, s], atol=1e-8)
        assert_allclose(left.components, [s, -s, 0.0], atol=1e-8)


# =============================================================================
# Test: Area visibility
# =============================================================================

class TestAreaIntersection:
    """Tests for Area.intersection."""

    def test_centred_cell_is_visible(self):
        assert Area(0.0, np.pi / 2, 0.1).intersection(RotMat.identity(), FOV_90, FOV_90)

    def test_cell_behind_viewer_is_hidden(self):
        assert not Area(np.pi, np.pi / 2, 0.1).intersection(RotMat.identity(), 0.2, 0.2)

    @pytest.mark.parametrize("theta_deg,expected", [
        (0.0, True),
        (40.0, True),
        (-40.0, True),
        (50.0, False),
        (-50.0, False),
        (180.0, False),
    ])
    def test_equator_cells(self, theta_deg, expected):
        """With a 90-degree view the equator is visible within +-45 degrees."""
        area = Area(np.radians(theta_deg), np.pi / 2, 0.1)
        assert area.intersection(RotMat.identity(), FOV_90, FOV_90) is expected

    @pytest.mark.parametrize("phi_deg,expected", [
        (90.0, True),
        (50.0, True),
        (130.0, True),
        (40.0, False),
        (140.0, False),
    ])
    def test_meridian_cells(self, phi_deg, expected):
        area = Area(0.0, np.radians(phi_deg), 0.1)
        assert area.intersection(RotMat.identity(), FOV_90, FOV_90) is expected

    def test_yawed_viewer(self):
        """After a quarter turn about Z the viewer looks along +Y."""
        viewer = RotMat.from_euler(np.pi / 2, 0.0, 0.0)
        assert Area(np.pi / 2, np.pi / 2, 0.1).intersection(viewer, FOV_90, FOV_90)
        assert not Area(0.0, np.pi / 2, 0.1).intersection(viewer, FOV_90, FOV_90)

    def test_viewer_looking_up(self):
        """A pitch of -pi/2 points the viewer at the north pole."""
        viewer = RotMat.from_euler(0.0, -np.pi / 2, 0.0)
        assert Area(0.3, 0.05, 0.1).intersection(viewer, FOV_90, FOV_90)
        assert not Area(0.0, np.pi / 2, 0.1).intersection(viewer, FOV_90, FOV_90)

    def test_direction(self):
        assert_allclose(Area(np.pi / 2, np.pi / 2, 0.1).direction().components,
                        [0.0, 1.0, 0.0], atol=1e-15)


# =============================================================================
# Test: Partition layout
# =============================================================================

class TestPartition:
    """Tests for the ring layout and cell weights."""

    def test_smallest_partition(self):
        area_set = AreaSet(4, 2)
        assert len(area_set) == 6
        assert _ring_sizes(area_set) == [3, 3]
        # two rings are a coarse midpoint rule
        assert area_set.total_surface() == pytest.approx(4.0 * np.pi, rel=0.12)

    def test_ring_sizes(self):
        sizes = _ring_sizes(AreaSet(16, 8))
        assert sizes == [4, 9, 14, 16, 16, 14, 9, 4]
        assert max(sizes) <= 16

    @pytest.mark.parametrize("nb_h,nb_v", [(4, 2), (16, 8), (64, 32)])
    def test_total_surface_closed_form(self, nb_h, nb_v):
        assert_allclose(AreaSet(nb_h, nb_v).total_surface(), _midpoint_total(nb_v),
                        rtol=1e-12)

    def test_total_surface_converges(self):
        assert AreaSet(64, 32).total_surface() == pytest.approx(4.0 * np.pi, rel=0.01)

    def test_cells_share_ring_surface(self, small_set):
        for phi in {area.phi for area in small_set.areas}:
            surfaces = {area.surface for area in small_set.areas if area.phi == phi}
            assert len(surfaces) == 1

    def test_id_order(self, fine_set):
        """Ids run ring by ring, theta ascending within each ring."""
        areas = fine_set.areas
        for previous, current in zip(areas, areas[1:]):
            assert (previous.phi < current.phi
                    or (previous.phi == current.phi and previous.theta < current.theta))

    def test_angle_ranges(self, fine_set):
        assert fine_set.areas[0].theta == -np.pi
        for area in fine_set.areas:
            assert -np.pi <= area.theta < np.pi
            assert 0.0 < area.phi < np.pi

    @pytest.mark.parametrize("bad", [0, -1, 2.5, True, "8"])
    def test_rejects_bad_resolution(self, bad):
        with pytest.raises(ValueError):
            AreaSet(bad, 4)
        with pytest.raises(ValueError):
            AreaSet(8, bad)

    def test_from_config(self):
        area_set = AreaSet.from_config(ViewportConfig(nb_h_pixels=8, nb_v_pixels=4))
        assert len(area_set) == 24

    def test_logs_build(self, caplog):
        with caplog.at_level(logging.INFO, logger="panoview.preprocessing.area_set"):
            AreaSet(4, 2)
        assert "Built sphere partition 4x2" in caplog.text

    def test_repr(self, small_set):
        assert repr(small_set) == "AreaSet(nb_h_pixels=8, nb_v_pixels=4, cells=24)"


# =============================================================================
# Test: Queries
# =============================================================================

class TestQueries:
    """Tests for visibility and tile queries over the whole partition."""

    def test_visibility_length(self, fine_set):
        visibility = fine_set.get_visibility(RotMat.identity(), FOV_90, FOV_90)
        assert len(visibility) == len(fine_set)
        assert any(visibility)
        assert not all(visibility)

    def test_visibility_matches_per_cell_test(self, fine_set):
        viewer = RotMat.from_euler(0.9, 0.3, -0.4)
        expected = [area.intersection(viewer, 1.9, 1.5) for area in fine_set.areas]
        assert fine_set.get_visibility(viewer, 1.9, 1.5) == expected

    def test_visibility_inverts_orientation_once(self, fine_set, monkeypatch):
        calls = []
        original_inv = RotMat.inv

        def counting_inv(self):
            calls.append(1)
            return original_inv(self)

        monkeypatch.setattr(RotMat, "inv", counting_inv)
        fine_set.get_visibility(RotMat.from_euler(0.2, 0.1, 0.0), FOV_90, FOV_90)
        assert len(calls) == 1

    def test_visible_ids_match_visibility(self, fine_set):
        viewer = RotMat.from_euler(0.4, -0.2, 0.1)
        visibility = fine_set.get_visibility(viewer, 1.9, 1.5)
        ids = fine_set.get_visible_area_ids(viewer, 1.9, 1.5)
        assert ids == [i for i, visible in enumerate(visibility) if visible]

    def test_wider_view_sees_more(self, fine_set):
        viewer = RotMat.from_euler(-1.3, 0.5, 0.3)
        narrow = set(fine_set.get_visible_area_ids(viewer, 0.8, 0.6))
        wide = set(fine_set.get_visible_area_ids(viewer, 1.9, 1.5))
        assert narrow <= wide
        assert len(narrow) < len(wide)

    def test_visible_surface(self, fine_set):
        visible = fine_set.visible_surface(RotMat.identity(), FOV_90, FOV_90)
        assert 0.0 < visible < fine_set.total_surface()

    def test_tile(self, small_set):
        """Half-open window over the western upper hemisphere."""
        ids = small_set.get_area_id_in_tile(-np.pi, 0.0, 0.0, np.pi / 2)
        assert ids == [0, 1, 4, 5, 6, 7]

    def test_tile_whole_sphere(self, small_set):
        ids = small_set.get_area_id_in_tile(-np.pi, np.pi, 0.0, np.pi)
        assert ids == list(range(len(small_set)))

    def test_empty_tile(self, small_set):
        assert small_set.get_area_id_in_tile(0.1, 0.1, 0.0, np.pi) == []


# =============================================================================
# Test: Usage counters
# =============================================================================

class TestCounters:
    """Tests for add_use_as_qer and the dataframe export."""

    def test_starts_at_zero(self, small_set):
        counters = small_set.generated_as_qer_counter
        assert counters.shape == (24,)
        assert not counters.any()

    def test_increment(self, small_set):
        small_set.add_use_as_qer(3)
        small_set.add_use_as_qer(3)
        small_set.add_use_as_qer(10)
        counters = small_set.generated_as_qer_counter
        assert counters[3] == 2
        assert counters[10] == 1
        assert counters.sum() == 3

    def test_counter_property_is_a_copy(self, small_set):
        counters = small_set.generated_as_qer_counter
        counters[0] = 99
        assert small_set.generated_as_qer_counter[0] == 0

    @pytest.mark.parametrize("area_id", [24, 100, -1])
    def test_out_of_range(self, small_set, area_id):
        with pytest.raises(IndexError):
            small_set.add_use_as_qer(area_id)

    @pytest.mark.parametrize("area_id", [True, False, 1.0, "1"])
    def test_rejects_non_integer_id(self, small_set, area_id):
        with pytest.raises(TypeError):
            small_set.add_use_as_qer(area_id)
        assert not small_set.generated_as_qer_counter.any()

    def test_accepts_numpy_integer_id(self, small_set):
        small_set.add_use_as_qer(np.int64(2))
        assert small_set.generated_as_qer_counter[2] == 1

    def test_concurrent_increments(self, small_set):
        def worker():
            for _ in range(1000):
                small_set.add_use_as_qer(5)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert small_set.generated_as_qer_counter[5] == 8000

    def test_to_dataframe(self, small_set):
        small_set.add_use_as_qer(7)
        frame = small_set.to_dataframe()
        assert list(frame.columns) == ["theta", "phi", "surface", "generated_as_qer"]
        assert frame.index.name == "area_id"
        assert len(frame) == 24
        assert frame.loc[7, "generated_as_qer"] == 1
        assert frame["generated_as_qer"].sum() == 1
        assert_allclose(frame["surface"].sum(), small_set.total_surface(), rtol=1e-12)

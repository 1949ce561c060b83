import numpy as np
import pytest

from confidence_map.grid import GridIndex


@pytest.fixture
def grid():
    g = GridIndex(max_range=5.0, resolution=0.5)
    g.generate((0.0, 0.0, 0.0))
    return g


def test_generate_centres_square_grid(grid):
    assert (grid.rows, grid.cols) == (20, 20)
    assert grid.size == 400
    assert np.allclose(grid.origin, [-5.0, -5.0])


def test_point_and_cell_round_trip(grid):
    idx = grid.point_to_cell_index((1.1, -2.2, 0.0))
    centre = grid.cell_center(idx)
    assert np.allclose(centre, [1.25, -2.25, 0.0])
    assert grid.point_to_cell_index(centre) == idx


def test_contains_checks_footprint_and_height(grid):
    assert grid.contains((0.0, 0.0, 0.0))
    assert not grid.contains((6.0, 0.0, 0.0))
    assert not grid.contains((0.0, 0.0, 9.0))
    assert not grid.contains((0.0, 0.0, -3.0))


def test_point_outside_is_clamped_to_edge(grid):
    assert grid.point_to_cell_index((100.0, 100.0, 0.0)) == grid.size - 1


def test_circle_mask_origin_first_and_radius(grid):
    mask = grid.circle_mask(0.5)
    assert mask.offsets[0] == (0, 0)
    # radius of one cell: the four edge neighbors only
    assert len(mask) == 5

    wider = grid.circle_mask(0.75)
    assert len(wider) == 9


def test_neighborhood_is_clipped_at_the_border(grid):
    mask = grid.circle_mask(0.75)
    corner = grid.rc_to_cell(0, 0)
    cells = grid.neighborhood(mask, corner)
    assert cells[0] == corner
    assert sorted(cells) == sorted([grid.rc_to_cell(0, 0), grid.rc_to_cell(0, 1),
                                    grid.rc_to_cell(1, 0), grid.rc_to_cell(1, 1)])


def test_neighborhood_accepts_world_point(grid):
    mask = grid.circle_mask(0.75)
    cells = grid.neighborhood(mask, np.array([0.1, 0.1, 0.0]))
    assert cells[0] == grid.point_to_cell_index((0.1, 0.1, 0.0))
    assert len(cells) == 9


def test_invalid_geometry_falls_back_to_defaults():
    g = GridIndex(max_range=-1.0, resolution=0.0)
    assert g.max_range == 50.0
    assert g.resolution == 0.1

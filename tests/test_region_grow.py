from collections import Counter

import pytest

from confidence_map.cells import CellLabel, GridCell, Reachability
from confidence_map.grid import GridIndex
from confidence_map.region_grow import ReachabilityGrower


@pytest.fixture
def grid():
    # 5 x 5 cells of 1 m
    g = GridIndex(max_range=2.5, resolution=1.0)
    g.generate((0.0, 0.0))
    return g


@pytest.fixture
def grower(grid):
    return ReachabilityGrower.from_grid(grid, grid.circle_mask(1.5))


def make_cells(grid, ground=()):
    cells = [GridCell() for _ in range(grid.size)]
    for idx in ground:
        cells[idx].label = CellLabel.GROUND
    return cells


def block(grid, rows, cols):
    return [grid.rc_to_cell(r, c) for r in rows for c in cols]


def test_batch_next_to_travelable_becomes_travelable(grid, grower):
    centre = grid.rc_to_cell(2, 2)
    ring = [i for i in block(grid, range(1, 4), range(1, 4)) if i != centre]
    cells = make_cells(grid, ground=ring + [centre])
    cells[centre].reachability = Reachability.TRAVELABLE

    result = grower.grow(cells, ring, node_times=4)

    for idx in ring + [centre]:
        assert cells[idx].reachability == Reachability.TRAVELABLE
    assert result.travelable == 8
    assert result.visited == 8
    assert cells[ring[0]].node_count == 4


def test_isolated_component_is_rearmed(grid, grower):
    far = block(grid, [0], [0, 1])
    travelable = grid.rc_to_cell(4, 4)
    cells = make_cells(grid, ground=far + [travelable])
    cells[travelable].reachability = Reachability.TRAVELABLE

    result = grower.grow(cells, far)

    assert result.travelable == 0
    assert result.components == 1
    for idx in far:
        assert cells[idx].reachability == Reachability.NEWLY_SCANNED


def test_rearmed_component_grows_once_the_frontier_arrives(grid, grower):
    far = block(grid, [0], [0, 1])
    cells = make_cells(grid, ground=far + [grid.rc_to_cell(1, 2)])
    grower.grow(cells, far)

    cells[grid.rc_to_cell(1, 2)].reachability = Reachability.TRAVELABLE
    grower.grow(cells, far[:1])

    for idx in far:
        assert cells[idx].reachability == Reachability.TRAVELABLE


def test_non_ground_batch_cells_are_blocked(grid, grower):
    cells = make_cells(grid)
    cells[0].label = CellLabel.OBSTACLE
    grower.grow(cells, [0, 1])
    assert cells[0].reachability == Reachability.BLOCKED
    assert cells[1].reachability == Reachability.BLOCKED


def test_each_cell_is_expanded_once_per_pass(grid):
    mask = grid.circle_mask(1.5)
    expanded = Counter()

    def lookup(index):
        expanded[index] += 1
        return grid.neighborhood(mask, index)

    everything = list(range(grid.size))
    cells = make_cells(grid, ground=everything)
    cells[grid.rc_to_cell(2, 2)].reachability = Reachability.TRAVELABLE

    ReachabilityGrower(lookup).grow(cells, everything)

    assert max(expanded.values()) == 1
    assert len(expanded) == grid.size - 1
    assert all(c.reachability == Reachability.TRAVELABLE for c in cells)


def test_travelable_cells_are_left_alone(grid, grower):
    centre = grid.rc_to_cell(2, 2)
    cells = make_cells(grid, ground=[centre])
    cells[centre].reachability = Reachability.TRAVELABLE
    result = grower.grow(cells, [centre])
    assert result.visited == 0
    assert cells[centre].reachability == Reachability.TRAVELABLE

"""
Square 2D grid over the ground plane with circular neighborhood masks.

Reference implementation of the spatial index the confidence engine talks
to. Cells are addressed by a row-major 1D index; a CircleMask is a list of
relative (row, col) offsets approximating a disk, evaluated around a point
or a cell to get bounded local neighborhoods.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple, Union

import numpy as np


@dataclass
class CircleMask:
    """Relative (d_row, d_col) offsets within radius, origin first."""
    radius: float
    offsets: List[Tuple[int, int]]

    def __len__(self) -> int:
        return len(self.offsets)


class GridIndex:
    """
    Fixed-resolution grid centred on the robot's first position.
    Only geometry lives here; per-cell state is kept by the caller.
    """

    def __init__(self, max_range: float = 250.0, resolution: float = 0.1,
                 min_z: float = -2.0, max_z: float = 7.0):
        """
        Args:
            max_range: half side of the square map (meters)
            resolution: cell size (meters)
            min_z, max_z: height window of accepted points
        """
        if max_range <= 0:
            print(f"[GRID] Invalid map range {max_range}, using 50.0")
            max_range = 50.0
        if resolution <= 0:
            print(f"[GRID] Invalid resolution {resolution}, using 0.1")
            resolution = 0.1

        self.max_range = max_range
        self.resolution = resolution
        self.min_z = min_z
        self.max_z = max_z

        self.rows = 0
        self.cols = 0
        self.origin = np.zeros(2)  # world (x, y) of the corner of cell (0, 0)
        self.ready = False

    def generate(self, center) -> None:
        """Lay out the grid around center (x, y[, z])."""
        side = int(math.ceil(2.0 * self.max_range / self.resolution))
        self.rows = side
        self.cols = side
        cx, cy = float(center[0]), float(center[1])
        self.origin = np.array([cx - side * self.resolution / 2.0,
                                cy - side * self.resolution / 2.0])
        self.ready = True

    @property
    def size(self) -> int:
        return self.rows * self.cols

    # ── Index conversion ──────────────────────────────────────────────

    def point_to_rc(self, point) -> Tuple[int, int]:
        """World point to (row, col); may fall outside the grid."""
        row = int(math.floor((float(point[0]) - self.origin[0]) / self.resolution))
        col = int(math.floor((float(point[1]) - self.origin[1]) / self.resolution))
        return row, col

    def rc_to_cell(self, row: int, col: int) -> int:
        return row * self.cols + col

    def cell_to_rc(self, index: int) -> Tuple[int, int]:
        return divmod(int(index), self.cols)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def contains(self, point) -> bool:
        """Inside the map footprint and the height window."""
        row, col = self.point_to_rc(point)
        if not self.in_bounds(row, col):
            return False
        if len(point) > 2:
            return self.min_z <= float(point[2]) <= self.max_z
        return True

    def point_to_cell_index(self, point) -> int:
        """1D index of the cell holding point, clamped to the grid edge."""
        row, col = self.point_to_rc(point)
        row = max(0, min(self.rows - 1, row))
        col = max(0, min(self.cols - 1, col))
        return self.rc_to_cell(row, col)

    def cell_center(self, index: int) -> np.ndarray:
        """World (x, y, 0) of a cell centre."""
        row, col = self.cell_to_rc(index)
        return np.array([self.origin[0] + (row + 0.5) * self.resolution,
                         self.origin[1] + (col + 0.5) * self.resolution,
                         0.0])

    # ── Neighborhoods ─────────────────────────────────────────────────

    def circle_mask(self, radius: float) -> CircleMask:
        """Offsets of every cell whose centre lies within radius of the origin cell."""
        reach = int(math.floor(radius / self.resolution))
        limit = (radius / self.resolution) ** 2
        offsets = [(0, 0)]
        for dr in range(-reach, reach + 1):
            for dc in range(-reach, reach + 1):
                if (dr, dc) == (0, 0):
                    continue
                if dr * dr + dc * dc <= limit:
                    offsets.append((dr, dc))
        return CircleMask(radius=radius, offsets=offsets)

    def neighborhood(self, mask: CircleMask, origin: Union[int, np.ndarray, Tuple, List]) -> List[int]:
        """
        In-bounds cells covered by mask placed at origin.

        Args:
            mask: offsets from circle_mask
            origin: a cell index (int) or a world point

        Returns:
            1D cell indices in mask order
        """
        if isinstance(origin, (int, np.integer)):
            row, col = self.cell_to_rc(origin)
        else:
            row, col = self.point_to_rc(origin)

        cells = []
        for dr, dc in mask.offsets:
            r, c = row + dr, col + dc
            if 0 <= r < self.rows and 0 <= c < self.cols:
                cells.append(r * self.cols + c)
        return cells

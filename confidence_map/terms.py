"""
Per-cell confidence terms.

Each term is measured on the cells around the robot and merged into the
cell's accumulator, so repeated, partial and contradictory observations can
only ratchet a cell one way:

- travel:      exp(-d^2 / sigma^2) from robot to cell, best ever (max)
- bound:       (sigma - d_boundary) / sigma, smallest ever (min, [0, 1])
- visibility:  +1 for every view in which the cell is unoccluded (sum)
- quality:     obstacle point-set measure, overwritten per measurement
"""

from typing import Callable, List, Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from confidence_map.cells import CellLabel, GridCell, Reachability
from confidence_map.fusion import DensityQuality, QualityStrategy
from confidence_map.primitives import as_cloud, gaussian_kernel
from confidence_map.sampling import stride_downsample_tail
from confidence_map.visibility import HiddenPointRemoval, VisibilityOracle


class TermEngine:
    """
    Computes and merges the distance, boundary, visibility and quality terms.
    The engine never allocates cells; it mutates the ones it is given by index.
    """

    def __init__(self, sigma: float = 5.0,
                 visibility: Optional[VisibilityOracle] = None,
                 quality: Optional[QualityStrategy] = None,
                 occlusion_sample_threshold: int = 500_000):
        """
        Args:
            sigma: reach radius; Gaussian width and no-touch threshold base
            visibility: oracle for the occlusion term (default HiddenPointRemoval)
            quality: quality measure (default DensityQuality)
            occlusion_sample_threshold: non-ground points kept before stride sampling
        """
        self.sigma = sigma
        self.visibility = visibility if visibility is not None else HiddenPointRemoval()
        self.quality = quality if quality is not None else DensityQuality()
        self.occlusion_sample_threshold = occlusion_sample_threshold

    @property
    def no_touch_threshold(self) -> float:
        with np.errstate(divide="ignore", invalid="ignore"):
            return float((np.float64(self.sigma) - 0.5) / np.float64(self.sigma))

    def distance_term(self, cells: List[GridCell], robot_position,
                      ground_indices: Sequence[int], ground_points) -> None:
        """
        Raise each ground cell's travel term to its Gaussian distance score.

        ground_points[i] is the representative point of ground_indices[i].
        """
        cloud = as_cloud(ground_points)
        for i, idx in enumerate(ground_indices):
            score = gaussian_kernel(robot_position, cloud[i], self.sigma)
            cells[idx].travel.update(score)

    def bound_term(self, cells: List[GridCell], ground_indices: Sequence[int],
                   ground_points, boundary_points) -> None:
        """
        Lower each ground cell's bound term to its boundary-proximity risk.

        Does nothing without boundary points. A cell whose stored bound term
        exceeds the no-touch threshold is BLOCKED; the check uses the stored
        (min-ratcheted) value on every call.
        """
        boundary = as_cloud(boundary_points)
        if len(boundary) == 0 or len(ground_indices) == 0:
            return

        tree = cKDTree(boundary)
        distances, _ = tree.query(as_cloud(ground_points), k=1)
        no_touch = self.no_touch_threshold

        for i, idx in enumerate(ground_indices):
            with np.errstate(divide="ignore", invalid="ignore"):
                risk = float((np.float64(self.sigma) - distances[i]) / np.float64(self.sigma))
            if risk < 0:
                risk = 0.0
            cell = cells[idx]
            cell.bound.update(risk)
            if cell.bound_term > no_touch:
                cell.reachability = Reachability.BLOCKED

    def occlusion_term(self, cells: List[GridCell], all_points,
                       ground_indices: Sequence[int], viewpoint) -> np.ndarray:
        """
        Count one view for every ground cell visible from viewpoint.

        Args:
            all_points: ground points first (one per ground index), then
                boundary and obstacle points
            ground_indices: cells of the ground prefix
            viewpoint: past robot position with the vertical view offset

        Returns:
            the cloud actually tested (down-sampled if it was too large)
        """
        cloud = as_cloud(all_points)
        ground_count = len(ground_indices)
        cloud = stride_downsample_tail(cloud, ground_count, self.occlusion_sample_threshold)

        for point_id in self.visibility.visible_indices(cloud, viewpoint):
            if point_id < ground_count:
                cells[ground_indices[point_id]].visibility.update(1.0)

        return cloud

    def quality_term(self, cells: List[GridCell], nearby_indices: Sequence[int],
                     points_for_cell: Callable[[int], np.ndarray]) -> int:
        """
        Measure obstacle and boundary cells with the quality strategy.

        Args:
            nearby_indices: cells around the robot
            points_for_cell: cell index -> the point set to measure

        Returns:
            number of cells measured
        """
        measured = 0
        for idx in nearby_indices:
            if cells[idx].label in (CellLabel.OBSTACLE, CellLabel.BOUNDARY):
                cells[idx].quality_term = float(self.quality.measure(points_for_cell(idx)))
                measured += 1
        return measured

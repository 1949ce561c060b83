"""
Confidence Map Orchestrator

Owns the grid, the cell array and the accumulated point buffers, and runs
the confidence engine once per down-sampled odometry frame.

PER-FRAME PIPELINE (compute_confidence):
  1. Robot neighborhood from the robot search mask
  2. Region grow over the neighborhood (stamps the current epoch)
  3. Split nearby cells into ground / boundary / combined clouds
  4. Distance term on ground cells
  5. Occlusion term from a past viewpoint (every Nth frame, >= 3 ground cells)
  6. Boundary term on ground cells
  7. Quality term on obstacle/boundary cells (frames without occlusion)
  8. Fuse travel + bound into total confidence

POINT BUFFERS:
  Boundary and obstacle points are accumulated for the whole run with a
  per-cell index. Past the hard caps (3M boundary, 8M obstacle) both buffers
  are stride-sampled cell by cell. Obstacle points carry the epoch in which
  they were recorded.
"""

import random
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set

import numpy as np

from confidence_map.cells import CellLabel, GridCell, Reachability
from confidence_map.config import ConfidenceConfig
from confidence_map.fusion import (
    DensityQuality, QualityStrategy, ScoringStrategy, WeightedTravelBoundScore, fuse_cells,
)
from confidence_map.grid import GridIndex
from confidence_map.primitives import as_cloud
from confidence_map.region_grow import GrowResult, ReachabilityGrower
from confidence_map.sampling import stride_sample_cells
from confidence_map.terms import TermEngine
from confidence_map.visibility import HiddenPointRemoval, VisibilityOracle


@dataclass
class NeighborhoodClouds:
    """Point sets around the robot, split by cell label."""
    ground_indices: List[int] = field(default_factory=list)
    ground_points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    boundary_points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    all_points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))


@dataclass
class CycleReport:
    """What one compute_confidence call did."""
    nearby: int
    ground: int
    grow: GrowResult
    visibility_pass: bool = False
    quality_measured: int = 0


class PointBuffer:
    """Accumulated points with a per-cell index and optional epoch stamps."""

    def __init__(self, cap: int, stride: int, name: str):
        self.cap = cap
        self.stride = stride
        self.name = name
        self.points = np.zeros((0, 3))
        self.stamps = np.zeros(0, dtype=int)
        self.cell_points: Dict[int, List[int]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self.points)

    def extend(self, points: np.ndarray, cells: List[int], stamp: int = 0) -> None:
        start = len(self.points)
        for k, idx in enumerate(cells):
            self.cell_points[idx].append(start + k)
        self.points = np.concatenate([self.points, points], axis=0)
        self.stamps = np.concatenate([self.stamps, np.full(len(points), stamp, dtype=int)])

        if len(self.points) > self.cap:
            self.downsample()

    def downsample(self) -> None:
        """Stride-sample every cell and rebuild the buffer in cell order."""
        before = len(self.points)
        cell_ids = sorted(self.cell_points)
        keep_order, remapped = stride_sample_cells([self.cell_points[c] for c in cell_ids],
                                                   self.stride)
        self.points = self.points[keep_order]
        self.stamps = self.stamps[keep_order]
        self.cell_points = defaultdict(list, zip(cell_ids, remapped))
        print(f"[BUFFER] {self.name}: {before} -> {len(self.points)} points (cap {self.cap})")

    def points_in(self, idx: int, stamp: Optional[int] = None) -> np.ndarray:
        ids = self.cell_points.get(idx, [])
        if stamp is not None:
            ids = [i for i in ids if self.stamps[i] == stamp]
        return self.points[ids] if ids else np.zeros((0, 3))

    def count_in(self, idx: int) -> int:
        return len(self.cell_points.get(idx, []))


class ConfidenceMapper:
    """
    Reference orchestrator for the confidence engine.
    Single-threaded: calls must not overlap.
    """

    def __init__(self, config: Optional[ConfidenceConfig] = None,
                 visibility: Optional[VisibilityOracle] = None,
                 scoring: Optional[ScoringStrategy] = None,
                 quality: Optional[QualityStrategy] = None,
                 rng: Optional[random.Random] = None):
        self.config = config if config is not None else ConfidenceConfig()
        cfg = self.config
        self.rng = rng if rng is not None else random.Random()

        self.grid = GridIndex(cfg.map_max_range, cfg.resolution, cfg.min_z, cfg.max_z)
        self.engine = TermEngine(
            sigma=cfg.sigma,
            visibility=visibility if visibility is not None else HiddenPointRemoval(cfg.ghpr_param),
            quality=quality if quality is not None else DensityQuality(
                cfg.quality_sample_count, cfg.density_radius, self.rng),
            occlusion_sample_threshold=cfg.occlusion_sample_threshold,
        )
        self.scoring = scoring if scoring is not None else WeightedTravelBoundScore(
            cfg.travel_weight, cfg.bound_weight)

        self.cells: List[GridCell] = []
        self.node_times = 0
        self.ready = False
        self.grower: Optional[ReachabilityGrower] = None
        self.robot_mask = None
        self.grow_mask = None
        self.defend_mask = None
        self.initial_mask = None
        self.quality_mask = None

        self.boundary = PointBuffer(cfg.boundary_buffer_cap, cfg.buffer_sample_stride, "boundary")
        self.obstacle = PointBuffer(cfg.obstacle_buffer_cap, cfg.buffer_sample_stride, "obstacle")
        # cells blocked for being next to a boundary, not by the bound term
        self._defended: Set[int] = set()

        # Odometry sampling
        self.traj_frame_num = 0
        self.computed_frame = 0
        self.past_views: Deque[np.ndarray] = deque(maxlen=cfg.past_odom_num)

    # ── Initialisation ────────────────────────────────────────────────

    def initialize(self, robot_position) -> None:
        """Build the grid around the first robot position and seed a travelable disk."""
        cfg = self.config
        self.grid.generate(robot_position)
        self.cells = [GridCell(center_point=self.grid.cell_center(i)) for i in range(self.grid.size)]

        self.robot_mask = self.grid.circle_mask(cfg.sigma)
        self.grow_mask = self.grid.circle_mask(cfg.region_grow_radius)
        self.defend_mask = self.grid.circle_mask(cfg.bound_defend_radius)
        self.initial_mask = self.grid.circle_mask(cfg.initial_radius)
        self.quality_mask = self.grid.circle_mask(cfg.local_quality_radius)
        self.grower = ReachabilityGrower.from_grid(self.grid, self.grow_mask)

        for idx in self.grid.neighborhood(self.initial_mask, robot_position):
            self.cells[idx].reachability = Reachability.TRAVELABLE
            self.cells[idx].node_count = self.node_times

        self.ready = True
        print(f"[MAP] Grid {self.grid.rows}x{self.grid.cols} @ {self.grid.resolution}m, "
              f"sigma {cfg.sigma}, initial travelable disk {len(self.initial_mask)} cells")

    # ── Sensor input ──────────────────────────────────────────────────

    def add_ground_points(self, points) -> List[int]:
        """
        Label ground cells and refine their height.

        Returns:
            cells that became GROUND for the first time
        """
        if not self.ready:
            return []

        new_cells = []
        stride = 2 * max(1, self.config.cloud_sample_stride)
        for p in as_cloud(points)[::stride]:
            if not self.grid.contains(p):
                continue
            idx = self.grid.point_to_cell_index(p)
            cell = self.cells[idx]
            if cell.label == CellLabel.UNSET:
                cell.center_point[2] = p[2]
                cell.label = CellLabel.GROUND
                new_cells.append(idx)
            else:
                cell.center_point[2] = (cell.center_point[2] + p[2]) / 2.0
                cell.escalate_label(CellLabel.GROUND)
        return new_cells

    def add_boundary_points(self, points) -> int:
        """
        Store boundary points and block the area around new boundary cells.

        Returns:
            number of points stored
        """
        if not self.ready:
            return 0

        stride = max(1, self.config.cloud_sample_stride)
        accepted, cells = [], []
        for p in as_cloud(points)[::stride]:
            if not self.grid.contains(p):
                continue
            idx = self.grid.point_to_cell_index(p)
            accepted.append(p)
            cells.append(idx)
            if self.cells[idx].escalate_label(CellLabel.BOUNDARY):
                for near in self.grid.neighborhood(self.defend_mask, idx):
                    self.cells[near].reachability = Reachability.BLOCKED
                    self._defended.add(near)

        if accepted:
            self.boundary.extend(np.array(accepted), cells)
        return len(accepted)

    def add_obstacle_points(self, points) -> int:
        """
        Store obstacle points stamped with the current epoch.

        Returns:
            number of points stored
        """
        if not self.ready:
            return 0

        stride = max(1, self.config.cloud_sample_stride)
        accepted, cells = [], []
        for p in as_cloud(points)[::stride]:
            if not self.grid.contains(p):
                continue
            idx = self.grid.point_to_cell_index(p)
            accepted.append(p)
            cells.append(idx)
            if self.cells[idx].label == CellLabel.UNSET:
                self.cells[idx].label = CellLabel.OBSTACLE
                self.cells[idx].reachability = Reachability.BLOCKED

        if accepted:
            self.obstacle.extend(np.array(accepted), cells, stamp=self.node_times)
        return len(accepted)

    # ── Neighborhood split ────────────────────────────────────────────

    def split_neighborhood(self, nearby: List[int]) -> NeighborhoodClouds:
        """Ground centres (in nearby order), boundary points, and the combined cloud."""
        ground_indices, ground_points = [], []
        boundary_parts, obstacle_parts = [], []

        for idx in nearby:
            cell = self.cells[idx]
            if cell.label == CellLabel.OBSTACLE:
                obstacle_parts.append(self.obstacle.points_in(idx))
            elif cell.label == CellLabel.GROUND:
                ground_indices.append(idx)
                ground_points.append(cell.center_point)
                # tall clutter over ground (vegetation) still occludes
                if self.obstacle.count_in(idx) > self.config.dense_obstacle_points:
                    obstacle_parts.append(self.obstacle.points_in(idx))
            elif cell.label == CellLabel.BOUNDARY:
                boundary_parts.append(self.boundary.points_in(idx))
                obstacle_parts.append(self.obstacle.points_in(idx))

        ground = as_cloud(ground_points)
        boundary = np.concatenate(boundary_parts, axis=0) if boundary_parts else np.zeros((0, 3))
        obstacle = np.concatenate(obstacle_parts, axis=0) if obstacle_parts else np.zeros((0, 3))

        return NeighborhoodClouds(
            ground_indices=ground_indices,
            ground_points=ground,
            boundary_points=boundary,
            all_points=np.concatenate([ground, boundary, obstacle], axis=0),
        )

    def _quality_points(self, idx: int) -> np.ndarray:
        """Current-epoch obstacle points in the local quality disk around idx."""
        parts = [self.obstacle.points_in(near, stamp=self.node_times)
                 for near in self.grid.neighborhood(self.quality_mask, idx)]
        parts = [p for p in parts if len(p)]
        return np.concatenate(parts, axis=0) if parts else np.zeros((0, 3))

    # ── Per-frame computation ─────────────────────────────────────────

    def compute_confidence(self, robot_position, past_view=None) -> Optional[CycleReport]:
        """
        Update every term around the robot.

        Args:
            robot_position: current robot (x, y, z)
            past_view: earlier robot position for the visibility pass, or
                None to run the quality term instead

        Returns:
            CycleReport, or None before the grid is initialised
        """
        if not self.ready:
            return None

        robot = np.asarray(robot_position, dtype=float)
        nearby = self.grid.neighborhood(self.robot_mask, robot)

        grow = self.grower.grow(self.cells, nearby, self.node_times)
        clouds = self.split_neighborhood(nearby)
        report = CycleReport(nearby=len(nearby), ground=len(clouds.ground_indices), grow=grow)

        self.engine.distance_term(self.cells, robot, clouds.ground_indices, clouds.ground_points)

        if past_view is not None:
            if len(clouds.ground_indices) >= 3:
                view = np.asarray(past_view, dtype=float).copy()
                view[2] += self.config.view_z_offset
                self.engine.occlusion_term(self.cells, clouds.all_points,
                                           clouds.ground_indices, view)
                report.visibility_pass = True

        self.engine.bound_term(self.cells, clouds.ground_indices,
                               clouds.ground_points, clouds.boundary_points)

        if past_view is None:
            report.quality_measured = self.engine.quality_term(self.cells, nearby,
                                                               self._quality_points)

        fuse_cells(self.cells, clouds.ground_indices, self.scoring)
        return report

    def handle_odometry(self, position) -> Optional[CycleReport]:
        """
        Feed one raw odometry position.

        Initialises the map on the first call. Only every
        odom_sampling_num-th position is processed; every
        visibility_every_n_frames-th processed frame includes the
        visibility pass from the oldest remembered viewpoint.
        """
        position = np.asarray(position, dtype=float)
        if not self.ready:
            self.initialize(position)

        report = None
        if self.traj_frame_num % self.config.odom_sampling_num == 0:
            self.past_views.append(position)
            if self.computed_frame % max(1, self.config.visibility_every_n_frames):
                report = self.compute_confidence(self.past_views[-1])
            else:
                report = self.compute_confidence(self.past_views[-1], self.past_views[0])
            self.traj_frame_num = 0
            self.computed_frame += 1

        self.traj_frame_num += 1
        return report

    def advance_epoch(self, reset_bound_terms: bool = False) -> int:
        """
        Start the next exploration round.

        Args:
            reset_bound_terms: forget the bound term of every ground cell and
                let cells it had blocked be grown again

        Returns:
            the new epoch
        """
        self.node_times += 1
        if reset_bound_terms:
            released = 0
            for idx, cell in enumerate(self.cells):
                if cell.label != CellLabel.GROUND:
                    continue
                cell.bound.reset(1.0)
                if cell.reachability == Reachability.BLOCKED and idx not in self._defended:
                    cell.reachability = Reachability.NEWLY_SCANNED
                    released += 1
            print(f"[MAP] Epoch {self.node_times}: bound terms reset, {released} cells released")
        else:
            print(f"[MAP] Epoch {self.node_times}")
        return self.node_times

    # ── Output layers ─────────────────────────────────────────────────

    def layers(self) -> Dict[str, np.ndarray]:
        """Per-cell layers as (rows, cols) arrays for renderers and planners."""
        shape = (self.grid.rows, self.grid.cols)
        if not self.ready:
            return {}

        def layer(values) -> np.ndarray:
            return np.fromiter(values, dtype=float, count=len(self.cells)).reshape(shape)

        return {
            "elevation": layer(c.node_count for c in self.cells),
            "traversability": layer(c.travel_term for c in self.cells),
            "boundary": layer(c.bound_term for c in self.cells),
            "observability": layer(c.visibility_term for c in self.cells),
            "confidence": layer(c.total_value for c in self.cells),
            "travelable": layer(int(c.reachability) for c in self.cells),
            "quality": layer(c.quality_term for c in self.cells),
        }

    def travelable_count(self) -> int:
        """Cells currently TRAVELABLE (coverage measure)."""
        return sum(1 for c in self.cells if c.reachability == Reachability.TRAVELABLE)

"""
Engine configuration.

Defaults come from map_config.py. A run can override them from a JSON file
and/or keyword arguments; the result is handed to ConfidenceMapper once and
not changed afterwards.
"""

import json
from dataclasses import dataclass, fields, asdict
from typing import Optional, Dict, Any

import numpy as np

import map_config as defaults


@dataclass
class ConfidenceConfig:
    """All tunables of the confidence engine and its reference orchestrator."""
    # Scoring
    sigma: float = defaults.ROBOT_LOCAL_RADIUS
    travel_weight: float = defaults.TRAVEL_WEIGHT
    bound_weight: float = defaults.BOUND_WEIGHT
    visibility_weight: float = defaults.VISIBILITY_WEIGHT

    # Visibility
    ghpr_param: float = defaults.GHPR_PARAM
    visibility_threshold: float = defaults.VISIBILITY_THRESHOLD
    past_view_duration: float = defaults.PAST_VIEW_DURATION
    view_z_offset: float = defaults.PAST_VIEW_Z_OFFSET
    visibility_every_n_frames: int = defaults.VISIBILITY_EVERY_N_FRAMES

    # Grid map
    map_max_range: float = defaults.GRIDMAP_MAX_RANGE
    resolution: float = defaults.GRIDMAP_RESOLUTION
    min_z: float = defaults.MIN_MAP_Z
    max_z: float = defaults.MAX_MAP_Z

    # Masks
    region_grow_radius: float = defaults.REGION_GROW_RADIUS
    initial_radius: float = defaults.INITIAL_RADIUS
    local_quality_radius: float = defaults.LOCAL_QUALITY_RADIUS
    bound_defend_rate: float = defaults.BOUND_DEFEND_RATE

    # Odometry sampling
    odom_raw_hz: float = defaults.ODOM_RAW_HZ
    sampling_hz: float = defaults.ODOM_SAMPLING_HZ

    # Buffers
    cloud_sample_stride: int = defaults.CLOUD_SAMPLE_STRIDE
    buffer_sample_stride: int = defaults.BUFFER_SAMPLE_STRIDE
    occlusion_sample_threshold: int = defaults.OCCLUSION_SAMPLE_THRESHOLD
    boundary_buffer_cap: int = defaults.BOUNDARY_BUFFER_CAP
    obstacle_buffer_cap: int = defaults.OBSTACLE_BUFFER_CAP
    dense_obstacle_points: int = defaults.DENSE_OBSTACLE_POINTS

    # Quality
    quality_sample_count: int = defaults.QUALITY_SAMPLE_COUNT
    density_radius: float = defaults.DENSITY_RADIUS

    @property
    def no_touch_threshold(self) -> float:
        """Stored bound term above this blocks the cell."""
        with np.errstate(divide="ignore", invalid="ignore"):
            return float((np.float64(self.sigma) - 0.5) / np.float64(self.sigma))

    @property
    def odom_sampling_num(self) -> int:
        """Raw odometry messages per processed frame."""
        return max(1, int(self.odom_raw_hz / self.sampling_hz))

    @property
    def past_odom_num(self) -> int:
        """Length of the viewpoint history (at least one entry)."""
        return max(1, int(self.past_view_duration * self.sampling_hz))

    @property
    def bound_defend_radius(self) -> float:
        return self.bound_defend_rate * self.region_grow_radius

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[str] = None, **overrides) -> ConfidenceConfig:
    """
    Build a configuration from defaults, an optional JSON file and overrides.

    Args:
        path: JSON file with a flat object of field names to values
        **overrides: field values applied after the file

    Returns:
        ConfidenceConfig

    Raises:
        ValueError: if the file or overrides name an unknown field
    """
    values: Dict[str, Any] = {}
    if path:
        with open(path, "r") as f:
            values.update(json.load(f))
    values.update(overrides)

    known = {f.name for f in fields(ConfidenceConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    return ConfidenceConfig(**values)

#!/usr/bin/env python3
"""
CONFIDENCE MAP PARAMETERS
=========================

Defaults for the per-cell confidence engine. Every value can be overridden
through confidence_map.config.load_config (JSON file or keyword arguments).

Scoring:
1. Travel term  - Gaussian of robot-to-cell distance, best value ever seen
2. Bound term   - proximity to boundary points, smallest risk ever seen
3. Visibility   - count of viewpoints from which the cell was unoccluded
4. Confidence   - 0.6 * travel + 0.4 * bound, best value ever seen

Distances are meters, rates are Hz, durations are seconds.
"""

# Robot neighborhood radius. Also the Gaussian sigma and no-touch threshold base.
ROBOT_LOCAL_RADIUS = 5.0

# Fusion weights
TRAVEL_WEIGHT = 0.6
BOUND_WEIGHT = 0.4
VISIBILITY_WEIGHT = 0.3  # only used by VisibilityAwareScore

# Visibility
GHPR_PARAM = 4.2
VISIBILITY_THRESHOLD = 5.0
PAST_VIEW_DURATION = 5.0
PAST_VIEW_Z_OFFSET = 0.0
VISIBILITY_EVERY_N_FRAMES = 3

# Grid map
GRIDMAP_MAX_RANGE = 50.0
GRIDMAP_RESOLUTION = 0.2
MIN_MAP_Z = -2.0
MAX_MAP_Z = 7.0

# Neighborhood masks
REGION_GROW_RADIUS = 0.5
INITIAL_RADIUS = 4.5
LOCAL_QUALITY_RADIUS = 1.0
BOUND_DEFEND_RATE = 1.5  # boundary defence mask = rate * region grow radius

# Odometry sampling
ODOM_RAW_HZ = 50.0
ODOM_SAMPLING_HZ = 2.0

# Point buffers (backpressure)
CLOUD_SAMPLE_STRIDE = 1
BUFFER_SAMPLE_STRIDE = 2
OCCLUSION_SAMPLE_THRESHOLD = 500_000
BOUNDARY_BUFFER_CAP = 3_000_000
OBSTACLE_BUFFER_CAP = 8_000_000
DENSE_OBSTACLE_POINTS = 20  # ground cells with more obstacle points occlude

# Quality term
QUALITY_SAMPLE_COUNT = 5
DENSITY_RADIUS = 0.3

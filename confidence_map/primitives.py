"""
Geometry and statistics primitives for the confidence engine.

Points are anything numpy can turn into a length-3 float vector; clouds are
(N, 3) arrays. Degenerate inputs return sentinels (origin, 0.0, 1.0) instead
of raising, so a bad frame never stalls the mapping loop.
"""

import math
import random
from typing import Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from confidence_map.sampling import sample_without_replacement


def as_cloud(points) -> np.ndarray:
    """View any point list as an (N, 3) float array."""
    cloud = np.asarray(points, dtype=float)
    if cloud.size == 0:
        return np.zeros((0, 3))
    return cloud.reshape(-1, 3)


def inner_product(a, b) -> float:
    """a . b"""
    return float(np.dot(np.asarray(a, dtype=float), np.asarray(b, dtype=float)))


def square_norm(query, target) -> float:
    """Squared Euclidean distance between two points."""
    diff = np.asarray(query, dtype=float) - np.asarray(target, dtype=float)
    return float(np.dot(diff, diff))


def euclidean_distance(query, target) -> float:
    """Euclidean distance between two points."""
    return math.sqrt(square_norm(query, target))


def gaussian_kernel(query, target, sigma: float) -> float:
    """
    Smooth a distance with exp(-d^2 / sigma^2).

    Equals 1 at zero distance and decreases monotonically with distance.
    sigma is not checked; sigma <= 0 yields nan/0 and propagates.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.exp(-square_norm(query, target) / np.float64(sigma) ** 2))


def linear_kernel(value: float, threshold: float) -> float:
    """Ramp from 0 to 1, saturating at threshold."""
    if value < threshold:
        return value / threshold
    return 1.0


def centroid(points, indices: Optional[Sequence[int]] = None) -> np.ndarray:
    """
    Mean position of a cloud, or of the rows selected by indices.

    Returns the origin for an empty (sub)set.
    """
    cloud = as_cloud(points)
    if indices is not None:
        cloud = cloud[list(indices)] if len(indices) else cloud[:0]
    if len(cloud) == 0:
        return np.zeros(3)
    return cloud.mean(axis=0)


def standard_deviation(points) -> float:
    """Root mean squared distance to the centroid (0.0 for an empty cloud)."""
    cloud = as_cloud(points)
    if len(cloud) == 0:
        return 0.0
    diff = cloud - centroid(cloud)
    return float(math.sqrt(np.sum(diff * diff) / len(cloud)))


def density_estimate(points, sample_count: int, use_indexed_search: bool = True,
                     rng: Optional[random.Random] = None,
                     radius: float = 0.3) -> float:
    """
    Estimate local point density.

    With indexed search, sample_count random points are drawn and the average
    number of neighbors within radius (the sample itself included) is
    returned. Clouds smaller than sample_count, and a sample_count of zero,
    return 1.0: each point is its own neighborhood. Without indexed search
    the raw point count is returned.
    """
    cloud = as_cloud(points)

    if not use_indexed_search:
        return float(len(cloud))

    if sample_count <= 0 or len(cloud) < sample_count:
        return 1.0

    tree = cKDTree(cloud)
    query_ids = sample_without_replacement(len(cloud), sample_count, rng)

    neighbor_total = 0
    for idx in query_ids:
        neighbor_total += len(tree.query_ball_point(cloud[idx], radius))

    return float(neighbor_total) / float(sample_count)


def normalize(values) -> None:
    """
    Min-max scale values to [0, 1] in place.

    Works on lists and numpy arrays. If every value is equal there is no
    range to scale by and all values become 0.0.
    """
    if len(values) == 0:
        return

    max_value = max(values)
    min_value = min(values)
    span = max_value - min_value

    for i in range(len(values)):
        if span == 0:
            values[i] = 0.0
        else:
            values[i] = (values[i] - min_value) / span

"""
Point visibility from a viewpoint.

The engine only needs "which points of this cloud are unoccluded from here",
so it talks to a VisibilityOracle. HiddenPointRemoval is the default oracle:
spherical flipping followed by a convex hull (Katz et al., "Direct
Visibility of Point Sets").

INTEGRATION:
- Implement VisibilityOracle for a ray-casting or depth-image based test
- Pass it to ConfidenceMapper(visibility=...)
"""

from abc import ABC, abstractmethod
from typing import List

import numpy as np
from scipy.spatial import ConvexHull, QhullError


class VisibilityOracle(ABC):
    """Opaque visibility test used by the occlusion term."""

    @abstractmethod
    def visible_indices(self, points: np.ndarray, viewpoint) -> List[int]:
        """Indices of points not occluded from viewpoint."""
        pass


class HiddenPointRemoval(VisibilityOracle):
    """
    Hidden point removal by spherical flipping.

    Points are flipped about a sphere of radius max_norm * 10**param centred
    on the viewpoint; the points landing on the convex hull of the flipped
    cloud plus the viewpoint are the visible ones. Larger param keeps more
    points.
    """

    def __init__(self, param: float = 4.2):
        self.param = param
        self._degenerate_logged = False

    def visible_indices(self, points: np.ndarray, viewpoint) -> List[int]:
        cloud = np.asarray(points, dtype=float).reshape(-1, 3)
        if len(cloud) < 4:
            return []

        shifted = cloud - np.asarray(viewpoint, dtype=float)
        norms = np.linalg.norm(shifted, axis=1)
        norms[norms == 0] = 1e-9

        radius = norms.max() * (10.0 ** self.param)
        flipped = shifted + 2.0 * (radius - norms)[:, None] * (shifted / norms[:, None])

        # viewpoint is the last hull input
        hull_input = np.vstack([flipped, np.zeros((1, 3))])
        try:
            hull = ConvexHull(hull_input)
        except QhullError:
            if not self._degenerate_logged:
                print(f"[VIS] Degenerate cloud of {len(cloud)} points, no visibility evidence")
                self._degenerate_logged = True
            return []

        viewpoint_id = len(cloud)
        return sorted(int(v) for v in hull.vertices if v != viewpoint_id)

"""
Fusion of per-cell terms into one confidence value, and the pluggable
scoring/quality strategies.

The default score uses only the travel and bound terms. Visibility and
quality are measured and exported but stay out of the fused value unless a
different ScoringStrategy is plugged in.
"""

import random
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from confidence_map.cells import GridCell
from confidence_map.primitives import density_estimate, linear_kernel, standard_deviation


# ── Scoring strategies (total_value) ─────────────────────────────────────

class ScoringStrategy(ABC):
    """Maps a cell's terms to a candidate confidence value."""

    @abstractmethod
    def score(self, cell: GridCell) -> float:
        pass


class WeightedTravelBoundScore(ScoringStrategy):
    """travel_weight * travel_term + bound_weight * bound_term"""

    def __init__(self, travel_weight: float = 0.6, bound_weight: float = 0.4):
        self.travel_weight = travel_weight
        self.bound_weight = bound_weight

    def score(self, cell: GridCell) -> float:
        return self.travel_weight * cell.travel_term + self.bound_weight * cell.bound_term


class VisibilityAwareScore(WeightedTravelBoundScore):
    """
    Weighted score plus a saturating visibility bonus.

    The visibility term is a raw view count, so it is ramped through
    linear_kernel(count, visibility_threshold) before weighting.
    """

    def __init__(self, travel_weight: float = 0.6, bound_weight: float = 0.4,
                 visibility_weight: float = 0.3, visibility_threshold: float = 5.0):
        super().__init__(travel_weight, bound_weight)
        self.visibility_weight = visibility_weight
        self.visibility_threshold = visibility_threshold

    def score(self, cell: GridCell) -> float:
        base = super().score(cell)
        return base + self.visibility_weight * linear_kernel(cell.visibility_term,
                                                             self.visibility_threshold)


def compute_total_confidence(cells: List[GridCell], index: int,
                             strategy: ScoringStrategy) -> float:
    """Ratchet cells[index].total_value up to the strategy's score."""
    return cells[index].total.update(strategy.score(cells[index]))


def fuse_cells(cells: List[GridCell], indices: Sequence[int],
               strategy: ScoringStrategy) -> None:
    for idx in indices:
        compute_total_confidence(cells, idx, strategy)


# ── Quality strategies (quality_term) ────────────────────────────────────

class QualityStrategy(ABC):
    """Measures the obstacle/boundary point set around a cell."""

    @abstractmethod
    def measure(self, points) -> float:
        pass


class DensityQuality(QualityStrategy):
    """Average neighbor count around a few random samples."""

    def __init__(self, sample_count: int = 5, radius: float = 0.3,
                 rng: Optional[random.Random] = None):
        self.sample_count = sample_count
        self.radius = radius
        self.rng = rng if rng is not None else random.Random()

    def measure(self, points) -> float:
        return density_estimate(points, self.sample_count, True, self.rng, self.radius)


class DeviationQuality(QualityStrategy):
    """Spread of the points around their centroid."""

    def measure(self, points) -> float:
        return standard_deviation(points)

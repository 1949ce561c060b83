"""
Confidence Map - per-cell traversability confidence for ground exploration

Fuses streaming ground / boundary / obstacle observations into monotone
per-cell scores and an incremental reachability classification:

  primitives.py   kernels, centroid, deviation, density, normalization
  sampling.py     seeded sampling, stride down-sampling of point buffers
  cells.py        GridCell, labels, reachability states, monotone accumulators
  grid.py         square grid + circular neighborhood masks
  visibility.py   visibility oracle interface, hidden point removal
  region_grow.py  incremental flood-fill reachability
  terms.py        distance / boundary / occlusion / quality terms
  fusion.py       scoring and quality strategies, total confidence
  mapper.py       per-frame orchestrator owning cells and point buffers
"""

from confidence_map.cells import (
    GridCell, CellLabel, Reachability, CombineRule, MonotoneAccumulator,
)
from confidence_map.config import ConfidenceConfig, load_config
from confidence_map.grid import GridIndex, CircleMask
from confidence_map.visibility import VisibilityOracle, HiddenPointRemoval
from confidence_map.region_grow import ReachabilityGrower, GrowResult
from confidence_map.terms import TermEngine
from confidence_map.fusion import (
    ScoringStrategy, WeightedTravelBoundScore, VisibilityAwareScore,
    QualityStrategy, DensityQuality, DeviationQuality,
    compute_total_confidence, fuse_cells,
)
from confidence_map.mapper import ConfidenceMapper, CycleReport, NeighborhoodClouds

__all__ = [
    "GridCell", "CellLabel", "Reachability", "CombineRule", "MonotoneAccumulator",
    "ConfidenceConfig", "load_config",
    "GridIndex", "CircleMask",
    "VisibilityOracle", "HiddenPointRemoval",
    "ReachabilityGrower", "GrowResult",
    "TermEngine",
    "ScoringStrategy", "WeightedTravelBoundScore", "VisibilityAwareScore",
    "QualityStrategy", "DensityQuality", "DeviationQuality",
    "compute_total_confidence", "fuse_cells",
    "ConfidenceMapper", "CycleReport", "NeighborhoodClouds",
]

"""
Per-cell state of the confidence map.

Every ratcheting field (travel, bound, visibility, total) is held in a
MonotoneAccumulator so its update direction is fixed once at construction.
Readers use the *_term properties; writers call cell.<field>.update(x).
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional

import numpy as np


class CellLabel(IntEnum):
    """Sensor classification of a cell. Codes only ever increase."""
    UNSET = 0
    OBSTACLE = 1
    GROUND = 2
    BOUNDARY = 3


class Reachability(IntEnum):
    """Region-grow state of a cell."""
    UNKNOWN = -1
    NOT_REACHABLE_YET = 0   # ground, not connected to travelable cells yet
    TRAVELABLE = 1
    NEWLY_SCANNED = 2       # waiting for the next grow pass
    SETTLED = 3             # visited during the current grow pass
    BLOCKED = 4             # off-ground or too close to a boundary


class CombineRule(Enum):
    MAX = "max"
    MIN = "min"
    SUM = "sum"


class MonotoneAccumulator:
    """
    A value that only moves one way.

    MAX keeps the largest candidate seen, MIN the smallest, SUM adds
    non-negative increments. Optional lower/upper bounds clamp the stored
    value after every update. Candidates that do not compare (nan) are
    ignored.
    """

    __slots__ = ("rule", "value", "lower", "upper")

    def __init__(self, rule: CombineRule, initial: float = 0.0,
                 lower: Optional[float] = None, upper: Optional[float] = None):
        self.rule = rule
        self.lower = lower
        self.upper = upper
        self.value = self._clamp(float(initial))

    def _clamp(self, value: float) -> float:
        if self.lower is not None and value < self.lower:
            value = self.lower
        if self.upper is not None and value > self.upper:
            value = self.upper
        return value

    def update(self, candidate: float) -> float:
        """Combine a new observation and return the stored value."""
        candidate = float(candidate)
        if self.rule is CombineRule.MAX:
            if candidate > self.value:
                self.value = self._clamp(candidate)
        elif self.rule is CombineRule.MIN:
            if candidate < self.value:
                self.value = self._clamp(candidate)
        elif candidate > 0:
            self.value = self._clamp(self.value + candidate)
        return self.value

    def reset(self, value: float) -> None:
        """Explicit re-initialisation (epoch resets only)."""
        self.value = self._clamp(float(value))

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"MonotoneAccumulator({self.rule.value}, {self.value:.4f})"


def _travel_accumulator() -> MonotoneAccumulator:
    return MonotoneAccumulator(CombineRule.MAX, 0.0, lower=0.0)


def _bound_accumulator() -> MonotoneAccumulator:
    return MonotoneAccumulator(CombineRule.MIN, 1.0, lower=0.0, upper=1.0)


def _visibility_accumulator() -> MonotoneAccumulator:
    return MonotoneAccumulator(CombineRule.SUM, 0.0, lower=0.0)


def _total_accumulator() -> MonotoneAccumulator:
    return MonotoneAccumulator(CombineRule.MAX, 0.0, lower=0.0)


@dataclass(eq=False)
class GridCell:
    """State of one grid index, owned by the orchestrator's cell list."""
    label: CellLabel = CellLabel.UNSET
    reachability: Reachability = Reachability.UNKNOWN
    quality_term: float = 0.0
    node_count: int = 0
    center_point: np.ndarray = field(default_factory=lambda: np.zeros(3))
    travel: MonotoneAccumulator = field(default_factory=_travel_accumulator)
    bound: MonotoneAccumulator = field(default_factory=_bound_accumulator)
    visibility: MonotoneAccumulator = field(default_factory=_visibility_accumulator)
    total: MonotoneAccumulator = field(default_factory=_total_accumulator)

    @property
    def travel_term(self) -> float:
        return self.travel.value

    @property
    def bound_term(self) -> float:
        return self.bound.value

    @property
    def visibility_term(self) -> float:
        return self.visibility.value

    @property
    def total_value(self) -> float:
        return self.total.value

    def escalate_label(self, new_label: CellLabel) -> bool:
        """Raise the label to new_label if that is an escalation. Returns True if changed."""
        if new_label > self.label:
            self.label = CellLabel(new_label)
            return True
        return False

"""
Incremental reachability classification by region growing.

Only the cells touched by the latest observation are grown. A connected
component of newly scanned ground becomes TRAVELABLE as soon as one of its
members borders a TRAVELABLE cell; otherwise it is re-armed so a later pass,
after the frontier has moved, can decide it.

State flow per pass:
    UNKNOWN -> NEWLY_SCANNED (ground) | BLOCKED (anything else)
    NEWLY_SCANNED -> SETTLED -> TRAVELABLE | NOT_REACHABLE_YET
    NOT_REACHABLE_YET -> NEWLY_SCANNED (end of pass)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from confidence_map.cells import CellLabel, GridCell, Reachability
from confidence_map.grid import CircleMask, GridIndex

NeighborLookup = Callable[[int], List[int]]


@dataclass
class GrowResult:
    """Summary of one grow pass."""
    visited: int = 0
    travelable: int = 0
    components: int = 0


class ReachabilityGrower:
    """Flood-fill reachability over a mask-defined neighborhood."""

    def __init__(self, neighborhood: NeighborLookup):
        """
        Args:
            neighborhood: cell index -> neighbor cell indices
        """
        self.neighborhood = neighborhood

    @classmethod
    def from_grid(cls, grid: GridIndex, mask: CircleMask) -> "ReachabilityGrower":
        return cls(lambda index: grid.neighborhood(mask, index))

    def grow(self, cells: List[GridCell], new_indices: Sequence[int],
             node_times: Optional[int] = None) -> GrowResult:
        """
        Classify the cells of one observation batch.

        Args:
            cells: the map's cell list, mutated in place
            new_indices: cells touched by the latest observation
            node_times: if given, stamped on every visited cell's node_count

        Returns:
            GrowResult
        """
        result = GrowResult()

        for idx in new_indices:
            cell = cells[idx]
            if cell.reachability == Reachability.UNKNOWN:
                if cell.label == CellLabel.GROUND:
                    cell.reachability = Reachability.NEWLY_SCANNED
                else:
                    cell.reachability = Reachability.BLOCKED

        computed: List[int] = []

        for idx in new_indices:
            if cells[idx].reachability != Reachability.NEWLY_SCANNED:
                continue

            touched_travelable = False
            seeds = [idx]
            component: List[int] = []

            while seeds:
                current = seeds.pop()
                # a cell may be pushed twice before it is popped
                if cells[current].reachability == Reachability.SETTLED:
                    continue
                cells[current].reachability = Reachability.SETTLED
                component.append(current)

                for near in self.neighborhood(current):
                    state = cells[near].reachability
                    if state == Reachability.NEWLY_SCANNED:
                        seeds.append(near)
                    elif state == Reachability.TRAVELABLE:
                        touched_travelable = True

            final = Reachability.TRAVELABLE if touched_travelable else Reachability.NOT_REACHABLE_YET
            for member in component:
                cells[member].reachability = final
                if node_times is not None:
                    cells[member].node_count = node_times

            computed.extend(component)
            result.components += 1
            if touched_travelable:
                result.travelable += len(component)

        for idx in computed:
            if cells[idx].reachability == Reachability.NOT_REACHABLE_YET:
                cells[idx].reachability = Reachability.NEWLY_SCANNED

        result.visited = len(computed)
        return result

"""
Sampling and down-sampling utilities.

Random sampling takes an explicit random.Random so a run can be reproduced
from a seed. The stride samplers are the backpressure valves that keep the
point buffers bounded.
"""

import random
from typing import List, Optional, Tuple, Sequence

import numpy as np


def sample_without_replacement(population_size: int, k: int,
                               rng: Optional[random.Random] = None) -> List[int]:
    """
    Draw k distinct indices from range(population_size).

    Partial Fisher-Yates: each pick is swapped to the tail of the unselected
    prefix and the tail is returned (last position first). If k covers the
    whole population every index is returned in order, unshuffled.
    """
    all_indices = list(range(population_size))
    if population_size <= k:
        return all_indices

    if rng is None:
        rng = random.Random()

    last = population_size - 1
    picked = 0
    while picked < k:
        r = rng.randint(0, last - picked)
        tail = last - picked
        all_indices[r], all_indices[tail] = all_indices[tail], all_indices[r]
        picked += 1

    return [all_indices[i] for i in range(last, last - picked, -1)]


def stride_downsample_tail(points: np.ndarray, keep_prefix: int,
                           threshold: int) -> np.ndarray:
    """
    Bound the size of a combined cloud whose first keep_prefix rows are ground.

    The prefix is kept verbatim. If the remainder has more than threshold
    points, every int(remainder / threshold)-th one is kept. A threshold of
    zero or less disables the valve.
    """
    remainder = len(points) - keep_prefix
    if threshold <= 0 or remainder <= threshold:
        return points

    step = int(remainder / threshold)
    return np.concatenate([points[:keep_prefix], points[keep_prefix::step]], axis=0)


def stride_sample_cells(cell_point_indices: Sequence[List[int]],
                        stride: int) -> Tuple[List[int], List[List[int]]]:
    """
    Thin an accumulated point buffer cell by cell.

    Each cell keeps its points 0, stride, 2*stride, ... so at least one point
    survives per non-empty cell.

    Args:
        cell_point_indices: per-cell lists of indices into the point buffer
        stride: keep one point out of every `stride`

    Returns:
        keep_order: buffer indices to keep, in their new order (cell by cell)
        remapped: per-cell index lists pointing into the rebuilt buffer
    """
    stride = max(1, int(stride))
    keep_order: List[int] = []
    remapped: List[List[int]] = []

    for point_ids in cell_point_indices:
        new_ids = []
        for old_id in point_ids[::stride]:
            new_ids.append(len(keep_order))
            keep_order.append(old_id)
        remapped.append(new_ids)

    return keep_order, remapped

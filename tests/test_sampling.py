import random

import numpy as np

from confidence_map.sampling import (
    sample_without_replacement, stride_downsample_tail, stride_sample_cells,
)


def test_sample_covering_population_returns_all_in_order():
    assert sample_without_replacement(5, 5) == [0, 1, 2, 3, 4]
    assert sample_without_replacement(3, 10) == [0, 1, 2]
    assert sample_without_replacement(0, 2) == []


def test_sample_is_distinct_and_in_range():
    picks = sample_without_replacement(100, 20, random.Random(1))
    assert len(picks) == 20
    assert len(set(picks)) == 20
    assert all(0 <= p < 100 for p in picks)


def test_sample_is_reproducible_from_seed():
    a = sample_without_replacement(50, 10, random.Random(42))
    b = sample_without_replacement(50, 10, random.Random(42))
    assert a == b


def test_stride_downsample_keeps_prefix_and_strides_tail():
    points = np.arange(39, dtype=float).reshape(13, 3)
    out = stride_downsample_tail(points, keep_prefix=3, threshold=2)

    # 10 tail points over a threshold of 2 -> every 5th
    assert len(out) == 5
    assert np.array_equal(out[:3], points[:3])
    assert np.array_equal(out[3], points[3])
    assert np.array_equal(out[4], points[8])


def test_stride_downsample_below_threshold_is_untouched():
    points = np.ones((6, 3))
    assert stride_downsample_tail(points, keep_prefix=2, threshold=4) is points


def test_stride_sample_cells_remaps_indices():
    keep, remapped = stride_sample_cells([[0, 1, 2, 3, 4], [5, 6, 7], [8]], 2)

    assert keep == [0, 2, 4, 5, 7, 8]
    assert remapped == [[0, 1, 2], [3, 4], [5]]


def test_stride_sample_cells_keeps_one_point_per_cell():
    keep, remapped = stride_sample_cells([[3], [9, 10]], 10)
    assert keep == [3, 9]
    assert all(len(ids) == 1 for ids in remapped)


def test_stride_downsample_zero_threshold_is_untouched():
    points = np.ones((6, 3))
    assert stride_downsample_tail(points, keep_prefix=2, threshold=0) is points

import math
import random

import numpy as np
import pytest

from confidence_map.primitives import (
    centroid, density_estimate, euclidean_distance, gaussian_kernel, inner_product,
    linear_kernel, normalize, square_norm, standard_deviation,
)


@pytest.mark.parametrize("sigma", [0.1, 1.0, 2.0, 12.0])
def test_gaussian_kernel_is_one_at_zero_distance(sigma):
    p = (1.5, -2.0, 0.3)
    assert gaussian_kernel(p, p, sigma) == pytest.approx(1.0)


def test_gaussian_kernel_strictly_decreasing():
    origin = (0.0, 0.0, 0.0)
    values = [gaussian_kernel(origin, (d, 0.0, 0.0), 2.0) for d in (0.0, 0.5, 1.0, 2.0, 4.0)]
    assert all(a > b for a, b in zip(values, values[1:]))
    assert values[3] == pytest.approx(math.exp(-1.0))


def test_distances_and_inner_product():
    assert square_norm((0, 0, 0), (1, 2, 2)) == pytest.approx(9.0)
    assert euclidean_distance((0, 0, 0), (1, 2, 2)) == pytest.approx(3.0)
    assert inner_product((1, 2, 3), (4, 5, 6)) == pytest.approx(32.0)


def test_linear_kernel_ramps_then_saturates():
    assert linear_kernel(2.5, 5.0) == pytest.approx(0.5)
    assert linear_kernel(5.0, 5.0) == 1.0
    assert linear_kernel(9.0, 5.0) == 1.0


def test_centroid_of_empty_set_is_origin():
    assert np.allclose(centroid([]), [0.0, 0.0, 0.0])
    assert np.allclose(centroid([[1, 1, 1]], indices=[]), [0.0, 0.0, 0.0])


def test_centroid_with_indices():
    points = [[0, 0, 0], [2, 0, 0], [10, 10, 10], [0, 4, 0]]
    assert np.allclose(centroid(points), [3.0, 3.5, 2.5])
    assert np.allclose(centroid(points, indices=[0, 1, 3]), [2 / 3, 4 / 3, 0.0])


def test_standard_deviation():
    assert standard_deviation([[1, 0, 0], [-1, 0, 0]]) == pytest.approx(1.0)
    assert standard_deviation([[3, 3, 3]]) == 0.0
    assert standard_deviation([]) == 0.0


def test_density_small_cloud_is_its_own_neighborhood():
    assert density_estimate([[0, 0, 0], [1, 1, 1]], sample_count=5) == 1.0


def test_density_without_index_returns_point_count():
    cloud = np.zeros((7, 3))
    assert density_estimate(cloud, sample_count=3, use_indexed_search=False) == 7.0


def test_density_counts_neighbors_within_radius():
    tight = np.zeros((10, 3))
    far = np.array([[5.0, 5.0, 5.0]])
    # every sample lands in the tight cluster or on the lone far point
    value = density_estimate(tight, sample_count=5, rng=random.Random(3))
    assert value == pytest.approx(10.0)

    mixed = np.vstack([tight, far])
    value = density_estimate(mixed, sample_count=11, rng=random.Random(3))
    assert value == pytest.approx((10 * 10 + 1) / 11)


def test_normalize_list_spans_unit_interval():
    values = [2.0, 4.0, 6.0, 3.0]
    normalize(values)
    assert min(values) == 0.0
    assert max(values) == 1.0
    assert values[1] == pytest.approx(0.5)


def test_normalize_numpy_array_in_place():
    values = np.array([-1.0, 1.0, 3.0])
    normalize(values)
    assert np.allclose(values, [0.0, 0.5, 1.0])


def test_normalize_degenerate_and_empty():
    values = [4.0, 4.0, 4.0]
    normalize(values)
    assert values == [0.0, 0.0, 0.0]

    empty = []
    normalize(empty)
    assert empty == []


def test_density_with_zero_samples_is_sentinel():
    assert density_estimate(np.zeros((4, 3)), sample_count=0) == 1.0

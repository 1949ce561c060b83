import numpy as np

from confidence_map.visibility import HiddenPointRemoval


def test_point_behind_another_is_hidden():
    points = np.array([
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [1.0, -1.0, 0.0],
        [1.0, 0.0, 1.0],
        [1.0, 0.0, -1.0],
        [2.0, 0.0, 0.0],   # directly behind point 0
    ])
    visible = HiddenPointRemoval(4.2).visible_indices(points, (0.0, 0.0, 0.0))

    assert 0 in visible
    assert 5 not in visible
    assert visible == [0, 1, 2, 3, 4]


def test_viewpoint_is_never_reported():
    points = np.array([[1, 0, 0], [0, 1, 0], [0, 0, 1], [1, 1, 1]], dtype=float)
    visible = HiddenPointRemoval().visible_indices(points, (-1.0, -1.0, -1.0))
    assert all(0 <= i < len(points) for i in visible)


def test_too_few_points_gives_no_evidence():
    points = np.array([[1, 0, 0], [0, 1, 0], [0, 0, 1]], dtype=float)
    assert HiddenPointRemoval().visible_indices(points, (0, 0, 0)) == []


def test_flat_cloud_seen_edge_on_gives_no_evidence():
    xs, ys = np.meshgrid(np.arange(1.0, 4.0), np.arange(-1.0, 2.0))
    points = np.column_stack([xs.ravel(), ys.ravel(), np.zeros(xs.size)])
    oracle = HiddenPointRemoval()

    assert oracle.visible_indices(points, (0.0, 0.0, 0.0)) == []
    # second degenerate call is silent and still empty
    assert oracle.visible_indices(points, (0.0, 0.0, 0.0)) == []

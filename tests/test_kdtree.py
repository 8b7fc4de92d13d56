import numpy as np
import pytest

from kdgraph import InvalidArgumentError, build_kdtree, nearest_edges, radius_edges
from kdgraph.core.kdtree import KDTree

from tests.utils.datasets import (
    bruteforce_nearest,
    bruteforce_radius_pairs,
    gaussian_points,
    uniform_points,
)


SIXTEEN_POINTS = np.asarray(
    [
        [2, 3],
        [5, 4],
        [9, 6],
        [4, 7],
        [8, 1],
        [7, 2],
        [1, 8],
        [6, 5],
        [10, 10],
        [0, 0],
        [3, 9],
        [11, 2],
        [-1, 5],
        [12, 8],
        [6, 0],
        [5, 5],
    ],
    dtype=np.float64,
)


def _assert_tree_invariants(tree: KDTree) -> None:
    for node in tree.iter_nodes():
        block = tree.points[node.start:node.end]
        assert block.shape[0] > 0
        assert np.all(block >= node.box_min)
        assert np.all(block <= node.box_max)
        if node.is_leaf:
            assert node.split_axis is None
            continue
        assert node.left.start == node.start
        assert node.left.end == node.right.start
        assert node.right.end == node.end
        axis = node.split_axis
        left = tree.points[node.left.start:node.left.end, axis]
        right = tree.points[node.right.start:node.right.end, axis]
        assert np.all(left < node.split_value)
        assert np.all(right >= node.split_value)


def test_build_sixteen_points_with_small_leaves():
    tree = build_kdtree(SIXTEEN_POINTS.ravel(), dimension=2, leaf_size=2)

    assert tree.num_points == 16
    assert tree.dimension == 2
    # x spans [-1, 12], y spans [0, 10]
    assert tree.root.split_axis == 0
    assert tree.root.split_value == pytest.approx(6.0)
    assert all(leaf.num_points <= 2 for leaf in tree.leaves())
    assert sum(leaf.num_points for leaf in tree.leaves()) == 16
    _assert_tree_invariants(tree)


def test_order_is_permutation_and_restores_input():
    points = uniform_points(np.random.default_rng(3), 500, 3)
    tree = build_kdtree(points, leaf_size=4)

    assert sorted(tree.order.tolist()) == list(range(500))
    np.testing.assert_array_equal(tree.original_points(), points)
    np.testing.assert_array_equal(tree.points, points[tree.order])
    _assert_tree_invariants(tree)


def test_build_copies_and_does_not_modify_input():
    points = gaussian_points(np.random.default_rng(0), 64, 2)
    snapshot = points.copy()

    tree = build_kdtree(points, leaf_size=2)

    np.testing.assert_array_equal(points, snapshot)
    assert not np.shares_memory(tree.points, points)
    assert not tree.points.flags.writeable
    assert not tree.order.flags.writeable


def test_identical_points_form_single_leaf():
    points = np.tile([5.0, 5.0], 4)

    tree = build_kdtree(points, dimension=2, leaf_size=1)

    assert tree.root.is_leaf
    assert tree.root.num_points == 4
    assert tree.num_nodes == 1
    assert tree.depth == 0


def test_split_axis_skips_constant_coordinate():
    points = np.column_stack([np.full(32, 3.0), np.arange(32, dtype=np.float64)])

    tree = build_kdtree(points, leaf_size=2)

    assert tree.root.split_axis == 1
    for node in tree.iter_nodes():
        if not node.is_leaf:
            assert node.split_axis == 1
    _assert_tree_invariants(tree)


def test_duplicate_median_values_stay_on_the_right():
    points = np.asarray([[0.0], [1.0], [1.0], [1.0], [1.0], [2.0]])

    tree = build_kdtree(points, leaf_size=1)

    assert tree.root.split_value == 1.0
    assert tree.root.left.num_points == 1
    assert tree.root.right.num_points == 5
    _assert_tree_invariants(tree)


def test_one_dimensional_points_split_on_axis_zero():
    points = uniform_points(np.random.default_rng(11), 100, 1)

    tree = build_kdtree(points.ravel(), dimension=1, leaf_size=3)

    assert tree.dimension == 1
    internal = [node for node in tree.iter_nodes() if not node.is_leaf]
    assert internal
    assert all(node.split_axis == 0 for node in internal)
    _assert_tree_invariants(tree)


def test_float32_input_keeps_precision():
    points = uniform_points(np.random.default_rng(5), 50, 3, dtype=np.float32)

    tree = build_kdtree(points)

    assert tree.dtype == np.float32
    _assert_tree_invariants(tree)


def test_integer_input_uses_runtime_precision():
    tree = build_kdtree([[0, 1], [2, 3], [4, 5]])

    assert tree.dtype == np.float64


def test_default_leaf_size_comes_from_runtime():
    points = uniform_points(np.random.default_rng(1), 200, 2)

    tree = build_kdtree(points)

    assert tree.leaf_size == 16
    assert all(leaf.num_points <= 16 for leaf in tree.leaves())


@pytest.mark.parametrize(
    "points, kwargs",
    [
        (np.empty(0, dtype=np.float64), {"dimension": 2}),
        (np.arange(5, dtype=np.float64), {"dimension": 2}),
        (np.arange(6, dtype=np.float64), {}),
        (np.arange(6, dtype=np.float64), {"dimension": 0}),
        (np.zeros((4, 2)), {"dimension": 3}),
        (np.zeros((2, 2, 2)), {}),
        (np.asarray([[0.0, np.nan]]), {}),
        (np.asarray([[0.0, 1.0]], dtype=np.float16), {}),
        (np.zeros((4, 2)), {"leaf_size": 0}),
    ],
)
def test_build_rejects_invalid_arguments(points, kwargs):
    with pytest.raises(InvalidArgumentError):
        build_kdtree(points, **kwargs)


def test_invalid_argument_is_value_error():
    with pytest.raises(ValueError):
        build_kdtree(np.empty(0), dimension=3)


def test_describe_lists_nodes_and_original_indices():
    tree = build_kdtree(SIXTEEN_POINTS, leaf_size=2)

    text = str(tree)

    assert text.startswith("KDTree (num_points=16, dimension=2")
    assert "Root node (axis: 0, value: 6.00" in text
    assert "Left node" in text
    assert "Right node" in text
    for index in range(16):
        assert f"(original index: {index})" in text


def test_collapsed_median_split_leaves_varying_points_in_one_leaf():
    rng = np.random.default_rng(8)
    x = np.where(np.arange(100) < 60, 0.0, 100.0)
    points = np.column_stack([x, rng.uniform(size=100)])

    tree = build_kdtree(points, leaf_size=4)

    assert tree.root.is_leaf
    assert tree.root.num_points == 100
    assert tree.root.num_points > tree.leaf_size
    assert tree.num_nodes == 1

    target = np.column_stack([rng.choice([0.0, 100.0], size=30), rng.uniform(size=30)])
    edges = radius_edges(tree, target, 0.05)
    assert set(edges) == bruteforce_radius_pairs(points, target, 0.05)

    nearest = nearest_edges(tree, target)
    np.testing.assert_array_equal(nearest.targets, bruteforce_nearest(target, points))

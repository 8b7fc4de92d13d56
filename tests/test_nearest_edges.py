import numpy as np
import pytest

from kdgraph import (
    DimensionMismatchError,
    DTypeMismatchError,
    EmptyInputError,
    build_kdtree,
    nearest_edges,
    nearest_graph,
)
from kdgraph import config as kd_config

from tests.utils.datasets import bruteforce_nearest, gaussian_dataset, uniform_points


@pytest.mark.parametrize("dimension", [1, 2, 5])
def test_nearest_edges_match_bruteforce(dimension: int):
    source, target = gaussian_dataset(
        np.random.default_rng(dimension),
        source_points=250,
        target_points=400,
        dimension=dimension,
    )
    index = build_kdtree(target, leaf_size=4)

    edges = nearest_edges(index, source)

    np.testing.assert_array_equal(edges.sources, np.arange(250))
    np.testing.assert_array_equal(edges.targets, bruteforce_nearest(source, target))


def test_nearest_edges_one_edge_per_source():
    source = uniform_points(np.random.default_rng(0), 64, 2)
    target = uniform_points(np.random.default_rng(1), 3, 2)

    edges = nearest_graph(source, target)

    assert edges.num_edges == 64
    assert set(edges.targets.tolist()) <= {0, 1, 2}


def test_nearest_edges_prefer_first_of_identical_targets():
    target = np.asarray([[1.0, 1.0], [1.0, 1.0], [1.0, 1.0], [4.0, 4.0]])
    source = np.asarray([[0.0, 0.0], [5.0, 5.0]])
    index = build_kdtree(target, leaf_size=8)

    edges = nearest_edges(index, source)

    assert list(edges) == [(0, 0), (1, 3)]


def test_nearest_edges_single_target():
    index = build_kdtree(np.asarray([[2.0, -1.0]]))

    edges = nearest_edges(index, uniform_points(np.random.default_rng(3), 10, 2))

    assert edges.targets.tolist() == [0] * 10


def test_nearest_graph_empty_target():
    with pytest.raises(EmptyInputError):
        nearest_graph(np.zeros((4, 2)), np.empty((0, 2)))


def test_nearest_edges_empty_source():
    index = build_kdtree(np.zeros((4, 2)))

    with pytest.raises(EmptyInputError):
        nearest_edges(index, np.empty((0, 2)))


def test_nearest_edges_incompatible_source():
    index = build_kdtree(uniform_points(np.random.default_rng(0), 20, 3))

    with pytest.raises(DimensionMismatchError):
        nearest_edges(index, np.zeros((2, 2)))
    with pytest.raises(DTypeMismatchError):
        nearest_edges(index, np.zeros((2, 3), dtype=np.float32))


def test_nearest_edges_numba_matches_python(monkeypatch: pytest.MonkeyPatch):
    pytest.importorskip("numba")
    source, target = gaussian_dataset(
        np.random.default_rng(17), source_points=500, target_points=700, dimension=3
    )
    index = build_kdtree(target, leaf_size=8)
    python_edges = nearest_edges(index, source)

    monkeypatch.setenv("KDGRAPH_ENABLE_NUMBA", "1")
    kd_config.reset_runtime_config_cache()
    numba_edges = nearest_edges(index, source)

    assert numba_edges == python_edges
    np.testing.assert_array_equal(numba_edges.targets, bruteforce_nearest(source, target))

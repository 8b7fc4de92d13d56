import logging

import numpy as np
import pytest

from kdgraph import build_kdtree, nearest_edges, radius_edges
from kdgraph import config as kd_config
from kdgraph.diagnostics import OperationLog


def _points() -> np.ndarray:
    return np.asarray([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [3.0, 3.0]])


def test_build_emits_resource_log(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="kdgraph.core.kdtree")

    build_kdtree(_points(), leaf_size=1)

    records = [record for record in caplog.records if "op=kdtree_build" in record.message]
    assert records, "expected kdtree_build operation log"
    message = records[-1].message
    assert "wall_ms=" in message
    assert "cpu_user_ms=" in message
    assert "rss_delta=" in message
    assert "nodes=" in message


def test_radius_edges_emits_resource_log(caplog: pytest.LogCaptureFixture) -> None:
    tree = build_kdtree(_points(), leaf_size=1)
    caplog.set_level(logging.INFO, logger="kdgraph.queries.radius")

    radius_edges(tree, np.asarray([[0.1, 0.1]]), 1.5)

    records = [record for record in caplog.records if "op=radius_edges" in record.message]
    assert records, "expected radius_edges operation log"
    message = records[-1].message
    assert "edges=2" in message
    assert "nodes_visited=" in message
    assert "wall_ms=" in message


def test_nearest_edges_emits_resource_log(caplog: pytest.LogCaptureFixture) -> None:
    tree = build_kdtree(_points(), leaf_size=1)
    caplog.set_level(logging.INFO, logger="kdgraph.queries.nearest")

    nearest_edges(tree, np.asarray([[2.9, 3.2], [0.4, 0.2]]))

    records = [record for record in caplog.records if "op=nearest_edges" in record.message]
    assert records, "expected nearest_edges operation log"
    message = records[-1].message
    assert "source_points=2" in message
    assert "engine=python" in message


def test_diagnostics_can_be_disabled(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("KDGRAPH_ENABLE_DIAGNOSTICS", "0")
    kd_config.reset_runtime_config_cache()
    caplog.set_level(logging.INFO, logger="kdgraph")

    build_kdtree(_points())

    assert not [record for record in caplog.records if "op=" in record.message]


def test_operation_log_renders_metadata() -> None:
    op_log = OperationLog("demo")
    op_log.add_metadata(points=3, radius=0.5)

    message = op_log.render()

    assert message.startswith("op=demo wall_ms=")
    assert message.endswith("points=3 radius=0.5")
    assert op_log.metadata == {"points": 3, "radius": 0.5}


def test_operation_log_keeps_small_floats() -> None:
    op_log = OperationLog("demo")
    op_log.add_metadata(radius=1e-4)

    assert op_log.render().endswith("radius=0.0001")

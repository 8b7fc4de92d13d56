from types import SimpleNamespace

import numpy as np
import pytest

from kdgraph import config as kd_config
from cli.runtime import runtime_from_args


def test_runtime_config_defaults():
    runtime = kd_config.runtime_config()

    assert runtime.precision == "float64"
    assert runtime.default_float == np.float64
    assert runtime.leaf_size == 16
    assert runtime.enable_numba is False
    assert runtime.enable_diagnostics is True
    assert runtime.log_level == "INFO"


def test_runtime_config_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("KDGRAPH_PRECISION", "FLOAT32")
    monkeypatch.setenv("KDGRAPH_LEAF_SIZE", "4")
    monkeypatch.setenv("KDGRAPH_ENABLE_NUMBA", "yes")
    monkeypatch.setenv("KDGRAPH_ENABLE_DIAGNOSTICS", "off")
    monkeypatch.setenv("KDGRAPH_LOG_LEVEL", "debug")
    kd_config.reset_runtime_config_cache()

    runtime = kd_config.runtime_config()

    assert runtime.precision == "float32"
    assert runtime.leaf_size == 4
    assert runtime.enable_numba is True
    assert runtime.enable_diagnostics is False
    assert runtime.log_level == "DEBUG"


@pytest.mark.parametrize(
    "key, value",
    [
        ("KDGRAPH_PRECISION", "float16"),
        ("KDGRAPH_LEAF_SIZE", "zero"),
        ("KDGRAPH_LEAF_SIZE", "0"),
        ("KDGRAPH_LOG_LEVEL", "CHATTY"),
    ],
)
def test_runtime_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, key, value):
    monkeypatch.setenv(key, value)
    kd_config.reset_runtime_config_cache()

    with pytest.raises(ValueError):
        kd_config.runtime_config()


def test_runtime_config_is_cached_until_reset(monkeypatch: pytest.MonkeyPatch):
    first = kd_config.runtime_config()
    monkeypatch.setenv("KDGRAPH_LEAF_SIZE", "8")

    assert kd_config.runtime_config() is first

    kd_config.reset_runtime_config_cache()
    assert kd_config.runtime_config().leaf_size == 8


def test_describe_runtime_reports_settings():
    summary = kd_config.describe_runtime()

    assert summary["precision"] == "float64"
    assert summary["leaf_size"] == 16
    assert summary["enable_numba"] is False
    assert "numba_threads" in summary


def test_runtime_from_args_exports_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("KDGRAPH_PRECISION", "float64")
    monkeypatch.setenv("KDGRAPH_ENABLE_DIAGNOSTICS", "1")
    args = SimpleNamespace(precision="float32", diagnostics=False, leaf_size=None)

    runtime = runtime_from_args(args)

    assert runtime.precision == "float32"
    assert runtime.enable_diagnostics is False
    assert runtime.leaf_size == 16

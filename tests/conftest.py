import pytest

from kdgraph import config as kd_config

_KDGRAPH_ENV = [
    "KDGRAPH_PRECISION",
    "KDGRAPH_LEAF_SIZE",
    "KDGRAPH_ENABLE_NUMBA",
    "KDGRAPH_ENABLE_DIAGNOSTICS",
    "KDGRAPH_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch: pytest.MonkeyPatch):
    for key in _KDGRAPH_ENV:
        monkeypatch.delenv(key, raising=False)
    kd_config.reset_runtime_config_cache()
    yield
    kd_config.reset_runtime_config_cache()

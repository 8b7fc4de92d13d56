from __future__ import annotations

import os
from typing import Any, Dict, Mapping

from kdgraph import config as kd_config

_ENV_OVERRIDES = {
    "precision": "KDGRAPH_PRECISION",
    "leaf_size": "KDGRAPH_LEAF_SIZE",
    "enable_numba": "KDGRAPH_ENABLE_NUMBA",
    "diagnostics": "KDGRAPH_ENABLE_DIAGNOSTICS",
    "log_level": "KDGRAPH_LOG_LEVEL",
}


def _get_arg(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def runtime_from_args(args: Any) -> kd_config.RuntimeConfig:
    """Export CLI overrides as ``KDGRAPH_*`` variables and reload the runtime."""

    for attr_name, env_name in _ENV_OVERRIDES.items():
        value = _get_arg(args, attr_name)
        if value is not None:
            os.environ[env_name] = _env_value(value)
    kd_config.reset_runtime_config_cache()
    return kd_config.runtime_config()


def thread_env_snapshot() -> Dict[str, str | None]:
    return {
        "numba_threads": os.getenv("NUMBA_NUM_THREADS"),
        "blas_threads": os.getenv("OPENBLAS_NUM_THREADS"),
    }

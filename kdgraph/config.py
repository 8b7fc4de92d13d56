from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

import numpy as np

_LOGGER = logging.getLogger("kdgraph")

_SUPPORTED_PRECISION = {"float32", "float64"}
_DEFAULT_LEAF_SIZE = 16
_DEFAULT_NUMBA_THREADING_LAYER = "workqueue"


def _ensure_env(var: str, value: str) -> None:
    if os.getenv(var) is None:
        os.environ[var] = value


def _configure_threading_defaults() -> None:
    """Set conservative threading defaults unless the user overrides them."""

    _ensure_env("OMP_NUM_THREADS", "1")
    _ensure_env("OPENBLAS_NUM_THREADS", "1")
    _ensure_env("MKL_NUM_THREADS", "1")
    threads = os.getenv("NUMBA_NUM_THREADS")
    if threads is None:
        count = os.cpu_count() or 1
        os.environ["NUMBA_NUM_THREADS"] = str(count)
    if os.getenv("NUMBA_THREADING_LAYER") is None:
        os.environ["NUMBA_THREADING_LAYER"] = _DEFAULT_NUMBA_THREADING_LAYER


_configure_threading_defaults()


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _normalise_precision(value: str | None) -> str:
    if value is None:
        return "float64"
    value = value.strip().lower()
    if value not in _SUPPORTED_PRECISION:
        raise ValueError(f"Unsupported precision '{value}'. Expected one of {_SUPPORTED_PRECISION}.")
    return value


def _parse_leaf_size(raw: str | None) -> int:
    value = _parse_optional_int(raw)
    if value is None:
        return _DEFAULT_LEAF_SIZE
    if value < 1:
        raise ValueError(f"Leaf size must be at least 1, got {value}.")
    return value


def _parse_log_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unsupported log level '{level}'.")
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    precision: str
    leaf_size: int
    enable_numba: bool
    enable_diagnostics: bool
    log_level: str

    @property
    def default_float(self) -> np.dtype:
        return np.dtype(self.precision)

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        precision = _normalise_precision(os.getenv("KDGRAPH_PRECISION"))
        leaf_size = _parse_leaf_size(os.getenv("KDGRAPH_LEAF_SIZE"))
        enable_numba = _bool_from_env(os.getenv("KDGRAPH_ENABLE_NUMBA"), default=False)
        enable_diagnostics = _bool_from_env(
            os.getenv("KDGRAPH_ENABLE_DIAGNOSTICS"), default=True
        )
        log_level = _parse_log_level(os.getenv("KDGRAPH_LOG_LEVEL"))
        return cls(
            precision=precision,
            leaf_size=leaf_size,
            enable_numba=enable_numba,
            enable_diagnostics=enable_diagnostics,
            log_level=log_level,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("kdgraph")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    if config.enable_numba:
        _LOGGER.debug("Numba kernels requested (threads=%s).", os.getenv("NUMBA_NUM_THREADS"))
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "precision": config.precision,
        "leaf_size": config.leaf_size,
        "enable_numba": config.enable_numba,
        "enable_diagnostics": config.enable_diagnostics,
        "log_level": config.log_level,
        "numba_threads": os.getenv("NUMBA_NUM_THREADS"),
    }

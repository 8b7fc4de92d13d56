from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

import psutil

from kdgraph import config as kd_config


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


class OperationLog:
    """Collects resource deltas and metadata for one logged operation."""

    __slots__ = (
        "name",
        "_metadata",
        "_process",
        "_start_wall",
        "_start_cpu",
        "_start_rss",
    )

    def __init__(self, name: str) -> None:
        self.name = name
        self._metadata: Dict[str, Any] = {}
        self._process = psutil.Process()
        self._start_wall = time.perf_counter()
        self._start_cpu = self._process.cpu_times()
        self._start_rss = self._process.memory_info().rss

    def add_metadata(self, **values: Any) -> None:
        self._metadata.update(values)

    @property
    def metadata(self) -> Dict[str, Any]:
        return dict(self._metadata)

    def render(self) -> str:
        wall_ms = (time.perf_counter() - self._start_wall) * 1e3
        cpu = self._process.cpu_times()
        cpu_user_ms = (cpu.user - self._start_cpu.user) * 1e3
        cpu_system_ms = (cpu.system - self._start_cpu.system) * 1e3
        rss_delta = self._process.memory_info().rss - self._start_rss
        parts = [
            f"op={self.name}",
            f"wall_ms={wall_ms:.3f}",
            f"cpu_user_ms={cpu_user_ms:.3f}",
            f"cpu_system_ms={cpu_system_ms:.3f}",
            f"rss_delta={rss_delta}",
        ]
        parts.extend(
            f"{key}={_format_value(value)}" for key, value in self._metadata.items()
        )
        return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, name: str) -> Iterator[OperationLog | None]:
    """Time an operation and emit a single summary line when it completes.

    Yields ``None`` when diagnostics are disabled so callers can skip
    collecting metadata. Nothing is logged if the wrapped block raises.
    """

    runtime = kd_config.runtime_config()
    if not runtime.enable_diagnostics:
        yield None
        return

    op_log = OperationLog(name)
    yield op_log
    logger.info(op_log.render())

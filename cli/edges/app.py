from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np
from numpy.random import default_rng
import typer
from typing_extensions import Annotated

from kdgraph import config as kd_config
from kdgraph.queries._nearest_numba import NUMBA_NEAREST_AVAILABLE

from cli.runtime import runtime_from_args, thread_env_snapshot
from tests.utils.datasets import gaussian_points

from .baselines import has_scipy_kdtree, run_baseline_comparisons
from .benchmark import EdgeBenchmarkResult, benchmark_nearest_edges, benchmark_radius_edges


@dataclass
class EdgeCLIOptions:
    dimension: int = 3
    source_points: int = 65_536
    target_points: int = 4_096
    seed: int = 0
    leaf_size: int = 16
    precision: str | None = None
    enable_numba: bool | None = None
    diagnostics: bool | None = None
    log_level: str | None = None
    baseline: str = "none"


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Benchmark KD-tree radius and nearest-neighbour edge queries.",
)

_SHAPE_PANEL = "Benchmark shape"
_RUNTIME_PANEL = "Runtime controls"
_BASELINE_PANEL = "Baselines"


@app.callback()
def cli(
    ctx: typer.Context,
    dimension: Annotated[
        int,
        typer.Option(
            "--dimension",
            help="Coordinates per point.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 3,
    source_points: Annotated[
        int,
        typer.Option(
            "--source-points",
            help="Number of source points.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 65_536,
    target_points: Annotated[
        int,
        typer.Option(
            "--target-points",
            help="Number of target points.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 4_096,
    seed: Annotated[
        int,
        typer.Option(
            "--seed",
            help="Base random seed for source/target generation.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 0,
    leaf_size: Annotated[
        int,
        typer.Option(
            "--leaf-size",
            help="Maximum points per KD-tree leaf.",
            rich_help_panel=_SHAPE_PANEL,
        ),
    ] = 16,
    precision: Annotated[
        Optional[Literal["float32", "float64"]],
        typer.Option(
            "--precision",
            help="Coordinate precision of the generated points.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    enable_numba: Annotated[
        Optional[bool],
        typer.Option(
            "--enable-numba/--disable-numba",
            help="Force-enable or disable the Numba nearest kernel.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    diagnostics: Annotated[
        Optional[bool],
        typer.Option(
            "--enable-diagnostics/--disable-diagnostics",
            help="Control per-operation resource logging.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="Override runtime log level.",
            rich_help_panel=_RUNTIME_PANEL,
        ),
    ] = None,
    baseline: Annotated[
        Literal["none", "bruteforce", "scipy", "all"],
        typer.Option(
            "--baseline",
            help="Re-run the query with a baseline engine and compare edges.",
            rich_help_panel=_BASELINE_PANEL,
        ),
    ] = "none",
) -> None:
    ctx.obj = EdgeCLIOptions(
        dimension=dimension,
        source_points=source_points,
        target_points=target_points,
        seed=seed,
        leaf_size=leaf_size,
        precision=precision,
        enable_numba=enable_numba,
        diagnostics=diagnostics,
        log_level=log_level,
        baseline=baseline,
    )


def _generate_points(options: EdgeCLIOptions) -> tuple[np.ndarray, np.ndarray]:
    dtype = np.dtype(options.precision or "float64")
    source = gaussian_points(
        default_rng(options.seed), options.source_points, options.dimension, dtype=dtype
    )
    target = gaussian_points(
        default_rng(options.seed + 1), options.target_points, options.dimension, dtype=dtype
    )
    return source, target


def _print_result(result: EdgeBenchmarkResult) -> None:
    print(
        f"kdgraph[{result.query}] | build={result.build_seconds:.4f}s "
        f"query={result.query_seconds:.4f}s "
        f"source={result.source_points} target={result.target_points} "
        f"edges={result.edges} nodes={result.tree_nodes} depth={result.tree_depth} "
        f"throughput={result.points_per_second:,.1f} pts/s"
    )


def run_edges(options: EdgeCLIOptions, *, query: str, radius: float | None = None) -> None:
    runtime = runtime_from_args(options)
    threads = thread_env_snapshot()
    print(
        f"runtime | precision={options.precision or 'float64'} numba={runtime.enable_numba} "
        f"numba_threads={threads['numba_threads']}"
    )
    source, target = _generate_points(options)
    if query == "radius":
        edges, result = benchmark_radius_edges(
            source, target, radius=float(radius), leaf_size=options.leaf_size
        )
    else:
        edges, result = benchmark_nearest_edges(source, target, leaf_size=options.leaf_size)
    _print_result(result)

    if options.baseline != "none":
        for baseline in run_baseline_comparisons(
            query, source, target, edges, mode=options.baseline, radius=radius
        ):
            speedup = (
                baseline.elapsed_seconds / result.query_seconds
                if result.query_seconds
                else float("inf")
            )
            print(
                f"baseline[{baseline.name}] | time={baseline.elapsed_seconds:.4f}s "
                f"edges={baseline.edges} matches={baseline.matches} "
                f"speedup={speedup:.3f}x"
            )


@app.command("radius")
def radius_command(
    ctx: typer.Context,
    radius: Annotated[
        float,
        typer.Option(
            "--radius",
            help="Maximum Euclidean distance between connected points.",
        ),
    ] = 0.1,
) -> None:
    """Connect every source/target pair closer than --radius."""

    run_edges(ctx.obj, query="radius", radius=radius)


@app.command("nearest")
def nearest_command(ctx: typer.Context) -> None:
    """Connect every source point to its closest target point."""

    run_edges(ctx.obj, query="nearest")


@app.command("doctor")
def doctor_command(ctx: typer.Context) -> None:
    """Print the resolved runtime configuration and optional engines."""

    runtime_from_args(ctx.obj)
    for key, value in kd_config.describe_runtime().items():
        print(f"{key}={value}")
    print(f"numba_available={NUMBA_NEAREST_AVAILABLE}")
    print(f"scipy_available={has_scipy_kdtree()}")


def main() -> None:
    app()


__all__ = ["EdgeCLIOptions", "app", "main", "run_edges"]

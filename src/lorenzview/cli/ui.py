from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import typer

from lorenzview.core.chaos.lorenz import SimulationParameters
from lorenzview.orchestrator.driver import TickResult


def _timestamp_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _abs_path(path: Path | None) -> str:
    if path is None:
        return "n/a"
    try:
        return str(path.resolve())
    except Exception:  # noqa: BLE001
        return str(path)


def print_run_header(
    command: str,
    *,
    params: SimulationParameters,
    steps_per_tick: int,
    ticks: int | None,
    period_ms: int,
    width: int,
    height: int,
) -> None:
    typer.echo(f"[run] command={command} ts_utc={_timestamp_utc()}")
    typer.echo(f"[lorenz] sigma={params.sigma} rho={params.rho} beta={params.beta:.6f} dt={params.dt}")
    ticks_text = ticks if ticks is not None else "unbounded"
    typer.echo(f"[timer] ticks={ticks_text} period_ms={period_ms} steps_per_tick={steps_per_tick}")
    typer.echo(f"[canvas] width={width} height={height}")


def print_io_write(path: Path) -> None:
    typer.echo(f"[io] Writing output: {_abs_path(path)}")


def print_tick_failures(results: Sequence[TickResult]) -> None:
    for result in results:
        if not result.ok:
            typer.echo(f"[skip] tick={result.tick} points={result.points} error={result.error}")


def print_done(summary: str) -> None:
    typer.echo(f"[done] {summary}")

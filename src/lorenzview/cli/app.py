from __future__ import annotations

import itertools
import math
import shutil
from pathlib import Path
from typing import List

import typer

from lorenzview.bench.runner import run_benchmark
from lorenzview.core import constants
from lorenzview.core.chaos.lorenz import DEFAULT_PARAMS, lorenz_step
from lorenzview.io.config import DEFAULT_CONFIG, ConfigError, RunConfig, parse_config
from lorenzview.io.formats import write_csv, write_json
from lorenzview.orchestrator.driver import Driver, SimulationActor, Tick, tick_source
from lorenzview.render.errors import RenderError
from lorenzview.render.surface import MatplotlibSurface
from lorenzview.cli.ui import print_done, print_io_write, print_run_header, print_tick_failures
from lorenzview.utils.logging import resolve_log_level, set_command_context, setup_logging

app = typer.Typer(help="Lorenz attractor viewer")


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress (INFO)"),
    debug: bool = typer.Option(False, "--debug", help="Log every tick (DEBUG)"),
):
    setup_logging(resolve_log_level(verbose, debug))


def _load_config(config: Path | None) -> RunConfig:
    if config is None:
        return DEFAULT_CONFIG
    try:
        return parse_config(config)
    except ConfigError as exc:
        typer.secho(f"Config error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.command()
def run(
    ticks: int | None = typer.Option(None, "--ticks", "-n", help="Number of ticks to simulate"),
    period_ms: int | None = typer.Option(None, "--period-ms", help="Timer period in milliseconds (0 = no wait)"),
    width: int | None = typer.Option(None, "--width", help="Canvas width in pixels"),
    height: int | None = typer.Option(None, "--height", help="Canvas height in pixels"),
    dpi: int | None = typer.Option(None, "--dpi", help="Canvas resolution"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write the final frame as PNG"),
    frames_dir: Path | None = typer.Option(None, "--frames-dir", help="Write every frame as PNG into this directory"),
    on_error: str | None = typer.Option(None, "--on-error", help="Render failure policy: halt or skip"),
    summary_json: Path | None = typer.Option(None, "--summary-json", help="Write a JSON run summary"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True, help="YAML run config"),
):
    """Simulate offscreen, rendering every tick; command-line options override the config file."""
    set_command_context("run")
    cfg = _load_config(config)

    ticks = ticks if ticks is not None else cfg.run.ticks
    period_ms = period_ms if period_ms is not None else cfg.run.tick_period_ms
    width = width if width is not None else cfg.canvas.width
    height = height if height is not None else cfg.canvas.height
    dpi = dpi if dpi is not None else cfg.canvas.dpi
    out = out if out is not None else cfg.output.out
    frames_dir = frames_dir if frames_dir is not None else cfg.output.frames_dir
    on_error = on_error if on_error is not None else cfg.run.on_error
    summary_json = summary_json if summary_json is not None else cfg.output.summary_json

    if ticks < 0 or period_ms < 0:
        typer.secho("ticks and period-ms must be >= 0", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if min(width, height, dpi) <= 0:
        typer.secho("width, height and dpi must be > 0", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if on_error not in constants.ON_ERROR_POLICIES:
        typer.secho(f"on-error must be one of {', '.join(constants.ON_ERROR_POLICIES)}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    last = ticks - 1

    def surface_for(tick: Tick) -> MatplotlibSurface:
        output = None
        if frames_dir is not None:
            output = frames_dir / f"frame_{tick.index:05d}.png"
        elif out is not None and tick.index == last:
            output = out
        return MatplotlibSurface(width=width, height=height, dpi=dpi, output=output)

    actor = SimulationActor()
    driver = Driver(actor, surface_for, on_error=on_error)
    print_run_header(
        "run",
        params=DEFAULT_PARAMS,
        steps_per_tick=actor.steps_per_tick,
        ticks=ticks,
        period_ms=period_ms,
        width=width,
        height=height,
    )

    try:
        results = driver.run(tick_source(period_ms / 1000.0, count=ticks))
    except RenderError as exc:
        typer.secho(f"Render failed ({type(exc).__name__}): {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    print_tick_failures(results)
    if frames_dir is not None:
        print_io_write(frames_dir)
    if out is not None and ticks > 0:
        last_frame = frames_dir / f"frame_{last:05d}.png" if frames_dir is not None else None
        if results[-1].ok and last_frame is not None and last_frame.exists():
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(last_frame, out)
        if results[-1].ok:
            print_io_write(out)
        else:
            typer.secho(f"Final frame was not rendered; {out} not written.", fg=typer.colors.YELLOW)

    failed = sum(1 for r in results if not r.ok)
    if summary_json is not None:
        bounds = None
        if len(actor.store):
            snapshot = actor.store.snapshot()
            bounds = {
                "min": [float(v) for v in snapshot.min(axis=0)],
                "max": [float(v) for v in snapshot.max(axis=0)],
            }
        write_json(
            summary_json,
            {
                "ticks": len(results),
                "rendered": len(results) - failed,
                "failed": failed,
                "points": len(actor.store),
                "buffer_bytes": actor.store.nbytes,
                "last_state": list(actor.store.last()),
                "bounds": bounds,
            },
        )
        print_io_write(summary_json)

    print_done(f"ticks={len(results)} points={len(actor.store)} failed={failed}")


@app.command()
def show(
    ticks: int | None = typer.Option(None, "--ticks", "-n", help="Stop after this many ticks (default: run until closed)"),
    period_ms: int = typer.Option(constants.TICK_PERIOD_MS, "--period-ms", help="Timer period in milliseconds"),
    width: int = typer.Option(constants.CANVAS_WIDTH, "--width", help="Canvas width in pixels"),
    height: int = typer.Option(constants.CANVAS_HEIGHT, "--height", help="Canvas height in pixels"),
    dpi: int = typer.Option(constants.CANVAS_DPI, "--dpi", help="Canvas resolution"),
):
    """Animate the attractor in a window, one tick per timer period."""
    import matplotlib.pyplot as plt

    set_command_context("show")
    figure = plt.figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    if figure.canvas.manager is not None:
        figure.canvas.manager.set_window_title("Plot")
    surface = MatplotlibSurface(width=width, height=height, dpi=dpi, figure=figure)
    actor = SimulationActor()
    driver = Driver(actor, lambda _tick: surface, on_error="halt")
    print_run_header(
        "show",
        params=DEFAULT_PARAMS,
        steps_per_tick=actor.steps_per_tick,
        ticks=ticks,
        period_ms=period_ms,
        width=width,
        height=height,
    )

    timer = figure.canvas.new_timer(interval=period_ms)
    counter = itertools.count()
    errors: List[RenderError] = []

    def on_timer() -> None:
        index = next(counter)
        if (ticks is not None and index >= ticks) or not surface.available:
            timer.stop()
            return
        try:
            driver.on_tick(Tick(index))
        except RenderError as exc:
            timer.stop()
            errors.append(exc)

    timer.add_callback(on_timer)
    timer.start()
    plt.show()

    if errors:
        exc = errors[0]
        typer.secho(f"Render failed ({type(exc).__name__}): {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    print_done(f"points={len(actor.store)}")


@app.command()
def benchmark(
    ticks: int = typer.Option(50, "--ticks", "-n", help="Number of ticks to run"),
    out: Path = typer.Option(..., "--out", "-o", help="CSV output path"),
    out_json: Path | None = typer.Option(None, "--out-json", help="Optional JSON output path"),
    render_frames: bool = typer.Option(True, "--render/--no-render", help="Render every tick offscreen"),
    width: int = typer.Option(constants.CANVAS_WIDTH, "--width", help="Canvas width in pixels"),
    height: int = typer.Option(constants.CANVAS_HEIGHT, "--height", help="Canvas height in pixels"),
):
    """
    Time integration and rendering per tick, with trajectory length and buffer size.
    """
    set_command_context("benchmark")
    if ticks < 0:
        typer.secho("ticks must be >= 0", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        records = run_benchmark(ticks, render_frames=render_frames, width=width, height=height)
    except Exception as exc:  # noqa: BLE001
        typer.secho(f"Benchmark failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        write_csv(out, records)
        if out_json:
            write_json(out_json, records)
    except Exception as exc:  # noqa: BLE001
        typer.secho(f"Failed to write outputs: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.secho(f"Benchmark complete. CSV → {out}", fg=typer.colors.GREEN)
    if out_json:
        typer.secho(f"JSON → {out_json}", fg=typer.colors.GREEN)


@app.command()
def selftest():
    """
    Check a golden integration step and the per-tick growth (no filesystem writes).
    """
    set_command_context("selftest")
    seed = constants.SEED_STATE
    expected = (
        0.0 + 0.001 * 10.0 * (1.0 - 0.0),
        1.0 + 0.001 * (28.0 * 0.0 - 1.0 - 0.0 * 1.05),
        1.05 + 0.001 * (0.0 * 1.0 - 8.0 / 3.0 * 1.05),
    )
    got = lorenz_step(seed, DEFAULT_PARAMS)
    step_ok = all(math.isclose(a, b, rel_tol=1e-12, abs_tol=1e-15) for a, b in zip(got, expected))

    actor = SimulationActor(seed=seed)
    for index in range(3):
        actor.handle(Tick(index))
    growth_ok = len(actor.store) == 1 + 3 * constants.STEPS_PER_TICK

    if step_ok and growth_ok:
        typer.secho("Selftest passed (golden step, growth).", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Selftest FAILED. step_ok={step_ok} growth_ok={growth_ok}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

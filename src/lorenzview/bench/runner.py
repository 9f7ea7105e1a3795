from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Dict, List

from lorenzview.core.constants import CANVAS_DPI, CANVAS_HEIGHT, CANVAS_WIDTH
from lorenzview.orchestrator.driver import Driver, SimulationActor, Tick, TickResult
from lorenzview.render.surface import MatplotlibSurface
from lorenzview.utils.logging import get_logger

logger = get_logger(__name__)


def _integrate_only(actor: SimulationActor, ticks: int) -> List[TickResult]:
    results: List[TickResult] = []
    for index in range(ticks):
        t0 = time.perf_counter()
        command = actor.handle(Tick(index))
        results.append(
            TickResult(
                tick=index,
                points=len(command.snapshot),
                buffer_bytes=actor.store.nbytes,
                t_integrate_s=time.perf_counter() - t0,
                t_render_s=0.0,
                ok=True,
            )
        )
    return results


def run_benchmark(
    ticks: int,
    render_frames: bool = True,
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
    dpi: int = CANVAS_DPI,
) -> List[Dict[str, Any]]:
    """
    Run ``ticks`` ticks back to back and record per-tick costs.

    Every frame rescans and redraws the whole trajectory, so ``t_render_s``
    grows with ``points``.
    """
    if ticks < 0:
        raise ValueError("ticks must be >= 0")
    logger.debug("Benchmark ticks=%d render=%s canvas=%dx%d", ticks, render_frames, width, height)
    actor = SimulationActor()
    if render_frames:
        surface = MatplotlibSurface(width=width, height=height, dpi=dpi)
        driver = Driver(actor, lambda _tick: surface, on_error="halt")
        results = driver.run(Tick(index) for index in range(ticks))
    else:
        results = _integrate_only(actor, ticks)

    records = []
    for result in results:
        record = asdict(result)
        record["bytes_per_point"] = result.buffer_bytes / result.points
        records.append(record)
    return records

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, Iterator, List, Optional

import numpy as np

from lorenzview.core.chaos.base import State
from lorenzview.core.chaos.lorenz import DEFAULT_PARAMS, LorenzSystem, SimulationParameters
from lorenzview.core.constants import ON_ERROR_POLICIES, SEED_STATE, STEPS_PER_TICK
from lorenzview.core.trajectory import DEFAULT_INITIAL_CAPACITY, TrajectoryStore
from lorenzview.render.errors import RenderError, SurfaceUnavailable
from lorenzview.render.projection import DEFAULT_PROJECTION, Projection
from lorenzview.render.renderer import render
from lorenzview.render.surface import Surface
from lorenzview.utils.logging import get_logger, set_tick_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class Tick:
    index: int


@dataclass(frozen=True)
class RenderCommand:
    tick: int
    snapshot: np.ndarray


@dataclass(frozen=True)
class TickResult:
    tick: int
    points: int
    buffer_bytes: int
    t_integrate_s: float
    t_render_s: float
    ok: bool
    error: Optional[str] = None


SurfaceFactory = Callable[[Tick], Optional[Surface]]


def tick_source(
    period_s: float,
    count: Optional[int] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[Tick]:
    """
    Yield ticks on a fixed schedule, one period apart.

    A tick that is already late is yielded at once: nothing is dropped or
    coalesced, the animation just runs slower. ``count=None`` never stops.
    """
    start = clock()
    index = 0
    while count is None or index < count:
        delay = start + (index + 1) * period_s - clock()
        if delay > 0:
            sleep(delay)
        yield Tick(index)
        index += 1


class SimulationActor:
    """
    Sole owner and writer of the trajectory.

    Handles tick messages in arrival order; each one integrates
    ``steps_per_tick`` states and answers with a render command carrying a
    read-only snapshot.
    """

    def __init__(
        self,
        seed: State = SEED_STATE,
        params: SimulationParameters = DEFAULT_PARAMS,
        steps_per_tick: int = STEPS_PER_TICK,
        initial_capacity: int = DEFAULT_INITIAL_CAPACITY,
    ):
        self.system = LorenzSystem(params)
        self.steps_per_tick = int(steps_per_tick)
        self.store = TrajectoryStore(initial_capacity)
        self.store.seed(seed)
        self._inbox: Deque[Tick] = deque()

    def send(self, message: Tick) -> None:
        self._inbox.append(message)

    def drain(self) -> Iterator[RenderCommand]:
        while self._inbox:
            yield self.handle(self._inbox.popleft())

    def handle(self, message: Tick) -> RenderCommand:
        states = self.system.advance(self.store.last(), self.steps_per_tick)
        self.store.append(states)
        logger.debug("Integrated %d steps, trajectory length=%d", len(states), len(self.store))
        return RenderCommand(tick=message.index, snapshot=self.store.snapshot())


class Driver:
    """Runs integration and a synchronous render for every tick."""

    def __init__(
        self,
        actor: SimulationActor,
        surface_factory: SurfaceFactory,
        on_error: str = "halt",
        projection: Projection = DEFAULT_PROJECTION,
    ):
        if on_error not in ON_ERROR_POLICIES:
            raise ValueError(f"on_error must be one of {ON_ERROR_POLICIES}, got '{on_error}'")
        self.actor = actor
        self.surface_factory = surface_factory
        self.on_error = on_error
        self.projection = projection

    def _acquire(self, tick: Tick) -> Optional[Surface]:
        try:
            return self.surface_factory(tick)
        except Exception as exc:  # noqa: BLE001
            raise SurfaceUnavailable(f"Could not acquire a drawing surface: {exc}") from exc

    def on_tick(self, tick: Tick) -> TickResult:
        set_tick_context(tick.index)
        try:
            t0 = time.perf_counter()
            self.actor.send(tick)
            result: Optional[TickResult] = None
            for command in self.actor.drain():
                t_integrate = time.perf_counter() - t0
                result = self._render(command, tick, t_integrate)
            assert result is not None
            return result
        finally:
            set_tick_context(None)

    def _render(self, command: RenderCommand, tick: Tick, t_integrate: float) -> TickResult:
        t1 = time.perf_counter()
        error: Optional[str] = None
        try:
            render(command.snapshot, self._acquire(tick), self.projection)
        except RenderError as exc:
            if self.on_error == "halt":
                logger.error("Render failed (%s), halting: %s", type(exc).__name__, exc)
                raise
            logger.warning("Render failed (%s), skipping frame: %s", type(exc).__name__, exc)
            error = f"{type(exc).__name__}: {exc}"
        return TickResult(
            tick=command.tick,
            points=len(command.snapshot),
            buffer_bytes=self.actor.store.nbytes,
            t_integrate_s=t_integrate,
            t_render_s=time.perf_counter() - t1,
            ok=error is None,
            error=error,
        )

    def run(self, ticks: Iterable[Tick]) -> List[TickResult]:
        results = [self.on_tick(tick) for tick in ticks]
        logger.info("Run finished after %d ticks, trajectory length=%d", len(results), len(self.actor.store))
        return results

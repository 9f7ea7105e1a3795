import numpy as np
import pytest

from lorenzview.core.constants import STEPS_PER_TICK
from lorenzview.orchestrator.driver import Driver, SimulationActor, Tick, tick_source
from lorenzview.render.errors import RenderIOFailure, SurfaceUnavailable
from lorenzview.render.surface import MatplotlibSurface


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_growth_invariant():
    actor = SimulationActor()
    assert len(actor.store) == 1
    for k in range(1, 6):
        command = actor.handle(Tick(k - 1))
        assert len(actor.store) == 1 + STEPS_PER_TICK * k
        assert len(command.snapshot) == 1 + STEPS_PER_TICK * k
        assert command.tick == k - 1


def test_append_only_invariant():
    actor = SimulationActor()
    previous = actor.store.snapshot().copy()
    for k in range(1, 5):
        snapshot = actor.handle(Tick(k)).snapshot
        assert np.array_equal(snapshot[: len(previous)], previous)
        previous = snapshot.copy()


def test_determinism():
    a = SimulationActor()
    b = SimulationActor()
    for k in range(10):
        a.handle(Tick(k))
        b.handle(Tick(k))
    assert a.store.snapshot().tobytes() == b.store.snapshot().tobytes()


def test_memory_grows_linearly_with_ticks():
    actor = SimulationActor(initial_capacity=16)
    for k in range(1, 60):
        actor.handle(Tick(k))
        assert actor.store.nbytes <= 2 * len(actor.store) * 3 * 8


def test_inbox_processes_messages_in_order():
    actor = SimulationActor()
    for k in range(3):
        actor.send(Tick(k))
    commands = list(actor.drain())
    assert [c.tick for c in commands] == [0, 1, 2]
    assert [len(c.snapshot) for c in commands] == [201, 401, 601]
    assert list(actor.drain()) == []


def test_tick_source_waits_one_period_per_tick():
    fake = FakeClock()
    ticks = list(tick_source(0.1, count=3, clock=fake.clock, sleep=fake.sleep))
    assert [t.index for t in ticks] == [0, 1, 2]
    assert fake.sleeps == pytest.approx([0.1, 0.1, 0.1])


def test_tick_source_never_drops_late_ticks():
    fake = FakeClock()
    source = tick_source(0.1, count=4, clock=fake.clock, sleep=fake.sleep)
    first = next(source)
    fake.now += 0.25  # a slow tick overruns two periods
    rest = list(source)
    assert [first.index] + [t.index for t in rest] == [0, 1, 2, 3]
    assert len(fake.sleeps) == 2  # only the first and the last tick had to wait


def test_driver_renders_every_tick():
    surface = MatplotlibSurface(width=120, height=120, dpi=40)
    driver = Driver(SimulationActor(), lambda _tick: surface)
    results = driver.run(Tick(k) for k in range(3))
    assert [r.points for r in results] == [201, 401, 601]
    assert all(r.ok for r in results)


def test_driver_halts_on_render_error():
    driver = Driver(SimulationActor(), lambda _tick: None, on_error="halt")
    with pytest.raises(SurfaceUnavailable):
        driver.run(Tick(k) for k in range(3))
    # the failing tick still integrated before its render failed
    assert len(driver.actor.store) == 1 + STEPS_PER_TICK


def test_driver_skip_policy_keeps_going():
    def broken(_tick):
        raise RuntimeError("canvas not found")

    driver = Driver(SimulationActor(), broken, on_error="skip")
    results = driver.run(Tick(k) for k in range(3))
    assert [r.ok for r in results] == [False, False, False]
    assert "SurfaceUnavailable" in results[0].error
    assert len(driver.actor.store) == 1 + 3 * STEPS_PER_TICK


def test_driver_surfaces_finalize_failures(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    surface = MatplotlibSurface(width=80, height=80, dpi=40, output=blocker / "frame.png")
    driver = Driver(SimulationActor(), lambda _tick: surface)
    with pytest.raises(RenderIOFailure) as excinfo:
        driver.on_tick(Tick(0))
    assert excinfo.value.stage == "finalize"


def test_driver_rejects_unknown_policy():
    with pytest.raises(ValueError):
        Driver(SimulationActor(), lambda _tick: None, on_error="retry")

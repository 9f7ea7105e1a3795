from __future__ import annotations

from dataclasses import dataclass
from typing import List

from lorenzview.core.constants import LORENZ_BETA, LORENZ_DT, LORENZ_RHO, LORENZ_SIGMA

from .base import ChaoticSystem, State


@dataclass(frozen=True)
class SimulationParameters:
    """Lorenz constants plus the fixed integration step."""

    sigma: float = LORENZ_SIGMA
    rho: float = LORENZ_RHO
    beta: float = LORENZ_BETA
    dt: float = LORENZ_DT


DEFAULT_PARAMS = SimulationParameters()


def lorenz_step(state: State, params: SimulationParameters = DEFAULT_PARAMS) -> State:
    """One explicit Euler step under the Lorenz vector field."""
    x, y, z = state
    return (
        x + params.dt * (params.sigma * (y - x)),
        y + params.dt * (params.rho * x - y - x * z),
        z + params.dt * (x * y - params.beta * z),
    )


def advance(state: State, params: SimulationParameters = DEFAULT_PARAMS, n: int = 1) -> List[State]:
    """Thread ``state`` through n steps, keeping every intermediate result."""
    if n < 0:
        raise ValueError("n must be >= 0")
    states: List[State] = []
    for _ in range(n):
        state = lorenz_step(state, params)
        states.append(state)
    return states


class LorenzSystem(ChaoticSystem):
    """Explicit Euler integration of the Lorenz system."""

    def __init__(self, params: SimulationParameters = DEFAULT_PARAMS):
        super().__init__(params.dt)
        self.params = params

    def derivative(self, state: State) -> State:
        x, y, z = state
        return (
            self.params.sigma * (y - x),
            self.params.rho * x - y - x * z,
            x * y - self.params.beta * z,
        )

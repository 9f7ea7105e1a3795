from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Tuple

State = Tuple[float, float, float]


class ChaoticSystem(ABC):
    """Base class for chaotic systems integrated with a fixed Euler step."""

    def __init__(self, dt: float):
        self.dt = float(dt)

    @abstractmethod
    def derivative(self, state: State) -> State:
        """Return the vector field evaluated at ``state``."""
        ...

    def step(self, state: State) -> State:
        """Advance one step and return the new state."""
        x, y, z = state
        dx, dy, dz = self.derivative(state)
        return x + self.dt * dx, y + self.dt * dy, z + self.dt * dz

    def advance(self, state: State, n: int) -> List[State]:
        """Apply ``step`` n times and return every intermediate state."""
        if n < 0:
            raise ValueError("n must be >= 0")
        states: List[State] = []
        for _ in range(n):
            state = self.step(state)
            states.append(state)
        return states

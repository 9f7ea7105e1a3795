from __future__ import annotations

from typing import Sequence

import numpy as np

from lorenzview.core.chaos.base import State
from lorenzview.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INITIAL_CAPACITY = 1024


class TrajectoryError(Exception):
    """Raised when the trajectory store is used out of order."""


class TrajectoryStore:
    """
    Append-only sequence of visited states.

    Backed by one contiguous ``(capacity, 3)`` float64 buffer whose capacity
    doubles when full, so appends are amortized O(1) and memory stays linear
    in the number of stored states. Nothing is ever evicted.
    """

    def __init__(self, initial_capacity: int = DEFAULT_INITIAL_CAPACITY):
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")
        self._buffer = np.empty((int(initial_capacity), 3), dtype=np.float64)
        self._length = 0

    def __len__(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        return self._buffer.shape[0]

    @property
    def nbytes(self) -> int:
        return self._buffer.nbytes

    def seed(self, initial: State) -> None:
        if self._length:
            raise TrajectoryError("Trajectory already seeded.")
        self._buffer[0] = initial
        self._length = 1

    def append(self, states: Sequence[State]) -> None:
        if not self._length:
            raise TrajectoryError("Trajectory must be seeded before appending.")
        block = np.asarray(states, dtype=np.float64)
        if block.size == 0:
            return
        if block.ndim != 2 or block.shape[1] != 3:
            raise TrajectoryError(f"Expected a sequence of 3D states, got shape {block.shape}")
        needed = self._length + block.shape[0]
        if needed > self.capacity:
            self._grow(needed)
        self._buffer[self._length:needed] = block
        self._length = needed

    def snapshot(self) -> np.ndarray:
        """Read-only view of all states in insertion order."""
        view = self._buffer[: self._length]
        view.flags.writeable = False
        return view

    def last(self) -> State:
        if not self._length:
            raise TrajectoryError("Trajectory is empty.")
        x, y, z = self._buffer[self._length - 1]
        return float(x), float(y), float(z)

    def _grow(self, needed: int) -> None:
        capacity = self.capacity
        while capacity < needed:
            capacity *= 2
        logger.debug("Growing trajectory buffer %d -> %d states", self.capacity, capacity)
        buffer = np.empty((capacity, 3), dtype=np.float64)
        buffer[: self._length] = self._buffer[: self._length]
        self._buffer = buffer

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from lorenzview.core.constants import GRID_STEP, MAX_BOLD_LINES, MAX_LIGHT_LINES

from .errors import PreconditionViolation


@dataclass(frozen=True)
class AxisBounds:
    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum


@dataclass(frozen=True)
class SceneBounds:
    x: AxisBounds
    y: AxisBounds
    z: AxisBounds

    def axes(self) -> Tuple[AxisBounds, AxisBounds, AxisBounds]:
        return self.x, self.y, self.z


@dataclass(frozen=True)
class AxisGrid:
    bold: np.ndarray
    light: np.ndarray


def compute_bounds(snapshot: np.ndarray) -> SceneBounds:
    """
    Per-axis min/max over the whole snapshot.

    Scans every point on every call; nothing is carried over between frames.
    """
    points = np.asarray(snapshot, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise PreconditionViolation(f"Expected an (n, 3) trajectory, got shape {points.shape}")
    if points.shape[0] == 0:
        raise PreconditionViolation("Cannot compute bounds of an empty trajectory.")
    if not np.isfinite(points).all():
        raise PreconditionViolation("Trajectory contains non-finite values.")
    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    return SceneBounds(
        x=AxisBounds(float(mins[0]), float(maxs[0])),
        y=AxisBounds(float(mins[1]), float(maxs[1])),
        z=AxisBounds(float(mins[2]), float(maxs[2])),
    )


def axis_grid(
    bounds: AxisBounds,
    step: float = GRID_STEP,
    max_bold_lines: int = MAX_BOLD_LINES,
    max_light_lines: int = MAX_LIGHT_LINES,
) -> AxisGrid:
    """Bold ticks on multiples of ``step`` within the bounds, with light ticks in between."""
    empty = np.empty(0, dtype=np.float64)
    if bounds.span <= 0:
        return AxisGrid(bold=np.array([bounds.minimum]), light=empty)

    first = math.ceil(bounds.minimum / step)
    last = math.floor(bounds.maximum / step)
    count = last - first + 1
    if count <= 0:
        # no lattice point falls inside a very narrow range
        return AxisGrid(bold=np.array([bounds.minimum, bounds.maximum]), light=empty)

    stride = max(1, math.ceil(count / max_bold_lines))
    bold = np.arange(first, last + 1, stride, dtype=np.float64) * step

    n_light = min(max_light_lines, stride - 1)
    if n_light <= 0 or bold.size < 2:
        return AxisGrid(bold=bold, light=empty)
    fractions = np.arange(1, n_light + 1, dtype=np.float64) / (n_light + 1)
    gaps = np.diff(bold)
    light = (bold[:-1, None] + gaps[:, None] * fractions[None, :]).ravel()
    return AxisGrid(bold=bold, light=light)

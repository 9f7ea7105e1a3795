from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lorenzview.core.constants import PROJECTION_PITCH, PROJECTION_SCALE, PROJECTION_YAW

from .bounds import SceneBounds


@dataclass(frozen=True)
class Projection:
    """
    Fixed camera for the 3D chart.

    ``yaw`` rotates around the vertical (y) axis, ``pitch`` around the
    horizontal (x) axis, both in radians. ``scale`` is the fraction of the
    device that the unit cube may occupy.
    """

    yaw: float = PROJECTION_YAW
    pitch: float = PROJECTION_PITCH
    scale: float = PROJECTION_SCALE

    def matrix(self) -> np.ndarray:
        """3x3 rotation (pitch after yaw) applied to normalized coordinates."""
        cy, sy = math.cos(self.yaw), math.sin(self.yaw)
        cp, sp = math.cos(self.pitch), math.sin(self.pitch)
        yaw = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
        pitch = np.array([[1.0, 0.0, 0.0], [0.0, cp, -sp], [0.0, sp, cp]])
        return pitch @ yaw

    def project(self, points: np.ndarray, bounds: SceneBounds, width: int, height: int) -> np.ndarray:
        """Map ``(n, 3)`` data coordinates to ``(n, 2)`` device pixels (y grows downward)."""
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        normalized = np.empty_like(points)
        for axis, axis_bounds in enumerate(bounds.axes()):
            span = axis_bounds.span
            if span > 0:
                normalized[:, axis] = (points[:, axis] - axis_bounds.minimum) / span - 0.5
            else:
                normalized[:, axis] = 0.0

        rotated = normalized @ self.matrix().T
        # a rotated unit cube never reaches past sqrt(3)/2 from its centre
        extent = self.scale * min(width, height) / math.sqrt(3)
        device = np.empty((points.shape[0], 2), dtype=np.float64)
        device[:, 0] = width / 2.0 + rotated[:, 0] * extent
        device[:, 1] = height / 2.0 - rotated[:, 1] * extent
        return device


DEFAULT_PROJECTION = Projection()

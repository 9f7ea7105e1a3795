from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from lorenzview.core.constants import SERIES_LABEL

from .bounds import SceneBounds, axis_grid, compute_bounds
from .projection import DEFAULT_PROJECTION, Projection


@dataclass(frozen=True)
class Scene:
    """Everything needed to draw one frame, already in device coordinates."""

    bounds: SceneBounds
    projection: Projection
    width: int
    height: int
    bold_grid: np.ndarray  # (m, 2, 2)
    light_grid: np.ndarray  # (k, 2, 2)
    polyline: np.ndarray  # (n, 2)
    tick_anchors: np.ndarray  # (t, 2), one per bold tick
    tick_texts: Tuple[str, ...]
    label: str = SERIES_LABEL

    @property
    def segments(self) -> np.ndarray:
        """(n - 1, 2, 2) array; segment i joins point i to point i + 1."""
        return np.stack([self.polyline[:-1], self.polyline[1:]], axis=1)


def _grid_segments(ticks: Sequence[np.ndarray], bounds: SceneBounds) -> np.ndarray:
    # Lines sit on the three back panels (the minimum of the third axis).
    axes = bounds.axes()
    segments = []
    for a in range(3):
        values = ticks[a]
        if values.size == 0:
            continue
        for b in range(3):
            if a == b:
                continue
            c = 3 - a - b
            seg = np.empty((values.size, 2, 3), dtype=np.float64)
            seg[:, :, a] = values[:, None]
            seg[:, 0, b] = axes[b].minimum
            seg[:, 1, b] = axes[b].maximum
            seg[:, :, c] = axes[c].minimum
            segments.append(seg)
    if not segments:
        return np.empty((0, 2, 3), dtype=np.float64)
    return np.concatenate(segments)


# Value labels of axis i run along the edge at the maximum of axis _LABEL_EDGES[i].
_LABEL_EDGES = (2, 2, 0)


def _format_tick(value: float) -> str:
    return f"{round(value, 6) + 0.0:g}"


def _tick_labels(ticks: Sequence[np.ndarray], bounds: SceneBounds) -> Tuple[np.ndarray, Tuple[str, ...]]:
    axes = bounds.axes()
    anchors = []
    texts = []
    for a, far_axis in enumerate(_LABEL_EDGES):
        values = ticks[a]
        for value in values:
            point = [axis_bounds.minimum for axis_bounds in axes]
            point[a] = value
            point[far_axis] = axes[far_axis].maximum
            anchors.append(point)
            texts.append(_format_tick(float(value)))
    if not anchors:
        return np.empty((0, 3), dtype=np.float64), ()
    return np.array(anchors, dtype=np.float64), tuple(texts)


def _project_segments(segments: np.ndarray, projection: Projection, bounds: SceneBounds, width: int, height: int) -> np.ndarray:
    flat = projection.project(segments.reshape(-1, 3), bounds, width, height)
    return flat.reshape(-1, 2, 2)


def build_scene(
    snapshot: np.ndarray,
    width: int,
    height: int,
    projection: Projection = DEFAULT_PROJECTION,
) -> Scene:
    bounds = compute_bounds(snapshot)
    grids = [axis_grid(axis_bounds) for axis_bounds in bounds.axes()]

    bold = _grid_segments([g.bold for g in grids], bounds)
    light = _grid_segments([g.light for g in grids], bounds)
    anchors, texts = _tick_labels([g.bold for g in grids], bounds)

    return Scene(
        bounds=bounds,
        projection=projection,
        width=width,
        height=height,
        bold_grid=_project_segments(bold, projection, bounds, width, height),
        light_grid=_project_segments(light, projection, bounds, width, height),
        polyline=projection.project(snapshot, bounds, width, height),
        tick_anchors=projection.project(anchors, bounds, width, height),
        tick_texts=texts,
    )

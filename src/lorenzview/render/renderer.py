from __future__ import annotations

from typing import Optional

import numpy as np

from lorenzview.core.constants import (
    BACKGROUND_RGB,
    BOLD_GRID_ALPHA,
    FOREGROUND_RGB,
    LIGHT_GRID_ALPHA,
)
from lorenzview.utils.logging import get_logger

from .errors import RenderIOFailure, SurfaceUnavailable
from .projection import DEFAULT_PROJECTION, Projection
from .scene import Scene, build_scene
from .surface import Surface

logger = get_logger(__name__)


def render(
    snapshot: np.ndarray,
    surface: Optional[Surface],
    projection: Projection = DEFAULT_PROJECTION,
) -> Scene:
    """
    Draw the whole trajectory onto ``surface`` and flush it.

    Raises SurfaceUnavailable, PreconditionViolation or RenderIOFailure; a
    frame only counts as rendered when this returns.
    """
    if surface is None or not surface.available:
        raise SurfaceUnavailable("Drawing surface is not available.")

    scene = build_scene(snapshot, surface.width, surface.height, projection)
    logger.debug(
        "Scene points=%d bounds x=[%.3f, %.3f] y=[%.3f, %.3f] z=[%.3f, %.3f]",
        len(scene.polyline),
        scene.bounds.x.minimum,
        scene.bounds.x.maximum,
        scene.bounds.y.minimum,
        scene.bounds.y.maximum,
        scene.bounds.z.minimum,
        scene.bounds.z.maximum,
    )

    try:
        surface.fill_background(BACKGROUND_RGB)
        surface.draw_axis_grid(scene.light_grid, FOREGROUND_RGB, LIGHT_GRID_ALPHA)
        surface.draw_axis_grid(scene.bold_grid, FOREGROUND_RGB, BOLD_GRID_ALPHA)
        surface.draw_axis_labels(scene.tick_anchors, scene.tick_texts, FOREGROUND_RGB)
        surface.draw_line_series(scene.polyline, FOREGROUND_RGB, scene.label)
        surface.draw_series_labels(FOREGROUND_RGB)
    except Exception as exc:  # noqa: BLE001
        raise RenderIOFailure(f"Drawing failed: {exc}", stage="draw") from exc

    try:
        surface.finalize()
    except Exception as exc:  # noqa: BLE001
        raise RenderIOFailure(f"Finalizing the surface failed: {exc}", stage="finalize") from exc
    return scene

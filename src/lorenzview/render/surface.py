from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence, Tuple

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure

from lorenzview.core.constants import CANVAS_DPI, CANVAS_HEIGHT, CANVAS_WIDTH
from lorenzview.utils.logging import get_logger

logger = get_logger(__name__)

RGB = Tuple[int, int, int]


def _rgba(rgb: RGB, alpha: float = 1.0) -> Tuple[float, float, float, float]:
    r, g, b = rgb
    return r / 255.0, g / 255.0, b / 255.0, float(alpha)


class Surface(ABC):
    """Drawing target for one frame, addressed in device pixels."""

    width: int
    height: int

    @property
    @abstractmethod
    def available(self) -> bool:
        ...

    @abstractmethod
    def fill_background(self, rgb: RGB) -> None:
        ...

    @abstractmethod
    def draw_axis_grid(self, segments: np.ndarray, rgb: RGB, alpha: float) -> None:
        ...

    @abstractmethod
    def draw_line_series(self, points: np.ndarray, rgb: RGB, label: str) -> None:
        ...

    @abstractmethod
    def draw_axis_labels(self, anchors: np.ndarray, texts: Sequence[str], rgb: RGB) -> None:
        ...

    @abstractmethod
    def draw_series_labels(self, border_rgb: RGB) -> None:
        ...

    @abstractmethod
    def finalize(self) -> None:
        """Flush the frame; failures must propagate."""
        ...


class MatplotlibSurface(Surface):
    """
    Surface over a matplotlib figure.

    Without ``figure`` an offscreen Agg canvas is created; pass a pyplot
    figure to draw into an interactive window instead. When ``output`` is set,
    ``finalize`` also writes the frame as PNG.
    """

    def __init__(
        self,
        width: int = CANVAS_WIDTH,
        height: int = CANVAS_HEIGHT,
        dpi: int = CANVAS_DPI,
        output: Optional[Path] = None,
        figure: Optional[Figure] = None,
    ):
        self.width = int(width)
        self.height = int(height)
        self.dpi = int(dpi)
        self.output = output
        self._closed = False
        self._background: RGB = (0, 0, 0)
        if figure is None:
            figure = Figure(figsize=(self.width / self.dpi, self.height / self.dpi), dpi=self.dpi)
            FigureCanvasAgg(figure)
        else:
            figure.canvas.mpl_connect("close_event", self._on_close)
        self.figure = figure
        self.ax = figure.add_axes([0.0, 0.0, 1.0, 1.0])

    @property
    def available(self) -> bool:
        return not self._closed

    def close(self) -> None:
        self._closed = True

    def _on_close(self, _event) -> None:
        logger.debug("Surface window closed")
        self._closed = True

    def fill_background(self, rgb: RGB) -> None:
        self._background = rgb
        self.ax.cla()
        self.ax.set_axis_off()
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(self.height, 0)
        self.figure.set_facecolor(_rgba(rgb))
        self.ax.set_facecolor(_rgba(rgb))

    def draw_axis_grid(self, segments: np.ndarray, rgb: RGB, alpha: float) -> None:
        if len(segments) == 0:
            return
        self.ax.add_collection(LineCollection(segments, colors=[_rgba(rgb, alpha)], linewidths=1.0))

    def draw_line_series(self, points: np.ndarray, rgb: RGB, label: str) -> None:
        self.ax.plot(points[:, 0], points[:, 1], color=_rgba(rgb), linewidth=1.0, label=label)

    def draw_axis_labels(self, anchors: np.ndarray, texts: Sequence[str], rgb: RGB) -> None:
        for (x, y), text in zip(anchors, texts):
            self.ax.text(x, y, text, color=_rgba(rgb), fontsize=8, ha="center", va="top")

    def draw_series_labels(self, border_rgb: RGB) -> None:
        legend = self.ax.legend(loc="upper left", facecolor=_rgba(self._background), labelcolor=_rgba(border_rgb))
        legend.get_frame().set_edgecolor(_rgba(border_rgb))

    def finalize(self) -> None:
        self.figure.canvas.draw()
        if self.output is not None:
            self.output.parent.mkdir(parents=True, exist_ok=True)
            self.figure.savefig(self.output, dpi=self.dpi, facecolor=self.figure.get_facecolor())
            logger.debug("Frame written to %s", self.output)

    def to_rgba(self) -> np.ndarray:
        """Copy of the last drawn frame as an (height, width, 4) uint8 array."""
        return np.array(self.figure.canvas.buffer_rgba())

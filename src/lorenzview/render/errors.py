from __future__ import annotations


class RenderError(Exception):
    """Base class for failures that abort the current frame."""


class PreconditionViolation(RenderError):
    """The trajectory snapshot cannot be rendered (empty, mis-shaped or non-finite)."""


class SurfaceUnavailable(RenderError):
    """No drawing surface, or the surface has become invalid."""


class RenderIOFailure(RenderError):
    """Drawing onto the surface or finalizing it failed."""

    def __init__(self, message: str, stage: str = "draw"):
        super().__init__(message)
        self.stage = stage

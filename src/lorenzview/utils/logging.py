from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Optional

# Map string levels to logging constants
_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Active command and tick, inherited by everything logged inside a run
_current_command: ContextVar[str] = ContextVar("lorenzview_current_command", default="cli")
_current_tick: ContextVar[str] = ContextVar("lorenzview_current_tick", default="-")


class _RunContextFilter(logging.Filter):
    """Ensure every log record carries command and tick labels for prefix formatting."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.command = getattr(record, "command", None) or _current_command.get()
        record.tick = getattr(record, "tick", None) or _current_tick.get()
        return True


def setup_logging(level: str = "WARNING") -> None:
    """
    Configure root logging once.

    Uses stderr and prefixes each line with the command name and tick index.
    """
    if isinstance(level, str):
        numeric_level = _LEVELS.get(level.lower(), logging.WARNING)
    else:
        numeric_level = int(level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[%(command)s tick=%(tick)s] %(levelname)s: %(message)s"))
        handler.addFilter(_RunContextFilter())
        root.addHandler(handler)
    root.setLevel(numeric_level)
    # matplotlib is chatty at DEBUG (font manager, backend selection)
    logging.getLogger("matplotlib").setLevel(max(numeric_level, logging.INFO))
    logging.captureWarnings(True)


def set_command_context(command: str) -> None:
    """Tag subsequent log records with the active command name."""
    _current_command.set(command)


def set_tick_context(tick: int | None) -> None:
    """Tag subsequent log records with the tick being processed."""
    _current_tick.set("-" if tick is None else str(tick))


def resolve_log_level(verbose: bool, debug: bool) -> str:
    """Derive the configured level name from CLI flags."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return "WARNING"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Convenience wrapper to keep imports centralized."""
    return logging.getLogger(name if name is not None else __name__)

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from lorenzview.core.constants import (
    CANVAS_DPI,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    ON_ERROR_POLICIES,
    TICK_PERIOD_MS,
)

DEFAULT_TICKS = 50


# -------------------------
# Config structures
# -------------------------


@dataclass(frozen=True)
class RunSettings:
    ticks: int = DEFAULT_TICKS
    tick_period_ms: int = TICK_PERIOD_MS
    on_error: str = "halt"


@dataclass(frozen=True)
class CanvasSettings:
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    dpi: int = CANVAS_DPI


@dataclass(frozen=True)
class OutputSettings:
    out: Optional[Path] = None
    frames_dir: Optional[Path] = None
    summary_json: Optional[Path] = None


@dataclass(frozen=True)
class RunConfig:
    run: RunSettings = field(default_factory=RunSettings)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    output: OutputSettings = field(default_factory=OutputSettings)


DEFAULT_CONFIG = RunConfig()


# -------------------------
# Config parsing/validation
# -------------------------


class ConfigError(Exception):
    """Raised when the run config is invalid."""


def _optional(mapping: Dict[str, Any], key: str, expected_type: Tuple[type, ...], default: Any):
    if key not in mapping or mapping[key] is None:
        return default
    val = mapping[key]
    # bool is an int subclass; reject it for numeric keys
    if isinstance(val, bool) and bool not in expected_type:
        raise ConfigError(f"Key '{key}' must be of type {expected_type}, got {type(val)}")
    if not isinstance(val, expected_type):
        raise ConfigError(f"Key '{key}' must be of type {expected_type}, got {type(val)}")
    return val


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    return _optional(data, key, (dict,), {})


def _path(mapping: Dict[str, Any], key: str) -> Optional[Path]:
    val = _optional(mapping, key, (str,), None)
    return Path(val) if val is not None else None


def parse_config(path: Path) -> RunConfig:
    try:
        data = yaml.safe_load(path.read_text())
    except Exception as exc:  # noqa: BLE001
        raise ConfigError(f"Failed to read YAML: {exc}") from exc

    if data is None:
        return DEFAULT_CONFIG
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML must be a mapping.")

    unknown = set(data) - {"run", "canvas", "output"}
    if unknown:
        raise ConfigError(f"Unknown top-level keys: {sorted(unknown)}")

    run = _section(data, "run")
    canvas = _section(data, "canvas")
    output = _section(data, "output")

    run_cfg = RunSettings(
        ticks=int(_optional(run, "ticks", (int,), DEFAULT_TICKS)),
        tick_period_ms=int(_optional(run, "tick_period_ms", (int,), TICK_PERIOD_MS)),
        on_error=_optional(run, "on_error", (str,), "halt"),
    )
    if run_cfg.ticks < 0:
        raise ConfigError("run.ticks must be >= 0")
    if run_cfg.tick_period_ms < 0:
        raise ConfigError("run.tick_period_ms must be >= 0")
    if run_cfg.on_error not in ON_ERROR_POLICIES:
        raise ConfigError(f"run.on_error must be one of {ON_ERROR_POLICIES}")

    canvas_cfg = CanvasSettings(
        width=int(_optional(canvas, "width", (int,), CANVAS_WIDTH)),
        height=int(_optional(canvas, "height", (int,), CANVAS_HEIGHT)),
        dpi=int(_optional(canvas, "dpi", (int,), CANVAS_DPI)),
    )
    if min(canvas_cfg.width, canvas_cfg.height, canvas_cfg.dpi) <= 0:
        raise ConfigError("canvas width, height and dpi must be > 0")

    output_cfg = OutputSettings(
        out=_path(output, "out"),
        frames_dir=_path(output, "frames_dir"),
        summary_json=_path(output, "summary_json"),
    )
    return RunConfig(run=run_cfg, canvas=canvas_cfg, output=output_cfg)

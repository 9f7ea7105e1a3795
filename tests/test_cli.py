import csv
import json
from pathlib import Path

import matplotlib.pyplot as plt
import pytest
import yaml
from matplotlib.backend_bases import CloseEvent, TimerBase
from typer.testing import CliRunner

from lorenzview.cli.app import app
from lorenzview.render.surface import MatplotlibSurface


def test_selftest():
    runner = CliRunner()
    result = runner.invoke(app, ["selftest"])
    assert result.exit_code == 0, result.output
    assert "Selftest passed" in result.output


def test_run_writes_final_frame_and_summary(tmp_path):
    runner = CliRunner()
    out = Path(tmp_path) / "final.png"
    summary = Path(tmp_path) / "summary.json"
    result = runner.invoke(
        app,
        [
            "run",
            "--ticks",
            "3",
            "--period-ms",
            "0",
            "--width",
            "160",
            "--height",
            "160",
            "--dpi",
            "40",
            "--out",
            str(out),
            "--summary-json",
            str(summary),
        ],
    )
    assert result.exit_code == 0, result.output
    assert out.exists()
    assert "[done] ticks=3 points=601 failed=0" in result.output

    data = json.loads(summary.read_text())
    assert data["points"] == 601
    assert data["rendered"] == 3
    assert len(data["bounds"]["min"]) == 3


def test_run_frames_dir_from_config(tmp_path):
    frames = Path(tmp_path) / "frames"
    cfg_path = Path(tmp_path) / "run.yaml"
    cfg_path.write_text(
        yaml.safe_dump(
            {
                "run": {"ticks": 2, "tick_period_ms": 0},
                "canvas": {"width": 100, "height": 100, "dpi": 25},
                "output": {"frames_dir": str(frames), "out": str(Path(tmp_path) / "last.png")},
            }
        ),
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(app, ["run", "--config", str(cfg_path)])
    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in frames.iterdir()) == ["frame_00000.png", "frame_00001.png"]
    assert (Path(tmp_path) / "last.png").read_bytes() == (frames / "frame_00001.png").read_bytes()


def test_run_halts_on_unwritable_output(tmp_path):
    blocker = Path(tmp_path) / "blocker"
    blocker.write_text("x")
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["run", "--ticks", "1", "--period-ms", "0", "--width", "80", "--height", "80", "--dpi", "40", "--out", str(blocker / "f.png")],
    )
    assert result.exit_code == 1
    assert "RenderIOFailure" in result.output


def test_run_skip_policy_reports_failures(tmp_path):
    blocker = Path(tmp_path) / "blocker"
    blocker.write_text("x")
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "run",
            "--ticks",
            "2",
            "--period-ms",
            "0",
            "--width",
            "80",
            "--height",
            "80",
            "--dpi",
            "40",
            "--frames-dir",
            str(blocker),
            "--on-error",
            "skip",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "[skip] tick=0" in result.output
    assert "failed=2" in result.output


def test_run_rejects_bad_options(tmp_path):
    runner = CliRunner()
    result = runner.invoke(app, ["run", "--ticks", "1", "--on-error", "retry"])
    assert result.exit_code == 1

    cfg_path = Path(tmp_path) / "bad.yaml"
    cfg_path.write_text("run: {ticks: -3}\n", encoding="utf-8")
    result = runner.invoke(app, ["run", "--config", str(cfg_path)])
    assert result.exit_code == 1
    assert "Config error" in result.output


def test_benchmark_csv_and_json(tmp_path):
    runner = CliRunner()
    csv_out = Path(tmp_path) / "bench.csv"
    json_out = Path(tmp_path) / "bench.json"
    result = runner.invoke(
        app,
        [
            "benchmark",
            "--ticks",
            "4",
            "--out",
            str(csv_out),
            "--out-json",
            str(json_out),
            "--width",
            "100",
            "--height",
            "100",
        ],
    )
    assert result.exit_code == 0, result.output

    with csv_out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [int(r["points"]) for r in rows] == [201, 401, 601, 801]
    assert all(r["ok"] == "True" for r in rows)

    data = json.loads(json_out.read_text())
    assert len(data) == 4
    assert data[-1]["buffer_bytes"] <= 2 * 801 * 3 * 8


def test_benchmark_without_render(tmp_path):
    runner = CliRunner()
    csv_out = Path(tmp_path) / "bench.csv"
    result = runner.invoke(app, ["benchmark", "--ticks", "3", "--no-render", "--out", str(csv_out)])
    assert result.exit_code == 0, result.output
    lines = csv_out.read_text().strip().splitlines()
    assert len(lines) == 1 + 3


def test_run_does_not_copy_stale_frame_when_last_tick_fails(tmp_path, monkeypatch):
    frames = Path(tmp_path) / "frames"
    frames.mkdir()
    stale = frames / "frame_00001.png"
    stale.write_bytes(b"stale")
    out = Path(tmp_path) / "final.png"

    original = MatplotlibSurface.finalize

    def finalize(self):
        if self.output is not None and self.output.name == "frame_00001.png":
            raise OSError("disk full")
        original(self)

    monkeypatch.setattr(MatplotlibSurface, "finalize", finalize)
    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "run",
            "--ticks",
            "2",
            "--period-ms",
            "0",
            "--width",
            "80",
            "--height",
            "80",
            "--dpi",
            "40",
            "--frames-dir",
            str(frames),
            "--out",
            str(out),
            "--on-error",
            "skip",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "failed=1" in result.output
    assert "not written" in result.output
    assert not out.exists()
    assert stale.read_bytes() == b"stale"


@pytest.fixture
def headless_show(monkeypatch):
    """Replace the GUI event loop: plt.show fires started timers until they stop."""
    plt.switch_backend("Agg")
    timers = []
    after_fire = []

    def start(self, interval=None):
        self.running = True
        timers.append(self)

    def stop(self):
        self.running = False

    def show(*args, **kwargs):
        for timer in timers:
            for _ in range(100):
                if not timer.running:
                    break
                for func, f_args, f_kwargs in list(timer.callbacks):
                    func(*f_args, **f_kwargs)
                for hook in after_fire:
                    hook()

    monkeypatch.setattr(TimerBase, "start", start)
    monkeypatch.setattr(TimerBase, "stop", stop)
    monkeypatch.setattr(plt, "show", show)
    yield after_fire
    plt.close("all")


SHOW_ARGS = ["show", "--period-ms", "10", "--width", "100", "--height", "100", "--dpi", "50"]


def test_show_runs_requested_ticks(headless_show):
    runner = CliRunner()
    result = runner.invoke(app, SHOW_ARGS + ["--ticks", "3"])
    assert result.exit_code == 0, result.output
    assert "[done] points=601" in result.output


def test_show_stops_when_window_is_closed(headless_show):
    def close_window():
        canvas = plt.gcf().canvas
        canvas.callbacks.process("close_event", CloseEvent("close_event", canvas))

    headless_show.append(close_window)
    runner = CliRunner()
    result = runner.invoke(app, SHOW_ARGS + ["--ticks", "5"])
    assert result.exit_code == 0, result.output
    assert "[done] points=201" in result.output


def test_show_exits_nonzero_on_render_failure(headless_show, monkeypatch):
    def finalize(self):
        raise OSError("display lost")

    monkeypatch.setattr(MatplotlibSurface, "finalize", finalize)
    runner = CliRunner()
    result = runner.invoke(app, SHOW_ARGS + ["--ticks", "3"])
    assert result.exit_code == 1
    assert "RenderIOFailure" in result.output
    assert "display lost" in result.output

from __future__ import annotations

from pathlib import Path

import pytest

from wifi_cli import wd_compare
from wifidense.launcher import AnalyticEngine
from wifidense.scenarios.presets import get_preset


@pytest.fixture
def tmp_results_dir(tmp_path: Path) -> Path:
    return tmp_path / "results"


def test_main_uses_preset_quick(tmp_results_dir: Path):
    captured_kwargs = {}

    def fake_runner(**kwargs):
        nonlocal captured_kwargs
        captured_kwargs = kwargs
        return {"csv_path": str(tmp_results_dir / "compare.csv"), "figures": []}

    summary = wd_compare.main(
        ["--preset", "quick", "--quiet", "--output-dir", str(tmp_results_dir)], runner=fake_runner
    )
    preset = get_preset("quick")
    assert summary["csv_path"].endswith("compare.csv")
    assert tuple(captured_kwargs["station_counts"]) == tuple(preset.station_counts)
    assert tuple(captured_kwargs["standards"]) == tuple(preset.standards)
    assert captured_kwargs["base_params"].sim_duration_s == preset.sim_duration_s
    assert captured_kwargs["engine_factory"] is AnalyticEngine
    assert captured_kwargs["progress_callback"] is None


def test_overrides_and_tcp(tmp_results_dir: Path):
    captured_kwargs = {}

    def fake_runner(**kwargs):
        captured_kwargs.update(kwargs)
        return {}

    wd_compare.main(
        [
            "--station-counts",
            "3",
            "7",
            "--standards",
            "ax",
            "--duration",
            "6",
            "--tcp",
            "--no-plot",
            "--quiet",
        ],
        runner=fake_runner,
    )
    assert captured_kwargs["station_counts"] == (3, 7)
    assert captured_kwargs["standards"] == ("ax",)
    assert captured_kwargs["plot"] is False
    assert captured_kwargs["base_params"].sim_duration_s == 6.0
    assert captured_kwargs["base_params"].transport.value == "tcp"


def test_list_presets_short_circuit(capsys):
    summary = wd_compare.main(["--list-presets"], runner=lambda **_: {})
    captured = capsys.readouterr()
    assert "Préréglages disponibles" in captured.out
    assert summary == {}

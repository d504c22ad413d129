import json
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pandas as pd

from wifidense.launcher import ScenarioParameters
from wifidense.scenarios.compare import run_compare


def test_run_compare_writes_csv_without_plots(tmp_path: Path):
    calls = []
    summary = run_compare(
        standards=("ac", "ax"),
        station_counts=(5, 31),
        channel_widths=(80,),
        base_params=ScenarioParameters(app_rate="2Mbps"),
        sim_duration_s=5.0,
        output_dir=tmp_path,
        plot=False,
        progress_callback=lambda current, total, ctx: calls.append((current, total, ctx["standard"])),
    )
    assert summary["runs"] == 4
    assert summary["figures"] == []
    assert [call[0] for call in calls] == [1, 2, 3, 4]
    assert {call[2] for call in calls} == {"ac", "ax"}

    df = pd.read_csv(tmp_path / "compare.csv")
    assert len(df) == 4
    for column in (
        "standard",
        "num_stations",
        "channel_width_mhz",
        "packet_size",
        "rts_cts",
        "aggregate_throughput_mbps",
        "jain_fairness_index",
    ):
        assert column in df.columns
    dense = df[df["num_stations"] == 31]
    assert dense["rts_cts"].all()
    assert (dense["packet_size"] == 512).all()

    saved = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
    assert saved["base_parameters"]["simTime"] == 5.0


def test_run_compare_plots_metrics(tmp_path: Path):
    summary = run_compare(
        standards=("ax",),
        station_counts=(2, 4),
        channel_widths=(20, 80),
        sim_duration_s=4.0,
        output_dir=tmp_path,
        plot=True,
    )
    assert len(summary["figures"]) == 2
    for figure in summary["figures"]:
        assert Path(figure).exists()
    assert len(summary["dataframe"]) == 4

"""Campagne de comparaison ac/ax en fonction de la densité de stations."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import pandas as pd

from wifidense.launcher import AnalyticEngine, ScenarioParameters, WifiStandard, run_scenario
from wifidense.launcher.engine import SimulationEngine
from wifidense.launcher.pipeline import ScenarioOutcome

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_RESULTS_DIR = ROOT_DIR / "results" / "compare"

COLORS = {"ac": "#1f77b4", "ax": "#d62728"}
MARKERS = ["o", "s", "^", "D"]

EngineFactory = Callable[[], SimulationEngine]
ProgressCallback = Callable[[int, int, Dict[str, Any]], None]

logger = logging.getLogger(__name__)


def outcome_row(outcome: ScenarioOutcome) -> Dict[str, object]:
    """Aplatit un run (paramètres, décisions du plan, métriques) en une ligne."""

    params = outcome.params
    plan = outcome.plan
    row: Dict[str, object] = {
        "standard": params.standard.value,
        "num_stations": params.station_count,
        "channel_width_mhz": params.channel_width_mhz,
        "transport": params.transport.value,
        "app_rate": params.app_rate,
        "sim_duration_s": params.sim_duration_s,
        "packet_size": plan.packet_size,
        "rts_cts": plan.rts_cts_enabled,
        "rate_control": plan.rate_control.value,
    }
    row.update(outcome.report.to_row())
    return row


def run_compare(
    *,
    standards: Sequence[str],
    station_counts: Sequence[int],
    channel_widths: Sequence[int],
    base_params: Optional[ScenarioParameters] = None,
    sim_duration_s: Optional[float] = None,
    engine_factory: EngineFactory = AnalyticEngine,
    output_dir: Optional[Path] = None,
    plot: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
) -> Dict[str, Any]:
    """Exécute toutes les combinaisons et exporte ``compare.csv``.

    Chaque run utilise un moteur neuf fourni par ``engine_factory`` afin que
    les paramètres globaux du moteur ne soient appliqués qu'une seule fois.
    """

    base = base_params or ScenarioParameters()
    if sim_duration_s is not None:
        base = dataclasses.replace(base, sim_duration_s=float(sim_duration_s))
    combos = [
        (WifiStandard.parse(standard), int(count), int(width))
        for standard in standards
        for width in channel_widths
        for count in station_counts
    ]
    rows: List[Dict[str, object]] = []
    total = len(combos)
    for index, (standard, count, width) in enumerate(combos, start=1):
        params = dataclasses.replace(
            base, standard=standard, station_count=count, channel_width_mhz=width
        )
        if progress_callback is not None:
            progress_callback(
                index,
                total,
                {"standard": standard.value, "num_stations": count, "channel_width_mhz": width},
            )
        outcome = run_scenario(params, engine_factory(), out=logger.debug)
        rows.append(outcome_row(outcome))

    df = pd.DataFrame(rows)
    out_dir = Path(output_dir) if output_dir is not None else DEFAULT_RESULTS_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    csv_path = out_dir / "compare.csv"
    df.to_csv(csv_path, index=False)

    figures: List[str] = []
    if plot and not df.empty:
        for metric, label in (
            ("aggregate_throughput_mbps", "Aggregate throughput (Mbps)"),
            ("jain_fairness_index", "Jain index"),
        ):
            figures.append(str(plot_metric_vs_stations(df, metric, label, out_dir)))

    summary = {
        "runs": total,
        "csv_path": str(csv_path),
        "figures": figures,
        "base_parameters": base.as_flags(),
    }
    (out_dir / "summary.json").write_text(
        json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    summary["dataframe"] = df
    return summary


def plot_metric_vs_stations(df: pd.DataFrame, metric: str, ylabel: str, out_dir: Path) -> Path:
    """Trace ``metric`` en fonction du nombre de STAs, une courbe par (standard, largeur)."""

    fig, ax = plt.subplots(figsize=(6.0, 4.5))
    widths = sorted(df["channel_width_mhz"].unique())
    for (standard, width), group in df.groupby(["standard", "channel_width_mhz"]):
        ordered = group.sort_values("num_stations")
        marker = MARKERS[widths.index(width) % len(MARKERS)]
        ax.plot(
            ordered["num_stations"],
            ordered[metric],
            marker=marker,
            color=COLORS.get(str(standard), "#7f7f7f"),
            label=f"802.11{standard} – {width} MHz",
        )
    ax.set_xlabel("Stations")
    ax.set_ylabel(ylabel)
    if metric == "jain_fairness_index":
        ax.set_ylim(0.0, 1.05)
    ax.grid(True, linestyle="--", alpha=0.4)
    ax.legend(loc="best")
    fig.tight_layout()

    output_path = out_dir / f"{metric}_vs_stations.png"
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path

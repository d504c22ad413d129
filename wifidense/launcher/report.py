"""Console and file renderings of a scenario run."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

import pandas as pd

from .engine import FlowRecord
from .metrics import ScenarioReport
from .parameters import ScenarioParameters, TransportProtocol


SUMMARY_TITLE = "=== Wi-Fi Dense Scenario Summary ==="
FLOW_COLUMNS = [
    "flow_id",
    "tx_packets",
    "rx_packets",
    "rx_bytes",
    "lost_packets",
    "delay_sum_s",
]


def format_start_banner(params: ScenarioParameters) -> str:
    return (
        f"Starting simulation with {params.station_count} STAs, "
        f"{params.app_rate} per STA, {params.standard.value} standard..."
    )


def format_flow_line(record: FlowRecord) -> str:
    return (
        f"Flow {record.flow_id}: {record.rx_packets} received, "
        f"{record.tx_packets} transmitted, {record.lost_packets} lost"
    )


def format_summary(params: ScenarioParameters, report: ScenarioReport) -> str:
    udp = "yes" if params.transport is TransportProtocol.UDP else "no"
    lines: List[str] = [
        "",
        SUMMARY_TITLE,
        f"Standard: {params.standard.value}, STAs: {params.station_count}, "
        f"Channel: {params.channel_width_mhz}MHz",
        f"AppRate: {params.app_rate} per STA, UDP: {udp}, Time: {params.sim_duration_s:.3f}s",
        f"AggregateThroughput(Mbps): {report.aggregate_throughput_mbps:.3f}",
        f"AvgDelay(ms): {report.average_delay_ms:.3f}",
        f"PacketLoss(%): {report.packet_loss_percent:.3f}",
        f"Fairness(Jain): {report.jain_fairness_index:.3f}",
        f"TotalRxPackets: {report.total_rx_packets}",
        f"TotalTxPackets: {report.total_tx_packets}",
        f"SuccessRate(%): {report.success_rate_percent:.3f}",
    ]
    return "\n".join(lines)


def records_to_dataframe(records: Iterable[FlowRecord]) -> pd.DataFrame:
    rows = [asdict(record) for record in records]
    return pd.DataFrame(rows, columns=FLOW_COLUMNS)


def write_flow_csv(records: Iterable[FlowRecord], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    records_to_dataframe(records).to_csv(path, index=False)
    return path


def write_report_json(
    params: ScenarioParameters,
    report: ScenarioReport,
    path: Path,
    *,
    plan_summary: Optional[Mapping[str, object]] = None,
) -> Path:
    payload = {
        "parameters": params.as_flags(),
        "report": report.to_row(),
        "per_flow_throughput_mbps": list(report.per_flow_throughput_mbps),
    }
    if plan_summary:
        payload["plan"] = dict(plan_summary)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path

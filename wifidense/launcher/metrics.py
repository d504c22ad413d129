"""Scenario-level statistics computed from per-flow engine counters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Sequence

import numpy as np

from .configurator import WARMUP_OVERHEAD_S
from .engine import FlowRecord


logger = logging.getLogger(__name__)

JAIN_EPSILON = 1e-12


@dataclass(frozen=True)
class ScenarioReport:
    """Summary of one run; built once, printed, then discarded."""

    aggregate_throughput_mbps: float = 0.0
    average_delay_ms: float = 0.0
    packet_loss_percent: float = 0.0
    jain_fairness_index: float = 0.0
    total_rx_packets: int = 0
    total_tx_packets: int = 0
    success_rate_percent: float = 0.0
    flow_count: int = 0
    per_flow_throughput_mbps: tuple[float, ...] = field(default_factory=tuple)

    def to_row(self) -> Dict[str, object]:
        """Flatten the report for CSV/JSON export."""

        return {
            "aggregate_throughput_mbps": self.aggregate_throughput_mbps,
            "average_delay_ms": self.average_delay_ms,
            "packet_loss_percent": self.packet_loss_percent,
            "jain_fairness_index": self.jain_fairness_index,
            "total_rx_packets": self.total_rx_packets,
            "total_tx_packets": self.total_tx_packets,
            "success_rate_percent": self.success_rate_percent,
            "flow_count": self.flow_count,
            "active_flow_count": len(self.per_flow_throughput_mbps),
        }


def jain_fairness(values: Sequence[float], epsilon: float = JAIN_EPSILON) -> float:
    """Jain index ``(Σx)² / (n·Σx² + ε)``; 0.0 for an empty vector."""

    x = np.asarray(values, dtype=float)
    if x.size == 0:
        return 0.0
    total = float(x.sum())
    return total * total / (x.size * float(np.square(x).sum()) + epsilon)


def flow_throughput_mbps(record: FlowRecord, effective_duration_s: float) -> float:
    if effective_duration_s <= 0:
        return 0.0
    return record.rx_bytes * 8.0 / (effective_duration_s * 1e6)


def aggregate(
    sim_duration_s: float,
    records: Iterable[FlowRecord],
    warmup_overhead_s: float = WARMUP_OVERHEAD_S,
) -> ScenarioReport:
    """Reduce the engine's flow records to a :class:`ScenarioReport`.

    Throughput is only computed for flows that received at least one
    packet, and only those flows enter the fairness vector; every flow still
    contributes to the packet and delay totals. Loss and success rates are
    derived independently from the same totals and need not add up to 100
    when the engine's loss accounting differs from ``tx - rx``.
    """

    flows = list(records)
    effective = sim_duration_s - warmup_overhead_s
    if effective <= 0:
        logger.warning(
            "Effective duration %.3fs is not positive (simTime %.3fs, overhead %.3fs): "
            "throughput reported as 0",
            effective,
            sim_duration_s,
            warmup_overhead_s,
        )

    per_flow: list[float] = []
    delay_sum_s = 0.0
    total_rx = 0
    total_tx = 0
    total_lost = 0
    for record in flows:
        if record.rx_packets > 0:
            per_flow.append(flow_throughput_mbps(record, effective))
        delay_sum_s += record.delay_sum_s
        total_rx += record.rx_packets
        total_tx += record.tx_packets
        total_lost += record.lost_packets

    average_delay_ms = delay_sum_s / total_rx * 1000.0 if total_rx > 0 else 0.0
    loss = 100.0 * total_lost / total_tx if total_tx > 0 else 0.0
    success = 100.0 * total_rx / total_tx if total_tx > 0 else 0.0

    return ScenarioReport(
        aggregate_throughput_mbps=float(sum(per_flow)),
        average_delay_ms=average_delay_ms,
        packet_loss_percent=loss,
        jain_fairness_index=jain_fairness(per_flow),
        total_rx_packets=total_rx,
        total_tx_packets=total_tx,
        success_rate_percent=success,
        flow_count=len(flows),
        per_flow_throughput_mbps=tuple(per_flow),
    )

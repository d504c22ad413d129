"""Closed-form engine for running the bench without an ns-3 installation.

This module is intentionally not a radio model: it turns a plan into
plausible flow counters (saturation, contention, distance) so that
campaigns, plots and the CLI can be exercised offline, in the same spirit
as the simplified mobility effects used for calibration plots.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .configurator import RateControlStrategy, SimulationPlan
from .engine import EngineBase, FlowRecord
from .parameters import TransportProtocol, WifiStandard
from .placement import create_generator, distances_to_ap, sample_station_positions


logger = logging.getLogger(__name__)

# Single spatial stream, highest MCS, short guard interval (Mbit/s).
NOMINAL_PHY_RATE_MBPS: dict[WifiStandard, dict[int, float]] = {
    WifiStandard.AC: {20: 86.7, 40: 200.0, 80: 433.3, 160: 866.7},
    WifiStandard.AX: {20: 143.4, 40: 286.8, 80: 600.5, 160: 1201.0},
}
# Preamble, DIFS, mean backoff, SIFS and block ACK per PPDU (microseconds).
PPDU_OVERHEAD_US: dict[WifiStandard, float] = {
    WifiStandard.AC: 110.0,
    WifiStandard.AX: 140.0,
}
RTS_CTS_OVERHEAD_US = 88.0
RATE_EFFICIENCY: dict[RateControlStrategy, float] = {
    RateControlStrategy.ADAPTIVE: 0.85,
    RateControlStrategy.ORACLE: 1.0,
}
CW_MIN = 15
BACKOFF_STAGES = 6
# Share of the airtime lost per unit of collision probability.
COLLISION_AIRTIME_COST = 0.5
RTS_COLLISION_COST = 0.25
AMPDU_MAX_BYTES = 65535
AMPDU_MAX_MPDUS = 64
MPDU_DELIMITER_BYTES = 4
MAC_HEADER_BYTES = 36
IP_UDP_HEADER_BYTES = 28
TCP_ACK_AIRTIME_SHARE = 0.1
SENSITIVITY_DBM = -82.0
LINK_MARGIN_DB = 30.0
MIN_LINK_FACTOR = 0.1
MIN_DISTANCE_M = 1.0


@dataclass
class AnalyticTopology:
    plan: SimulationPlan
    positions: np.ndarray
    link_factors: np.ndarray


def _parse_ms(value: str) -> float:
    text = value.strip()
    if not text.endswith("ms"):
        raise ValueError(f"Expected a duration in ms, got {value!r}")
    return float(text[:-2]) / 1000.0


def link_factors(plan: SimulationPlan, distances_m: np.ndarray) -> np.ndarray:
    """Fraction of the nominal PHY rate each station sustains.

    Received power follows the plan's log-distance model; the factor grows
    linearly from ``MIN_LINK_FACTOR`` at the sensitivity level to 1 at
    ``LINK_MARGIN_DB`` above it.
    """

    phy = plan.phy
    distances = np.maximum(distances_m, MIN_DISTANCE_M)
    path_loss = phy.reference_loss_db + 10.0 * phy.path_loss_exponent * np.log10(distances)
    rx_dbm = phy.tx_power_dbm + phy.tx_gain_db + phy.rx_gain_db - path_loss
    return np.clip((rx_dbm - SENSITIVITY_DBM) / LINK_MARGIN_DB, MIN_LINK_FACTOR, 1.0)


def collision_probability(stations: int, *, iterations: int = 200) -> float:
    """Conditional collision probability of saturated DCF stations (Bianchi).

    Solved by damped fixed-point iteration; 0 for a single station.
    """

    if stations <= 1:
        return 0.0
    window = CW_MIN + 1
    p = 0.0
    for _ in range(iterations):
        stages = sum((2.0 * p) ** i for i in range(BACKOFF_STAGES))
        tau = 2.0 / (1.0 + window + p * window * stages)
        p = 0.5 * p + 0.5 * (1.0 - (1.0 - tau) ** (stations - 1))
    return p


def ampdu_depth(packet_size: int) -> int:
    mpdu = packet_size + IP_UDP_HEADER_BYTES + MAC_HEADER_BYTES + MPDU_DELIMITER_BYTES
    return max(1, min(AMPDU_MAX_MPDUS, AMPDU_MAX_BYTES // mpdu))


class AnalyticEngine(EngineBase):
    """Deterministic engine honouring the plan and the applied defaults."""

    def build(self, plan: SimulationPlan) -> AnalyticTopology:
        self._require_defaults()
        rng = create_generator(plan.seed)
        positions = sample_station_positions(plan.placement, plan.station_count, rng)
        factors = link_factors(plan, distances_to_ap(positions, plan.placement))
        logger.debug(
            "Analytic topology: %d STAs, mean link factor %.3f",
            plan.station_count,
            float(factors.mean()) if factors.size else 0.0,
        )
        return AnalyticTopology(plan=plan, positions=positions, link_factors=factors)

    def uses_rts(self, packet_size: int) -> bool:
        """RTS/CTS protects PSDUs (whole A-MPDUs) above the applied threshold."""

        threshold = self._require_defaults().get("ns3::WifiRemoteStationManager::RtsCtsThreshold")
        if threshold is None:
            return False
        mpdu = packet_size + IP_UDP_HEADER_BYTES + MAC_HEADER_BYTES + MPDU_DELIMITER_BYTES
        return ampdu_depth(packet_size) * mpdu > int(threshold)

    def run(self, topology: AnalyticTopology, duration_s: float) -> list[FlowRecord]:
        plan = topology.plan
        count = plan.station_count
        if count == 0:
            return []
        defaults = self._require_defaults()
        max_delay_s = _parse_ms(defaults.get("ns3::WifiMacQueue::MaxDelay", "500ms"))

        rts = self.uses_rts(plan.packet_size)
        rate_mbps = (
            NOMINAL_PHY_RATE_MBPS[plan.standard][plan.channel.width_mhz]
            * RATE_EFFICIENCY[plan.rate_control]
            * topology.link_factors
        )
        frame_bits = (plan.packet_size + IP_UDP_HEADER_BYTES + MAC_HEADER_BYTES) * 8
        overhead_us = PPDU_OVERHEAD_US[plan.standard] + (RTS_CTS_OVERHEAD_US if rts else 0.0)
        airtime_s = (frame_bits / rate_mbps + overhead_us / ampdu_depth(plan.packet_size)) * 1e-6

        collision = collision_probability(count)
        cost = COLLISION_AIRTIME_COST * (RTS_COLLISION_COST if rts else 1.0)
        usable = 1.0 - cost * collision
        if plan.transport is TransportProtocol.TCP:
            usable *= 1.0 - TCP_ACK_AIRTIME_SHARE

        round_s = float(airtime_s.sum())
        offered_pps = plan.offered_rate_bps / (plan.packet_size * 8.0)
        # DCF is packet-fair: when saturated every station gets the same rate.
        saturated_pps = usable / round_s
        utilisation = offered_pps * round_s / usable
        if plan.transport is TransportProtocol.UDP and utilisation < 1.0:
            served_pps = offered_pps
            service_s = airtime_s / (1.0 - cost * collision)
            per_packet_delay = np.minimum(service_s / max(1e-3, 1.0 - utilisation), max_delay_s)
        else:
            served_pps = saturated_pps
            per_packet_delay = np.full(count, max_delay_s)

        stop = min(duration_s, plan.timing.client_stop_s)
        records: list[FlowRecord] = []
        for flow, delay in zip(plan.flows, per_packet_delay):
            active = max(0.0, stop - flow.start_time_s(plan.timing))
            rx = int(math.floor(served_pps * active))
            if plan.transport is TransportProtocol.UDP:
                tx = max(rx, int(math.floor(offered_pps * active)))
            else:
                tx = rx
            records.append(
                FlowRecord(
                    flow_id=flow.station_index + 1,
                    tx_packets=tx,
                    rx_packets=rx,
                    rx_bytes=rx * (plan.packet_size + IP_UDP_HEADER_BYTES),
                    lost_packets=tx - rx,
                    delay_sum_s=rx * float(delay),
                )
            )
        logger.info(
            "Analytic run: utilisation %.2f, collision probability %.3f, rts=%s",
            utilisation,
            collision,
            "on" if rts else "off",
        )
        return records

"""Derive a concrete simulation plan from :class:`ScenarioParameters`.

The plan is a plain value: the adaptive density overrides, the rate-control
choice and the engine-wide defaults are all fields of the plan, so nothing
here touches engine state. The caller applies ``plan.engine_defaults()``
once, before any topology is built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .parameters import (
    ScenarioParameters,
    TransportProtocol,
    WifiStandard,
    validate_parameters,
)


logger = logging.getLogger(__name__)

# Stations above which RTS/CTS is enabled and packets are clamped.
DENSE_STATION_THRESHOLD = 30
# Stations above which the oracle rate manager replaces Minstrel-HT.
ORACLE_STATION_THRESHOLD = 50
DENSE_MAX_PACKET_SIZE = 512
RTS_CTS_THRESHOLD = 1000

BASE_PORT = 9000
START_STAGGER_S = 0.01

SERVER_START_S = 0.5
CLIENT_START_S = 1.5
STOP_MARGIN_S = 0.5
# Time not available for traffic: first client start + trailing stop margin.
WARMUP_OVERHEAD_S = CLIENT_START_S + STOP_MARGIN_S

MAC_QUEUE_MAX_PACKETS = 1000
MAC_QUEUE_MAX_DELAY_MS = 500

AP_HEIGHT_M = 1.0
BAND_5GHZ = "BAND_5GHZ"
SSID = "dense-wifi"
NETWORK = "10.1.0.0/16"


class RateControlStrategy(str, Enum):
    """Rate selection requested from the engine."""

    ADAPTIVE = "adaptive"
    ORACLE = "oracle"

    @property
    def engine_manager(self) -> str:
        if self is RateControlStrategy.ORACLE:
            return "ns3::IdealWifiManager"
        return "ns3::MinstrelHtWifiManager"


@dataclass(frozen=True)
class ChannelDescriptor:
    """``{number, width, band, primary20}`` tuple understood by the engine.

    Channel number and primary index 0 let the engine pick the default
    channel for the band and width.
    """

    number: int
    width_mhz: int
    band: str
    primary20_index: int

    def as_tuple(self) -> tuple[int, int, str, int]:
        return (self.number, self.width_mhz, self.band, self.primary20_index)

    def as_settings(self) -> str:
        return "{%d, %d, %s, %d}" % self.as_tuple()


@dataclass(frozen=True)
class ApplicationTiming:
    server_start_s: float
    client_start_s: float
    client_stop_s: float
    server_stop_s: float


@dataclass(frozen=True)
class FlowSpec:
    """Traffic source installed on one station, sinking on the AP."""

    station_index: int
    destination_port: int
    start_offset_s: float

    def start_time_s(self, timing: ApplicationTiming) -> float:
        return timing.client_start_s + self.start_offset_s


@dataclass(frozen=True)
class PlacementRegion:
    """Square of side ``side_m`` centred on the AP at the origin."""

    side_m: float
    ap_position: tuple[float, float, float] = (0.0, 0.0, AP_HEIGHT_M)

    @property
    def bounds(self) -> tuple[float, float]:
        half = self.side_m / 2.0
        return (-half, half)


@dataclass(frozen=True)
class MacQueueDefaults:
    max_size_packets: int = MAC_QUEUE_MAX_PACKETS
    max_delay_ms: int = MAC_QUEUE_MAX_DELAY_MS


@dataclass(frozen=True)
class PhyProfile:
    """Radio settings shared by every device of the scenario."""

    tx_power_dbm: float
    path_loss_exponent: float = 3.0
    reference_loss_db: float = 46.6777
    rx_gain_db: float = 0.0
    tx_gain_db: float = 0.0
    rx_noise_figure_db: float = 7.0
    cca_ed_threshold_dbm: float = -62.0


@dataclass(frozen=True)
class SimulationPlan:
    standard: WifiStandard
    transport: TransportProtocol
    station_count: int
    packet_size: int
    offered_rate_bps: int
    sim_duration_s: float
    rts_cts_enabled: bool
    rts_cts_threshold: int | None
    rate_control: RateControlStrategy
    channel: ChannelDescriptor
    flows: tuple[FlowSpec, ...]
    placement: PlacementRegion
    phy: PhyProfile
    timing: ApplicationTiming
    mac_queue: MacQueueDefaults = field(default_factory=MacQueueDefaults)
    pcap_enabled: bool = False
    quiet_logs: bool = True
    seed: int = 1
    ssid: str = SSID
    network: str = NETWORK

    def engine_defaults(self) -> dict[str, str]:
        """Engine-wide attribute overrides, to be applied once before build."""

        defaults = {
            "ns3::WifiMacQueue::MaxSize": f"{self.mac_queue.max_size_packets}p",
            "ns3::WifiMacQueue::MaxDelay": f"{self.mac_queue.max_delay_ms}ms",
        }
        if self.rts_cts_enabled and self.rts_cts_threshold is not None:
            defaults["ns3::WifiRemoteStationManager::RtsCtsThreshold"] = str(self.rts_cts_threshold)
        return defaults

    def describe(self) -> str:
        return (
            f"{self.standard.value} N={self.station_count} pkt={self.packet_size}B "
            f"rts={'on' if self.rts_cts_enabled else 'off'} rate={self.rate_control.value} "
            f"channel={self.channel.as_settings()}"
        )


def select_rate_control(station_count: int) -> RateControlStrategy:
    if station_count > ORACLE_STATION_THRESHOLD:
        return RateControlStrategy.ORACLE
    return RateControlStrategy.ADAPTIVE


def build_flows(station_count: int, *, base_port: int = BASE_PORT) -> tuple[FlowSpec, ...]:
    # Offsets are computed from the index, not accumulated, so they stay exact.
    return tuple(
        FlowSpec(
            station_index=index,
            destination_port=base_port + index,
            start_offset_s=round(index * START_STAGGER_S, 9),
        )
        for index in range(station_count)
    )


def configure(params: ScenarioParameters) -> SimulationPlan:
    """Map user parameters to a :class:`SimulationPlan`.

    Raises :class:`~wifidense.launcher.parameters.ConfigurationError` for an
    unknown standard and for the inputs the engine would otherwise reject
    late (no station, unsupported width, duration shorter than the
    start/stop overhead).
    """

    standard = WifiStandard.parse(params.standard)
    validate_parameters(params, warmup_overhead_s=WARMUP_OVERHEAD_S)

    dense = params.station_count > DENSE_STATION_THRESHOLD
    packet_size = params.packet_size
    if dense and packet_size > DENSE_MAX_PACKET_SIZE:
        logger.info(
            "Dense scenario (%d STAs): packet size clamped from %d to %d bytes",
            params.station_count,
            packet_size,
            DENSE_MAX_PACKET_SIZE,
        )
        packet_size = DENSE_MAX_PACKET_SIZE

    plan = SimulationPlan(
        standard=standard,
        transport=params.transport,
        station_count=params.station_count,
        packet_size=packet_size,
        offered_rate_bps=params.offered_rate_bps,
        sim_duration_s=float(params.sim_duration_s),
        rts_cts_enabled=dense,
        rts_cts_threshold=RTS_CTS_THRESHOLD if dense else None,
        rate_control=select_rate_control(params.station_count),
        channel=ChannelDescriptor(0, params.channel_width_mhz, BAND_5GHZ, 0),
        flows=build_flows(params.station_count),
        placement=PlacementRegion(side_m=float(params.region_side_m)),
        phy=PhyProfile(tx_power_dbm=float(params.tx_power_dbm)),
        timing=ApplicationTiming(
            server_start_s=SERVER_START_S,
            client_start_s=CLIENT_START_S,
            client_stop_s=params.sim_duration_s - STOP_MARGIN_S,
            server_stop_s=float(params.sim_duration_s),
        ),
        pcap_enabled=params.pcap_enabled,
        quiet_logs=params.quiet_logs,
        seed=params.seed,
    )
    logger.debug("Plan: %s", plan.describe())
    return plan

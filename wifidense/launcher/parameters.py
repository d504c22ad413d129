"""User-facing scenario knobs for the dense Wi-Fi bench."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


SUPPORTED_CHANNEL_WIDTHS_MHZ: tuple[int, ...] = (20, 40, 80, 160)

_RATE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([A-Za-z/]+)\s*$")
_RATE_UNITS: dict[str, float] = {
    "bps": 1.0,
    "b/s": 1.0,
    "kbps": 1e3,
    "kb/s": 1e3,
    "mbps": 1e6,
    "mb/s": 1e6,
    "gbps": 1e9,
    "gb/s": 1e9,
}
_BYTE_RATE_UNITS: dict[str, float] = {
    "Bps": 8.0,
    "B/s": 8.0,
    "kBps": 8e3,
    "KBps": 8e3,
    "kB/s": 8e3,
    "MBps": 8e6,
    "MB/s": 8e6,
    "GBps": 8e9,
    "GB/s": 8e9,
}


class ConfigurationError(ValueError):
    """Raised when scenario parameters cannot produce a valid plan."""


class WifiStandard(str, Enum):
    """The two PHY generations supported by the bench."""

    AC = "ac"
    AX = "ax"

    @classmethod
    def parse(cls, tag: "str | WifiStandard") -> "WifiStandard":
        if isinstance(tag, cls):
            return tag
        key = str(tag).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ConfigurationError("Unknown standard: use 'ac' or 'ax'")

    @property
    def engine_name(self) -> str:
        return "WIFI_STANDARD_80211" + self.value


class TransportProtocol(str, Enum):
    UDP = "udp"
    TCP = "tcp"

    @classmethod
    def from_flag(cls, use_udp: bool) -> "TransportProtocol":
        return cls.UDP if use_udp else cls.TCP


def parse_data_rate(text: str) -> int:
    """Return the rate described by ``text`` (e.g. ``"10Mbps"``) in bit/s.

    Bit units are case-insensitive; byte units keep their capital ``B`` so
    that ``"1MBps"`` (8 Mbit/s) is not confused with ``"1Mbps"``.
    """

    match = _RATE_PATTERN.match(str(text))
    if match is None:
        raise ConfigurationError(f"Invalid data rate: {text!r}")
    value = float(match.group(1))
    unit = match.group(2)
    if unit in _BYTE_RATE_UNITS:
        factor = _BYTE_RATE_UNITS[unit]
    else:
        factor = _RATE_UNITS.get(unit.lower())
    if factor is None:
        raise ConfigurationError(f"Unknown data rate unit '{unit}' in {text!r}")
    return int(round(value * factor))


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {"1", "true", "yes", "y", "on"}:
        return True
    if lowered in {"0", "false", "no", "n", "off"}:
        return False
    raise ConfigurationError(f"Invalid boolean value: {value!r}")


@dataclass(frozen=True)
class ScenarioParameters:
    """Immutable description of one scenario, as declared by the user."""

    standard: WifiStandard = WifiStandard.AX
    station_count: int = 20
    packet_size: int = 1000
    app_rate: str = "10Mbps"
    sim_duration_s: float = 20.0
    channel_width_mhz: int = 80
    transport: TransportProtocol = TransportProtocol.UDP
    pcap_enabled: bool = False
    quiet_logs: bool = True
    tx_power_dbm: float = 20.0
    region_side_m: float = 10.0
    seed: int = 1

    def __post_init__(self) -> None:
        # Tags such as "ax"/"udp" are accepted and stored as enum members.
        object.__setattr__(self, "standard", WifiStandard.parse(self.standard))
        if not isinstance(self.transport, TransportProtocol):
            try:
                transport = TransportProtocol(str(self.transport).strip().lower())
            except ValueError as exc:
                raise ConfigurationError(f"Unknown transport: {self.transport!r}") from exc
            object.__setattr__(self, "transport", transport)

    @property
    def offered_rate_bps(self) -> int:
        return parse_data_rate(self.app_rate)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ScenarioParameters":
        """Build parameters from the command-line flag names.

        Keys follow the historical flags (``nStas``, ``appRate``...), which is
        also the vocabulary of the YAML scenario files.
        """

        converters = {
            "standard": ("standard", WifiStandard.parse),
            "nStas": ("station_count", int),
            "packetSize": ("packet_size", int),
            "appRate": ("app_rate", str),
            "simTime": ("sim_duration_s", float),
            "channelWidth": ("channel_width_mhz", int),
            "useUdp": ("transport", lambda v: TransportProtocol.from_flag(_parse_bool(v))),
            "enablePcap": ("pcap_enabled", _parse_bool),
            "quietLogs": ("quiet_logs", _parse_bool),
            "txPower": ("tx_power_dbm", float),
            "distance": ("region_side_m", float),
            "seed": ("seed", int),
        }
        kwargs: dict[str, Any] = {}
        for key, raw in mapping.items():
            if raw is None:
                continue
            entry = converters.get(key)
            if entry is None:
                known = ", ".join(sorted(converters))
                raise ConfigurationError(f"Unknown scenario key '{key}' (expected one of: {known})")
            name, convert = entry
            try:
                kwargs[name] = convert(raw)
            except ConfigurationError:
                raise
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid value for '{key}': {raw!r}") from exc
        return cls(**kwargs)

    def as_flags(self) -> dict[str, Any]:
        """Return the parameters keyed by flag name, for JSON/CSV dumps."""

        return {
            "standard": self.standard.value,
            "nStas": self.station_count,
            "packetSize": self.packet_size,
            "appRate": self.app_rate,
            "simTime": self.sim_duration_s,
            "channelWidth": self.channel_width_mhz,
            "useUdp": self.transport is TransportProtocol.UDP,
            "enablePcap": self.pcap_enabled,
            "quietLogs": self.quiet_logs,
            "txPower": self.tx_power_dbm,
            "distance": self.region_side_m,
            "seed": self.seed,
        }


def validate_parameters(params: ScenarioParameters, *, warmup_overhead_s: float) -> None:
    """Reject parameter combinations that cannot yield a meaningful run."""

    WifiStandard.parse(params.standard)
    if params.station_count < 1:
        raise ConfigurationError(f"nStas must be >= 1 (got {params.station_count})")
    if params.packet_size < 1:
        raise ConfigurationError(f"packetSize must be >= 1 (got {params.packet_size})")
    if params.channel_width_mhz not in SUPPORTED_CHANNEL_WIDTHS_MHZ:
        allowed = "/".join(str(w) for w in SUPPORTED_CHANNEL_WIDTHS_MHZ)
        raise ConfigurationError(
            f"Unsupported channel width {params.channel_width_mhz} MHz (expected {allowed})"
        )
    if params.offered_rate_bps <= 0:
        raise ConfigurationError(f"appRate must be positive (got {params.app_rate!r})")
    duration = params.sim_duration_s
    if not math.isfinite(duration) or duration <= warmup_overhead_s:
        raise ConfigurationError(
            f"simTime must exceed the {warmup_overhead_s:.1f}s start/stop overhead (got {duration})"
        )
    if not math.isfinite(params.region_side_m) or params.region_side_m <= 0:
        raise ConfigurationError(f"distance must be positive (got {params.region_side_m})")

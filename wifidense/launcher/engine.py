"""Contract between the bench and the network-simulation engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from .configurator import SimulationPlan


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowRecord:
    """Counters reported by the engine for one flow once the run is over."""

    flow_id: int = 0
    tx_packets: int = 0
    rx_packets: int = 0
    rx_bytes: int = 0
    lost_packets: int = 0
    delay_sum_s: float = 0.0


@runtime_checkable
class SimulationEngine(Protocol):
    def apply_defaults(self, defaults: Mapping[str, str]) -> None:
        ...

    def build(self, plan: SimulationPlan) -> Any:
        ...

    def run(self, topology: Any, duration_s: float) -> list[FlowRecord]:
        ...


class EngineBase:
    """Bookkeeping shared by the bundled engines.

    Engine-wide defaults may be applied exactly once and must precede
    :meth:`build`.
    """

    def __init__(self) -> None:
        self.defaults: dict[str, str] | None = None

    def apply_defaults(self, defaults: Mapping[str, str]) -> None:
        if self.defaults is not None:
            raise RuntimeError(
                f"Engine defaults already applied to {type(self).__name__}; "
                "use a fresh engine for each scenario"
            )
        self.defaults = dict(defaults)

    def _require_defaults(self) -> dict[str, str]:
        if self.defaults is None:
            raise RuntimeError("apply_defaults() must be called before build()")
        return self.defaults


def apply_engine_defaults(engine: SimulationEngine, plan: SimulationPlan) -> dict[str, str]:
    """Push the plan's engine-wide defaults to ``engine``."""

    defaults = plan.engine_defaults()
    engine.apply_defaults(defaults)
    for name, value in defaults.items():
        logger.debug("Engine default %s = %s", name, value)
    return defaults


def check_assumptions(records: Iterable[FlowRecord]) -> list[FlowRecord]:
    """Return (and log) the records reporting more receptions than sends.

    ``rx <= tx`` is expected from the engine but not guaranteed, so these
    records are reported rather than rejected.
    """

    suspicious = [record for record in records if record.rx_packets > record.tx_packets]
    for record in suspicious:
        logger.warning(
            "Flow %d reports %d received for %d transmitted packets",
            record.flow_id,
            record.rx_packets,
            record.tx_packets,
        )
    return suspicious

"""Scenario configuration, engines and metrics for the dense Wi-Fi bench."""

from .analytic_engine import AnalyticEngine
from .configurator import (
    RateControlStrategy,
    SimulationPlan,
    WARMUP_OVERHEAD_S,
    configure,
)
from .engine import FlowRecord, SimulationEngine
from .metrics import ScenarioReport, aggregate, jain_fairness
from .ns3_engine import Ns3Engine
from .parameters import (
    ConfigurationError,
    ScenarioParameters,
    TransportProtocol,
    WifiStandard,
)
from .pipeline import ScenarioOutcome, run_scenario

ENGINES = {
    "analytic": AnalyticEngine,
    "ns3": Ns3Engine,
}


def create_engine(name: str) -> SimulationEngine:
    """Instantiate a fresh engine by name (``analytic`` or ``ns3``)."""

    try:
        factory = ENGINES[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(ENGINES))
        raise ValueError(f"Unknown engine '{name}'. Available: {available}") from exc
    return factory()


__all__ = [
    "AnalyticEngine",
    "ConfigurationError",
    "ENGINES",
    "FlowRecord",
    "Ns3Engine",
    "RateControlStrategy",
    "ScenarioOutcome",
    "ScenarioParameters",
    "ScenarioReport",
    "SimulationEngine",
    "SimulationPlan",
    "TransportProtocol",
    "WARMUP_OVERHEAD_S",
    "WifiStandard",
    "aggregate",
    "configure",
    "create_engine",
    "jain_fairness",
    "run_scenario",
]

"""Configure → run → aggregate, for a single scenario."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

from .configurator import SimulationPlan, configure
from .engine import FlowRecord, SimulationEngine, apply_engine_defaults, check_assumptions
from .metrics import ScenarioReport, aggregate
from .parameters import ScenarioParameters
from .report import format_flow_line, format_start_banner


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioOutcome:
    params: ScenarioParameters
    plan: SimulationPlan
    records: List[FlowRecord]
    report: ScenarioReport


def plan_summary(plan: SimulationPlan) -> Dict[str, object]:
    """Key decisions of the plan, for run metadata."""

    return {
        "packet_size": plan.packet_size,
        "rts_cts_enabled": plan.rts_cts_enabled,
        "rts_cts_threshold": plan.rts_cts_threshold,
        "rate_control": plan.rate_control.value,
        "rate_manager": plan.rate_control.engine_manager,
        "channel_settings": plan.channel.as_settings(),
        "engine_defaults": plan.engine_defaults(),
    }


def run_scenario(
    params: ScenarioParameters,
    engine: SimulationEngine,
    *,
    out: Callable[[str], None] = print,
) -> ScenarioOutcome:
    """Run one scenario end to end on ``engine``.

    ``engine`` must be fresh: its engine-wide defaults are applied here,
    before the topology is built.
    """

    plan = configure(params)
    logger.info("Plan: %s", plan.describe())
    apply_engine_defaults(engine, plan)
    topology = engine.build(plan)

    out(format_start_banner(params))
    records = list(engine.run(topology, plan.sim_duration_s))
    for record in records:
        out(format_flow_line(record))
    check_assumptions(records)

    report = aggregate(plan.sim_duration_s, records)
    return ScenarioOutcome(params=params, plan=plan, records=records, report=report)

from wifidense.launcher.configurator import SimulationPlan
from wifidense.launcher.engine import EngineBase, FlowRecord
from wifidense.launcher.parameters import ScenarioParameters
from wifidense.launcher.pipeline import plan_summary, run_scenario
from wifidense.launcher.metrics import ScenarioReport


class RecordingEngine(EngineBase):
    def __init__(self, records=None):
        super().__init__()
        self.calls = []
        self.records = list(records or [])

    def apply_defaults(self, defaults):
        self.calls.append("defaults")
        super().apply_defaults(defaults)

    def build(self, plan: SimulationPlan):
        self._require_defaults()
        self.calls.append("build")
        return plan

    def run(self, topology, duration_s):
        self.calls.append(("run", duration_s))
        return self.records


def test_defaults_are_applied_before_build():
    engine = RecordingEngine()
    run_scenario(ScenarioParameters(station_count=3), engine, out=lambda _line: None)
    assert engine.calls == ["defaults", "build", ("run", 20.0)]


def test_flow_lines_are_emitted_in_order():
    records = [
        FlowRecord(flow_id=1, tx_packets=10, rx_packets=9, rx_bytes=9000, lost_packets=1, delay_sum_s=0.01),
        FlowRecord(flow_id=2, tx_packets=10, rx_packets=10, rx_bytes=10000, delay_sum_s=0.02),
    ]
    lines = []
    outcome = run_scenario(ScenarioParameters(station_count=2), RecordingEngine(records), out=lines.append)
    assert lines[0].startswith("Starting simulation with 2 STAs")
    assert lines[1:] == [
        "Flow 1: 9 received, 10 transmitted, 1 lost",
        "Flow 2: 10 received, 10 transmitted, 0 lost",
    ]
    assert outcome.report.total_rx_packets == 19
    assert outcome.report.total_tx_packets == 20


def test_engine_without_flows_gives_zero_report():
    outcome = run_scenario(ScenarioParameters(), RecordingEngine([]), out=lambda _line: None)
    assert outcome.records == []
    assert outcome.report == ScenarioReport()


def test_plan_summary_reports_dense_decisions():
    outcome = run_scenario(
        ScenarioParameters(station_count=60, packet_size=1500), RecordingEngine(), out=lambda _line: None
    )
    summary = plan_summary(outcome.plan)
    assert summary["packet_size"] == 512
    assert summary["rts_cts_enabled"] is True
    assert summary["rate_control"] == outcome.plan.rate_control.value
    assert summary["rate_manager"] == "ns3::IdealWifiManager"
    assert summary["channel_settings"] == "{0, 80, BAND_5GHZ, 0}"


def test_string_standard_tag_runs_end_to_end():
    lines = []
    params = ScenarioParameters(standard="ax", station_count=2)
    outcome = run_scenario(params, RecordingEngine(), out=lines.append)
    assert lines[0] == "Starting simulation with 2 STAs, 10Mbps per STA, ax standard..."
    assert outcome.plan.standard.value == "ax"
    assert outcome.params.standard is outcome.plan.standard

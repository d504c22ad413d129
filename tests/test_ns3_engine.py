from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from wifidense.launcher.configurator import configure
from wifidense.launcher.engine import apply_engine_defaults
from wifidense.launcher.ns3_engine import Ns3Engine
from wifidense.launcher.parameters import ScenarioParameters, TransportProtocol


def _fake_ns():
    ns = MagicMock(name="ns")
    ns.Seconds.side_effect = lambda value: ("s", value)
    ns.StringValue.side_effect = lambda value: ("string", value)
    return ns


def _built(**overrides):
    ns = _fake_ns()
    engine = Ns3Engine(bindings=ns)
    plan = configure(ScenarioParameters(**overrides))
    apply_engine_defaults(engine, plan)
    topology = engine.build(plan)
    return ns, engine, plan, topology


def _stats(tx, rx, rx_bytes, lost, delay_s):
    return SimpleNamespace(
        txPackets=tx,
        rxPackets=rx,
        rxBytes=rx_bytes,
        lostPackets=lost,
        delaySum=SimpleNamespace(GetSeconds=lambda: delay_s),
    )


def test_udp_clients_use_ports_and_staggered_starts():
    ns, _, _, _ = _built(station_count=3, sim_duration_s=10.0)
    assert ns.UdpServerHelper.call_args_list == [call(9000), call(9001), call(9002)]
    ports = [args[1] for args, _ in ns.InetSocketAddress.call_args_list]
    assert ports == [9000, 9001, 9002]

    starts = ns.OnOffHelper.return_value.Install.return_value.Get.return_value.SetStartTime.call_args_list
    assert [args[0][1] for args, _ in starts] == pytest.approx([1.5, 1.51, 1.52])


def test_server_and_client_windows():
    ns, _, _, _ = _built(station_count=2, sim_duration_s=10.0)
    apps = ns.ApplicationContainer.return_value
    assert apps.Start.call_args_list == [call(("s", 0.5))]
    # clients stop first, servers at the end of the run
    assert apps.Stop.call_args_list == [call(("s", 9.5)), call(("s", 10.0))]


def test_dense_topology_settings():
    ns, _, _, _ = _built(station_count=51)
    assert (
        call("ns3::WifiRemoteStationManager::RtsCtsThreshold", ("string", "1000"))
        in ns.Config.SetDefault.call_args_list
    )
    wifi = ns.WifiHelper.return_value
    wifi.SetRemoteStationManager.assert_called_once_with("ns3::IdealWifiManager")
    wifi.SetStandard.assert_called_once_with(ns.WIFI_STANDARD_80211ax)
    phy = ns.YansWifiPhyHelper.return_value
    assert call("ChannelSettings", ("string", "{0, 80, BAND_5GHZ, 0}")) in phy.Set.call_args_list
    on_off = ns.OnOffHelper.return_value
    assert call("PacketSize", ns.UintegerValue.return_value) in on_off.SetAttribute.call_args_list
    ns.UintegerValue.assert_any_call(512)


def test_sparse_topology_uses_adaptive_manager_without_rts():
    ns, _, _, _ = _built(station_count=10)
    ns.WifiHelper.return_value.SetRemoteStationManager.assert_called_once_with(
        "ns3::MinstrelHtWifiManager"
    )
    names = [args[0] for args, _ in ns.Config.SetDefault.call_args_list]
    assert "ns3::WifiRemoteStationManager::RtsCtsThreshold" not in names


def test_tcp_flows_use_sinks_and_bulk_send():
    ns, _, _, _ = _built(station_count=2, transport=TransportProtocol.TCP)
    ns.UdpServerHelper.assert_not_called()
    ns.OnOffHelper.assert_not_called()
    assert ns.PacketSinkHelper.call_count == 2
    assert ns.BulkSendHelper.call_count == 2
    assert ns.BulkSendHelper.call_args_list[0][0][0] == "ns3::TcpSocketFactory"


def test_pcap_only_on_ap_when_enabled():
    ns, engine, _, _ = _built(station_count=2)
    ns.YansWifiPhyHelper.return_value.EnablePcap.assert_not_called()

    ns, engine, _, _ = _built(station_count=2, pcap_enabled=True)
    phy = ns.YansWifiPhyHelper.return_value
    ap_devices = ns.WifiHelper.return_value.Install.return_value
    phy.EnablePcap.assert_called_once_with(engine.pcap_prefix, ap_devices.Get.return_value)
    assert engine.pcap_prefix == "wifi-debug"


def test_run_converts_flow_stats_sorted_by_flow_id():
    ns, engine, plan, topology = _built(station_count=2)
    topology.monitor.GetFlowStats.return_value = [
        (2, _stats(100, 90, 90000, 10, 0.9)),
        (1, _stats(100, 100, 100000, 0, 0.5)),
    ]
    records = engine.run(topology, plan.sim_duration_s)

    assert [record.flow_id for record in records] == [1, 2]
    assert records[1].lost_packets == 10
    assert records[1].rx_bytes == 90000
    assert records[0].delay_sum_s == pytest.approx(0.5)
    ns.Simulator.Stop.assert_called_once_with(("s", 20.0))
    topology.monitor.CheckForLostPackets.assert_called_once()
    ns.Simulator.Destroy.assert_called_once()


def test_run_destroys_simulator_on_failure():
    ns, engine, plan, topology = _built(station_count=1)
    ns.Simulator.Run.side_effect = RuntimeError("simulator crashed")
    with pytest.raises(RuntimeError, match="simulator crashed"):
        engine.run(topology, plan.sim_duration_s)
    ns.Simulator.Destroy.assert_called_once()

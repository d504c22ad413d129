"""ns-3 backed engine (requires the ``ns`` Python bindings, ns-3.40+)."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .configurator import SimulationPlan
from .engine import EngineBase, FlowRecord
from .parameters import TransportProtocol


logger = logging.getLogger(__name__)

QUIET_LOG_COMPONENTS = ("WifiPhy", "UdpClient", "UdpServer")
DEFAULT_PCAP_PREFIX = "wifi-debug"


def load_bindings() -> Any:
    """Import the ns-3 bindings or fail with an actionable message."""

    try:
        from ns import ns  # type: ignore[import-not-found]
    except ImportError as exc:
        raise RuntimeError(
            "ns-3 Python bindings are not available (pip install ns3, or build "
            "ns-3 with --enable-python-bindings); use --engine analytic otherwise"
        ) from exc
    return ns


@dataclass
class Ns3Topology:
    """Keeps every ns-3 helper alive for the duration of the run."""

    plan: SimulationPlan
    sta_nodes: Any
    ap_node: Any
    sta_devices: Any
    ap_devices: Any
    server_apps: Any
    client_apps: Any
    flow_helper: Any
    monitor: Any


class Ns3Engine(EngineBase):
    def __init__(self, *, pcap_prefix: str = DEFAULT_PCAP_PREFIX, bindings: Any = None) -> None:
        super().__init__()
        self.pcap_prefix = pcap_prefix
        self._bindings = bindings

    @property
    def ns(self) -> Any:
        if self._bindings is None:
            self._bindings = load_bindings()
        return self._bindings

    def apply_defaults(self, defaults: Mapping[str, str]) -> None:
        ns = self.ns
        super().apply_defaults(defaults)
        for name, value in defaults.items():
            ns.Config.SetDefault(name, ns.StringValue(value))

    def _quiet_logs(self) -> None:
        ns = self.ns
        for component in QUIET_LOG_COMPONENTS:
            ns.LogComponentEnable(component, ns.LOG_LEVEL_WARN)

    def build(self, plan: SimulationPlan) -> Ns3Topology:
        self._require_defaults()
        ns = self.ns
        if plan.quiet_logs:
            self._quiet_logs()
        ns.RngSeedManager.SetSeed(max(1, int(plan.seed)))

        sta_nodes = ns.NodeContainer()
        sta_nodes.Create(plan.station_count)
        ap_node = ns.NodeContainer()
        ap_node.Create(1)

        phy = plan.phy
        channel = ns.YansWifiChannelHelper()
        channel.SetPropagationDelay("ns3::ConstantSpeedPropagationDelayModel")
        channel.AddPropagationLoss(
            "ns3::LogDistancePropagationLossModel",
            "Exponent",
            ns.DoubleValue(phy.path_loss_exponent),
            "ReferenceLoss",
            ns.DoubleValue(phy.reference_loss_db),
        )
        phy_helper = ns.YansWifiPhyHelper()
        phy_helper.SetChannel(channel.Create())
        phy_helper.Set("TxPowerStart", ns.DoubleValue(phy.tx_power_dbm))
        phy_helper.Set("TxPowerEnd", ns.DoubleValue(phy.tx_power_dbm))
        phy_helper.Set("RxGain", ns.DoubleValue(phy.rx_gain_db))
        phy_helper.Set("TxGain", ns.DoubleValue(phy.tx_gain_db))
        phy_helper.Set("RxNoiseFigure", ns.DoubleValue(phy.rx_noise_figure_db))
        phy_helper.Set("CcaEdThreshold", ns.DoubleValue(phy.cca_ed_threshold_dbm))
        phy_helper.SetErrorRateModel("ns3::YansErrorRateModel")
        phy_helper.Set("ChannelSettings", ns.StringValue(plan.channel.as_settings()))

        wifi = ns.WifiHelper()
        wifi.SetStandard(getattr(ns, plan.standard.engine_name))
        wifi.SetRemoteStationManager(plan.rate_control.engine_manager)

        mac = ns.WifiMacHelper()
        ssid = ns.Ssid(plan.ssid)
        mac.SetType(
            "ns3::StaWifiMac",
            "Ssid",
            ns.SsidValue(ssid),
            "ActiveProbing",
            ns.BooleanValue(False),
        )
        sta_devices = wifi.Install(phy_helper, mac, sta_nodes)
        mac.SetType("ns3::ApWifiMac", "Ssid", ns.SsidValue(ssid))
        ap_devices = wifi.Install(phy_helper, mac, ap_node)

        low, high = plan.placement.bounds
        uniform = f"ns3::UniformRandomVariable[Min={low}|Max={high}]"
        sta_mobility = ns.MobilityHelper()
        sta_mobility.SetPositionAllocator(
            "ns3::RandomRectanglePositionAllocator",
            "X",
            ns.StringValue(uniform),
            "Y",
            ns.StringValue(uniform),
        )
        sta_mobility.SetMobilityModel("ns3::ConstantPositionMobilityModel")
        sta_mobility.Install(sta_nodes)

        ap_positions = ns.CreateObject[ns.ListPositionAllocator]()
        ap_positions.Add(ns.Vector(*plan.placement.ap_position))
        ap_mobility = ns.MobilityHelper()
        ap_mobility.SetPositionAllocator(ap_positions)
        ap_mobility.SetMobilityModel("ns3::ConstantPositionMobilityModel")
        ap_mobility.Install(ap_node)

        stack = ns.InternetStackHelper()
        stack.Install(ap_node)
        stack.Install(sta_nodes)
        network = ipaddress.ip_network(plan.network)
        address = ns.Ipv4AddressHelper()
        address.SetBase(
            ns.Ipv4Address(str(network.network_address)),
            ns.Ipv4Mask(str(network.netmask)),
        )
        address.Assign(sta_devices)
        ap_interfaces = address.Assign(ap_devices)
        ap_address = ap_interfaces.GetAddress(0)

        server_apps = ns.ApplicationContainer()
        client_apps = ns.ApplicationContainer()
        data_rate = ns.DataRate(int(plan.offered_rate_bps))
        udp = plan.transport is TransportProtocol.UDP
        for flow in plan.flows:
            sink_address = ns.InetSocketAddress(ap_address, flow.destination_port).ConvertTo()
            if udp:
                server = ns.UdpServerHelper(flow.destination_port)
                server_apps.Add(server.Install(ap_node.Get(0)))
                client = ns.OnOffHelper("ns3::UdpSocketFactory", sink_address)
                client.SetAttribute("OnTime", ns.StringValue("ns3::ConstantRandomVariable[Constant=1]"))
                client.SetAttribute("OffTime", ns.StringValue("ns3::ConstantRandomVariable[Constant=0]"))
                client.SetAttribute("DataRate", ns.DataRateValue(data_rate))
                client.SetAttribute("PacketSize", ns.UintegerValue(plan.packet_size))
            else:
                sink = ns.PacketSinkHelper("ns3::TcpSocketFactory", sink_address)
                server_apps.Add(sink.Install(ap_node.Get(0)))
                client = ns.BulkSendHelper("ns3::TcpSocketFactory", sink_address)
                client.SetAttribute("SendSize", ns.UintegerValue(plan.packet_size))
                client.SetAttribute("MaxBytes", ns.UintegerValue(0))
            installed = client.Install(sta_nodes.Get(flow.station_index))
            installed.Get(0).SetStartTime(ns.Seconds(flow.start_time_s(plan.timing)))
            client_apps.Add(installed)

        server_apps.Start(ns.Seconds(plan.timing.server_start_s))
        client_apps.Stop(ns.Seconds(plan.timing.client_stop_s))
        server_apps.Stop(ns.Seconds(plan.timing.server_stop_s))

        if plan.pcap_enabled:
            phy_helper.SetPcapDataLinkType(ns.YansWifiPhyHelper.DLT_IEEE802_11_RADIO)
            phy_helper.EnablePcap(self.pcap_prefix, ap_devices.Get(0))
            logger.info("AP capture enabled (%s-*.pcap)", self.pcap_prefix)

        flow_helper = ns.FlowMonitorHelper()
        monitor = flow_helper.InstallAll()
        return Ns3Topology(
            plan=plan,
            sta_nodes=sta_nodes,
            ap_node=ap_node,
            sta_devices=sta_devices,
            ap_devices=ap_devices,
            server_apps=server_apps,
            client_apps=client_apps,
            flow_helper=flow_helper,
            monitor=monitor,
        )

    def run(self, topology: Ns3Topology, duration_s: float) -> list[FlowRecord]:
        ns = self.ns
        ns.Simulator.Stop(ns.Seconds(duration_s))
        try:
            ns.Simulator.Run()
            topology.monitor.CheckForLostPackets()
            records = [
                FlowRecord(
                    flow_id=int(flow_id),
                    tx_packets=int(stats.txPackets),
                    rx_packets=int(stats.rxPackets),
                    rx_bytes=int(stats.rxBytes),
                    lost_packets=int(stats.lostPackets),
                    delay_sum_s=float(stats.delaySum.GetSeconds()),
                )
                for flow_id, stats in topology.monitor.GetFlowStats()
            ]
        finally:
            ns.Simulator.Destroy()
        records.sort(key=lambda record: record.flow_id)
        return records

import pytest

from wifidense.launcher.parameters import (
    ConfigurationError,
    ScenarioParameters,
    TransportProtocol,
    WifiStandard,
    parse_data_rate,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("10Mbps", 10_000_000),
        ("500kbps", 500_000),
        ("1.5Gbps", 1_500_000_000),
        ("64bps", 64),
        ("2 Mb/s", 2_000_000),
        ("1MBps", 8_000_000),
        ("10kBps", 80_000),
    ],
)
def test_parse_data_rate_units(text, expected):
    assert parse_data_rate(text) == expected


@pytest.mark.parametrize("text", ["", "fast", "10", "10 parsecs", "-3Mbps"])
def test_parse_data_rate_rejects_malformed(text):
    with pytest.raises(ConfigurationError):
        parse_data_rate(text)


def test_standard_parse_is_case_insensitive():
    assert WifiStandard.parse("AX") is WifiStandard.AX
    assert WifiStandard.parse(" ac ") is WifiStandard.AC
    assert WifiStandard.parse(WifiStandard.AC) is WifiStandard.AC


def test_unknown_standard_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="use 'ac' or 'ax'"):
        WifiStandard.parse("n")


def test_defaults_match_command_line_table():
    params = ScenarioParameters()
    assert params.standard is WifiStandard.AX
    assert params.station_count == 20
    assert params.packet_size == 1000
    assert params.offered_rate_bps == 10_000_000
    assert params.sim_duration_s == 20.0
    assert params.channel_width_mhz == 80
    assert params.transport is TransportProtocol.UDP
    assert params.pcap_enabled is False
    assert params.quiet_logs is True
    assert params.tx_power_dbm == 20.0
    assert params.region_side_m == 10.0


def test_from_mapping_uses_flag_names():
    params = ScenarioParameters.from_mapping(
        {
            "standard": "ac",
            "nStas": "35",
            "appRate": "5Mbps",
            "useUdp": "false",
            "enablePcap": True,
            "distance": 25,
            "simTime": None,
        }
    )
    assert params.standard is WifiStandard.AC
    assert params.station_count == 35
    assert params.offered_rate_bps == 5_000_000
    assert params.transport is TransportProtocol.TCP
    assert params.pcap_enabled is True
    assert params.region_side_m == 25.0
    assert params.sim_duration_s == 20.0


def test_from_mapping_rejects_unknown_keys_and_values():
    with pytest.raises(ConfigurationError, match="Unknown scenario key"):
        ScenarioParameters.from_mapping({"nStations": 3})
    with pytest.raises(ConfigurationError, match="nStas"):
        ScenarioParameters.from_mapping({"nStas": "many"})
    with pytest.raises(ConfigurationError):
        ScenarioParameters.from_mapping({"useUdp": "maybe"})


def test_as_flags_round_trips_through_from_mapping():
    params = ScenarioParameters(standard=WifiStandard.AC, station_count=7, app_rate="3Mbps")
    assert ScenarioParameters.from_mapping(params.as_flags()) == params


def test_string_tags_are_stored_as_members():
    params = ScenarioParameters(standard="AC", transport="tcp")
    assert params.standard is WifiStandard.AC
    assert params.transport is TransportProtocol.TCP
    with pytest.raises(ConfigurationError, match="Unknown standard"):
        ScenarioParameters(standard="n")
    with pytest.raises(ConfigurationError, match="Unknown transport"):
        ScenarioParameters(transport="sctp")

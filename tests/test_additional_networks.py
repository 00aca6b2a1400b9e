import json

import pytest

from netopconf.additional_networks import (
    ipam_config_json,
    static_ipam_config_json,
    validate_ipam_config,
    validate_raw,
    validate_simple_macvlan_config,
    validate_static_ipam_config,
)
from netopconf.models import (
    AdditionalNetworkDefinition,
    ConfigError,
    IPAMConfig,
    IPAMType,
    MacvlanMode,
    NetworkType,
    SimpleMacvlanConfig,
    StaticIPAMAddress,
    StaticIPAMConfig,
    StaticIPAMDNS,
    StaticIPAMRoute,
)


def raw_networks():
    return [
        AdditionalNetworkDefinition(
            type=NetworkType.RAW, namespace="foobar", name="net-attach-1", raw_cni_config="{}"
        ),
        AdditionalNetworkDefinition(type=NetworkType.RAW, name="net-attach-2", raw_cni_config="{}"),
    ]


def macvlan_network():
    return AdditionalNetworkDefinition(
        type=NetworkType.SIMPLE_MACVLAN,
        name="net-attach-1",
        namespace="foobar",
        simple_macvlan_config=SimpleMacvlanConfig(
            ipam_config=IPAMConfig(type=IPAMType.DHCP),
            master="eth0",
            mode=MacvlanMode.BRIDGE,
        ),
    )


def static_ipam():
    return IPAMConfig(
        type=IPAMType.STATIC,
        static_ipam_config=StaticIPAMConfig(
            addresses=[StaticIPAMAddress(address="10.1.1.2/24", gateway="10.1.1.1")],
            routes=[StaticIPAMRoute(destination="0.0.0.0/0", gateway="10.1.1.1")],
            dns=StaticIPAMDNS(
                nameservers=["10.1.1.1"],
                domain="macvlantest.example",
                search=["testdomain1.example", "testdomain2.example"],
            ),
        ),
    )


def has_error(errors, substr):
    return any(substr in str(err) for err in errors)


def test_validate_raw_valid():
    for cfg in raw_networks():
        assert validate_raw(cfg) == []


def test_validate_raw_errors():
    cfg = raw_networks()[0]
    cfg.raw_cni_config = "wrongCNIConfig"
    assert has_error(validate_raw(cfg), "Failed to Unmarshal RawCNIConfig")

    cfg.name = ""
    errors = validate_raw(cfg)
    assert has_error(errors, "Additional Network Name cannot be nil")
    assert len(errors) == 2


def test_validate_raw_rejects_non_object():
    cfg = raw_networks()[0]
    cfg.raw_cni_config = "[1, 2]"
    errors = validate_raw(cfg)
    assert len(errors) == 1
    assert str(errors[0]).startswith("Failed to Unmarshal RawCNIConfig")


def test_validate_macvlan_valid():
    assert validate_simple_macvlan_config(macvlan_network()) == []


def test_validate_macvlan_errors():
    config = macvlan_network()

    config.name = ""
    assert has_error(validate_simple_macvlan_config(config), "Additional Network Name cannot be nil")

    config.simple_macvlan_config.mode = "invalidMacvlanMode"
    assert has_error(
        validate_simple_macvlan_config(config), "invalid Macvlan mode: invalidMacvlanMode"
    )

    config.simple_macvlan_config.ipam_config.type = "invalidIPAM"
    errors = validate_simple_macvlan_config(config)
    assert has_error(errors, "invalid IPAM type: invalidIPAM")
    assert len(errors) == 3


@pytest.mark.parametrize("mode", ["Bridge", "Private", "VEPA", "Passthru", ""])
def test_validate_macvlan_accepts_known_modes(mode):
    config = macvlan_network()
    config.simple_macvlan_config.mode = mode
    assert validate_simple_macvlan_config(config) == []


def test_static_ipam_config_json():
    obj = json.loads(ipam_config_json(static_ipam()))
    assert len(obj["addresses"]) == 1
    assert obj["addresses"][0]["address"] == "10.1.1.2/24"
    assert obj["addresses"][0]["gateway"] == "10.1.1.1"
    assert len(obj["routes"]) == 1
    assert obj["routes"][0]["dst"] == "0.0.0.0/0"
    assert obj["routes"][0]["gw"] == "10.1.1.1"
    assert obj["dns"]["nameservers"] == ["10.1.1.1"]
    assert obj["dns"]["domain"] == "macvlantest.example"
    assert obj["dns"]["search"] == ["testdomain1.example", "testdomain2.example"]
    assert obj["type"] == "static"
    assert "capabilities" not in obj


def test_nil_static_ipam_config_json():
    obj = json.loads(ipam_config_json(IPAMConfig(type=IPAMType.STATIC)))
    assert "addresses" not in obj
    assert "routes" not in obj
    assert "dns" not in obj
    assert obj["capabilities"] == ["ips"]


def test_static_without_addresses_gets_capability():
    obj = json.loads(static_ipam_config_json(StaticIPAMConfig()))
    assert obj == {"type": "static", "capabilities": ["ips"]}


def test_static_route_destination_is_normalised():
    conf = StaticIPAMConfig(routes=[StaticIPAMRoute(destination="192.168.5.7/16")])
    obj = json.loads(static_ipam_config_json(conf))
    assert obj["routes"] == [{"dst": "192.168.0.0/16"}]


def test_static_invalid_gateway_is_omitted():
    conf = StaticIPAMConfig(addresses=[StaticIPAMAddress(address="10.1.1.2/24", gateway="bogus")])
    obj = json.loads(static_ipam_config_json(conf))
    assert obj["addresses"] == [{"address": "10.1.1.2/24"}]


def test_static_bad_route_raises():
    conf = StaticIPAMConfig(routes=[StaticIPAMRoute(destination="CCC")])
    with pytest.raises(ConfigError, match="failed to parse macvlan route"):
        static_ipam_config_json(conf)


def test_dhcp_ipam_config_json():
    assert ipam_config_json(IPAMConfig(type=IPAMType.DHCP)) == '{ "type": "dhcp" }'
    assert ipam_config_json(None) == '{ "type": "dhcp" }'


def test_unknown_ipam_type_raises():
    with pytest.raises(ConfigError, match="failed to render IPAM JSON"):
        ipam_config_json(IPAMConfig(type="Bogus"))


def test_validate_static_ipam():
    conf = static_ipam()
    assert validate_ipam_config(conf) == []

    static = conf.static_ipam_config
    static.addresses[0].address = "AAA"
    assert has_error(
        validate_ipam_config(conf), "invalid static address: invalid CIDR address: AAA"
    )

    static.addresses[0].gateway = "BBB"
    assert has_error(validate_ipam_config(conf), "invalid gateway: BBB")

    static.routes[0].destination = "CCC"
    assert has_error(
        validate_ipam_config(conf), "invalid route destination: invalid CIDR address: CCC"
    )

    static.routes[0].gateway = "DDD"
    errors = validate_ipam_config(conf)
    assert has_error(errors, "invalid gateway: DDD")
    assert len(errors) == 4


def test_validate_static_requires_prefix():
    conf = StaticIPAMConfig(addresses=[StaticIPAMAddress(address="10.1.1.2")])
    errors = validate_static_ipam_config(conf)
    assert len(errors) == 1
    assert "invalid static address: invalid CIDR address: 10.1.1.2" in str(errors[0])


def test_validate_ipam_static_without_details_and_dhcp():
    assert validate_ipam_config(IPAMConfig(type=IPAMType.STATIC)) == []
    assert validate_ipam_config(IPAMConfig(type=IPAMType.DHCP)) == []
    assert has_error(validate_ipam_config(IPAMConfig(type="")), "invalid IPAM type")
"""Validation and IPAM configuration of additional pod networks."""

from __future__ import annotations

import ipaddress
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from netopconf.models import (
    AdditionalNetworkDefinition,
    ConfigError,
    IPAMConfig,
    IPAMType,
    MacvlanMode,
    StaticIPAMConfig,
)

_IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
_IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

DHCP_IPAM_CONFIG_JSON = '{ "type": "dhcp" }'

_MACVLAN_MODES = frozenset(mode.value for mode in MacvlanMode)


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _parse_ip(text: str) -> Optional[_IPAddress]:
    """Parse a bare IP address, returning None if it is not one."""
    if "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _ip_text(ip: _IPAddress) -> str:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return str(ip.ipv4_mapped)
    return str(ip)


def _parse_cidr(text: str) -> _IPNetwork:
    """Parse an address/prefix pair into the network it lies in."""
    address, sep, prefix = text.partition("/")
    ip = _parse_ip(address) if sep else None
    if ip is None or not (prefix.isascii() and prefix.isdigit()):
        raise ConfigError(f"invalid CIDR address: {text}")
    length = int(prefix)
    if length > ip.max_prefixlen:
        raise ConfigError(f"invalid CIDR address: {text}")
    return ipaddress.ip_network(f"{ip}/{length}", strict=False)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    """Decode a JSON object (or null); raise ValueError on anything else."""

    def reject_constant(name: str) -> Any:
        raise ValueError(f"invalid JSON constant {name}")

    value = json.loads(text, parse_constant=reject_constant)
    if value is not None and not isinstance(value, dict):
        raise ValueError("JSON value is not an object")
    return value


def validate_raw(conf: AdditionalNetworkDefinition) -> List[ConfigError]:
    """Check the name and raw CNI configuration of a Raw additional network."""
    out: List[ConfigError] = []
    if conf.name == "":
        out.append(ConfigError("Additional Network Name cannot be nil"))
    try:
        _loads_object(conf.raw_cni_config)
    except ValueError:
        out.append(ConfigError(f"Failed to Unmarshal RawCNIConfig: {conf.raw_cni_config!r}"))
    return out


def static_ipam_config_json(conf: Optional[StaticIPAMConfig]) -> str:
    """Return the CNI JSON configuration of the static IPAM plugin."""
    result: Dict[str, Any] = {"type": "static"}
    if conf is None:
        # Addresses are supplied as runtime configuration.
        result["capabilities"] = ["ips"]
        return json.dumps(result, separators=(",", ":"))

    addresses = []
    for address in conf.addresses:
        entry: Dict[str, Any] = {"address": address.address}
        gateway = _parse_ip(address.gateway)
        if gateway is not None:
            entry["gateway"] = _ip_text(gateway)
        addresses.append(entry)

    routes = []
    for route in conf.routes:
        try:
            destination = _parse_cidr(route.destination)
        except ConfigError as exc:
            raise ConfigError(f"failed to parse macvlan route: {exc}") from exc
        entry = {"dst": str(destination)}
        gateway = _parse_ip(route.gateway)
        if gateway is not None:
            entry["gw"] = _ip_text(gateway)
        routes.append(entry)

    if routes:
        result["routes"] = routes
    if addresses:
        result["addresses"] = addresses
    if conf.dns is not None:
        dns: Dict[str, Any] = {}
        if conf.dns.nameservers:
            dns["nameservers"] = list(conf.dns.nameservers)
        if conf.dns.domain:
            dns["domain"] = conf.dns.domain
        if conf.dns.search:
            dns["search"] = list(conf.dns.search)
        result["dns"] = dns
    if not conf.addresses:
        result["capabilities"] = ["ips"]
    return json.dumps(result, separators=(",", ":"))


def ipam_config_json(conf: Optional[IPAMConfig]) -> str:
    """Return the CNI JSON configuration for the given IPAM settings."""
    if conf is None or conf.type == IPAMType.DHCP:
        return DHCP_IPAM_CONFIG_JSON
    if conf.type == IPAMType.STATIC:
        return static_ipam_config_json(conf.static_ipam_config)
    raise ConfigError("failed to render IPAM JSON")


def validate_static_ipam_config(conf: StaticIPAMConfig) -> List[ConfigError]:
    """Check the addresses, gateways and routes of a static IPAM config."""
    out: List[ConfigError] = []
    for address in conf.addresses:
        try:
            _parse_cidr(address.address)
        except ConfigError as exc:
            out.append(ConfigError(f"invalid static address: {exc}"))
        if address.gateway and _parse_ip(address.gateway) is None:
            out.append(ConfigError(f"invalid gateway: {address.gateway}"))
    for route in conf.routes:
        try:
            _parse_cidr(route.destination)
        except ConfigError as exc:
            out.append(ConfigError(f"invalid route destination: {exc}"))
        if route.gateway and _parse_ip(route.gateway) is None:
            out.append(ConfigError(f"invalid gateway: {route.gateway}"))
    return out


def validate_ipam_config(conf: IPAMConfig) -> List[ConfigError]:
    """Check the type and, for static IPAM, the settings of an IPAM config."""
    if conf.type == IPAMType.STATIC:
        if conf.static_ipam_config is not None:
            return validate_static_ipam_config(conf.static_ipam_config)
        return []
    if conf.type == IPAMType.DHCP:
        return []
    return [ConfigError(f"invalid IPAM type: {_text(conf.type)}")]


def validate_simple_macvlan_config(conf: AdditionalNetworkDefinition) -> List[ConfigError]:
    """Check the name and macvlan settings of a SimpleMacvlan network."""
    out: List[ConfigError] = []
    if conf.name == "":
        out.append(ConfigError("Additional Network Name cannot be nil"))

    macvlan = conf.simple_macvlan_config
    if macvlan is not None:
        if macvlan.ipam_config is not None:
            out.extend(validate_ipam_config(macvlan.ipam_config))
        mode = _text(macvlan.mode)
        if mode and mode not in _MACVLAN_MODES:
            out.append(ConfigError(f"invalid Macvlan mode: {mode}"))
    return out
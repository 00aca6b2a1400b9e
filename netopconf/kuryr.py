"""Validation, safety checks and defaults of the Kuryr network plugin."""

from __future__ import annotations

import ipaddress
from typing import List, Optional, Union

from netopconf.additional_networks import _parse_cidr
from netopconf.models import ConfigError, KuryrConfig, NetworkSpec

_IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

OVN_PROVIDER = "ovn"

_MIN_MTU = 576
_MAX_MTU = 65536

_DEFAULT_DAEMON_PROBES_PORT = 8090
_DEFAULT_CONTROLLER_PROBES_PORT = 8091
_DEFAULT_POOL_MIN_PORTS = 1
_DEFAULT_POOL_BATCH_PORTS = 3


def _expand_net(network: _IPNetwork) -> _IPNetwork:
    """Return the network twice the size of the given one that contains it."""
    if network.prefixlen == 0:
        return network
    return network.supernet(prefixlen_diff=1)


def _nets_overlap(a: _IPNetwork, b: _IPNetwork) -> bool:
    return a.version == b.version and a.overlaps(b)


def _net_includes(outer: _IPNetwork, inner: _IPNetwork) -> bool:
    return outer.version == inner.version and inner.subnet_of(outer)


def _try_parse(text: Optional[str]) -> Optional[_IPNetwork]:
    if text is None:
        return None
    try:
        return _parse_cidr(text)
    except ConfigError:
        return None


def validate_kuryr(conf: NetworkSpec) -> List[ConfigError]:
    """Check that the Kuryr specific configuration is sane."""
    out: List[ConfigError] = []
    kc = conf.default_network.kuryr_config

    if len(conf.service_network) != 1:
        out.append(ConfigError("serviceNetwork must have exactly 1 entry"))
    if len(conf.cluster_network) != 1:
        out.append(ConfigError("clusterNetwork must have exactly 1 entry"))

    svc_net = _try_parse(conf.service_network[0] if conf.service_network else None)
    if svc_net is None:
        out.append(ConfigError("cannot parse serviceNetwork[0] CIDR"))

    cluster_cidr = conf.cluster_network[0].cidr if conf.cluster_network else None
    cluster_net = _try_parse(cluster_cidr)
    if cluster_net is None:
        out.append(ConfigError("cannot parse clusterNetwork[0].CIDR CIDR"))

    octavia_net: Optional[_IPNetwork]
    if kc is not None and kc.open_stack_service_network != "":
        octavia_net = _try_parse(kc.open_stack_service_network)
        if octavia_net is None:
            out.append(
                ConfigError(
                    "cannot parse defaultNetwork.kuryrConfig.octaviaServiceNetwork CIDR"
                )
            )
    else:
        octavia_net = _expand_net(svc_net) if svc_net is not None else None

    if kc is not None and kc.pool_batch_ports is not None:
        batch = kc.pool_batch_ports
        if batch > 0:
            if kc.pool_min_ports > 0 and batch < kc.pool_min_ports:
                out.append(ConfigError("poolBatchPorts cannot be set below poolMinPorts"))
            if kc.pool_max_ports > 0 and batch > kc.pool_max_ports:
                out.append(ConfigError("poolBatchPorts cannot be set above poolMaxPorts"))
        else:
            out.append(ConfigError("poolBatchPorts has to have at least value of 1"))

    if octavia_net is not None:
        if cluster_net is not None and _nets_overlap(octavia_net, cluster_net):
            out.append(
                ConfigError(
                    f"octaviaServiceNetwork {octavia_net} will overlap with "
                    f"cluster network {cluster_cidr}"
                )
            )
        if svc_net is not None:
            if not _net_includes(octavia_net, svc_net):
                out.append(
                    ConfigError(
                        f"octaviaServiceNetwork {octavia_net} does not include serviceNetwork "
                        f"{svc_net} (the octaviaServiceNetwork needs to be twice the size of "
                        "serviceNetwork and include it)"
                    )
                )
            if octavia_net.prefixlen >= svc_net.prefixlen:
                out.append(
                    ConfigError(
                        f"octaviaServiceNetwork {octavia_net} is too small comparing to "
                        f"serviceNetwork {svc_net} (the octaviaServiceNetwork needs to be "
                        "twice the size of the serviceNetwork and include it)"
                    )
                )

    if kc is not None and kc.mtu is not None and not _MIN_MTU <= kc.mtu <= _MAX_MTU:
        out.append(ConfigError(f"invalid MTU {kc.mtu}"))

    return out


def is_kuryr_change_safe(prev: NetworkSpec, next: NetworkSpec) -> List[ConfigError]:
    """Return the reasons a Kuryr change is unsafe.

    Only changes to kuryr.conf settings are allowed, not to resources created
    during bootstrap.
    """
    pn = prev.default_network.kuryr_config
    nn = next.default_network.kuryr_config
    if pn == nn:
        return []
    pn = pn if pn is not None else KuryrConfig()
    nn = nn if nn is not None else KuryrConfig()

    errs: List[ConfigError] = []
    if pn.open_stack_service_network != nn.open_stack_service_network:
        errs.append(ConfigError("cannot change kuryr openStackServiceNetwork"))
    if pn.mtu != nn.mtu:
        errs.append(ConfigError("cannot change mtu for the Pods Network"))
    return errs


def fill_kuryr_defaults(conf: NetworkSpec, previous: Optional[NetworkSpec]) -> None:
    """Fill in Kuryr defaults in place; the MTU is taken from ``previous``."""
    if conf.default_network.kuryr_config is None:
        conf.default_network.kuryr_config = KuryrConfig()
    kc = conf.default_network.kuryr_config

    if kc.daemon_probes_port is None:
        kc.daemon_probes_port = _DEFAULT_DAEMON_PROBES_PORT
    if kc.controller_probes_port is None:
        kc.controller_probes_port = _DEFAULT_CONTROLLER_PROBES_PORT

    if kc.open_stack_service_network == "":
        if not conf.service_network:
            raise ConfigError("serviceNetwork is empty")
        svc_net = _parse_cidr(conf.service_network[0])
        kc.open_stack_service_network = str(_expand_net(svc_net))

    if kc.pool_min_ports == 0:
        kc.pool_min_ports = _DEFAULT_POOL_MIN_PORTS
    if kc.pool_batch_ports is None:
        kc.pool_batch_ports = _DEFAULT_POOL_BATCH_PORTS

    if kc.mtu is None and previous is not None:
        prev_kc = previous.default_network.kuryr_config
        if prev_kc is not None and prev_kc.mtu is not None:
            kc.mtu = prev_kc.mtu
"""Validation, safety checks, defaults and ClusterNetwork of openshift-sdn."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml

from netopconf.additional_networks import _parse_cidr
from netopconf.kube_proxy import no_kube_proxy_config
from netopconf.models import (
    ConfigError,
    NetworkSpec,
    NetworkType,
    OpenShiftSDNConfig,
    ProxyConfig,
    SDNMode,
)
from netopconf.mtu import MAX_MTU, MIN_MTU_IPV4, MTUError, get_default_mtu

logger = logging.getLogger(__name__)

# Size of the VXLAN header carried on top of every pod packet.
SDN_OVERHEAD = 50
DEFAULT_VXLAN_PORT = 4789
CLUSTER_NETWORK_DEFAULT = "default"

_PLUGIN_NAMES = {
    SDNMode.SUBNET.value: "redhat/openshift-ovs-subnet",
    SDNMode.MULTITENANT.value: "redhat/openshift-ovs-multitenant",
    SDNMode.NETWORK_POLICY.value: "redhat/openshift-ovs-networkpolicy",
}


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def sdn_plugin_name(mode: Any) -> str:
    """Return the plugin name for an SDN mode, or "" if the mode is unknown."""
    return _PLUGIN_NAMES.get(_text(mode), "")


def validate_openshift_sdn(conf: NetworkSpec) -> List[ConfigError]:
    """Check that the openshift-sdn specific configuration is sane."""
    out: List[ConfigError] = []

    if not conf.cluster_network:
        out.append(ConfigError("ClusterNetwork cannot be empty"))
    if len(conf.service_network) != 1:
        out.append(ConfigError("ServiceNetwork must have exactly 1 entry"))

    sc = conf.default_network.openshift_sdn_config
    if sc is not None:
        mode = _text(sc.mode)
        if mode != "" and sdn_plugin_name(mode) == "":
            quoted = json.dumps(mode, ensure_ascii=False)
            out.append(ConfigError(f"invalid openshift-sdn mode {quoted}"))

        if sc.vxlan_port is not None and not 1 <= sc.vxlan_port <= 65535:
            out.append(ConfigError(f"invalid VXLANPort {sc.vxlan_port}"))

        if sc.mtu is not None and not MIN_MTU_IPV4 <= sc.mtu <= MAX_MTU:
            out.append(ConfigError(f"invalid MTU {sc.mtu}"))

        # Unidling only works when the proxy mode is unset or iptables.
        unidling = sc.enable_unidling is None or sc.enable_unidling
        proxy = conf.kube_proxy_config
        proxy_mode = (proxy.proxy_arguments or {}).get("proxy-mode") if proxy else None
        if unidling and proxy_mode and proxy_mode[0] != "iptables":
            out.append(
                ConfigError(
                    'invalid proxy-mode - when unidling is enabled, proxy-mode must be "iptables"'
                )
            )

    if conf.deploy_kube_proxy:
        # An external kube-proxy is tolerated only in narrow testing setups;
        # the message deliberately does not say so.
        if (
            sc is None
            or sc.enable_unidling is None
            or sc.enable_unidling
            or not no_kube_proxy_config(conf)
        ):
            out.append(ConfigError("openshift-sdn does not support 'deployKubeProxy: true'"))

    return out


def _check_mtu_migration(prev: NetworkSpec, next: NetworkSpec, pn: OpenShiftSDNConfig) -> List[ConfigError]:
    errs: List[ConfigError] = []
    migration = next.migration.mtu  # type: ignore[union-attr]
    mtu_net = migration.network
    mtu_mach = migration.machine
    if (
        mtu_net is None
        or mtu_mach is None
        or mtu_net.from_ is None
        or mtu_net.to is None
        or mtu_mach.to is None
    ):
        return [ConfigError("invalid Migration.MTU, at least one of the required fields is missing")]

    # The source MTU is only checked when it changes.
    prev_net = (
        prev.migration.mtu.network
        if prev.migration is not None and prev.migration.mtu is not None
        else None
    )
    check_prev_mtu = prev_net is None or prev_net.from_ != mtu_net.from_
    if check_prev_mtu and mtu_net.from_ != pn.mtu:
        errs.append(
            ConfigError(
                f"invalid Migration.MTU.Network.From({mtu_net.from_}) not equal to the "
                f"currently applied MTU({pn.mtu})"
            )
        )

    if not MIN_MTU_IPV4 <= mtu_net.to <= MAX_MTU:
        errs.append(
            ConfigError(
                f"invalid Migration.MTU.Network.To({mtu_net.to}), has to be in range: "
                f"{MIN_MTU_IPV4}-{MAX_MTU}"
            )
        )
    if not MIN_MTU_IPV4 <= mtu_mach.to <= MAX_MTU:
        errs.append(
            ConfigError(
                f"invalid Migration.MTU.Machine.To({mtu_mach.to}), has to be in range: "
                f"{MIN_MTU_IPV4}-{MAX_MTU}"
            )
        )
    if mtu_net.to + SDN_OVERHEAD > mtu_mach.to:
        errs.append(
            ConfigError(
                f"invalid Migration.MTU.Machine.To({mtu_mach.to}), has to be at least "
                f"{mtu_net.to + SDN_OVERHEAD}"
            )
        )
    return errs


def is_openshift_sdn_change_safe(prev: NetworkSpec, next: NetworkSpec) -> List[ConfigError]:
    """Return the reasons a change to the running openshift-sdn is unsafe.

    Only useExternalOpenvswitch and enableUnidling may change freely; the MTU
    may change through a migration. Defaults must already be applied.
    """
    pn = prev.default_network.openshift_sdn_config
    nn = next.default_network.openshift_sdn_config
    if pn == nn and prev.migration == next.migration:
        return []
    pn = pn if pn is not None else OpenShiftSDNConfig()
    nn = nn if nn is not None else OpenShiftSDNConfig()

    errs: List[ConfigError] = []
    if _text(pn.mode) != _text(nn.mode):
        errs.append(ConfigError("cannot change openshift-sdn mode"))
    if pn.vxlan_port != nn.vxlan_port:
        errs.append(ConfigError("cannot change openshift-sdn vxlanPort"))

    if next.migration is not None and next.migration.mtu is not None:
        errs.extend(_check_mtu_migration(prev, next, pn))
    elif pn.mtu != nn.mtu:
        errs.append(ConfigError("cannot change openshift-sdn mtu without migration"))
    return errs


def _fallback_host_mtu() -> int:
    logger.warning("BUG: Probed MTU wasn't supplied, but was needed. Falling back to host MTU")
    try:
        host_mtu = get_default_mtu()
    except MTUError:
        host_mtu = 0
    if host_mtu == 0:
        raise ConfigError("BUG: Probed MTU wasn't supplied, host MTU invalid")
    return host_mtu


def fill_openshift_sdn_defaults(
    conf: NetworkSpec, previous: Optional[NetworkSpec], host_mtu: int
) -> None:
    """Fill in openshift-sdn defaults in place.

    The MTU is taken from ``previous`` when it was also openshift-sdn, and
    otherwise derived from ``host_mtu`` minus the VXLAN overhead.
    """
    if conf.deploy_kube_proxy is None:
        conf.deploy_kube_proxy = False

    if conf.kube_proxy_config is None:
        conf.kube_proxy_config = ProxyConfig()
    if conf.kube_proxy_config.bind_address == "":
        conf.kube_proxy_config.bind_address = "0.0.0.0"
    if conf.kube_proxy_config.proxy_arguments is None:
        conf.kube_proxy_config.proxy_arguments = {}

    if conf.default_network.openshift_sdn_config is None:
        conf.default_network.openshift_sdn_config = OpenShiftSDNConfig()
    sc = conf.default_network.openshift_sdn_config

    if sc.vxlan_port is None:
        sc.vxlan_port = DEFAULT_VXLAN_PORT
    if sc.enable_unidling is None:
        sc.enable_unidling = True

    # The MTU can never change, so the previous value always wins.
    if sc.mtu is None:
        prev_sc = previous.default_network.openshift_sdn_config if previous is not None else None
        if (
            previous is not None
            and previous.default_network.type == NetworkType.OPENSHIFT_SDN
            and prev_sc is not None
            and prev_sc.mtu is not None
        ):
            sc.mtu = prev_sc.mtu
        else:
            if host_mtu == 0:
                host_mtu = _fallback_host_mtu()
            sc.mtu = host_mtu - SDN_OVERHEAD

    if _text(sc.mode) == "":
        sc.mode = SDNMode.NETWORK_POLICY


def cluster_network(conf: NetworkSpec) -> str:
    """Return the YAML of the ClusterNetwork object used by controller and nodes."""
    sc = conf.default_network.openshift_sdn_config or OpenShiftSDNConfig()
    if not conf.cluster_network:
        raise ConfigError("ClusterNetwork cannot be empty")
    if not conf.service_network:
        raise ConfigError("ServiceNetwork must have exactly 1 entry")

    networks: List[Dict[str, Any]] = []
    for entry in conf.cluster_network:
        cidr = _parse_cidr(entry.cidr)
        networks.append(
            {"CIDR": entry.cidr, "hostSubnetLength": cidr.max_prefixlen - entry.host_prefix}
        )

    document: Dict[str, Any] = {
        "apiVersion": "network.openshift.io/v1",
        "kind": "ClusterNetwork",
        "metadata": {"creationTimestamp": None, "name": CLUSTER_NETWORK_DEFAULT},
        "clusterNetworks": networks,
        "serviceNetwork": conf.service_network[0],
    }
    plugin_name = sdn_plugin_name(sc.mode)
    if plugin_name:
        document["pluginName"] = plugin_name
    if networks[0]["CIDR"]:
        document["network"] = networks[0]["CIDR"]
    if networks[0]["hostSubnetLength"]:
        document["hostsubnetlength"] = networks[0]["hostSubnetLength"]
    if sc.vxlan_port is not None:
        document["vxlanPort"] = int(sc.vxlan_port)
    if sc.mtu is not None:
        document["mtu"] = int(sc.mtu)

    return yaml.safe_dump(document, default_flow_style=False, sort_keys=True)
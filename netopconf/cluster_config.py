"""Validation and merging of the cluster-wide network configuration."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, List, Optional, Union
import ipaddress

from netopconf.additional_networks import _parse_cidr
from netopconf.models import (
    ClusterNetworkConfig,
    ClusterNetworkEntry,
    ConfigError,
    MTUMigration,
    NetworkMigration,
    NetworkSpec,
    NetworkStatus,
    NetworkType,
)

_IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

# Plugins that require hostPrefix to be set.
_PLUGINS_USING_HOST_PREFIX = frozenset(
    {NetworkType.OPENSHIFT_SDN.value, NetworkType.OVN_KUBERNETES.value}
)

_KNOWN_NETWORK_TYPES = frozenset(
    {NetworkType.OPENSHIFT_SDN.value, NetworkType.OVN_KUBERNETES.value, NetworkType.KURYR.value}
)

_DUAL_STACK_PLATFORMS = frozenset({"BareMetal", "None"})


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class _IPPool:
    """A set of networks that must not overlap one another."""

    def __init__(self) -> None:
        self._networks: List[_IPNetwork] = []

    def add(self, network: _IPNetwork) -> None:
        for existing in self._networks:
            if existing.version == network.version and existing.overlaps(network):
                raise ConfigError(f"CIDRs {existing} and {network} overlap")
        self._networks.append(network)


def validate_cluster_config(cluster_config: ClusterNetworkConfig, platform_type: str) -> None:
    """Raise ConfigError if the cluster network configuration is invalid.

    ``platform_type`` is the infrastructure platform the cluster runs on;
    dual-stack networking is only allowed on BareMetal and None platforms.
    """
    pool = _IPPool()
    ipv4_service = ipv6_service = ipv4_cluster = ipv6_cluster = False

    for snet in cluster_config.service_network:
        try:
            cidr = _parse_cidr(snet)
        except ConfigError as exc:
            raise ConfigError(f"could not parse spec.serviceNetwork {snet}: {exc}") from exc
        if cidr.version == 6:
            ipv6_service = True
        else:
            ipv4_service = True
        pool.add(cidr)

    count = len(cluster_config.service_network)
    if count == 0:
        raise ConfigError("spec.serviceNetwork must have at least 1 entry")
    if (count == 2 and not (ipv4_service and ipv6_service)) or count > 2:
        raise ConfigError("spec.serviceNetwork must contain at most one IPv4 and one IPv6 network")

    network_type = _text(cluster_config.network_type)
    for cnet in cluster_config.cluster_network:
        try:
            cidr = _parse_cidr(cnet.cidr)
        except ConfigError as exc:
            raise ConfigError(f"could not parse spec.clusterNetwork {cnet.cidr}") from exc
        if cidr.version == 6:
            ipv6_cluster = True
        else:
            ipv4_cluster = True
        # hostPrefix is ignored when the plugin does not use it and it is unset.
        if network_type in _PLUGINS_USING_HOST_PREFIX or cnet.host_prefix != 0:
            ones, bits = cidr.prefixlen, cidr.max_prefixlen
            # A smaller prefix length is a larger block.
            if cnet.host_prefix < ones:
                raise ConfigError(
                    f"hostPrefix {cnet.host_prefix} is larger than its cidr {cnet.cidr}"
                )
            if cnet.host_prefix > bits - 2:
                raise ConfigError(
                    f"hostPrefix {cnet.host_prefix} is too small, must be a /{bits - 2} or larger"
                )
        pool.add(cidr)

    if not cluster_config.cluster_network:
        raise ConfigError("spec.clusterNetwork must have at least 1 entry")
    if ipv4_cluster != ipv4_service or ipv6_cluster != ipv6_service:
        raise ConfigError(
            "spec.clusterNetwork and spec.serviceNetwork must either both be IPv4-only, "
            "both be IPv6-only, or both be dual-stack"
        )

    if network_type == "":
        raise ConfigError("spec.networkType is required")

    dual_stack = (ipv4_service and ipv6_service) or (ipv4_cluster and ipv6_cluster)
    if dual_stack and _text(platform_type) not in _DUAL_STACK_PLATFORMS:
        raise ConfigError(
            "DualStack deployments are allowed only for the BareMetal Platform type "
            "or the None Platform type"
        )


def merge_cluster_config(oper_conf: NetworkSpec, cluster_conf: ClusterNetworkConfig) -> None:
    """Copy the cluster configuration into the operator configuration in place."""
    oper_conf.service_network = list(cluster_conf.service_network)
    oper_conf.cluster_network = [
        ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
        for cnet in cluster_conf.cluster_network
    ]
    oper_conf.default_network.type = cluster_conf.network_type
    if oper_conf.management_state == "":
        oper_conf.management_state = "Managed"


def _plugin_mtu(oper_conf: NetworkSpec, network_type: str) -> Optional[int]:
    default = oper_conf.default_network
    if network_type == NetworkType.OPENSHIFT_SDN.value:
        config: Any = default.openshift_sdn_config
    elif network_type == NetworkType.OVN_KUBERNETES.value:
        config = default.ovn_kubernetes_config
    elif network_type == NetworkType.KURYR.value:
        config = default.kuryr_config
    else:
        return None
    if config is None or config.mtu is None:
        raise ConfigError(f"MTU of network type {network_type} is not set")
    return int(config.mtu)


def status_from_operator_config(oper_conf: NetworkSpec, old_status: NetworkStatus) -> NetworkStatus:
    """Build the cluster network status from the applied operator configuration.

    Status fields set by an unknown network plugin are preserved.
    """
    network_type = _text(oper_conf.default_network.type)
    known = network_type in _KNOWN_NETWORK_TYPES
    status = NetworkStatus() if known else old_status.copy()

    if old_status.network_type == "" or known:
        status.network_type = network_type
    if not old_status.service_network or known:
        status.service_network = list(oper_conf.service_network)
    if not old_status.cluster_network or known:
        status.cluster_network.extend(
            ClusterNetworkEntry(cidr=cnet.cidr, host_prefix=cnet.host_prefix)
            for cnet in oper_conf.cluster_network
        )

    mtu = _plugin_mtu(oper_conf, network_type)
    if mtu is not None:
        status.cluster_network_mtu = mtu

    migration = oper_conf.migration
    if migration is None:
        status.migration = None
    else:
        status.migration = NetworkMigration(network_type=_text(migration.network_type))
        if migration.mtu is not None:
            status.migration.mtu = MTUMigration(
                network=copy.deepcopy(migration.mtu.network),
                machine=copy.deepcopy(migration.mtu.machine),
            )
    return status
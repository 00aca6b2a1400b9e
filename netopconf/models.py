"""Configuration objects for the cluster network and its plugins."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ConfigError(Exception):
    """Raised when a network configuration is invalid or cannot be processed."""


class NetworkType(str, Enum):
    """Known network plugin types. Other, unknown types are plain strings."""

    OPENSHIFT_SDN = "OpenShiftSDN"
    OVN_KUBERNETES = "OVNKubernetes"
    KURYR = "Kuryr"
    RAW = "Raw"
    SIMPLE_MACVLAN = "SimpleMacvlan"


class IPAMType(str, Enum):
    """IP address management types for simple macvlan networks."""

    DHCP = "DHCP"
    STATIC = "Static"


class MacvlanMode(str, Enum):
    """Macvlan operating modes."""

    BRIDGE = "Bridge"
    PRIVATE = "Private"
    VEPA = "VEPA"
    PASSTHRU = "Passthru"


class SDNMode(str, Enum):
    """Isolation modes of the openshift-sdn plugin."""

    SUBNET = "Subnet"
    MULTITENANT = "Multitenant"
    NETWORK_POLICY = "NetworkPolicy"


@dataclass
class ClusterNetworkEntry:
    """A pod network CIDR and the prefix length allocated to each node."""

    cidr: str
    host_prefix: int = 0


@dataclass
class ProxyConfig:
    """Settings for kube-proxy."""

    iptables_sync_period: str = ""
    bind_address: str = ""
    proxy_arguments: Optional[Dict[str, List[str]]] = None


@dataclass
class StaticIPAMAddress:
    """A static address with an optional gateway."""

    address: str
    gateway: str = ""


@dataclass
class StaticIPAMRoute:
    """A static route with an optional gateway."""

    destination: str
    gateway: str = ""


@dataclass
class StaticIPAMDNS:
    """DNS settings for static IPAM."""

    nameservers: List[str] = field(default_factory=list)
    domain: str = ""
    search: List[str] = field(default_factory=list)


@dataclass
class StaticIPAMConfig:
    """Static IP address management settings."""

    addresses: List[StaticIPAMAddress] = field(default_factory=list)
    routes: List[StaticIPAMRoute] = field(default_factory=list)
    dns: Optional[StaticIPAMDNS] = None


@dataclass
class IPAMConfig:
    """IP address management for a simple macvlan network."""

    type: str = ""
    static_ipam_config: Optional[StaticIPAMConfig] = None


@dataclass
class SimpleMacvlanConfig:
    """Settings of a simple macvlan additional network."""

    master: str = ""
    ipam_config: Optional[IPAMConfig] = None
    mode: str = ""
    mtu: int = 0


@dataclass
class AdditionalNetworkDefinition:
    """A secondary network attached to pods."""

    type: str = ""
    name: str = ""
    namespace: str = ""
    raw_cni_config: str = ""
    simple_macvlan_config: Optional[SimpleMacvlanConfig] = None


@dataclass
class OpenShiftSDNConfig:
    """Settings of the openshift-sdn plugin."""

    mode: str = ""
    vxlan_port: Optional[int] = None
    mtu: Optional[int] = None
    use_external_openvswitch: Optional[bool] = None
    enable_unidling: Optional[bool] = None


@dataclass
class OVNKubernetesConfig:
    """Settings of the OVN-Kubernetes plugin relevant to status reporting."""

    mtu: Optional[int] = None


@dataclass
class KuryrConfig:
    """Settings of the Kuryr plugin."""

    daemon_probes_port: Optional[int] = None
    controller_probes_port: Optional[int] = None
    open_stack_service_network: str = ""
    enable_port_pools_prepopulation: bool = False
    pool_max_ports: int = 0
    pool_min_ports: int = 0
    pool_batch_ports: Optional[int] = None
    mtu: Optional[int] = None


@dataclass
class MTUMigrationValues:
    """The source and target MTU of a migration."""

    to: Optional[int] = None
    from_: Optional[int] = None


@dataclass
class MTUMigration:
    """MTU migration for the pod network and for the machines."""

    network: Optional[MTUMigrationValues] = None
    machine: Optional[MTUMigrationValues] = None


@dataclass
class NetworkMigration:
    """An ongoing network migration."""

    network_type: str = ""
    mtu: Optional[MTUMigration] = None


@dataclass
class DefaultNetworkDefinition:
    """The cluster's default pod network plugin and its settings."""

    type: str = ""
    openshift_sdn_config: Optional[OpenShiftSDNConfig] = None
    ovn_kubernetes_config: Optional[OVNKubernetesConfig] = None
    kuryr_config: Optional[KuryrConfig] = None


@dataclass
class NetworkSpec:
    """The operator's network configuration."""

    cluster_network: List[ClusterNetworkEntry] = field(default_factory=list)
    service_network: List[str] = field(default_factory=list)
    default_network: DefaultNetworkDefinition = field(default_factory=DefaultNetworkDefinition)
    additional_networks: List[AdditionalNetworkDefinition] = field(default_factory=list)
    disable_multi_network: Optional[bool] = None
    use_multi_network_policy: Optional[bool] = None
    deploy_kube_proxy: Optional[bool] = None
    kube_proxy_config: Optional[ProxyConfig] = None
    log_level: str = ""
    management_state: str = ""
    migration: Optional[NetworkMigration] = None

    def copy(self) -> "NetworkSpec":
        """Return an independent deep copy."""
        return _copy.deepcopy(self)


@dataclass
class ClusterNetworkConfig:
    """The cluster-wide network configuration supplied by the user."""

    cluster_network: List[ClusterNetworkEntry] = field(default_factory=list)
    service_network: List[str] = field(default_factory=list)
    network_type: str = ""

    def copy(self) -> "ClusterNetworkConfig":
        """Return an independent deep copy."""
        return _copy.deepcopy(self)


@dataclass
class NetworkStatus:
    """The cluster-wide network status derived from the applied configuration."""

    cluster_network: List[ClusterNetworkEntry] = field(default_factory=list)
    service_network: List[str] = field(default_factory=list)
    network_type: str = ""
    cluster_network_mtu: int = 0
    migration: Optional[NetworkMigration] = None

    def copy(self) -> "NetworkStatus":
        """Return an independent deep copy."""
        return _copy.deepcopy(self)
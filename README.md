# netopconf

Checks and completes the network configuration of a container cluster: the
cluster and service networks, the default network plugin (OpenShift SDN,
OVN-Kubernetes, Kuryr or another plugin), kube-proxy options, and the
additional networks attached to pods through Multus.

## Installation

```
pip install .
```

## Modules

- `netopconf.models`: dataclasses describing the configuration
  (`NetworkSpec`, `ClusterNetworkConfig`, `NetworkStatus` and their parts
  such as `ClusterNetworkEntry`, `ProxyConfig`, `OpenShiftSDNConfig`,
  `KuryrConfig`, `AdditionalNetworkDefinition` and `NetworkMigration`), the
  enums `NetworkType`, `IPAMType`, `MacvlanMode` and `SDNMode`, and the
  `ConfigError` exception. `NetworkSpec`, `ClusterNetworkConfig` and
  `NetworkStatus` have a `copy()` method that returns a deep copy.
- `netopconf.cluster_config`:
  - `validate_cluster_config(cluster_config, platform_type)` raises
    `ConfigError` for unparsable or overlapping CIDRs, a wrong number or mix
    of service networks, an unsuitable `host_prefix`, mismatched IP families
    between cluster and service networks, a missing network type, or a
    dual-stack setup on a platform other than `BareMetal` or `None`.
  - `merge_cluster_config(oper_conf, cluster_conf)` copies the cluster
    settings into a `NetworkSpec` in place and sets the management state to
    `Managed` if it is empty.
  - `status_from_operator_config(oper_conf, old_status)` builds a
    `NetworkStatus`; fields set by an unknown network plugin are kept.
- `netopconf.kube_proxy`: `validate_kube_proxy`, `fill_kube_proxy_defaults`,
  `accepts_kube_proxy_config`, `no_kube_proxy_config`,
  `default_deploy_kube_proxy` and `is_kube_proxy_change_safe` (every
  kube-proxy change is considered safe).
- `netopconf.openshift_sdn`: `validate_openshift_sdn`,
  `fill_openshift_sdn_defaults`, `is_openshift_sdn_change_safe` (including
  checks of an MTU migration), `sdn_plugin_name`, and `cluster_network`,
  which returns the ClusterNetwork document as YAML.
- `netopconf.kuryr`: `validate_kuryr`, `fill_kuryr_defaults` and
  `is_kuryr_change_safe`.
- `netopconf.additional_networks`: `validate_raw`,
  `validate_simple_macvlan_config`, `validate_ipam_config`,
  `validate_static_ipam_config`, and `ipam_config_json` /
  `static_ipam_config_json`, which produce the CNI IPAM configuration as
  JSON text.
- `netopconf.dhcp`: `use_dhcp`, `use_dhcp_raw` and
  `use_dhcp_simple_macvlan` decide whether the DHCP daemon is needed.
- `netopconf.multus`: `plugin_cni_conf_dir` and the constants
  `SYSTEM_CNI_CONF_DIR`, `MULTUS_CNI_CONF_DIR` and `CNI_BIN_DIR`.
- `netopconf.mtu`: `get_default_mtu()` returns the smallest MTU among the
  links that carry a default route, read from `/proc/net` and
  `/sys/class/net` on Linux; on other platforms it returns 1500. It raises
  `MTUError` when the MTU cannot be determined. The module also holds
  `MIN_MTU_IPV4`, `MIN_MTU_IPV6` and `MAX_MTU`.

## Example

```python
from netopconf.models import ClusterNetworkConfig, ClusterNetworkEntry
from netopconf.cluster_config import validate_cluster_config

config = ClusterNetworkConfig(
    cluster_network=[ClusterNetworkEntry(cidr="10.128.0.0/14", host_prefix=23)],
    service_network=["172.30.0.0/16"],
    network_type="OpenShiftSDN",
)
validate_cluster_config(config, "BareMetal")  # raises ConfigError if invalid
```

`validate_cluster_config` raises `ConfigError` at the first problem. The
other `validate_*` and `is_*_change_safe` functions return a list of
`ConfigError` objects, one for each problem found, so that all of them can
be reported together; an empty list means the configuration is acceptable.
The `fill_*_defaults` functions change the `NetworkSpec` they are given.

## What it does not do

The package works on configuration objects only. It does not render
Kubernetes manifests, does not connect to a cluster or read its
infrastructure (the platform type is passed in by the caller), does not
create cloud resources, and has no command-line tool or long-running
controller.

## Running the tests

```
pip install .[test]
pytest
```
"""Validation and defaults of the kube-proxy configuration."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from netopconf.additional_networks import _parse_cidr, _parse_ip
from netopconf.models import ConfigError, NetworkSpec, NetworkType, ProxyConfig

_DURATION = re.compile(r"[-+]?(?:0|(?:(?:\d+\.?\d*|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+)")
_UNITLESS = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)")


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _duration_error(text: str) -> Optional[str]:
    """Return why text is not a duration, or None if it is one."""
    if _DURATION.fullmatch(text):
        return None
    if _UNITLESS.fullmatch(text):
        return f'time: missing unit in duration "{text}"'
    return f'time: invalid duration "{text}"'


def accepts_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Return whether the network type allows kube-proxy options to be set.

    OVNKubernetes and Kuryr do not use kube-proxy; every other type does.
    """
    return conf.default_network.type not in (NetworkType.OVN_KUBERNETES, NetworkType.KURYR)


def no_kube_proxy_config(conf: NetworkSpec) -> bool:
    """Return whether no kube-proxy options beyond the defaults are set."""
    proxy = conf.kube_proxy_config
    if proxy is None:
        return True
    if proxy.iptables_sync_period != "" or proxy.proxy_arguments:
        return False
    return proxy.bind_address in ("", "0.0.0.0", "::")


def validate_kube_proxy(conf: NetworkSpec) -> List[ConfigError]:
    """Check that the kube-proxy configuration is sane."""
    out: List[ConfigError] = []
    proxy = conf.kube_proxy_config
    if proxy is None:
        return out

    if not accepts_kube_proxy_config(conf):
        if not no_kube_proxy_config(conf):
            out.append(
                ConfigError(
                    f'network type "{_text(conf.default_network.type)}" '
                    "does not allow specifying kube-proxy options"
                )
            )
        return out

    if proxy.iptables_sync_period != "":
        reason = _duration_error(proxy.iptables_sync_period)
        if reason is not None:
            out.append(ConfigError(f"IptablesSyncPeriod is not a valid duration ({reason})"))

    if proxy.bind_address != "" and _parse_ip(proxy.bind_address) is None:
        out.append(ConfigError("BindAddress must be a valid IP address"))

    # Ports cannot be overridden; the old default values are still accepted.
    args = proxy.proxy_arguments or {}
    if "metrics-port" in args and list(args["metrics-port"]) != ["9101"]:
        out.append(ConfigError("kube-proxy --metrics-port cannot be overridden"))
    if "healthz-port" in args and list(args["healthz-port"]) != ["10256"]:
        out.append(ConfigError("kube-proxy --healthz-port cannot be overridden"))
    if "feature-gates" in args:
        out.append(ConfigError("kube-proxy --feature-gates cannot be overridden"))
    return out


def default_deploy_kube_proxy(conf: NetworkSpec) -> bool:
    """Return whether a standalone kube-proxy is deployed by default.

    OpenShiftSDN deploys its own; OVNKubernetes and Kuryr handle services
    themselves; every other provider needs a standalone kube-proxy.
    """
    return conf.default_network.type not in (
        NetworkType.OPENSHIFT_SDN,
        NetworkType.OVN_KUBERNETES,
        NetworkType.KURYR,
    )


def fill_kube_proxy_defaults(conf: NetworkSpec, previous: Optional[NetworkSpec]) -> None:
    """Fill in kube-proxy defaults in place if kube-proxy is to be deployed."""
    if conf.deploy_kube_proxy is None:
        conf.deploy_kube_proxy = default_deploy_kube_proxy(conf)
    if not conf.deploy_kube_proxy:
        return

    if conf.kube_proxy_config is None:
        conf.kube_proxy_config = ProxyConfig()

    if conf.kube_proxy_config.bind_address == "":
        if not conf.cluster_network:
            raise ConfigError("clusterNetwork is empty")
        cidr = conf.cluster_network[0].cidr
        try:
            _parse_cidr(cidr)
        except ConfigError:
            return
        ip = _parse_ip(cidr.partition("/")[0])
        is_ipv4 = ip is not None and (ip.version == 4 or getattr(ip, "ipv4_mapped", None) is not None)
        conf.kube_proxy_config.bind_address = "0.0.0.0" if is_ipv4 else "::"


def is_kube_proxy_change_safe(prev: NetworkSpec, next: NetworkSpec) -> List[ConfigError]:
    """Return the reasons a kube-proxy change is unsafe; all changes are safe."""
    return []
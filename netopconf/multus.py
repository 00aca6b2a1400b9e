"""Paths used by Multus and the CNI plugins it delegates to."""

from __future__ import annotations

from netopconf.models import NetworkSpec

SYSTEM_CNI_CONF_DIR = "/etc/kubernetes/cni/net.d"
MULTUS_CNI_CONF_DIR = "/var/run/multus/cni/net.d"
CNI_BIN_DIR = "/var/lib/cni/bin"


def plugin_cni_conf_dir(conf: NetworkSpec) -> str:
    """Return the directory where the default plugin writes its CNI config.

    That is where Multus looks, unless Multus is disabled.
    """
    if conf.disable_multi_network:
        return SYSTEM_CNI_CONF_DIR
    return MULTUS_CNI_CONF_DIR
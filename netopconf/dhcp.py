"""Decide whether the DHCP CNI daemon is needed by additional networks."""

from __future__ import annotations

import json
import logging
from typing import Optional

from netopconf.models import (
    AdditionalNetworkDefinition,
    IPAMType,
    NetworkSpec,
    NetworkType,
    SimpleMacvlanConfig,
)

logger = logging.getLogger(__name__)


def use_dhcp_raw(addnet: AdditionalNetworkDefinition) -> bool:
    """Return whether a Raw network's CNI config uses DHCP IPAM."""
    try:
        raw = json.loads(addnet.raw_cni_config)
    except ValueError:
        logger.warning(
            "Not rendering DHCP daemonset, failed to Unmarshal RawCNIConfig: %r",
            addnet.raw_cni_config,
        )
        return False
    if raw is not None and not isinstance(raw, dict):
        logger.warning(
            "Not rendering DHCP daemonset, RawCNIConfig is not an object: %r",
            addnet.raw_cni_config,
        )
        return False

    ipam = raw.get("ipam") if raw else None
    if ipam is None:
        return False
    if not isinstance(ipam, dict):
        logger.warning("IPAM element has data of type %s but wanted an object", type(ipam).__name__)
        return False
    if "type" not in ipam:
        return False
    ipam_type = ipam["type"]
    if not isinstance(ipam_type, str):
        logger.warning(
            "IPAM type element has data of type %s but wanted string", type(ipam_type).__name__
        )
        return False
    return ipam_type == "dhcp"


def use_dhcp_simple_macvlan(conf: Optional[SimpleMacvlanConfig]) -> bool:
    """Return whether a SimpleMacvlan network uses DHCP, the default IPAM."""
    if conf is None or conf.ipam_config is None:
        return True
    return conf.ipam_config.type == IPAMType.DHCP


def _uses_dhcp(addnet: AdditionalNetworkDefinition) -> bool:
    if addnet.type == NetworkType.RAW:
        return use_dhcp_raw(addnet)
    if addnet.type == NetworkType.SIMPLE_MACVLAN:
        return use_dhcp_simple_macvlan(addnet.simple_macvlan_config)
    return False


def use_dhcp(conf: NetworkSpec) -> bool:
    """Return whether the DHCP daemon should be deployed for this spec."""
    if conf.disable_multi_network:
        return False
    return any(_uses_dhcp(addnet) for addnet in conf.additional_networks)
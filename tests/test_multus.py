from netopconf.models import NetworkSpec
from netopconf.multus import (
    MULTUS_CNI_CONF_DIR,
    SYSTEM_CNI_CONF_DIR,
    plugin_cni_conf_dir,
)


def test_multus_disabled_uses_system_dir():
    conf = NetworkSpec(disable_multi_network=True)
    assert plugin_cni_conf_dir(conf) == "/etc/kubernetes/cni/net.d"
    assert plugin_cni_conf_dir(conf) == SYSTEM_CNI_CONF_DIR


def test_multus_enabled_uses_multus_dir():
    conf = NetworkSpec(disable_multi_network=False)
    assert plugin_cni_conf_dir(conf) == "/var/run/multus/cni/net.d"
    assert plugin_cni_conf_dir(conf) == MULTUS_CNI_CONF_DIR


def test_unset_flag_means_multus_enabled():
    assert plugin_cni_conf_dir(NetworkSpec()) == MULTUS_CNI_CONF_DIR
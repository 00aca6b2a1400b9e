import sys

import pytest

from netopconf import mtu
from netopconf.mtu import MTUError, get_default_mtu

ROUTE_HEADER = "Iface\tDestination\tGateway\tFlags\tRefCnt\tUse\tMetric\tMask\tMTU\tWindow\tIRTT\n"
ZERO128 = "0" * 32


def _v4(iface, dest, mask, flags="0003"):
    return f"{iface}\t{dest}\t0102A8C0\t{flags}\t0\t0\t100\t{mask}\t0\t0\t0\n"


def _v6(iface, dest, prefix, flags="00000003"):
    return f"{dest} {prefix} {ZERO128} 00 {ZERO128} 00000400 00000001 00000000 {flags} {iface}\n"


@pytest.fixture
def fake_host(tmp_path, monkeypatch):
    proc = tmp_path / "proc" / "net"
    proc.mkdir(parents=True)
    sysnet = tmp_path / "sys" / "class" / "net"
    sysnet.mkdir(parents=True)
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(mtu, "_PROC_NET", proc)
    monkeypatch.setattr(mtu, "_SYS_CLASS_NET", sysnet)

    def write(v4="", v6="", links=None):
        (proc / "route").write_text(ROUTE_HEADER + v4)
        (proc / "ipv6_route").write_text(v6)
        for name, value in (links or {}).items():
            (sysnet / name).mkdir()
            (sysnet / name / "mtu").write_text(f"{value}\n")

    return write


def test_non_linux_falls_back_to_1500(monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")
    assert get_default_mtu() == 1500


def test_smallest_default_route_mtu_wins(fake_host):
    fake_host(
        v4=_v4("eth0", "00000000", "00000000") + _v4("eth1", "00000000", "00000000"),
        links={"eth0": 9000, "eth1": 1400},
    )
    assert get_default_mtu() == 1400


def test_non_default_routes_are_ignored(fake_host):
    fake_host(
        v4=_v4("eth0", "00000000", "00000000") + _v4("eth1", "0000A8C0", "00FFFFFF"),
        links={"eth0": 9000, "eth1": 1400},
    )
    assert get_default_mtu() == 9000


def test_ipv6_default_route_is_considered(fake_host):
    fake_host(
        v4=_v4("eth0", "00000000", "00000000"),
        v6=_v6("eth1", ZERO128, "00") + _v6("lo", ZERO128, "00", flags="00200200"),
        links={"eth0": 9000, "eth1": 1400},
    )
    assert get_default_mtu() == 1400


def test_no_routes_is_an_error(fake_host):
    fake_host()
    with pytest.raises(MTUError, match="got no routes"):
        get_default_mtu()


def test_no_default_route_is_an_error(fake_host):
    fake_host(v4=_v4("eth1", "0000A8C0", "00FFFFFF"), links={"eth1": 1400})
    with pytest.raises(MTUError, match="unable to determine MTU"):
        get_default_mtu()


def test_missing_link_is_an_error(fake_host):
    fake_host(v4=_v4("eth7", "00000000", "00000000"))
    with pytest.raises(MTUError, match="could not retrieve link eth7"):
        get_default_mtu()


def test_unreadable_route_tables_are_an_error(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(mtu, "_PROC_NET", tmp_path / "missing")
    with pytest.raises(MTUError, match="could not list routes"):
        get_default_mtu()
"""Discovery of the host's default-route MTU."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, List, NamedTuple

MIN_MTU_IPV4 = 576  # RFC 791
MIN_MTU_IPV6 = 1280  # RFC 8200
MAX_MTU = 65536

_FALLBACK_MTU = 1500
_PROC_NET = Path("/proc/net")
_SYS_CLASS_NET = Path("/sys/class/net")
_RTF_REJECT = 0x0200


class MTUError(RuntimeError):
    """Raised when the default MTU cannot be determined."""


class _Route(NamedTuple):
    link: str
    default: bool


def _ipv4_routes() -> Iterator[_Route]:
    lines = (_PROC_NET / "route").read_text().splitlines()[1:]
    for line in lines:
        fields = line.split()
        if len(fields) < 8:
            continue
        flags = int(fields[3], 16)
        if flags & _RTF_REJECT:
            continue
        default = int(fields[1], 16) == 0 and int(fields[7], 16) == 0
        yield _Route(fields[0], default)


def _ipv6_routes() -> Iterator[_Route]:
    for line in (_PROC_NET / "ipv6_route").read_text().splitlines():
        fields = line.split()
        if len(fields) < 10:
            continue
        flags = int(fields[8], 16)
        if flags & _RTF_REJECT:
            continue
        default = int(fields[0], 16) == 0 and int(fields[1], 16) == 0
        yield _Route(fields[9], default)


def _list_routes() -> List[_Route]:
    routes: List[_Route] = []
    failures = []
    for reader in (_ipv4_routes, _ipv6_routes):
        try:
            routes.extend(reader())
        except (OSError, ValueError) as exc:
            failures.append(exc)
    if len(failures) == 2:
        raise MTUError(f"could not list routes: {failures[-1]}") from failures[-1]
    return routes


def _link_mtu(link: str) -> int:
    try:
        return int((_SYS_CLASS_NET / link / "mtu").read_text().strip())
    except (OSError, ValueError) as exc:
        raise MTUError(f"could not retrieve link {link}: {exc}") from exc


def get_default_mtu() -> int:
    """Return the smallest MTU among the links carrying a default route.

    On platforms other than Linux a fixed value of 1500 is returned.
    """
    if not sys.platform.startswith("linux"):
        return _FALLBACK_MTU

    routes = _list_routes()
    if not routes:
        raise MTUError("got no routes")

    mtu = MAX_MTU + 1
    for route in routes:
        if not route.default:
            continue
        link_mtu = _link_mtu(route.link)
        if 0 < link_mtu < mtu:
            mtu = link_mtu
    if mtu > MAX_MTU:
        raise MTUError("unable to determine MTU")
    return mtu
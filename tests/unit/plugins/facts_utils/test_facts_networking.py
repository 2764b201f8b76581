# vim: ts=4:sw=4:sts=4:et:ft=python
# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; -*-
#
# GNU General Public License v3.0+
# SPDX-License-Identifier: GPL-3.0-or-later
# (see COPYING or https://www.gnu.org/licenses/gpl-3.0.txt)
#
# Copyright (c) 2025 oØ.o (@o0-o)
#
# This file is part of the o0_o.hostfacts Ansible Collection.

from __future__ import annotations

import socket
from types import SimpleNamespace
from typing import Any, Dict, List

import psutil
import pytest

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (
    Collection,
    FactsConfig,
)
from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolvers import (
    networking,
)

V6_MASK = "ffff:ffff:ffff:ffff::"

ROUTES = (
    "Iface\tDestination\tGateway\tFlags\tRefCnt\tUse\tMetric\tMask\t"
    "MTU\tWindow\tIRTT\n"
    "eth0\t0001A8C0\t00000000\t0001\t0\t0\t0\t00FFFFFF\t0\t0\t0\n"
    "br-lan\t00000000\t0100000A\t0003\t0\t0\t0\t00000000\t0\t0\t0\n"
)


def addr(family: int, address: str, netmask: Any = None) -> SimpleNamespace:
    return SimpleNamespace(
        family=family, address=address, netmask=netmask, broadcast=None
    )


@pytest.fixture
def host(monkeypatch: pytest.MonkeyPatch) -> None:
    """Patch psutil and the resolver library with a fixed host."""
    addresses = {
        "lo": [
            addr(socket.AF_INET, "127.0.0.1", "255.0.0.0"),
            addr(socket.AF_INET6, "::1", "ffff:" * 7 + "ffff"),
        ],
        "eth0": [
            addr(socket.AF_INET, "192.168.1.10", "255.255.255.0"),
            addr(socket.AF_INET6, "fe80::5054:ff:feab:cdef%eth0", V6_MASK),
            addr(socket.AF_INET6, "2001:db8::10", V6_MASK),
            addr(psutil.AF_LINK, "52:54:00:AB:CD:EF"),
        ],
        "br-lan": [addr(socket.AF_INET, "10.0.0.1", "255.255.0.0")],
    }
    stats = {
        "lo": SimpleNamespace(mtu=65536, isup=True),
        "eth0": SimpleNamespace(mtu=1500, isup=True),
        "br-lan": SimpleNamespace(mtu=9000, isup=True),
    }
    monkeypatch.setattr(networking.psutil, "net_if_addrs", lambda: addresses)
    monkeypatch.setattr(networking.psutil, "net_if_stats", lambda: stats)
    monkeypatch.setattr(networking.socket, "gethostname", lambda: "web01")
    monkeypatch.setattr(
        networking.socket, "getfqdn", lambda name="": "web01.example.com"
    )


def resolve(resolver: networking.NetworkingResolver) -> Collection:
    return Collection(FactsConfig(resolvers=(resolver,))).resolve_all()


@pytest.mark.parametrize(
    "address,netmask,expected",
    [
        ("192.168.1.10", "255.255.255.0", "192.168.1.0"),
        ("10.1.2.3", "255.0.0.0", "10.0.0.0"),
        ("2001:db8::10", V6_MASK, "2001:db8::"),
        ("fe80::1%eth0", V6_MASK, "fe80::"),
        ("not-an-ip", "255.255.255.0", None),
        ("10.1.2.3", "garbage", None),
    ],
)
def test_network_address(address: str, netmask: str, expected: Any) -> None:
    """Test network address computation for both families."""
    assert networking.network_address(address, netmask) == expected


def test_sanitize() -> None:
    """Test interface names made safe for fact names."""
    assert networking.sanitize("br-lan.10") == "br_lan_10"
    assert networking.sanitize("eth0") == "eth0"


def test_interface_facts(host) -> None:
    """Test per-interface facts from psutil."""
    facts = resolve(networking.NetworkingResolver())

    assert facts.value("interfaces") == "lo,eth0,br_lan"
    assert facts.value("ipaddress_eth0") == "192.168.1.10"
    assert facts.value("netmask_eth0") == "255.255.255.0"
    assert facts.value("network_eth0") == "192.168.1.0"
    assert facts.value("ipaddress6_eth0") == "2001:db8::10"
    assert facts.value("network6_eth0") == "2001:db8::"
    assert facts.value("macaddress_eth0") == "52:54:00:ab:cd:ef"
    assert facts.value("mtu_eth0") == 1500
    assert facts.value("mtu_br_lan") == 9000
    assert facts.value("network_br_lan") == "10.0.0.0"
    assert facts.value("ipaddress_lo") == "127.0.0.1"


def test_global_address_replaces_link_local_mask() -> None:
    """Test that a replaced link-local address leaves no stale mask."""
    interface: Dict[str, Any] = {}

    networking._add_address(
        interface, "ip6", "fe80::5054:ff:feab:cdef%eth0", V6_MASK
    )
    assert interface["network6"] == "fe80::"

    networking._add_address(interface, "ip6", "2001:db8::10", None)

    assert interface == {"ip6": "2001:db8::10"}


def test_link_local_does_not_replace_global() -> None:
    """Test that a link-local address never replaces a routable one."""
    interface: Dict[str, Any] = {}

    networking._add_address(interface, "ip6", "2001:db8::10", V6_MASK)
    networking._add_address(interface, "ip6", "fe80::1%eth0", None)

    assert interface == {
        "ip6": "2001:db8::10",
        "netmask6": V6_MASK,
        "network6": "2001:db8::",
    }


def test_primary_interface(host) -> None:
    """Test that the first non-loopback interface is primary."""
    facts = resolve(networking.NetworkingResolver())

    assert facts.value("primary") == "eth0"
    assert facts.value("ipaddress") == "192.168.1.10"
    assert facts.value("network") == "192.168.1.0"
    assert facts.value("macaddress") == "52:54:00:ab:cd:ef"
    assert facts.value("mtu") == 1500


def test_hostname(host) -> None:
    """Test hostname, domain and FQDN."""
    facts = resolve(networking.NetworkingResolver())

    assert facts.value("hostname") == "web01"
    assert facts.value("domain") == "example.com"
    assert facts.value("fqdn") == "web01.example.com"


def test_hostname_without_domain(host, monkeypatch) -> None:
    """Test a host whose name does not resolve to an FQDN."""
    monkeypatch.setattr(networking.socket, "getfqdn", lambda name="": name)

    facts = resolve(networking.NetworkingResolver())

    assert facts.value("hostname") == "web01"
    assert facts.value("fqdn") == "web01"
    assert "domain" not in facts


def test_networking_map(host) -> None:
    """Test the structured networking fact."""
    networking_map = resolve(networking.NetworkingResolver()).value(
        "networking"
    )

    assert networking_map["hostname"] == "web01"
    assert networking_map["primary"] == "eth0"
    assert networking_map["ip"] == "192.168.1.10"
    assert networking_map["ip6"] == "2001:db8::10"
    assert networking_map["interfaces"]["br-lan"] == {
        "ip": "10.0.0.1",
        "netmask": "255.255.0.0",
        "network": "10.0.0.0",
        "mtu": 9000,
    }


def test_linux_default_route(host, root) -> None:
    """Test that Linux picks the interface of the default route."""
    resolver = networking.NetworkingResolver(
        networking.LINUX_STEPS, root=root({"/proc/net/route": ROUTES})
    )

    facts = resolve(resolver)

    assert facts.value("primary") == "br-lan"
    assert facts.value("ipaddress") == "10.0.0.1"
    assert facts.value("mtu") == 9000


def test_linux_without_routes(host, root) -> None:
    """Test the fallback when the routing table is unavailable."""
    resolver = networking.NetworkingResolver(
        networking.LINUX_STEPS, root=root({})
    )

    assert resolve(resolver).value("primary") == "eth0"


def test_bsd_ifconfig(host, fake_commands, monkeypatch) -> None:
    """Test interfaces parsed from ``ifconfig -a`` on BSD."""
    resolver = networking.NetworkingResolver(networking.BSD_STEPS)
    fake_commands(resolver, {"ifconfig -a": "em0: flags=8843<UP> mtu 1500"})
    parsers: List[str] = []

    def parse(data, parser):
        parsers.append(parser)
        return [
            {
                "name": "em0",
                "mtu": 1500,
                "mac_addr": "08:00:27:A1:B2:C3",
                "ipv4_addr": "10.0.2.15",
                "ipv4_mask": "255.255.255.0",
                "ipv6_addr": "fe80::a00:27ff:fea1:b2c3",
                "ipv6_mask": 64,
            },
            {
                "name": "lo0",
                "mtu": 16384,
                "ipv4_addr": "127.0.0.1",
                "ipv4_mask": "255.0.0.0",
            },
        ]

    monkeypatch.setattr(resolver, "parse", parse)

    facts = resolve(resolver)

    assert parsers == ["ifconfig"]
    assert facts.value("interfaces") == "em0,lo0"
    assert facts.value("primary") == "em0"
    assert facts.value("macaddress_em0") == "08:00:27:a1:b2:c3"
    assert facts.value("netmask6_em0") == V6_MASK
    assert facts.value("network6_em0") == "fe80::"
    assert facts.value("network_em0") == "10.0.2.0"
    assert facts.value("mtu_lo0") == 16384


def test_no_interfaces() -> None:
    """Test that only hostname facts remain without interface data."""
    resolver = networking.NetworkingResolver(
        {
            "hostname": lambda r: {"hostname": "web01", "fqdn": "web01"},
            "interfaces": lambda r: {},
        }
    )

    facts = resolve(resolver)

    assert sorted(facts) == ["fqdn", "hostname", "networking"]
    assert facts.value("networking") == {"hostname": "web01", "fqdn": "web01"}

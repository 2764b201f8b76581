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

"""Hostname and network interface facts."""

from __future__ import annotations

import ipaddress
import re
import socket
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import psutil
from ansible.utils.display import Display

from ansible_collections.o0_o.hostfacts.plugins.facts_utils.resolver import (
    Resolver,
)

if TYPE_CHECKING:
    from ansible_collections.o0_o.hostfacts.plugins.facts_utils.collection import (  # noqa: E501
        Collection,
    )

display = Display()

# Interface attribute -> fact name prefix
INTERFACE_FACTS = {
    "ip": "ipaddress",
    "ip6": "ipaddress6",
    "mac": "macaddress",
    "netmask": "netmask",
    "netmask6": "netmask6",
    "network": "network",
    "network6": "network6",
    "mtu": "mtu",
}

INTERFACE_FACT_PATTERN = (
    r"^(ipaddress6?|macaddress|netmask6?|network6?|mtu)_.+$"
)

Interfaces = Dict[str, Dict[str, Any]]


def sanitize(name: str) -> str:
    """Make an interface name usable inside a fact name."""
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def network_address(address: str, netmask: str) -> Optional[str]:
    """
    Network address of ``address`` under ``netmask``.

    :param str address: IPv4 or IPv6 address
    :param str netmask: Netmask in address notation
    :returns Optional[str]: Network address, or None if either part is
        invalid
    """
    try:
        prefix = bin(int(ipaddress.ip_address(netmask))).count("1")
        interface = ipaddress.ip_interface(f"{address.split('%')[0]}/{prefix}")
    except ValueError:
        return None
    return str(interface.network.network_address)


def _is_link_local(address: str) -> bool:
    try:
        return ipaddress.ip_address(address.split("%")[0]).is_link_local
    except ValueError:
        return False


def _add_address(
    interface: Dict[str, Any],
    key: str,
    address: Optional[str],
    netmask: Optional[str],
) -> None:
    """Record an address, preferring a routable one over link-local."""
    if not address:
        return
    address = address.split("%")[0]
    if key in interface and not _is_link_local(interface[key]):
        return
    if key in interface and _is_link_local(address):
        return

    suffix = "6" if key == "ip6" else ""
    interface[key] = address
    # Drop the mask and network of a replaced address
    interface.pop(f"netmask{suffix}", None)
    interface.pop(f"network{suffix}", None)
    if netmask:
        interface[f"netmask{suffix}"] = netmask
        network = network_address(address, netmask)
        if network:
            interface[f"network{suffix}"] = network


def _interfaces(resolver: "NetworkingResolver") -> Interfaces:
    """Interfaces, addresses and MTUs from psutil."""
    try:
        addresses = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, psutil.Error) as e:
        display.vvvv(f"networking: unable to list interfaces: {e}")
        return {}

    interfaces: Interfaces = {}
    for name, entries in addresses.items():
        interface: Dict[str, Any] = {}
        for entry in entries:
            if entry.family == socket.AF_INET:
                _add_address(interface, "ip", entry.address, entry.netmask)
            elif entry.family == socket.AF_INET6:
                _add_address(interface, "ip6", entry.address, entry.netmask)
            elif entry.family == psutil.AF_LINK and entry.address:
                interface["mac"] = entry.address.lower().replace("-", ":")
        if name in stats and stats[name].mtu:
            interface["mtu"] = stats[name].mtu
        interfaces[name] = interface
    return interfaces


def _bsd_interfaces(resolver: "NetworkingResolver") -> Interfaces:
    """Interfaces from ``ifconfig -a`` parsed with jc."""
    result = resolver.execute("ifconfig", ["-a"])
    if not result.success:
        return {}
    parsed = resolver.parse(result.output, "ifconfig")

    interfaces: Interfaces = {}
    for entry in parsed or []:
        name = entry.get("name")
        if not name:
            continue
        interface: Dict[str, Any] = {}
        _add_address(
            interface, "ip", entry.get("ipv4_addr"), entry.get("ipv4_mask")
        )
        mask6 = entry.get("ipv6_mask")
        if isinstance(mask6, int):
            mask6 = str(ipaddress.IPv6Network(f"::/{mask6}").netmask)
        _add_address(interface, "ip6", entry.get("ipv6_addr"), mask6)
        if entry.get("mac_addr"):
            interface["mac"] = entry["mac_addr"].lower()
        if entry.get("mtu"):
            interface["mtu"] = int(entry["mtu"])
        interfaces[name] = interface
    return interfaces


def _is_loopback(name: str, interface: Dict[str, Any]) -> bool:
    return name.startswith("lo") or interface.get("ip", "").startswith("127.")


def _primary(
    resolver: "NetworkingResolver", interfaces: Interfaces
) -> Optional[str]:
    """First non-loopback interface with an IPv4 address."""
    for name, interface in interfaces.items():
        if "ip" in interface and not _is_loopback(name, interface):
            return name
    return None


def _linux_primary(
    resolver: "NetworkingResolver", interfaces: Interfaces
) -> Optional[str]:
    """Interface of the default route in /proc/net/route."""
    found: List[str] = []

    def match(line: str) -> bool:
        fields = line.split()
        if len(fields) < 8 or fields[0] == "Iface":
            return True
        if fields[1] == "00000000" and fields[7] == "00000000":
            found.append(fields[0])
            return False
        return True

    resolver.each_file_line("/proc/net/route", match)
    if found and found[0] in interfaces:
        return found[0]
    return _primary(resolver, interfaces)


def _hostname(resolver: "NetworkingResolver") -> Dict[str, str]:
    """Short hostname, domain and FQDN."""
    names: Dict[str, str] = {}
    hostname = socket.gethostname()
    if not hostname:
        return names

    fqdn = socket.getfqdn(hostname) or hostname
    if "." not in fqdn and "." in hostname:
        fqdn = hostname

    short, _, domain = fqdn.partition(".")
    names["hostname"] = hostname.split(".", 1)[0] or short
    if domain:
        names["domain"] = domain
        names["fqdn"] = fqdn
    else:
        names["fqdn"] = names["hostname"]
    return names


class NetworkingResolver(Resolver):
    """
    Resolves hostname and interface facts.

    Per-interface facts are named after the sanitized interface, e.g.
    ``ipaddress_eth0`` or ``mtu_br_lan``, and are claimed by pattern.
    """

    name = "networking"
    fact_names = (
        "hostname",
        "domain",
        "fqdn",
        "interfaces",
        "ipaddress",
        "ipaddress6",
        "macaddress",
        "netmask",
        "netmask6",
        "network",
        "network6",
        "mtu",
        "primary",
        "networking",
    )
    fact_patterns = (INTERFACE_FACT_PATTERN,)
    STEPS = {
        "hostname": _hostname,
        "interfaces": _interfaces,
        "primary": _primary,
    }

    def resolve_facts(self, facts: "Collection") -> None:
        networking: Dict[str, Any] = {}

        for key, value in self.step("hostname").items():
            facts.add(key, value)
            networking[key] = value

        interfaces = self.step("interfaces")
        if not interfaces:
            facts.add("networking", networking)
            return

        facts.add("interfaces", ",".join(sanitize(n) for n in interfaces))
        for name, interface in interfaces.items():
            for key, prefix in INTERFACE_FACTS.items():
                if key in interface:
                    facts.add(f"{prefix}_{sanitize(name)}", interface[key])

        primary = self.step("primary", interfaces)
        if primary:
            facts.add("primary", primary)
            networking["primary"] = primary
            for key, prefix in INTERFACE_FACTS.items():
                if key in interfaces[primary]:
                    facts.add(prefix, interfaces[primary][key])
                    networking[key] = interfaces[primary][key]

        networking["interfaces"] = interfaces
        facts.add("networking", networking)


LINUX_STEPS = {"primary": _linux_primary}
BSD_STEPS = {"interfaces": _bsd_interfaces}
